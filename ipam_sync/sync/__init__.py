"""Sync core - field mapping, reconciliation and the run ledger."""
from ipam_sync.sync.mapping import FieldMapper, Skip, SCHEMAS, validate_mapping
from ipam_sync.sync.reconciler import (
    RunStats,
    EntityReconciler,
    DeviceReconciler,
    LibraryReconciler,
    ContactReconciler,
)
from ipam_sync.sync.ledger import SyncLedger

__all__ = [
    "FieldMapper",
    "Skip",
    "SCHEMAS",
    "validate_mapping",
    "RunStats",
    "EntityReconciler",
    "DeviceReconciler",
    "LibraryReconciler",
    "ContactReconciler",
    "SyncLedger",
]
