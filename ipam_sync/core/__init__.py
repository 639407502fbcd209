"""Core module initialization."""
from ipam_sync.core.registry import (
    SourceRegistry,
    registry,
    get_source,
    get_reconciler_class,
)
from ipam_sync.core.context import Initiator, TenantContext

__all__ = [
    "SourceRegistry",
    "registry",
    "get_source",
    "get_reconciler_class",
    "Initiator",
    "TenantContext",
]
