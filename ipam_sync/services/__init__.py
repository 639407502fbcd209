"""Business logic services."""
from ipam_sync.services.sync_service import (
    SyncService,
    SyncOutcome,
    get_system_user,
    resolve_connection,
    system_context,
)

__all__ = [
    "SyncService",
    "SyncOutcome",
    "get_system_user",
    "resolve_connection",
    "system_context",
]
