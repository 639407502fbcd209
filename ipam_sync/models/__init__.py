"""IPAM Sync Database Models."""
from ipam_sync.models.tenant import Tenant, User
from ipam_sync.models.api_connection import ApiConnection, GoogleSheetsConnection
from ipam_sync.models.device import Device
from ipam_sync.models.library import Library
from ipam_sync.models.contact import Contact
from ipam_sync.models.sync_history import SyncRun

__all__ = [
    "Tenant",
    "User",
    "ApiConnection",
    "GoogleSheetsConnection",
    "Device",
    "Library",
    "Contact",
    "SyncRun",
]
