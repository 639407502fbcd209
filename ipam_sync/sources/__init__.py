"""External record sources."""
import logging

from ipam_sync.config import settings
from ipam_sync.core.context import TenantContext
from ipam_sync.core.errors import FetchError
from ipam_sync.core.registry import get_source, registry
from ipam_sync.sources.base import SourceAdapter

logger = logging.getLogger(__name__)

__all__ = ["SourceAdapter", "source_kind", "relay_headers", "source_config", "open_source"]


def source_kind(connection) -> str:
    """Registry key of the adapter serving a connection."""
    if connection.connection_type == "google_sheets":
        return f"google_sheets:{connection.sheets_auth_type}"
    return connection.connection_type


def relay_headers(context: TenantContext) -> dict:
    """Headers sent to the sheet services on behalf of the run's caller.

    System runs have no caller credentials, so they identify themselves with
    the system header instead.
    """
    headers = dict(context.forward_headers)
    if context.initiator.is_system:
        headers[settings.SYSTEM_SYNC_HEADER] = settings.SYSTEM_SYNC_HEADER_VALUE
        if settings.SYSTEM_SYNC_TOKEN:
            headers["Authorization"] = f"Bearer {settings.SYSTEM_SYNC_TOKEN}"
    return headers


def source_config(connection, context: TenantContext) -> dict:
    """Adapter config for a connection and the caller behind the run."""
    sheets = connection.google_sheets
    config = {
        "api_url": connection.api_url,
        "headers": connection.headers or {},
        "sheet_name": connection.sheet_name or (sheets.sheet_name if sheets else ""),
        "range_notation": connection.range_notation or (sheets.range_notation if sheets else ""),
        "timeout": settings.SOURCE_TIMEOUT_SECONDS,
        "service_url": settings.SHEETS_SERVICE_URL,
        "forward_headers": relay_headers(context),
    }
    if sheets:
        config["spreadsheet_url"] = sheets.spreadsheet_url or connection.api_url
        config["spreadsheet_id"] = sheets.spreadsheet_id
    return config


def open_source(connection, context: TenantContext) -> SourceAdapter:
    """Select the adapter for a connection, once per run."""
    kind = source_kind(connection)
    registry.initialize_defaults()
    if not registry.has_provider("source", kind):
        raise FetchError(f"Connection type '{connection.connection_type}' does not support pull sync")

    logger.debug(f"Connection '{connection.name}' served by source '{kind}'")
    return get_source(kind, source_config(connection, context))
