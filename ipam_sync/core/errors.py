"""Sync error hierarchy.

Every error carries the HTTP status the API layer answers with, so route
handlers can turn any SyncError into a JSON response without a lookup table.
"""
from typing import Any, Optional


class SyncError(Exception):
    """Base class of every expected sync failure."""

    status_code = 500
    error_code = "SYNC_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.error_code}
        body.update(self.details)
        return body


class AuthRequired(SyncError):
    status_code = 401
    error_code = "AUTH_REQUIRED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class TenantNotFound(SyncError):
    status_code = 400
    error_code = "TENANT_NOT_FOUND"

    def __init__(self, message: str = "User tenant not found"):
        super().__init__(message)


class ConnectionNotFound(SyncError):
    status_code = 404
    error_code = "CONNECTION_NOT_FOUND"

    def __init__(self, connection_id: Any = None):
        super().__init__("API connection not found", {"connectionId": str(connection_id)} if connection_id else None)


class InvalidFieldMapping(SyncError):
    status_code = 400
    error_code = "INVALID_FIELD_MAPPING"

    def __init__(self, entity_type: str, unknown_fields: list[str]):
        self.unknown_fields = unknown_fields
        super().__init__(
            f"Unknown {entity_type} field(s) in mapping: {', '.join(unknown_fields)}",
            {"unknownFields": unknown_fields},
        )


class SyncAlreadyRunning(SyncError):
    status_code = 409
    error_code = "SYNC_ALREADY_RUNNING"

    def __init__(self, connection_id: Any, run_id: Any):
        super().__init__(
            "A sync run for this connection is already in progress",
            {"syncRunId": str(run_id), "connectionId": str(connection_id)},
        )


class FetchError(SyncError):
    """Upstream REST/Sheets call failed."""

    status_code = 500
    error_code = "FETCH_ERROR"


class InvalidResponseShape(FetchError):
    error_code = "INVALID_RESPONSE_SHAPE"


class AuthExpired(FetchError):
    """Google OAuth token expired or missing; the user must re-authenticate."""

    status_code = 401
    error_code = "GOOGLE_AUTH_EXPIRED"

    def __init__(self, message: str = "Google authentication expired. Please reconnect your Google account."):
        super().__init__(message, {"requireReauth": True})


class PartialWriteFailure(SyncError):
    """A row write failed mid-run; rows written before it stay committed."""

    error_code = "PARTIAL_WRITE_FAILURE"


class SheetNotAccessible(FetchError):
    """The spreadsheet is not shared publicly and no API key fallback worked."""

    status_code = 403
    error_code = "SHEET_NOT_ACCESSIBLE"


class RunAlreadyFinalized(SyncError):
    """complete()/fail() called on a run that already ended."""

    error_code = "RUN_ALREADY_FINALIZED"

    def __init__(self, run_id: Any, status: str):
        super().__init__(f"Sync run {run_id} is already {status}", {"syncRunId": str(run_id)})
