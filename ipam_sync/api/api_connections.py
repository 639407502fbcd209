"""API Connections endpoints - external source configuration per tenant."""
import logging

from flask import Blueprint, g, jsonify, request

from ipam_sync.auth import require_auth
from ipam_sync.core.errors import ConnectionNotFound, TenantNotFound
from ipam_sync.extensions import db
from ipam_sync.models import ApiConnection, GoogleSheetsConnection, SyncRun
from ipam_sync.models.api_connection import CONNECTION_TYPES, FREQUENCY_TYPES, SYNC_TARGETS
from ipam_sync.sources.sheets import extract_spreadsheet_id
from ipam_sync.sync.mapping import validate_mapping

logger = logging.getLogger(__name__)

api_connections_bp = Blueprint("api_connections", __name__)

LEGACY_CONNECTION_TYPES = {"REST API": "rest"}

# Columns that may be changed but never cleared
REQUIRED_FIELDS = ("name", "api_url", "connection_type", "sync_target")


def _tenant_id():
    tenant_id = g.current_user.current_tenant_id
    if not tenant_id:
        raise TenantNotFound("Tenant information not found")
    return tenant_id


def _get_connection(connection_id) -> ApiConnection:
    connection = ApiConnection.query.filter_by(
        id=connection_id, tenant_id=_tenant_id(), is_active=True
    ).first()
    if connection is None:
        raise ConnectionNotFound(connection_id)
    return connection


def _last_sync_info(connection: ApiConnection) -> dict:
    run = (
        SyncRun.query.filter_by(api_connection_id=connection.id)
        .order_by(SyncRun.sync_started_at.desc())
        .first()
    )
    if run is None:
        return {}
    return {
        "last_sync_time": run.sync_completed_at.isoformat() if run.sync_completed_at else None,
        "status": run.status,
        "records_processed": run.records_processed,
        "records_added": run.records_added,
        "records_updated": run.records_updated,
        "records_deactivated": run.records_deactivated,
    }


def _validate(data: dict):
    """Return an error message for cleared or invalid fields, else None."""
    for key in REQUIRED_FIELDS:
        if key in data and not data[key]:
            return f"{key} cannot be empty"

    connection_type = data.get("connection_type")
    if connection_type is not None and connection_type not in CONNECTION_TYPES:
        return f"Invalid connection_type. Must be one of: {', '.join(CONNECTION_TYPES)}"

    sync_target = data.get("sync_target")
    if sync_target is not None and sync_target not in SYNC_TARGETS:
        return f"Invalid sync_target. Must be one of: {', '.join(SYNC_TARGETS)}"

    frequency_type = data.get("sync_frequency_type")
    if frequency_type is not None and frequency_type not in FREQUENCY_TYPES:
        return f"Invalid sync_frequency_type. Must be one of: {', '.join(FREQUENCY_TYPES)}"

    headers = data.get("headers")
    if headers is not None and not (
        isinstance(headers, dict) and all(isinstance(v, str) for v in headers.values())
    ):
        return "headers must be an object of string values"

    return None


def _frequency(value):
    try:
        return int(value) or 5
    except (TypeError, ValueError):
        return 5


def _sheets_row(connection: ApiConnection, data: dict) -> GoogleSheetsConnection:
    auth_type = "oauth" if data.get("google_auth_type") == "oauth" else "public"
    spreadsheet_url = data.get("spreadsheet_url") or connection.api_url
    return GoogleSheetsConnection(
        spreadsheet_url=spreadsheet_url,
        spreadsheet_id=data.get("spreadsheet_id") or extract_spreadsheet_id(spreadsheet_url) or "",
        spreadsheet_name=connection.name,
        sheet_name=data.get("sheet_name") or "",
        range_notation=data.get("range_notation") or "A:Z",
        auth_type=auth_type,
        google_account_id=data.get("google_account_id"),
    )


@api_connections_bp.route("", methods=["GET"])
@require_auth
def list_api_connections():
    """List the tenant's active connections, optionally by ?sync_target=."""
    query = ApiConnection.query.filter_by(tenant_id=_tenant_id(), is_active=True)

    sync_target = request.args.get("sync_target")
    if sync_target:
        query = query.filter(db.func.coalesce(ApiConnection.sync_target, "libraries") == sync_target)

    connections = query.order_by(ApiConnection.created_at.desc()).all()
    return jsonify([
        {**c.to_dict(), "last_sync_info": _last_sync_info(c)} for c in connections
    ])


@api_connections_bp.route("", methods=["POST"])
@require_auth
def create_api_connection():
    """Create a connection; the field mapping is validated against its sync target."""
    data = request.get_json(silent=True) or {}

    if not data.get("name") or not data.get("api_url"):
        return jsonify({"error": "Name and API URL are required"}), 400

    data["connection_type"] = LEGACY_CONNECTION_TYPES.get(
        data.get("connection_type"), data.get("connection_type") or "rest"
    )
    data["sync_target"] = data.get("sync_target") or "libraries"

    error = _validate(data)
    if error:
        return jsonify({"error": error}), 400

    tenant_id = _tenant_id()
    field_mappings = validate_mapping(data["sync_target"], data.get("field_mappings") or {})

    connection = ApiConnection(
        tenant_id=tenant_id,
        name=data["name"],
        description=data.get("description") or "",
        connection_type=data["connection_type"],
        sync_target=data["sync_target"],
        api_url=data["api_url"],
        headers=data.get("headers") or {},
        sheet_name=data.get("sheet_name") or "",
        range_notation=data.get("range_notation") or "A:Z",
        field_mappings=field_mappings,
        auto_sync_enabled=bool(data.get("auto_sync_enabled", False)),
        sync_frequency_minutes=_frequency(data.get("sync_frequency_minutes")),
        sync_frequency_type=data.get("sync_frequency_type") or "minutes",
        created_by=g.current_user.id,
    )
    if connection.connection_type == "google_sheets":
        connection.google_sheets = _sheets_row(connection, data)

    db.session.add(connection)
    db.session.commit()

    logger.info(f"Connection '{connection.name}' created for tenant {tenant_id}")
    return jsonify(connection.to_dict()), 201


@api_connections_bp.route("/<uuid:connection_id>", methods=["GET"])
@require_auth
def get_api_connection(connection_id):
    """Get a single connection."""
    connection = _get_connection(connection_id)
    return jsonify({**connection.to_dict(), "last_sync_info": _last_sync_info(connection)})


@api_connections_bp.route("/<uuid:connection_id>", methods=["PUT"])
@require_auth
def update_api_connection(connection_id):
    """Update a connection; a changed mapping or target is re-validated."""
    connection = _get_connection(connection_id)
    data = request.get_json(silent=True) or {}

    if "connection_type" in data:
        data["connection_type"] = LEGACY_CONNECTION_TYPES.get(data["connection_type"], data["connection_type"])

    error = _validate(data)
    if error:
        return jsonify({"error": error}), 400

    updatable = (
        "name", "description", "connection_type", "sync_target", "api_url",
        "headers", "sheet_name", "range_notation", "auto_sync_enabled",
        "field_mappings", "sync_frequency_minutes", "sync_frequency_type",
    )
    if not any(key in data for key in updatable):
        return jsonify({"error": "No fields to update"}), 400

    if "field_mappings" in data or "sync_target" in data:
        target = data.get("sync_target") or connection.sync_target
        mapping = data["field_mappings"] if "field_mappings" in data else connection.field_mappings
        data["field_mappings"] = validate_mapping(target, mapping or {})

    for key in updatable:
        if key not in data:
            continue
        value = data[key]
        if key == "sync_frequency_minutes":
            value = _frequency(value)
        elif key == "sync_frequency_type":
            value = value or "minutes"
        elif key == "auto_sync_enabled":
            value = bool(value)
        elif key in ("headers", "field_mappings"):
            value = value or {}
        setattr(connection, key, value)

    if connection.connection_type == "google_sheets" and connection.google_sheets is None:
        connection.google_sheets = _sheets_row(connection, data)

    db.session.commit()
    return jsonify(connection.to_dict())


@api_connections_bp.route("/<uuid:connection_id>", methods=["DELETE"])
@require_auth
def delete_api_connection(connection_id):
    """Deactivate a connection. The row stays, so owned libraries keep their owner."""
    connection = _get_connection(connection_id)
    connection.is_active = False
    connection.auto_sync_enabled = False
    db.session.commit()

    logger.info(f"Connection '{connection.name}' deactivated")
    return jsonify({
        "message": "API connection deleted successfully",
        "connection": connection.to_dict(),
    })


@api_connections_bp.route("/<uuid:connection_id>/toggle-auto-sync", methods=["POST", "PUT"])
@require_auth
def toggle_auto_sync(connection_id):
    """Enable or disable scheduled sync; without a body the flag is flipped."""
    connection = _get_connection(connection_id)
    data = request.get_json(silent=True) or {}

    enabled = data.get("enabled")
    connection.auto_sync_enabled = (not connection.auto_sync_enabled) if enabled is None else bool(enabled)
    db.session.commit()

    return jsonify({
        "success": True,
        "message": "Auto-sync enabled" if connection.auto_sync_enabled else "Auto-sync disabled",
        "connection": connection.to_dict(),
    })
