"""Sync API endpoints - manual and system-triggered runs, run history."""
import dataclasses
import logging
import uuid

from flask import Blueprint, g, jsonify, request

from ipam_sync.auth import forward_headers, require_auth
from ipam_sync.core.context import TenantContext
from ipam_sync.core.errors import ConnectionNotFound, SyncError, TenantNotFound
from ipam_sync.models import ApiConnection, SyncRun
from ipam_sync.api.pagination import paginate_query
from ipam_sync.services.sync_service import SyncService, resolve_connection, system_context

logger = logging.getLogger(__name__)

sync_bp = Blueprint("sync", __name__)


def parse_uuid(value):
    """UUID from a request value, or None."""
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def caller_context(connection_id):
    """Tenant context and connection of the current request.

    User runs act on the user's current tenant; system runs act on the
    connection's tenant, else the system account's.
    """
    user = g.current_user
    initiator = g.initiator

    if initiator.is_system:
        connection = ApiConnection.query.filter_by(id=connection_id, is_active=True).first()
        if connection is None:
            raise ConnectionNotFound(connection_id)
        context = dataclasses.replace(system_context(connection), forward_headers=forward_headers())
    else:
        if not user.current_tenant_id:
            raise TenantNotFound()
        context = TenantContext(
            tenant_id=user.current_tenant_id,
            user_id=user.id,
            initiator=initiator,
            forward_headers=forward_headers(),
        )

    return context, resolve_connection(connection_id, context.tenant_id)


def run_sync(entity_type: str):
    data = request.get_json(silent=True) or {}

    raw_id = data.get("apiConnectionId")
    if not raw_id:
        return jsonify({"error": "API connection ID is required"}), 400
    connection_id = parse_uuid(raw_id)
    if connection_id is None:
        return jsonify({"error": "Invalid API connection ID"}), 400

    context, connection = caller_context(connection_id)

    try:
        outcome = SyncService().run(entity_type, connection, context)
    except SyncError:
        raise
    except Exception as e:
        logger.exception(f"{entity_type} sync failed for connection {connection_id}")
        return jsonify({"error": f"Failed to sync {entity_type}", "details": str(e)}), 500

    return jsonify(outcome.to_dict())


@sync_bp.route("/devices", methods=["POST"])
@require_auth(allow_system=True)
def sync_devices():
    """Sync devices from an API connection."""
    return run_sync("devices")


@sync_bp.route("/libraries", methods=["POST"])
@require_auth(allow_system=True)
def sync_libraries():
    """Sync libraries from an API connection."""
    return run_sync("libraries")


@sync_bp.route("/contacts", methods=["POST"])
@require_auth(allow_system=True)
def sync_contacts():
    """Sync contacts from an API connection."""
    return run_sync("contacts")


@sync_bp.route("/history", methods=["GET"])
@require_auth
def sync_history():
    """List sync runs of the caller's tenant, newest first."""
    tenant_id = g.current_user.current_tenant_id
    if not tenant_id:
        raise TenantNotFound()

    query = (
        SyncRun.query.join(ApiConnection, SyncRun.api_connection_id == ApiConnection.id)
        .filter(ApiConnection.tenant_id == tenant_id)
    )

    raw_id = request.args.get("connectionId")
    if raw_id:
        connection_id = parse_uuid(raw_id)
        if connection_id is None:
            return jsonify({"error": "Invalid connection ID"}), 400
        query = query.filter(SyncRun.api_connection_id == connection_id)

    runs, pagination = paginate_query(query.order_by(SyncRun.sync_started_at.desc()))
    return jsonify({
        "history": [run.to_dict() for run in runs],
        "pagination": pagination,
    })
