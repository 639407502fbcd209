"""Auto-sync Celery tasks.

Periodic task that checks all ApiConnections with auto_sync_enabled=True
and runs a sync when the connection's interval has elapsed since last_sync,
plus a maintenance task that fails abandoned runs.
"""
import logging
from datetime import datetime

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name="ipam_sync.auto_sync_connections", bind=True, max_retries=0)
def auto_sync_connections(self):
    """Periodic task: sync all connections that are due.

    Checks each ApiConnection where:
    - is_active = True
    - auto_sync_enabled = True
    - last_sync + interval < now()  (or never synced)

    Runs inside Flask app context.
    """
    from ipam_sync.services.sync_service import SyncService

    result = SyncService().run_auto_sync(datetime.utcnow())
    logger.info(
        f"Auto-sync pass: {result['connections_synced']} synced, "
        f"{result['connections_failed']} failed"
    )
    return result


@shared_task(name="ipam_sync.sync_connection", bind=True, max_retries=0)
def sync_connection(self, connection_id: str, entity_type: str = None):
    """Sync a single connection by ID as the system account."""
    import uuid

    from ipam_sync.core.errors import SyncError
    from ipam_sync.models import ApiConnection
    from ipam_sync.services.sync_service import SyncService, resolve_connection, system_context

    connection = ApiConnection.query.filter_by(id=uuid.UUID(connection_id), is_active=True).first()
    if not connection:
        return {"error": f"Connection {connection_id} not found"}

    entity_type = entity_type or connection.sync_target or "libraries"
    try:
        context = system_context(connection)
        connection = resolve_connection(connection.id, context.tenant_id)
        outcome = SyncService().run(entity_type, connection, context)
    except SyncError as e:
        logger.error(f"Sync of connection {connection_id} failed: {e.message}")
        return {"error": e.message, "code": e.error_code}

    return outcome.to_dict()


@shared_task(name="ipam_sync.reap_stale_sync_runs")
def reap_stale_sync_runs():
    """Fail runs left in 'running' longer than the run timeout."""
    from ipam_sync.sync.ledger import SyncLedger

    count = SyncLedger().reap_stale_runs()
    if count:
        logger.warning(f"Marked {count} abandoned sync runs as failed")
    return {"reaped": count}
