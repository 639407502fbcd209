"""Sync Service - run one connection through source, mapper, reconciler and ledger.

Handles:
- Connection lookup and tenant adoption for the caller's tenant
- One sync run: fetch -> map -> reconcile, recorded in the run ledger
- Scheduler side: which auto-sync connections are due, and running them
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import nulls_first
from sqlalchemy.exc import SQLAlchemyError

from ipam_sync.config import settings
from ipam_sync.core.context import Initiator, TenantContext
from ipam_sync.core.errors import ConnectionNotFound, RunAlreadyFinalized, TenantNotFound
from ipam_sync.core.registry import get_reconciler_class
from ipam_sync.extensions import db
from ipam_sync.models import ApiConnection, SyncRun, User
from ipam_sync.sources import open_source
from ipam_sync.sync.ledger import SyncLedger
from ipam_sync.sync.mapping import FieldMapper
from ipam_sync.sync.reconciler import RunStats

logger = logging.getLogger(__name__)

FREQUENCY_UNITS = {
    "minutes": timedelta(minutes=1),
    "hours": timedelta(hours=1),
    "days": timedelta(days=1),
}


class SyncOutcome:
    """Result of a finished run."""

    def __init__(self, run: SyncRun, stats: RunStats, total_records: int):
        self.run = run
        self.stats = stats
        self.total_records = total_records

    @property
    def warnings(self) -> list[str]:
        return list(self.stats.skip_reasons) if self.stats.skipped else []

    @property
    def message(self) -> str:
        message = self.stats.summary
        if self.stats.skipped:
            message += (
                f" ({self.stats.skipped} records skipped: "
                f"{', '.join(self.stats.skip_reasons)})"
            )
        return message

    def to_dict(self):
        return {
            "success": True,
            "message": self.message,
            "stats": self.stats.to_dict(),
            "warnings": self.warnings,
            "syncRunId": str(self.run.id),
        }


def get_system_user() -> Optional[User]:
    """The account that scheduler runs are attributed to."""
    return User.query.filter_by(email=settings.SYSTEM_USER_EMAIL, is_active=True).first()


def resolve_connection(connection_id, tenant_id) -> ApiConnection:
    """Load an active connection visible to the tenant.

    A connection without a tenant is adopted by the first tenant that syncs it.

    Raises:
        ConnectionNotFound: absent, inactive, or owned by another tenant
    """
    connection = ApiConnection.query.filter_by(id=connection_id, is_active=True).first()
    if connection is None:
        raise ConnectionNotFound(connection_id)

    if connection.tenant_id is None:
        connection.tenant_id = tenant_id
        db.session.commit()
        logger.info(f"Connection '{connection.name}' adopted by tenant {tenant_id}")
    elif connection.tenant_id != tenant_id:
        raise ConnectionNotFound(connection_id)

    return connection


def system_context(connection: ApiConnection) -> TenantContext:
    """Context of a scheduler run: the connection's tenant, the system account.

    Raises:
        TenantNotFound: neither the connection nor the system account has a tenant
    """
    system_user = get_system_user()
    tenant_id = connection.tenant_id or (system_user.current_tenant_id if system_user else None)
    if tenant_id is None:
        raise TenantNotFound(f"No tenant for connection '{connection.name}'")

    return TenantContext(
        tenant_id=tenant_id,
        user_id=system_user.id if system_user else None,
        initiator=Initiator.system(),
    )


class SyncService:
    """Runs one connection into one managed collection."""

    def __init__(self, ledger: Optional[SyncLedger] = None):
        self.ledger = ledger or SyncLedger()

    def run(self, entity_type: str, connection: ApiConnection, context: TenantContext) -> SyncOutcome:
        """Execute one sync run.

        The mapping is validated before the ledger row exists, so an invalid
        mapping never produces a run. Any failure after that marks the run
        failed and is re-raised.
        """
        mapper = FieldMapper(entity_type, connection.field_mappings)
        reconciler_class = get_reconciler_class(entity_type)

        run = self.ledger.begin(connection, context)
        logger.info(
            f"Syncing {entity_type} from connection '{connection.name}' "
            f"({connection.connection_type}) for tenant {context.tenant_id}"
        )

        try:
            with open_source(connection, context) as source:
                raw_records = source.fetch_records()

            records = [mapper.map(raw) for raw in raw_records]
            reconciler = reconciler_class(context, connection.id)
            stats = reconciler.reconcile(records)
            self.ledger.complete(run, stats, len(raw_records))
        except Exception as e:
            db.session.rollback()
            self._record_failure(run, e)
            raise

        return SyncOutcome(run, stats, len(raw_records))

    def _record_failure(self, run: SyncRun, error: Exception):
        """Mark the run failed without masking the error that ended it."""
        try:
            self.ledger.fail(run, str(error))
        except RunAlreadyFinalized:
            logger.warning(f"Sync run {run.id} already finalized as '{run.status}'")
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception(f"Could not record failure of sync run {run.id}; left for the reaper")

    def due_connections(self, now: Optional[datetime] = None) -> list[ApiConnection]:
        """Active auto-sync connections whose interval has elapsed, never-synced first."""
        now = now or datetime.utcnow()
        candidates = (
            ApiConnection.query.filter_by(is_active=True, auto_sync_enabled=True)
            .order_by(nulls_first(ApiConnection.last_sync.asc()))
            .all()
        )

        due = []
        for connection in candidates:
            if connection.last_sync:
                unit = FREQUENCY_UNITS.get(connection.sync_frequency_type or "minutes", FREQUENCY_UNITS["minutes"])
                next_sync_at = connection.last_sync + unit * (connection.sync_frequency_minutes or 5)
                if now < next_sync_at:
                    logger.debug(
                        f"Connection '{connection.name}' not due yet "
                        f"(next sync at {next_sync_at.isoformat()})"
                    )
                    continue
            due.append(connection)
        return due

    def run_auto_sync(self, now: Optional[datetime] = None) -> dict:
        """Sync every due connection as the system account.

        One connection failing does not stop the others.
        """
        now = now or datetime.utcnow()
        synced = 0
        failed = 0

        for connection in self.due_connections(now):
            entity_type = connection.sync_target or "libraries"
            logger.info(f"Auto-syncing {entity_type} from connection '{connection.name}'")
            try:
                outcome = self.run(entity_type, connection, system_context(connection))
                synced += 1
                logger.info(f"Connection '{connection.name}' auto-synced: {outcome.message}")
            except Exception as e:
                failed += 1
                db.session.rollback()
                logger.error(f"Auto-sync failed for connection '{connection.name}': {e}")

        return {
            "connections_synced": synced,
            "connections_failed": failed,
            "checked_at": now.isoformat(),
        }
