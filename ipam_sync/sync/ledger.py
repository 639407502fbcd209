"""Sync run ledger - one sync_history row per run, finalized exactly once."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from ipam_sync.config import settings
from ipam_sync.core.context import TenantContext
from ipam_sync.core.errors import RunAlreadyFinalized, SyncAlreadyRunning
from ipam_sync.extensions import db
from ipam_sync.models import ApiConnection, SyncRun

logger = logging.getLogger(__name__)

ABANDONED_MESSAGE = "Abandoned: run did not finish"


class SyncLedger:
    """Creates and finalizes SyncRun rows and mirrors the outcome on the connection."""

    def __init__(self, run_timeout_minutes: Optional[int] = None):
        self.run_timeout = timedelta(
            minutes=run_timeout_minutes or settings.SYNC_RUN_TIMEOUT_MINUTES
        )

    def begin(self, connection: ApiConnection, context: TenantContext) -> SyncRun:
        """Open a running run for a connection.

        The connection row is locked while the running-run guard is checked,
        so two concurrent begin() calls for one connection serialize.

        Raises:
            SyncAlreadyRunning: a fresh running run exists for the connection
        """
        db.session.query(ApiConnection).filter_by(id=connection.id).with_for_update().one()

        now = datetime.utcnow()
        self._reap(now, connection_id=connection.id)

        running = SyncRun.query.filter_by(
            api_connection_id=connection.id, status="running"
        ).first()
        if running:
            db.session.commit()
            raise SyncAlreadyRunning(connection.id, running.id)

        run = SyncRun(
            api_connection_id=connection.id,
            initiated_by=context.user_id,
            execution_type=context.initiator.execution_type,
            status="running",
            sync_started_at=now,
            sync_details={},
        )
        db.session.add(run)
        db.session.commit()

        logger.info(
            f"Sync run {run.id} started for connection '{connection.name}' "
            f"({run.execution_type})"
        )
        return run

    def complete(self, run: SyncRun, stats, total_records: int):
        """Finalize a run as completed with its counters."""
        self._ensure_running(run)
        now = datetime.utcnow()

        run.status = "completed"
        run.sync_completed_at = now
        run.records_processed = stats.processed
        run.records_added = stats.added
        run.records_updated = stats.updated
        run.records_deactivated = stats.deactivated
        run.sync_details = {"total_api_records": total_records}

        self._mark_connection(run.api_connection_id, now, "success", stats.summary)
        db.session.commit()

        logger.info(f"Sync run {run.id} completed: {stats.summary}")

    def fail(self, run: SyncRun, error_message: str):
        """Finalize a run as failed."""
        self._ensure_running(run)
        now = datetime.utcnow()

        run.status = "failed"
        run.sync_completed_at = now
        run.error_message = error_message

        self._mark_connection(run.api_connection_id, now, "error", error_message)
        db.session.commit()

        logger.warning(f"Sync run {run.id} failed: {error_message}")

    def reap_stale_runs(self, now: Optional[datetime] = None) -> int:
        """Fail every running run older than the run timeout."""
        count = self._reap(now or datetime.utcnow())
        db.session.commit()
        return count

    def _reap(self, now: datetime, connection_id=None) -> int:
        cutoff = now - self.run_timeout
        query = SyncRun.query.filter(
            SyncRun.status == "running",
            SyncRun.sync_started_at < cutoff,
        )
        if connection_id is not None:
            query = query.filter(SyncRun.api_connection_id == connection_id)

        stale = query.all()
        for run in stale:
            run.status = "failed"
            run.sync_completed_at = now
            run.error_message = ABANDONED_MESSAGE
            self._mark_connection(run.api_connection_id, now, "error", ABANDONED_MESSAGE)
            logger.warning(f"Sync run {run.id} abandoned (started {run.sync_started_at.isoformat()})")

        if stale:
            db.session.flush()
        return len(stale)

    @staticmethod
    def _ensure_running(run: SyncRun):
        if run.status != "running":
            raise RunAlreadyFinalized(run.id, run.status)

    @staticmethod
    def _mark_connection(connection_id, now: datetime, status: str, message: str):
        connection = db.session.get(ApiConnection, connection_id)
        if connection is None:
            return
        connection.last_sync = now
        connection.last_sync_status = status
        connection.last_sync_message = message
