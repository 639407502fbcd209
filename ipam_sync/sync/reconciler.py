"""Entity reconcilers - apply a normalized record stream to one collection.

Handles:
- Upsert by natural key (name for devices/libraries, email for contacts)
- Restore of inactive / soft-deleted rows that reappear upstream
- Soft delete of libraries the owning connection no longer reports

Each row write commits on its own; a failed write rolls back that row only
and aborts the run with PartialWriteFailure.
"""
import logging
from datetime import datetime
from typing import Any, Iterable, Optional, Union

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from ipam_sync.core.context import TenantContext
from ipam_sync.core.errors import PartialWriteFailure
from ipam_sync.extensions import db
from ipam_sync.models import Contact, Device, Library
from ipam_sync.sync.mapping import Skip

logger = logging.getLogger(__name__)

DEACTIVATION_REASON = "Auto-sync deactivation"

NormalizedRecord = Union[dict[str, Any], Skip]


class RunStats:
    """Counters of one reconciliation."""

    def __init__(self):
        self.processed = 0
        self.added = 0
        self.updated = 0
        self.deactivated = 0
        self.skipped = 0
        self.skip_reasons: list[str] = []

    def skip(self, reason: str):
        self.skipped += 1
        if reason not in self.skip_reasons:
            self.skip_reasons.append(reason)

    @property
    def summary(self) -> str:
        return (
            f"Synced successfully: {self.added} added, "
            f"{self.updated} updated, {self.deactivated} deactivated"
        )

    def to_dict(self):
        return {
            "recordsProcessed": self.processed,
            "recordsAdded": self.added,
            "recordsUpdated": self.updated,
            "recordsDeactivated": self.deactivated,
            "recordsSkipped": self.skipped,
        }


class EntityReconciler:
    """Base reconciler; subclasses bind a model and its lifecycle rules."""

    entity_type: str = ""
    model = None
    natural_key = "name"
    deactivates_missing = False

    def __init__(self, context: TenantContext, connection_id):
        self.context = context
        self.connection_id = connection_id

    # -- per-entity hooks ------------------------------------------------

    def snapshot_query(self):
        """Rows a feed may match, before indexing by natural key."""
        return self.model.query.filter_by(tenant_id=self.context.tenant_id, is_active=True)

    def is_inactive(self, row) -> bool:
        return False

    def activate(self, row):
        """Status columns written on every matched or inserted row."""
        row.is_active = True

    def new_row(self, record: dict[str, Any]):
        row = self.model(
            tenant_id=self.context.tenant_id,
            created_by=self.context.user_id,
        )
        for name, value in record.items():
            setattr(row, name, value)
        self.activate(row)
        return row

    # -- reconciliation --------------------------------------------------

    def load_snapshot(self) -> dict[str, Any]:
        snapshot = {}
        for row in self.snapshot_query().all():
            key = getattr(row, self.natural_key)
            if key not in snapshot:
                snapshot[key] = row
        return snapshot

    def reconcile(self, records: Iterable[NormalizedRecord]) -> RunStats:
        """Apply the records in feed order and return the run counters."""
        stats = RunStats()
        snapshot = self.load_snapshot()
        seen: set[str] = set()

        logger.debug(
            f"Reconciling {self.entity_type} for tenant {self.context.tenant_id}: "
            f"{len(snapshot)} existing rows"
        )

        for record in records:
            stats.processed += 1

            if isinstance(record, Skip):
                stats.skip(record.reason)
                logger.debug(f"Skipped {self.entity_type} record: {record.reason}")
                continue

            key = record[self.natural_key]
            seen.add(key)
            existing = snapshot.get(key)

            if existing is not None:
                restored = self._write(key, lambda: self.update_row(existing, record))
                if restored:
                    logger.debug(f"Restored {self.entity_type} '{key}' - found upstream again")
                    stats.added += 1
                else:
                    stats.updated += 1
            else:
                snapshot[key] = self._write(key, lambda: self.insert_row(record))
                stats.added += 1

        if self.deactivates_missing:
            stats.deactivated = self.deactivate_missing(snapshot, seen)

        return stats

    def update_row(self, row, record: dict[str, Any]) -> bool:
        """Sparse update of mapped columns. Returns True for a restore."""
        restored = self.is_inactive(row)
        for name, value in record.items():
            if name != self.natural_key:
                setattr(row, name, value)
        self.activate(row)
        row.updated_at = datetime.utcnow()
        return restored

    def insert_row(self, record: dict[str, Any]):
        row = self.new_row(record)
        db.session.add(row)
        return row

    def deactivate_missing(self, snapshot: dict[str, Any], seen: set[str]) -> int:
        return 0

    def _write(self, key: str, action):
        """Run one row mutation and commit it."""
        try:
            result = action()
            db.session.commit()
            return result
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to write {self.entity_type} '{key}': {e}")
            raise PartialWriteFailure(
                f"Failed to write {self.entity_type} record '{key}': {e}",
                {"record": key},
            ) from e


class DeviceReconciler(EntityReconciler):
    entity_type = "devices"
    model = Device

    def is_inactive(self, row) -> bool:
        return row.status == "inactive"

    def activate(self, row):
        row.status = "active"
        row.is_active = True

    def new_row(self, record):
        row = super().new_row(record)
        if not row.device_type:
            row.device_type = "server"
        return row


class ContactReconciler(EntityReconciler):
    entity_type = "contacts"
    model = Contact
    natural_key = "email"


class LibraryReconciler(EntityReconciler):
    """Libraries are owned by a connection and soft-deleted when it drops them."""

    entity_type = "libraries"
    model = Library
    deactivates_missing = True

    def snapshot_query(self):
        return Library.query.filter(
            Library.tenant_id == self.context.tenant_id,
            or_(
                Library.api_connection_id == self.connection_id,
                Library.api_connection_id.is_(None),
            ),
        ).order_by(Library.created_at)

    def load_snapshot(self):
        snapshot = {}
        for row in self.snapshot_query().all():
            current: Optional[Library] = snapshot.get(row.name)
            if current is None or (
                current.api_connection_id is None and row.api_connection_id == self.connection_id
            ):
                snapshot[row.name] = row
        return snapshot

    def is_inactive(self, row) -> bool:
        return row.deleted_at is not None or row.status == "inactive"

    def activate(self, row):
        row.status = "active"
        row.deleted_at = None
        row.deleted_by = None
        row.deletion_reason = None
        if row.api_connection_id is None:
            row.api_connection_id = self.connection_id

    def deactivate_missing(self, snapshot, seen):
        deactivated = 0
        for key, row in snapshot.items():
            if key in seen:
                continue
            if row.api_connection_id != self.connection_id:
                continue
            if row.status != "active" or row.deleted_at is not None:
                continue

            def soft_delete(row=row):
                now = datetime.utcnow()
                row.deleted_at = now
                row.deletion_reason = DEACTIVATION_REASON
                row.status = "inactive"
                row.updated_at = now

            self._write(key, soft_delete)
            logger.debug(f"Deactivated library '{key}' - no longer reported upstream")
            deactivated += 1
        return deactivated
