"""Sync run ledger model - one row per sync invocation."""
import uuid

from ipam_sync.extensions import db
from ipam_sync.models.types import JSONType, UUIDType


class SyncRun(db.Model):
    """Log of sync runs for auditing and troubleshooting."""

    __tablename__ = "sync_history"

    id = db.Column(UUIDType, primary_key=True, default=uuid.uuid4)
    api_connection_id = db.Column(
        UUIDType, db.ForeignKey("api_connections.id"), nullable=False, index=True
    )
    api_connection = db.relationship("ApiConnection", backref="sync_runs")
    initiated_by = db.Column(UUIDType, db.ForeignKey("users.id"), nullable=True)
    initiator = db.relationship("User")

    # manual | auto
    execution_type = db.Column(db.String(20), default="manual")
    # running -> completed | failed
    status = db.Column(db.String(20), default="running")

    sync_started_at = db.Column(db.DateTime, nullable=False)
    sync_completed_at = db.Column(db.DateTime)

    # Counts
    records_processed = db.Column(db.Integer, default=0)
    records_added = db.Column(db.Integer, default=0)
    records_updated = db.Column(db.Integer, default=0)
    records_deactivated = db.Column(db.Integer, default=0)

    sync_details = db.Column(JSONType, default=dict)
    error_message = db.Column(db.Text)

    def __repr__(self):
        return f"<SyncRun {self.api_connection_id} at {self.sync_started_at} ({self.status})>"

    @property
    def duration_seconds(self):
        if not self.sync_completed_at or not self.sync_started_at:
            return None
        return round((self.sync_completed_at - self.sync_started_at).total_seconds())

    def to_dict(self):
        connection = self.api_connection
        initiator = self.initiator
        return {
            "id": str(self.id),
            "connectionId": str(self.api_connection_id),
            "connectionName": connection.name if connection else None,
            "apiUrl": connection.api_url if connection else None,
            "syncStartedAt": self.sync_started_at.isoformat() if self.sync_started_at else None,
            "syncCompletedAt": self.sync_completed_at.isoformat() if self.sync_completed_at else None,
            "status": self.status,
            "executionType": self.execution_type or "manual",
            "recordsProcessed": self.records_processed or 0,
            "recordsAdded": self.records_added or 0,
            "recordsUpdated": self.records_updated or 0,
            "recordsDeactivated": self.records_deactivated or 0,
            "errorMessage": self.error_message,
            "syncDetails": self.sync_details or {},
            "initiatedBy": {
                "email": initiator.email if initiator else None,
                "name": initiator.name if initiator else None,
            },
            "duration": self.duration_seconds,
        }
