"""API connection models - configured external data sources."""
import uuid

from ipam_sync.extensions import db
from ipam_sync.models.types import JSONType, UUIDType

CONNECTION_TYPES = ("rest", "google_sheets", "graphql", "webhook")
SYNC_TARGETS = ("devices", "libraries", "contacts")
FREQUENCY_TYPES = ("minutes", "hours", "days")


class ApiConnection(db.Model):
    """An external data source plus its field mapping, owned by a tenant."""

    __tablename__ = "api_connections"

    id = db.Column(UUIDType, primary_key=True, default=uuid.uuid4)
    tenant_id = db.Column(UUIDType, db.ForeignKey("tenants.id"), nullable=True, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")

    connection_type = db.Column(db.String(30), nullable=False, default="rest")
    sync_target = db.Column(db.String(30), nullable=False, default="libraries")
    api_url = db.Column(db.Text, nullable=False)
    headers = db.Column(JSONType, default=dict)
    sheet_name = db.Column(db.String(200), default="")
    range_notation = db.Column(db.String(50), default="A:Z")

    # target field -> source field
    field_mappings = db.Column(JSONType, default=dict)

    # Scheduling
    auto_sync_enabled = db.Column(db.Boolean, default=False)
    sync_frequency_minutes = db.Column(db.Integer, default=5)
    sync_frequency_type = db.Column(db.String(20), default="minutes")

    # Last run
    last_sync = db.Column(db.DateTime)
    last_sync_status = db.Column(db.String(20))  # success | error
    last_sync_message = db.Column(db.Text)

    is_active = db.Column(db.Boolean, default=True)
    created_by = db.Column(UUIDType, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    google_sheets = db.relationship(
        "GoogleSheetsConnection",
        back_populates="api_connection",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<ApiConnection {self.name} ({self.connection_type})>"

    @property
    def sheets_auth_type(self):
        """'oauth' or 'public' for Google Sheets connections, None otherwise."""
        if self.connection_type != "google_sheets":
            return None
        if self.google_sheets and self.google_sheets.auth_type == "oauth":
            return "oauth"
        return "public"

    def to_dict(self):
        return {
            "id": str(self.id),
            "tenant_id": str(self.tenant_id) if self.tenant_id else None,
            "name": self.name,
            "description": self.description,
            "connection_type": self.connection_type,
            "sync_target": self.sync_target,
            "api_url": self.api_url,
            "headers": self.headers or {},
            "sheet_name": self.sheet_name,
            "range_notation": self.range_notation,
            "field_mappings": self.field_mappings or {},
            "auto_sync_enabled": self.auto_sync_enabled,
            "sync_frequency_minutes": self.sync_frequency_minutes,
            "sync_frequency_type": self.sync_frequency_type,
            "last_sync": self.last_sync.isoformat() if self.last_sync else None,
            "last_sync_status": self.last_sync_status,
            "last_sync_message": self.last_sync_message,
            "is_active": self.is_active,
            "google_sheets": self.google_sheets.to_dict() if self.google_sheets else None,
        }


class GoogleSheetsConnection(db.Model):
    """Spreadsheet locator and auth mode of a google_sheets connection."""

    __tablename__ = "google_sheets_connections"

    id = db.Column(UUIDType, primary_key=True, default=uuid.uuid4)
    api_connection_id = db.Column(
        UUIDType, db.ForeignKey("api_connections.id"), nullable=False, unique=True
    )
    api_connection = db.relationship("ApiConnection", back_populates="google_sheets")

    spreadsheet_url = db.Column(db.Text, default="")
    spreadsheet_id = db.Column(db.String(200), default="")
    spreadsheet_name = db.Column(db.String(200), default="")
    sheet_name = db.Column(db.String(200), default="")
    range_notation = db.Column(db.String(50), default="A:Z")
    auth_type = db.Column(db.String(20), nullable=False, default="public")  # public | oauth
    google_account_id = db.Column(db.String(200))

    created_at = db.Column(db.DateTime, server_default=db.func.now())

    def to_dict(self):
        return {
            "spreadsheet_url": self.spreadsheet_url,
            "spreadsheet_id": self.spreadsheet_id,
            "sheet_name": self.sheet_name,
            "range_notation": self.range_notation,
            "auth_type": self.auth_type,
        }
