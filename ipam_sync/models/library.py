"""Library model - software inventory mirrored from external connections."""
import uuid

from ipam_sync.extensions import db
from ipam_sync.models.types import JSONType, UUIDType


class Library(db.Model):
    """Installed software package.

    api_connection_id names the owning connection: only that connection's
    sync runs may soft-delete the row. NULL means a legacy or manual row that
    the next connection to see it adopts.
    """

    __tablename__ = "libraries"

    id = db.Column(UUIDType, primary_key=True, default=uuid.uuid4)
    tenant_id = db.Column(UUIDType, db.ForeignKey("tenants.id"), nullable=True, index=True)
    name = db.Column(db.String(200), nullable=False, index=True)

    version = db.Column(db.String(100), default="-")
    vendor = db.Column(db.String(200), default="-")
    product_type = db.Column(db.String(50), default="software")
    description = db.Column(db.Text, default="")
    device_name = db.Column(db.String(200), default="")
    process_name = db.Column(db.String(200), default="")
    install_path = db.Column(db.Text, default="")
    install_date = db.Column(db.String(50))
    license_type = db.Column(db.String(100), default="")
    license_expiry = db.Column(db.String(50))
    last_update = db.Column(db.String(50))
    security_patch_level = db.Column(db.String(100), default="")
    vulnerability_status = db.Column(db.String(50), default="unknown")
    cpu_usage = db.Column(db.Float)
    memory_usage = db.Column(db.Integer)
    disk_usage = db.Column(db.Integer)
    tags = db.Column(JSONType)

    # Ownership
    api_connection_id = db.Column(
        UUIDType, db.ForeignKey("api_connections.id"), nullable=True, index=True
    )
    api_connection = db.relationship("ApiConnection", backref="libraries")

    # Status / soft delete
    status = db.Column(db.String(20), default="active")  # active | inactive
    deleted_at = db.Column(db.DateTime)
    deleted_by = db.Column(UUIDType, db.ForeignKey("users.id"), nullable=True)
    deletion_reason = db.Column(db.String(200))

    created_by = db.Column(UUIDType, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self):
        return f"<Library {self.name} {self.version}>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "tenant_id": str(self.tenant_id) if self.tenant_id else None,
            "name": self.name,
            "version": self.version,
            "vendor": self.vendor,
            "product_type": self.product_type,
            "description": self.description,
            "device_name": self.device_name,
            "process_name": self.process_name,
            "install_path": self.install_path,
            "install_date": self.install_date,
            "license_type": self.license_type,
            "license_expiry": self.license_expiry,
            "last_update": self.last_update,
            "security_patch_level": self.security_patch_level,
            "vulnerability_status": self.vulnerability_status,
            "cpu_usage": self.cpu_usage,
            "memory_usage": self.memory_usage,
            "disk_usage": self.disk_usage,
            "tags": self.tags,
            "api_connection_id": str(self.api_connection_id) if self.api_connection_id else None,
            "status": self.status,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
            "deletion_reason": self.deletion_reason,
        }
