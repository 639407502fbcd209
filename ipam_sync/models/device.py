"""Device model - servers and network gear in the IPAM inventory."""
import uuid

from ipam_sync.extensions import db
from ipam_sync.models.types import UUIDType


class Device(db.Model):
    """Device, unique by name among a tenant's active rows."""

    __tablename__ = "devices"

    id = db.Column(UUIDType, primary_key=True, default=uuid.uuid4)
    tenant_id = db.Column(UUIDType, db.ForeignKey("tenants.id"), nullable=True, index=True)
    name = db.Column(db.String(200), nullable=False, index=True)

    device_type = db.Column(db.String(50), default="server")
    manufacturer = db.Column(db.String(200), default="")
    model = db.Column(db.String(200), default="")
    serial_number = db.Column(db.String(200), default="")
    description = db.Column(db.Text, default="")

    # Status
    status = db.Column(db.String(20), default="active")  # active | inactive | maintenance
    is_active = db.Column(db.Boolean, default=True)
    created_by = db.Column(UUIDType, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self):
        return f"<Device {self.name}>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "tenant_id": str(self.tenant_id) if self.tenant_id else None,
            "name": self.name,
            "device_type": self.device_type,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "serial_number": self.serial_number,
            "description": self.description,
            "status": self.status,
            "is_active": self.is_active,
        }
