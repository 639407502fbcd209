"""Contact model - people responsible for assets."""
import uuid

from ipam_sync.extensions import db
from ipam_sync.models.types import JSONType, UUIDType


class Contact(db.Model):
    """Contact, unique by email among a tenant's active rows."""

    __tablename__ = "contacts"

    id = db.Column(UUIDType, primary_key=True, default=uuid.uuid4)
    tenant_id = db.Column(UUIDType, db.ForeignKey("tenants.id"), nullable=True, index=True)
    email = db.Column(db.String(200), nullable=False, index=True)

    name = db.Column(db.String(200), default="")
    phone = db.Column(db.String(50), default="")
    mobile = db.Column(db.String(50), default="")
    title = db.Column(db.String(200), default="")
    department = db.Column(db.String(200), default="")
    office_location = db.Column(db.String(200), default="")
    responsibilities = db.Column(JSONType)

    is_active = db.Column(db.Boolean, default=True)
    created_by = db.Column(UUIDType, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self):
        return f"<Contact {self.email}>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "tenant_id": str(self.tenant_id) if self.tenant_id else None,
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "mobile": self.mobile,
            "title": self.title,
            "department": self.department,
            "office_location": self.office_location,
            "responsibilities": self.responsibilities,
            "is_active": self.is_active,
        }
