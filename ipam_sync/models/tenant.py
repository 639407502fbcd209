"""Tenant and User models - the minimal rows behind the caller context."""
import uuid

from ipam_sync.extensions import db
from ipam_sync.models.types import UUIDType


class Tenant(db.Model):
    """A tenant partitions every managed collection."""

    __tablename__ = "tenants"

    id = db.Column(UUIDType, primary_key=True, default=uuid.uuid4)
    name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    def __repr__(self):
        return f"<Tenant {self.name}>"

    def to_dict(self):
        return {"id": str(self.id), "name": self.name}


class User(db.Model):
    """Console user account.

    Authentication itself lives outside this service; the row only carries
    what a sync run needs: identity, active flag and the current tenant.
    """

    __tablename__ = "users"

    id = db.Column(UUIDType, primary_key=True, default=uuid.uuid4)
    email = db.Column(db.String(200), nullable=False, unique=True, index=True)
    name = db.Column(db.String(200), default="")
    current_tenant_id = db.Column(UUIDType, db.ForeignKey("tenants.id"), nullable=True)
    current_tenant = db.relationship("Tenant")

    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self):
        return f"<User {self.email}>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "current_tenant_id": str(self.current_tenant_id) if self.current_tenant_id else None,
            "is_active": self.is_active,
        }
