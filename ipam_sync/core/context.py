"""Caller context passed explicitly into every sync run."""
import uuid
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Initiator:
    """Who started a run: a console user, or the scheduler."""

    kind: str  # user | system
    user_id: Optional[uuid.UUID] = None

    @classmethod
    def user(cls, user_id: uuid.UUID) -> "Initiator":
        return cls(kind="user", user_id=user_id)

    @classmethod
    def system(cls) -> "Initiator":
        return cls(kind="system")

    @property
    def is_system(self) -> bool:
        return self.kind == "system"

    @property
    def execution_type(self) -> str:
        return "auto" if self.is_system else "manual"


@dataclass(frozen=True)
class TenantContext:
    """Tenant and acting user of one sync run.

    user_id is the account stamped on created rows and on the ledger entry;
    for system runs it is the configured system account. forward_headers are
    the caller's Authorization/Cookie headers, relayed to the private sheet
    reader.
    """

    tenant_id: uuid.UUID
    user_id: Optional[uuid.UUID]
    initiator: Initiator
    forward_headers: dict = field(default_factory=dict)
