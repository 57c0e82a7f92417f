#app/policies/rbac.py
from __future__ import annotations
from dataclasses import dataclass
import uuid

from app.models.enums import GlobalRole


@dataclass(frozen=True)
class Principal:
    member_id: uuid.UUID
    username: str
    global_role: GlobalRole

    @property
    def is_global_admin(self) -> bool:
        return self.global_role == GlobalRole.global_admin


def require_global_admin(principal: Principal) -> None:
    if not principal.is_global_admin:
        raise PermissionError("Global admin only.")

