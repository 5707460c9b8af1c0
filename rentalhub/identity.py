# Per-request actor descriptor handed to access control, scoping, and lifecycle operations.
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role


@dataclass(frozen=True)
class Actor:
    id: int
    role: Role
    parent_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=Role(user.role), parent_id=user.parent_id)
