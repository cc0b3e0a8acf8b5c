from __future__ import annotations

from dataclasses import dataclass

ROLE_CLIENT = "client"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    actor_id: str
    role: str = ROLE_CLIENT

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def admin(cls, actor_id: str = "admin") -> Actor:
        return cls(actor_id=actor_id, role=ROLE_ADMIN)
