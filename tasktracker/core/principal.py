"""
Principal — the acting caller's identity, passed explicitly into every
core operation (never read from request globals inside services).
"""

from dataclasses import dataclass

from tasktracker.models.auth import ROLE_ADMIN


@dataclass(frozen=True)
class Principal:
    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def for_user(cls, user) -> "Principal":
        return cls(id=user.id, role=user.role)
