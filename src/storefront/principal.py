"""Authenticated caller, as handed over by the identity collaborator."""

from dataclasses import dataclass

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: str = "user"
    is_verified: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
