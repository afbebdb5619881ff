"""Domain entity representing a user known to the dispatcher."""

from dataclasses import dataclass
from datetime import datetime

REVIEWER_ROLES = ("LineManager", "GM")


@dataclass
class User:
    """Directory attributes needed to address a user."""

    id: int | None
    name: str
    email: str
    role: str
    department: str | None = None
    is_active: bool = True
    created_at: datetime | None = None

    def has_role(self, role: str) -> bool:
        """Return ``True`` when the user's role matches ``role``."""

        return self.role.lower() == role.lower()

    def is_reviewer(self) -> bool:
        return any(self.has_role(role) for role in REVIEWER_ROLES)


__all__ = ["REVIEWER_ROLES", "User"]
