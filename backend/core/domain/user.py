"""User roles and the privilege ladder."""

from enum import StrEnum


class UserRole(StrEnum):
    """User roles in the system, lowest privilege first."""

    STUDENT = "student"
    CONTRIBUTOR = "contributor"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, minimum: "UserRole") -> bool:
        """Check whether this role satisfies ``minimum`` on the ladder."""
        return self.rank >= minimum.rank


_ROLE_RANK = {role: index for index, role in enumerate(UserRole)}

# Roles that may see drafts and hidden content
STAFF_ROLES = frozenset(role for role in UserRole if role.at_least(UserRole.CONTRIBUTOR))
