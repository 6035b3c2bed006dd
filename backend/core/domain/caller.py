"""Caller context supplied by the identity provider for every operation."""

from dataclasses import dataclass
from typing import assert_never

from .errors import AuthenticationRequiredError, ForbiddenError
from .user import UserRole


@dataclass(frozen=True)
class Anonymous:
    """No credentials were presented."""


@dataclass(frozen=True)
class Authenticated:
    """A verified user and the role the identity store assigned them."""

    user_id: str
    role: UserRole

    def __post_init__(self):
        if isinstance(self.role, str) and not isinstance(self.role, UserRole):
            object.__setattr__(self, "role", UserRole(self.role))


CallerContext = Anonymous | Authenticated

ANONYMOUS = Anonymous()


def require_role(caller: CallerContext, minimum: UserRole) -> Authenticated:
    """Return the authenticated caller if their role is at least ``minimum``.

    Raises:
        AuthenticationRequiredError: the caller is anonymous.
        ForbiddenError: the caller's role is below ``minimum``.
    """
    match caller:
        case Anonymous():
            raise AuthenticationRequiredError("Authentication required")
        case Authenticated(role=role):
            if not role.at_least(minimum):
                raise ForbiddenError(f"Requires {minimum.value} role or above")
            return caller
        case _:
            assert_never(caller)


def require_authenticated(caller: CallerContext) -> Authenticated:
    return require_role(caller, UserRole.STUDENT)


def is_staff(caller: CallerContext) -> bool:
    """Contributors and above see drafts and hidden content."""
    match caller:
        case Anonymous():
            return False
        case Authenticated(role=role):
            return role.at_least(UserRole.CONTRIBUTOR)
        case _:
            assert_never(caller)


def actor_id(caller: CallerContext) -> str | None:
    return caller.user_id if isinstance(caller, Authenticated) else None
