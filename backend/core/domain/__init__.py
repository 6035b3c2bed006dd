# Domain rules
# Pure business logic with no external dependencies
from .caller import ANONYMOUS, Anonymous, Authenticated, CallerContext, require_role
from .content import ContentStatus, WorkflowAction, derive_excerpt, next_status
from .errors import (
    AuthenticationRequiredError,
    ConflictError,
    ContentError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from .user import UserRole

__all__ = [
    "ANONYMOUS",
    "Anonymous",
    "Authenticated",
    "CallerContext",
    "require_role",
    "ContentStatus",
    "WorkflowAction",
    "derive_excerpt",
    "next_status",
    "ContentError",
    "NotFoundError",
    "ConflictError",
    "InvalidTransitionError",
    "ForbiddenError",
    "AuthenticationRequiredError",
    "ValidationError",
    "UserRole",
]
