"""Domain error taxonomy.

Every error carries a stable machine-readable ``code`` and a human-readable
``message``. The HTTP layer maps each class to a status code; services never
raise HTTP exceptions themselves.
"""


class ContentError(Exception):
    """Base class for recoverable content-engine errors."""

    code = "CONTENT_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(ContentError):
    """An entity id did not resolve."""

    code = "NOT_FOUND"


class ConflictError(ContentError):
    """A uniqueness rule was violated (e.g. slug collision)."""

    code = "CONFLICT"


class InvalidTransitionError(ContentError):
    """A workflow action is not legal from the entity's current status."""

    code = "INVALID_TRANSITION"


class ForbiddenError(ContentError):
    """The caller's role is insufficient for the operation."""

    code = "FORBIDDEN"


class AuthenticationRequiredError(ForbiddenError):
    """The operation needs an authenticated caller."""

    code = "UNAUTHORIZED"


class ValidationError(ContentError):
    """Malformed input that passed schema validation but breaks a business rule."""

    code = "VALIDATION_ERROR"
