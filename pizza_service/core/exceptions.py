"""
Service Exception Taxonomy

Domain services raise these typed errors; the gateway translates each one
into an HTTP status code and a stable ``{"message": ...}`` body.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """
    Base class for every error the service reports to a caller.

    Attributes:
        message: Stable, machine-checkable message string
        status_code: HTTP status the gateway responds with
        extra: Additional JSON fields merged into the error body
    """

    status_code: int = 500
    default_message: str = "internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        extra: Optional[dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON error body."""
        return {"message": self.message, **self.extra}


class ValidationError(ServiceError):
    """Malformed or incomplete input."""
    status_code = 400
    default_message = "invalid request"


class AuthenticationError(ServiceError):
    """No valid session, or credentials rejected."""
    status_code = 401
    default_message = "unauthorized"


class AuthorizationError(ServiceError):
    """Valid session with insufficient rights."""
    status_code = 403
    default_message = "unauthorized"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "not found"


class ConflictError(ServiceError):
    """Uniqueness violation, e.g. an email already registered."""
    status_code = 409
    default_message = "conflict"


class DependencyError(ServiceError):
    """
    An external collaborator failed.

    Raised after local state has already been persisted; the caller sees a
    500 but nothing is rolled back.
    """
    status_code = 500
    default_message = "dependency failure"
