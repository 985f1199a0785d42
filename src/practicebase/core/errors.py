"""Service error taxonomy.

Lower layers raise these typed failures and never format transport
responses. The HTTP layer maps ``status_code`` to the response status.
"""


class ServiceError(Exception):
    """Base class for all failures that may be shown to the caller."""

    status_code: int = 400
    default_message: str = "Service Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ServiceError):
    """Raised when a collection or record does not exist."""

    status_code = 404
    default_message = "Resource not found"


class RequestError(ServiceError):
    """Raised for malformed input (bad filter, missing id, wrong body)."""

    status_code = 400
    default_message = "Request error"


class ConflictError(ServiceError):
    """Raised when a write collides with existing data (e.g. duplicate identity)."""

    status_code = 409
    default_message = "Resource conflict"


class AuthorizationError(ServiceError):
    """Raised when a caller identity is required but absent."""

    status_code = 401
    default_message = "Unauthorized"


class CredentialError(ServiceError):
    """Raised when the caller is known but lacks the required privilege."""

    status_code = 403
    default_message = "Forbidden"
