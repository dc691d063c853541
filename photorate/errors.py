"""
Domain Errors

Every error raised by the core carries the HTTP status it maps to and a
human-readable message that is safe to show to clients.
"""


class PhotoRateError(Exception):
    """Base class for expected, user-facing errors."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgument(PhotoRateError):
    """Missing or malformed input."""
    status_code = 400
    default_message = "Invalid request"


class AuthFailure(PhotoRateError):
    """Bad credentials or missing/invalid token."""
    status_code = 401
    default_message = "Authentication failed"


class InsufficientBalance(PhotoRateError):
    status_code = 400
    default_message = "Not enough points to activate photo"


class Conflict(PhotoRateError):
    """Duplicate rating or duplicate registration."""
    status_code = 400
    default_message = "Already exists"


class InvalidOperation(PhotoRateError):
    status_code = 400
    default_message = "Operation not allowed"


class NotFound(PhotoRateError):
    """Missing entity, or entity not owned by the caller."""
    status_code = 404
    default_message = "Not found"


class Unavailable(PhotoRateError):
    """A storage dependency could not be reached."""
    status_code = 503
    default_message = "Service unavailable"
