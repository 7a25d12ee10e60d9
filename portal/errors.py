# portal/errors.py
"""Domain exceptions.

Each exception carries the HTTP status it maps to; ``portal.main`` turns
them into ``{"message": ...}`` JSON responses.
"""


class PortalError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Raised when input data is missing or malformed."""

    status_code = 400


class ConflictError(PortalError):
    """Raised when a unique business key is already taken."""

    status_code = 400


class NotFoundError(PortalError):
    status_code = 404


class AuthenticationError(PortalError):
    """Raised when a token or credential is missing or invalid."""

    status_code = 401


class AuthorizationError(PortalError):
    """Raised when an authenticated user lacks permission for an action."""

    status_code = 403
