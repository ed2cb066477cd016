"""
Error taxonomy for the auth core.

Services and guards raise these; the API layer turns them into
structured JSON responses with the matching status code.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every error that maps to an HTTP status."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AuthError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Authentication required"


class Forbidden(AuthError):
    """Authenticated, but the role/tenant policy denies the action."""

    status_code = 403
    default_message = "Forbidden"


class BadRequest(AuthError):
    """Malformed input."""

    status_code = 400
    default_message = "Bad request"


class TenantRequired(BadRequest):
    """A tenant id was required but absent."""

    default_message = "Tenant ID required"


class NotFound(AuthError):
    """A referenced account or role does not exist."""

    status_code = 404
    default_message = "Not found"


class Conflict(AuthError):
    """Unique constraint violation (duplicate email)."""

    status_code = 409
    default_message = "Email already in use"
