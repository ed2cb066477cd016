"""Core models, errors and utilities."""

from franchise_auth.core.errors import (
    AuthError,
    BadRequest,
    Conflict,
    Forbidden,
    NotFound,
    TenantRequired,
    Unauthenticated,
)
from franchise_auth.core.models import (
    Account,
    AccountRole,
    AccountSummary,
    RoleRecord,
)
from franchise_auth.core.roles import Role

__all__ = [
    "AuthError",
    "BadRequest",
    "Conflict",
    "Forbidden",
    "NotFound",
    "TenantRequired",
    "Unauthenticated",
    "Account",
    "AccountRole",
    "AccountSummary",
    "Role",
    "RoleRecord",
]
