"""
Services - the orchestration layer between routes and storage.
"""

from franchise_auth.services.notification import NotificationPublisher, NotificationRequest
from franchise_auth.services.auth import AuthService, LoginResult
from franchise_auth.services.admin import AdminService, CreateUserRequest
from franchise_auth.services.seed import ensure_admin, seed_roles

__all__ = [
    "NotificationPublisher",
    "NotificationRequest",
    "AuthService",
    "LoginResult",
    "AdminService",
    "CreateUserRequest",
    "ensure_admin",
    "seed_roles",
]
