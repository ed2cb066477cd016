"""
Reference data seeding and administrator bootstrap.

Both are idempotent and run at every startup.
"""

from __future__ import annotations

import logging

from franchise_auth.config import Settings
from franchise_auth.core.errors import Conflict
from franchise_auth.core.roles import ROLE_DESCRIPTIONS, Role
from franchise_auth.services.auth import AuthService
from franchise_auth.storage.base import AccountStore

logger = logging.getLogger(__name__)


async def seed_roles(store: AccountStore) -> int:
    """Upsert every Role with its description. Returns the number seeded."""
    for role, description in ROLE_DESCRIPTIONS.items():
        await store.upsert_role(role, description)
    logger.info(f"Seeded {len(ROLE_DESCRIPTIONS)} roles")
    return len(ROLE_DESCRIPTIONS)


async def ensure_admin(auth_service: AuthService, settings: Settings) -> bool:
    """
    Create the bootstrap ADMIN account if no ADMIN exists yet.

    Returns True when an account was created.
    """
    if not settings.has_bootstrap_admin:
        logger.info("ADMIN_EMAIL/ADMIN_USERNAME/ADMIN_PASSWORD not set - skipping admin bootstrap")
        return False

    existing = await auth_service.accounts.find_accounts_by_role(Role.ADMIN)
    if existing:
        logger.info("Admin user already exists. Skipping creation.")
        return False

    try:
        summary = await auth_service.provision_account(
            settings.admin_username,
            settings.admin_email,
            settings.admin_password,
            Role.ADMIN,
        )
    except Conflict:
        logger.warning(f"Cannot bootstrap admin: {settings.admin_email} is taken by a non-admin account")
        return False

    logger.info(f"Admin user {summary.id} created")
    return True
