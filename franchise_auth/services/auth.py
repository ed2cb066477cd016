"""
Auth service - registration, login, token refresh, email verification
and account removal.

Coordinates the credential hasher, the token service and the account
store. Raises errors from franchise_auth.core.errors; the API layer
renders them.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import BaseModel

from franchise_auth.auth.jwt import TokenPair, TokenService, TokenType
from franchise_auth.auth.passwords import CredentialHasher
from franchise_auth.auth.policies import validate_tenant_assignment
from franchise_auth.core.errors import BadRequest, Conflict, NotFound, Unauthenticated
from franchise_auth.core.models import Account, AccountSummary
from franchise_auth.core.roles import DEFAULT_ROLE, Role
from franchise_auth.core.utils import normalize_email
from franchise_auth.services.notification import NotificationPublisher
from franchise_auth.storage.base import DuplicateEmailError, StorageError, StorageProvider

logger = logging.getLogger(__name__)


# Same message for unknown email and wrong password
INVALID_CREDENTIALS = "Invalid credentials"


class LoginResult(BaseModel):
    """Authenticated account plus freshly minted tokens."""
    account: AccountSummary
    tokens: TokenPair


class AuthService:
    """Self-service account lifecycle."""

    def __init__(
        self,
        storage: StorageProvider,
        tokens: TokenService,
        hasher: CredentialHasher,
        notifications: NotificationPublisher,
    ):
        self.accounts = storage.accounts
        self.tokens = tokens
        self.hasher = hasher
        self.notifications = notifications
        # In-flight notification tasks; referenced so they are not garbage collected
        self._pending: set[asyncio.Task] = set()

    # =========================================================================
    # Shared helpers (also used by AdminService and seeding)
    # =========================================================================

    async def ensure_email_available(self, email: str) -> None:
        """Fast-path duplicate check. The store still decides atomically."""
        if await self.accounts.find_account_by_email(email) is not None:
            raise Conflict("Email already in use")

    async def provision_account(
        self,
        username: str,
        email: str,
        password: str,
        role: Role,
        tenant_id: str | None = None,
    ) -> AccountSummary:
        """
        Create an account holding exactly one role.

        Raises:
            BadRequest: role/tenant combination is invalid
            NotFound: the role has not been seeded
            Conflict: email already registered
            StorageError: the role link could not be stored (account removed)
        """
        validate_tenant_assignment(role, tenant_id)
        email = normalize_email(email)
        await self.ensure_email_available(email)

        role_record = await self.accounts.find_role_by_name(role)
        if role_record is None:
            raise NotFound(f"Role {role.value} not found")

        password_hash = await self.hasher.hash_async(password)
        try:
            account = await self.accounts.create_account(Account(
                email=email,
                username=username,
                password_hash=password_hash,
                tenant_id=tenant_id,
            ))
        except DuplicateEmailError:
            raise Conflict("Email already in use")

        try:
            await self.accounts.create_account_role(account.id, role_record)
        except StorageError:
            # An account without a role must not keep the email reserved
            await self.accounts.delete_account(account.id)
            raise
        return AccountSummary.from_account(account, [role])

    async def summarize(self, account: Account) -> AccountSummary:
        roles = await self.accounts.list_account_roles(account.id)
        return AccountSummary.from_account(account, roles)

    # =========================================================================
    # Operations
    # =========================================================================

    async def register(self, username: str, email: str, password: str) -> AccountSummary:
        """
        Create a CUSTOMER account and queue its verification + welcome
        messages in the background. Queue problems never delay or fail
        the registration.
        """
        summary = await self.provision_account(username, email, password, DEFAULT_ROLE)
        logger.info(f"Registered account {summary.id}")

        magic_token = self.tokens.issue_magic(summary.email, summary.username)
        task = asyncio.create_task(self._send_registration_messages(summary, magic_token))
        self._pending.add(task)
        task.add_done_callback(self._notification_done)

        return summary

    async def _send_registration_messages(self, summary: AccountSummary, magic_token: str) -> None:
        if not await self.notifications.send_verification(summary, magic_token):
            logger.warning(f"Verification message for {summary.id} was not queued")
        if not await self.notifications.send_welcome(summary):
            logger.warning(f"Welcome message for {summary.id} was not queued")

    def _notification_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Registration notifications failed: {task.exception()}")

    async def drain(self) -> None:
        """Wait for queued notification tasks to finish (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def login(self, email: str, password: str) -> LoginResult:
        """Check credentials and mint a token pair with current roles/tenant."""
        account = await self.accounts.find_account_by_email(email)
        if account is None:
            logger.info("Login failed")
            raise Unauthenticated(INVALID_CREDENTIALS)

        if not await self.hasher.verify_async(account.password_hash, password):
            logger.info("Login failed")
            raise Unauthenticated(INVALID_CREDENTIALS)

        if self.hasher.needs_rehash(account.password_hash):
            new_hash = await self.hasher.hash_async(password)
            await self.accounts.update_account(account.id, {"password_hash": new_hash})

        summary = await self.summarize(account)
        tokens = self.tokens.issue_pair(account.id, summary.roles, account.tenant_id)
        return LoginResult(account=summary, tokens=tokens)

    async def refresh(self, refresh_token: str | None) -> TokenPair:
        """
        Exchange a refresh token for a new pair.

        Roles and tenant are re-read from the store, never copied from
        the old tokens.
        """
        if not refresh_token:
            raise Unauthenticated("Refresh token is missing")

        claims = self.tokens.verify(refresh_token, expected_type=TokenType.REFRESH)

        account = await self.accounts.find_account_by_id(claims.sub)
        if account is None:
            raise Unauthenticated("Account no longer exists")

        roles = await self.accounts.list_account_roles(account.id)
        return self.tokens.issue_pair(account.id, roles, account.tenant_id)

    async def verify_magic_token(self, token: str | None) -> dict[str, str]:
        """Confirm control of an email address and record the opt-in."""
        if not token:
            raise BadRequest("Token is required")

        claims = self.tokens.verify(token, expected_type=TokenType.MAGIC)
        email = claims.email or claims.sub

        account = await self.accounts.find_account_by_email(email)
        if account is not None and not account.double_opt_in:
            await self.accounts.update_account(account.id, {"double_opt_in": True})
            logger.info(f"Email verified for account {account.id}")

        return {"email": email}

    async def unsubscribe(self, account_id: str) -> None:
        """Delete the caller's own account."""
        if not await self.accounts.delete_account(account_id):
            raise NotFound("Account not found")
        logger.info(f"Account {account_id} unsubscribed")

    async def get_profile(self, account_id: str) -> AccountSummary:
        account = await self.accounts.find_account_by_id(account_id)
        if account is None:
            raise NotFound("Account not found")
        return await self.summarize(account)
