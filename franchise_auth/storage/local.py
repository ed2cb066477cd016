"""
Local storage implementations for development and tests.

These are in-memory implementations that work without any
external services.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from franchise_auth.core.models import Account, AccountRole, RoleRecord
from franchise_auth.core.roles import Role
from franchise_auth.core.utils import normalize_email, utc_now
from franchise_auth.storage.base import (
    AccountStore,
    DuplicateEmailError,
    DuplicateRecordError,
    QueueStorage,
    StorageError,
    StorageProvider,
)

logger = logging.getLogger(__name__)


# Fields callers may never overwrite through update_account
_IMMUTABLE_FIELDS = {"id", "created_at"}


# =============================================================================
# In-Memory Account Store
# =============================================================================


class InMemoryAccountStore(AccountStore):
    """In-memory account store for development."""

    def __init__(self):
        self._accounts: dict[str, Account] = {}
        self._ids_by_email: dict[str, str] = {}
        self._roles: dict[Role, RoleRecord] = {}
        self._account_roles: list[AccountRole] = []
        # Serializes every write so check-then-insert is atomic
        self._lock = asyncio.Lock()

    async def find_account_by_email(self, email: str) -> Account | None:
        account_id = self._ids_by_email.get(normalize_email(email))
        return self._copy(self._accounts.get(account_id)) if account_id else None

    async def find_account_by_id(self, account_id: str) -> Account | None:
        return self._copy(self._accounts.get(account_id))

    async def create_account(self, account: Account) -> Account:
        email = normalize_email(account.email)
        async with self._lock:
            if email in self._ids_by_email:
                raise DuplicateEmailError(f"Email already registered: {email}")
            stored = account.model_copy(update={"email": email})
            self._accounts[stored.id] = stored
            self._ids_by_email[email] = stored.id
        return self._copy(stored)

    async def update_account(self, account_id: str, updates: dict[str, Any]) -> Account | None:
        async with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                return None

            changes = {k: v for k, v in updates.items() if k not in _IMMUTABLE_FIELDS}
            if "email" in changes:
                new_email = normalize_email(changes["email"])
                owner = self._ids_by_email.get(new_email)
                if owner is not None and owner != account_id:
                    raise DuplicateEmailError(f"Email already registered: {new_email}")
                del self._ids_by_email[current.email]
                self._ids_by_email[new_email] = account_id
                changes["email"] = new_email

            changes["updated_at"] = utc_now()
            updated = current.model_copy(update=changes)
            self._accounts[account_id] = updated
        return self._copy(updated)

    async def delete_account(self, account_id: str) -> bool:
        async with self._lock:
            account = self._accounts.pop(account_id, None)
            if account is None:
                return False
            self._ids_by_email.pop(account.email, None)
            self._account_roles = [
                link for link in self._account_roles if link.account_id != account_id
            ]
        return True

    async def find_accounts_by_tenant(self, tenant_id: str) -> list[Account]:
        return [
            self._copy(account)
            for account in self._accounts.values()
            if account.tenant_id == tenant_id
        ]

    async def find_accounts_by_role(self, role: Role) -> list[Account]:
        account_ids = [link.account_id for link in self._account_roles if link.role == role]
        return [self._copy(self._accounts[a]) for a in account_ids if a in self._accounts]

    async def find_role_by_name(self, role: Role) -> RoleRecord | None:
        return self._roles.get(role)

    async def upsert_role(self, role: Role, description: str) -> RoleRecord:
        async with self._lock:
            existing = self._roles.get(role)
            if existing is None:
                record = RoleRecord(name=role, description=description)
            else:
                record = existing.model_copy(update={"description": description})
            self._roles[role] = record
        return record

    async def create_account_role(self, account_id: str, role: RoleRecord) -> AccountRole:
        async with self._lock:
            if account_id not in self._accounts:
                raise StorageError(f"Unknown account: {account_id}")
            for link in self._account_roles:
                if link.account_id == account_id and link.role_id == role.id:
                    raise DuplicateRecordError(
                        f"Account {account_id} already has role {role.name.value}"
                    )
            link = AccountRole(account_id=account_id, role_id=role.id, role=role.name)
            self._account_roles.append(link)
        return link

    async def list_account_roles(self, account_id: str) -> list[Role]:
        return [link.role for link in self._account_roles if link.account_id == account_id]

    @staticmethod
    def _copy(account: Account | None) -> Account | None:
        # Callers get detached copies so they cannot mutate stored state
        return account.model_copy() if account is not None else None


# =============================================================================
# In-Memory Queue Storage
# =============================================================================


class InMemoryQueueStorage(QueueStorage):
    """In-memory queue for development. Keeps every sent message."""

    def __init__(self):
        self._queues: dict[str, list[dict[str, Any]]] = {}

    async def send_message(self, payload: dict[str, Any], queue_name: str) -> bool:
        self._queues.setdefault(queue_name, []).append(payload)
        logger.debug(f"Queued message on {queue_name}")
        return True

    def messages(self, queue_name: str) -> list[dict[str, Any]]:
        """Messages sent to a queue so far (for inspection in dev/tests)."""
        return list(self._queues.get(queue_name, []))


# =============================================================================
# Factory
# =============================================================================


def create_local_storage() -> StorageProvider:
    """Create a StorageProvider with in-memory implementations."""
    return StorageProvider(
        accounts=InMemoryAccountStore(),
        queue=InMemoryQueueStorage(),
    )
