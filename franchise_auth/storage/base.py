"""
Storage abstraction layer.

All persistence goes through these interfaces. This allows swapping
implementations (in-memory → PostgreSQL, in-memory queue → RabbitMQ)
without changing service code.

Integration Points:
- AccountStore → relational database (unique constraint on email)
- QueueStorage → RabbitMQ (fire-and-forget notifications)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel

from franchise_auth.core.models import Account, AccountRole, RoleRecord
from franchise_auth.core.roles import Role


# =============================================================================
# Store Errors
# =============================================================================


class StorageError(Exception):
    """Base exception for storage errors."""
    pass


class DuplicateEmailError(StorageError):
    """An account with this email already exists."""
    pass


class DuplicateRecordError(StorageError):
    """A unique constraint other than email was violated."""
    pass


# =============================================================================
# Storage Interfaces
# =============================================================================


class AccountStore(ABC):
    """
    Storage for accounts, roles and account-role links.

    Implementations MUST make create_account atomic with respect to the
    email uniqueness check: two concurrent creates with the same
    (case-insensitive) email yield exactly one success and one
    DuplicateEmailError.

    Relational Implementation: users / roles / user_roles tables
    Local Implementation: In-memory dicts guarded by an asyncio.Lock
    """

    # -- accounts -------------------------------------------------------------

    @abstractmethod
    async def find_account_by_email(self, email: str) -> Account | None:
        """Get an account by email (case-insensitive)."""
        pass

    @abstractmethod
    async def find_account_by_id(self, account_id: str) -> Account | None:
        """Get an account by ID."""
        pass

    @abstractmethod
    async def create_account(self, account: Account) -> Account:
        """Insert an account. Raises DuplicateEmailError on email clash."""
        pass

    @abstractmethod
    async def update_account(self, account_id: str, updates: dict[str, Any]) -> Account | None:
        """Partial update. Returns the updated account, or None if missing."""
        pass

    @abstractmethod
    async def delete_account(self, account_id: str) -> bool:
        """Delete an account and its role links. False if it did not exist."""
        pass

    @abstractmethod
    async def find_accounts_by_tenant(self, tenant_id: str) -> list[Account]:
        """All accounts belonging to a tenant, in creation order."""
        pass

    @abstractmethod
    async def find_accounts_by_role(self, role: Role) -> list[Account]:
        """All accounts holding a role."""
        pass

    # -- roles ----------------------------------------------------------------

    @abstractmethod
    async def find_role_by_name(self, role: Role) -> RoleRecord | None:
        """Get the seeded record for a role."""
        pass

    @abstractmethod
    async def upsert_role(self, role: Role, description: str) -> RoleRecord:
        """Create the role if missing, otherwise refresh its description."""
        pass

    @abstractmethod
    async def create_account_role(self, account_id: str, role: RoleRecord) -> AccountRole:
        """Link a role to an account. Raises DuplicateRecordError if linked."""
        pass

    @abstractmethod
    async def list_account_roles(self, account_id: str) -> list[Role]:
        """Roles of an account, in the order they were granted."""
        pass


class QueueStorage(ABC):
    """
    Send-only message queue for async notifications.

    AMQP Implementation: RabbitMQ
    Local Implementation: In-memory list
    """

    @abstractmethod
    async def send_message(self, payload: dict[str, Any], queue_name: str) -> bool:
        """Enqueue a message. Returns True on enqueue success."""
        pass

    async def close(self) -> None:
        """Release any connection held by the queue."""
        pass


# =============================================================================
# Storage Provider (dependency injection container)
# =============================================================================


class StorageProvider(BaseModel):
    """
    Container for all storage backends.

    Initialize once at app startup with appropriate implementations.
    Services receive this and use the interfaces without knowing
    the underlying implementation.
    """

    model_config = {"arbitrary_types_allowed": True}

    accounts: AccountStore
    queue: QueueStorage
