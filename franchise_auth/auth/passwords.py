"""
Password hashing with argon2id.

Example:
    >>> hasher = CredentialHasher()
    >>> digest = hasher.hash("my_password")
    >>> hasher.verify(digest, "my_password")
    True
"""

from __future__ import annotations

import asyncio
import logging

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from franchise_auth.config import Settings, get_settings

logger = logging.getLogger(__name__)


class CredentialHashError(Exception):
    """A stored digest could not be parsed. Treated as an internal error."""
    pass


class CredentialHasher:
    """
    Salted, memory-hard password hashing.

    Cost parameters come from settings and are fixed for the lifetime
    of the instance.
    """

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self._hasher = PasswordHasher(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
            type=Type.ID,
        )

    def hash(self, plaintext: str) -> str:
        """Hash a password. Returns an encoded argon2id digest."""
        return self._hasher.hash(plaintext)

    def verify(self, digest: str, plaintext: str) -> bool:
        """
        Check a password against a stored digest.

        Returns False on mismatch. Raises CredentialHashError when the
        digest itself is malformed.
        """
        try:
            return self._hasher.verify(digest, plaintext)
        except VerifyMismatchError:
            return False
        except InvalidHashError as e:
            raise CredentialHashError("Stored password hash is malformed") from e
        except VerificationError:
            return False

    def needs_rehash(self, digest: str) -> bool:
        """True when the digest was made with different cost parameters."""
        try:
            return self._hasher.check_needs_rehash(digest)
        except InvalidHashError as e:
            raise CredentialHashError("Stored password hash is malformed") from e

    # Async wrappers keep argon2's CPU/memory work off the event loop

    async def hash_async(self, plaintext: str) -> str:
        return await asyncio.to_thread(self.hash, plaintext)

    async def verify_async(self, digest: str, plaintext: str) -> bool:
        return await asyncio.to_thread(self.verify, digest, plaintext)
