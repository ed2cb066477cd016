"""
Tests for the auth service (registration, login, refresh, verification,
unsubscribe).
"""

import asyncio
import logging
import time

import pytest

from franchise_auth.auth.jwt import TokenInvalid, TokenType
from franchise_auth.core.errors import BadRequest, Conflict, NotFound, Unauthenticated
from franchise_auth.core.roles import Role
from franchise_auth.services.auth import INVALID_CREDENTIALS, AuthService
from franchise_auth.services.notification import NotificationPublisher
from franchise_auth.services.seed import seed_roles
from franchise_auth.storage.base import QueueStorage, StorageError


class BrokenQueue(QueueStorage):
    """Queue whose broker is always down."""

    async def send_message(self, payload, queue_name):
        raise ConnectionError("broker unreachable")


class SlowQueue(QueueStorage):
    """Queue that takes a long time to accept each message."""

    def __init__(self, delay: float):
        self.delay = delay
        self.sent: list[str] = []

    async def send_message(self, payload, queue_name):
        await asyncio.sleep(self.delay)
        self.sent.append(queue_name)
        return True


# =============================================================================
# Register
# =============================================================================


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_creates_customer(self, auth_service):
        summary = await auth_service.register("alice", "Alice@Example.com", "pw123456")

        assert summary.email == "alice@example.com"
        assert summary.roles == [Role.CUSTOMER]
        assert summary.tenant_id is None
        assert summary.double_opt_in is False
        assert not hasattr(summary, "password_hash")

    @pytest.mark.asyncio
    async def test_password_is_hashed(self, auth_service):
        summary = await auth_service.register("alice", "alice@example.com", "pw123456")

        stored = await auth_service.accounts.find_account_by_id(summary.id)

        assert stored.password_hash.startswith("$argon2id$")
        assert "pw123456" not in stored.password_hash

    @pytest.mark.asyncio
    async def test_register_queues_verification_and_welcome(self, auth_service, storage, settings):
        summary = await auth_service.register("alice", "alice@example.com", "pw123456")
        await auth_service.drain()

        [verification] = storage.queue.messages(settings.rabbitmq_queue)
        [welcome] = storage.queue.messages(settings.welcome_queue)

        assert verification["template"] == "verify_email"
        assert verification["email"] == "alice@example.com"
        claims = auth_service.tokens.verify(verification["context"]["magic_token"], TokenType.MAGIC)
        assert claims.email == "alice@example.com"
        assert welcome["context"]["account_id"] == summary.id

    @pytest.mark.asyncio
    async def test_duplicate_email(self, auth_service):
        await auth_service.register("alice", "alice@example.com", "pw123456")

        with pytest.raises(Conflict) as exc_info:
            await auth_service.register("alice2", "ALICE@example.com", "pw123456")
        assert exc_info.value.message == "Email already in use"

    @pytest.mark.asyncio
    async def test_concurrent_registration_single_account(self, auth_service):
        results = await asyncio.gather(
            *(auth_service.register(f"user{i}", "race@example.com", "pw123456") for i in range(4)),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, Conflict)]
        assert len(conflicts) == 3
        assert await auth_service.accounts.find_account_by_email("race@example.com") is not None

    @pytest.mark.asyncio
    async def test_queue_failure_does_not_fail_registration(
        self, storage, tokens, hasher, settings, caplog
    ):
        await seed_roles(storage.accounts)
        service = AuthService(storage, tokens, hasher, NotificationPublisher(BrokenQueue(), settings))

        with caplog.at_level(logging.WARNING):
            summary = await service.register("alice", "alice@example.com", "pw123456")
            await service.drain()

        assert await storage.accounts.find_account_by_id(summary.id) is not None
        assert "broker unreachable" in caplog.text

    @pytest.mark.asyncio
    async def test_slow_queue_does_not_delay_registration(self, storage, tokens, hasher, settings):
        await seed_roles(storage.accounts)
        queue = SlowQueue(delay=1.0)
        service = AuthService(storage, tokens, hasher, NotificationPublisher(queue, settings))

        started = time.perf_counter()
        await service.register("alice", "alice@example.com", "pw123456")
        elapsed = time.perf_counter() - started

        assert elapsed < 0.5
        assert queue.sent == []

        await service.drain()
        assert queue.sent == [settings.rabbitmq_queue, settings.welcome_queue]

    @pytest.mark.asyncio
    async def test_failed_role_link_releases_email(self, auth_service, monkeypatch):
        async def fail_link(account_id, role):
            raise StorageError("link table unavailable")

        monkeypatch.setattr(auth_service.accounts, "create_account_role", fail_link)

        with pytest.raises(StorageError):
            await auth_service.register("alice", "alice@example.com", "pw123456")

        assert await auth_service.accounts.find_account_by_email("alice@example.com") is None

    @pytest.mark.asyncio
    async def test_unseeded_role(self, storage, tokens, hasher, settings):
        service = AuthService(storage, tokens, hasher, NotificationPublisher(storage.queue, settings))

        with pytest.raises(NotFound):
            await service.register("alice", "alice@example.com", "pw123456")


# =============================================================================
# Login
# =============================================================================


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_returns_tokens(self, auth_service):
        registered = await auth_service.register("alice", "alice@example.com", "pw123456")

        result = await auth_service.login("alice@example.com", "pw123456")

        assert result.account.id == registered.id
        claims = auth_service.tokens.verify(result.tokens.access_token, TokenType.ACCESS)
        assert claims.sub == registered.id
        assert claims.roles == ["CUSTOMER"]
        assert claims.tenant_id is None

    @pytest.mark.asyncio
    async def test_login_email_is_case_insensitive(self, auth_service):
        await auth_service.register("alice", "alice@example.com", "pw123456")

        result = await auth_service.login("ALICE@example.com", "pw123456")

        assert result.account.email == "alice@example.com"

    @pytest.mark.asyncio
    async def test_unknown_email_and_wrong_password_look_the_same(self, auth_service):
        await auth_service.register("alice", "alice@example.com", "pw123456")

        with pytest.raises(Unauthenticated) as unknown:
            await auth_service.login("bob@example.com", "pw123456")
        with pytest.raises(Unauthenticated) as wrong:
            await auth_service.login("alice@example.com", "wrong-password")

        assert unknown.value.message == wrong.value.message == INVALID_CREDENTIALS
        assert unknown.value.status_code == wrong.value.status_code == 401

    @pytest.mark.asyncio
    async def test_tenant_account_token_carries_tenant(self, auth_service):
        await auth_service.provision_account("owner", "owner@example.com", "pw123456", Role.TENANT_OWNER, "T1")

        result = await auth_service.login("owner@example.com", "pw123456")

        claims = auth_service.tokens.verify(result.tokens.access_token)
        assert claims.roles == ["TENANT_OWNER"]
        assert claims.tenant_id == "T1"


# =============================================================================
# Refresh
# =============================================================================


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_issues_new_pair(self, auth_service):
        await auth_service.register("alice", "alice@example.com", "pw123456")
        result = await auth_service.login("alice@example.com", "pw123456")

        pair = await auth_service.refresh(result.tokens.refresh_token)

        assert auth_service.tokens.verify(pair.access_token, TokenType.ACCESS).sub == result.account.id

    @pytest.mark.asyncio
    async def test_refresh_rereads_roles(self, auth_service):
        summary = await auth_service.register("alice", "alice@example.com", "pw123456")
        result = await auth_service.login("alice@example.com", "pw123456")

        staff = await auth_service.accounts.find_role_by_name(Role.STAFF)
        await auth_service.accounts.create_account_role(summary.id, staff)
        pair = await auth_service.refresh(result.tokens.refresh_token)

        claims = auth_service.tokens.verify(pair.access_token)
        assert set(claims.roles) == {"CUSTOMER", "STAFF"}

    @pytest.mark.asyncio
    async def test_access_token_is_not_a_refresh_token(self, auth_service):
        await auth_service.register("alice", "alice@example.com", "pw123456")
        result = await auth_service.login("alice@example.com", "pw123456")

        with pytest.raises(TokenInvalid):
            await auth_service.refresh(result.tokens.access_token)

    @pytest.mark.asyncio
    async def test_missing_token(self, auth_service):
        with pytest.raises(Unauthenticated):
            await auth_service.refresh(None)

    @pytest.mark.asyncio
    async def test_deleted_account(self, auth_service):
        summary = await auth_service.register("alice", "alice@example.com", "pw123456")
        result = await auth_service.login("alice@example.com", "pw123456")
        await auth_service.unsubscribe(summary.id)

        with pytest.raises(Unauthenticated):
            await auth_service.refresh(result.tokens.refresh_token)


# =============================================================================
# Verify / Unsubscribe / Profile
# =============================================================================


class TestVerifyMagicToken:
    @pytest.mark.asyncio
    async def test_verify_sets_double_opt_in(self, auth_service):
        summary = await auth_service.register("alice", "alice@example.com", "pw123456")
        magic = auth_service.tokens.issue_magic("alice@example.com", "alice")

        assert await auth_service.verify_magic_token(magic) == {"email": "alice@example.com"}
        assert (await auth_service.get_profile(summary.id)).double_opt_in is True

    @pytest.mark.asyncio
    async def test_missing_token(self, auth_service):
        with pytest.raises(BadRequest):
            await auth_service.verify_magic_token("")

    @pytest.mark.asyncio
    async def test_access_token_is_not_magic(self, auth_service):
        summary = await auth_service.register("alice", "alice@example.com", "pw123456")

        with pytest.raises(TokenInvalid):
            await auth_service.verify_magic_token(
                auth_service.tokens.issue_access(summary.id, [Role.CUSTOMER])
            )


class TestUnsubscribe:
    @pytest.mark.asyncio
    async def test_unsubscribe_twice(self, auth_service):
        summary = await auth_service.register("alice", "alice@example.com", "pw123456")

        await auth_service.unsubscribe(summary.id)

        with pytest.raises(NotFound):
            await auth_service.unsubscribe(summary.id)
        assert await auth_service.accounts.find_account_by_email("alice@example.com") is None

    @pytest.mark.asyncio
    async def test_email_reusable_after_unsubscribe(self, auth_service):
        summary = await auth_service.register("alice", "alice@example.com", "pw123456")
        await auth_service.unsubscribe(summary.id)

        again = await auth_service.register("alice", "alice@example.com", "pw123456")

        assert again.id != summary.id


class TestProfile:
    @pytest.mark.asyncio
    async def test_profile(self, auth_service):
        summary = await auth_service.register("alice", "alice@example.com", "pw123456")

        profile = await auth_service.get_profile(summary.id)

        assert profile.username == "alice"
        assert profile.roles == [Role.CUSTOMER]

    @pytest.mark.asyncio
    async def test_missing_profile(self, auth_service):
        with pytest.raises(NotFound):
            await auth_service.get_profile("acct_missing")
