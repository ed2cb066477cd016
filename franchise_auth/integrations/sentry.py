"""
Sentry error tracking.

Enabled by setting SENTRY_DSN; init_sentry() runs in the app lifespan.
Expected client-side auth failures (bad credentials, missing roles,
duplicate emails) are never reported, and every event has its bearer
tokens and credential cookies stripped before it leaves the process.
"""

import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.exceptions import HTTPException as StarletteHTTPException

from franchise_auth.config import Settings, get_settings
from franchise_auth.core.errors import AuthError

logger = logging.getLogger(__name__)


# Client errors the API answers on purpose
_EXPECTED_STATUS_CODES = frozenset({400, 401, 403, 404, 409, 422})

# Headers that carry tokens or credential cookies
_CREDENTIAL_HEADERS = frozenset({"authorization", "cookie", "set-cookie"})

_SKIPPED_TRANSACTIONS = frozenset({"/health", "health_check"})

_FILTERED = "[Filtered]"


def init_sentry(settings: Settings | None = None) -> bool:
    """
    Initialize Sentry error tracking.

    Returns True if initialized, False if no DSN is configured.
    """
    settings = settings or get_settings()

    if not settings.sentry_dsn:
        logger.info("SENTRY_DSN not set - error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
            # Breadcrumbs from INFO, events only from ERROR
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        send_default_pii=False,
        before_send=_filter_events,
        before_send_transaction=_filter_transactions,
    )

    logger.info(f"Sentry enabled ({settings.environment})")
    return True


def _is_expected(exc: BaseException | None) -> bool:
    if isinstance(exc, (AuthError, StarletteHTTPException)):
        return exc.status_code in _EXPECTED_STATUS_CODES
    return False


def _scrub_request(request: dict[str, Any]) -> None:
    headers = request.get("headers") or {}
    for name in list(headers):
        if name.lower() in _CREDENTIAL_HEADERS:
            headers[name] = _FILTERED
    if "cookies" in request:
        request["cookies"] = _FILTERED


def _filter_events(event: dict, hint: dict) -> dict | None:
    """Drop expected auth failures and scrub credentials."""
    exc_info = hint.get("exc_info")
    if exc_info and _is_expected(exc_info[1]):
        return None

    if event.get("request"):
        _scrub_request(event["request"])
    return event


def _filter_transactions(event: dict, hint: dict) -> dict | None:
    """Skip health checks."""
    if event.get("transaction") in _SKIPPED_TRANSACTIONS:
        return None
    return event


def capture_exception(error: Exception, **extra: Any) -> str | None:
    """
    Report an unexpected error with request extras attached.

    Falls back to a local error log when Sentry is not enabled.
    """
    if not sentry_sdk.get_client().is_active():
        logger.error("Unhandled error (Sentry disabled)", exc_info=error)
        return None

    with sentry_sdk.new_scope() as scope:
        for key, value in extra.items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(error)
