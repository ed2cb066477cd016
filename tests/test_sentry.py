"""
Tests for Sentry event filtering.
"""

from fastapi import HTTPException

from franchise_auth.core.errors import Conflict, Unauthenticated
from franchise_auth.integrations.sentry import (
    _filter_events,
    _filter_transactions,
    capture_exception,
    init_sentry,
)


def hint_for(exc: BaseException) -> dict:
    return {"exc_info": (type(exc), exc, None)}


class TestFilterEvents:
    def test_drops_expected_auth_errors(self):
        assert _filter_events({}, hint_for(Unauthenticated())) is None
        assert _filter_events({}, hint_for(Conflict())) is None

    def test_drops_client_http_errors(self):
        assert _filter_events({}, hint_for(HTTPException(status_code=404))) is None

    def test_keeps_server_errors(self):
        event = {"message": "boom"}
        assert _filter_events(event, hint_for(RuntimeError("boom"))) is event

    def test_scrubs_credentials(self):
        event = {
            "request": {
                "headers": {"Authorization": "Bearer abc", "Cookie": "accessToken=abc", "Accept": "*/*"},
                "cookies": {"accessToken": "abc"},
            }
        }

        filtered = _filter_events(event, {})

        assert filtered["request"]["headers"]["Authorization"] == "[Filtered]"
        assert filtered["request"]["headers"]["Cookie"] == "[Filtered]"
        assert filtered["request"]["headers"]["Accept"] == "*/*"
        assert filtered["request"]["cookies"] == "[Filtered]"


class TestFilterTransactions:
    def test_skips_health(self):
        assert _filter_transactions({"transaction": "/health"}, {}) is None

    def test_keeps_others(self):
        event = {"transaction": "/auth/login"}
        assert _filter_transactions(event, {}) is event


class TestInit:
    def test_disabled_without_dsn(self, settings):
        assert init_sentry(settings) is False

    def test_capture_without_client(self):
        assert capture_exception(RuntimeError("boom")) is None
