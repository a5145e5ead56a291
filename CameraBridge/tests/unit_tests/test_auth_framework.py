"""
Unit tests for session state and the authenticator capability
"""

import pytest
from unittest.mock import AsyncMock, Mock

from CameraBridge.vendors.auth_framework import HmacAuthenticator, RetryConfig, Session
from CameraBridge.vendors.http_client import RequestDescriptor
from CameraBridge.vendors.signing import verify_hmac_signature


class TestSession:

    def test_empty_session_is_invalid(self):
        assert not Session().is_valid(now=0)

    def test_expiry_is_pulled_forward_by_margin(self):
        session = Session(renewal_margin=60)
        session.store("tok", 3600, now=1000)

        assert session.issued_at == 1000
        assert session.expires_at == 4540
        assert session.is_valid(4539.9)
        assert not session.is_valid(4540)

    def test_clear(self):
        session = Session()
        session.store("tok", 10, now=0, token_type="bearer")
        session.clear()

        assert session.token is None
        assert not session.is_valid(1)

    def test_header_value(self):
        session = Session()
        session.store("tok", 10, now=0, token_type="bearer")
        assert session.to_header_value() == "bearer tok"

        session.store("raw", 10, now=0)
        assert session.to_header_value() == "raw"


class TestRetryConfig:

    def test_exponential_delays_are_capped(self):
        config = RetryConfig(base_delay=1.0, backoff_factor=2.0, max_delay=5.0)
        assert [config.delay_for(attempt) for attempt in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


class TestHmacAuthenticator:

    def setup_method(self):
        self.authenticator = HmacAuthenticator("hikvision", Mock(), app_key="key", app_secret="secret", clock=lambda: 1700000000.5)

    def test_is_always_valid(self):
        assert self.authenticator.is_valid()

    @pytest.mark.asyncio
    async def test_ensure_authenticated_does_not_log_in(self):
        await self.authenticator.ensure_authenticated()
        assert self.authenticator.login_count == 0

    @pytest.mark.asyncio
    async def test_login_only_counts_and_notifies(self):
        listener = Mock()
        self.authenticator.add_login_listener(listener)

        await self.authenticator.login()

        assert self.authenticator.login_count == 1
        listener.assert_called_once_with()
        self.authenticator.transport.raw_request.assert_not_called()

    def test_headers_sign_path_with_query(self):
        descriptor = RequestDescriptor("GET", "/artemis/api/x", {"a": "1"})
        headers = self.authenticator.get_auth_headers(descriptor)

        assert headers["X-Ca-Timestamp"] == "1700000000500"
        assert verify_hmac_signature(
            "GET", "/artemis/api/x?a=1", "key", "secret",
            headers["X-Ca-Timestamp"], headers["X-Ca-Nonce"], headers["X-Ca-Signature"],
        )


class TestLoginListeners:

    @pytest.mark.asyncio
    async def test_listener_not_called_when_login_fails(self):
        authenticator = HmacAuthenticator("hikvision", Mock(), app_key="k", app_secret="s")
        authenticator._login = AsyncMock(side_effect=RuntimeError("boom"))
        listener = Mock()
        authenticator.add_login_listener(listener)

        with pytest.raises(RuntimeError):
            await authenticator.login()

        listener.assert_not_called()
