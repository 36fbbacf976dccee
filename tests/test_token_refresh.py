"""Tests for the credential refresh coordinator and executors."""

from __future__ import annotations

import httpx
import pytest

from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.executors import (
    DefaultExecutor,
    OAuthRefreshExecutor,
    TokenRefreshError,
    get_executor,
)
from endpoint_proxy.gateway.services.token_refresh import refresh_with_retry

from tests.conftest import FakeExecutor


class TestRefreshWithRetry:
    @pytest.mark.asyncio
    async def test_first_usable_result_returns_immediately(self):
        executor = FakeExecutor(Credentials(access_token="new"), Credentials(access_token="unused"))

        result = await refresh_with_retry(lambda: executor.refresh_credentials(Credentials()), 3)

        assert result is not None and result.access_token == "new"
        assert executor.calls == 1

    @pytest.mark.asyncio
    async def test_exceptions_count_as_failed_attempts(self):
        executor = FakeExecutor(
            RuntimeError("token endpoint down"),
            httpx.ConnectError("refused"),
            Credentials(api_key="fresh"),
        )

        result = await refresh_with_retry(lambda: executor.refresh_credentials(Credentials()), 3)

        assert result is not None and result.api_key == "fresh"
        assert executor.calls == 3

    @pytest.mark.asyncio
    async def test_exhaustion_returns_none(self):
        executor = FakeExecutor(None, RuntimeError("boom"), Credentials(access_token=""))

        result = await refresh_with_retry(lambda: executor.refresh_credentials(Credentials()), 3)

        assert result is None
        assert executor.calls == 3

    @pytest.mark.asyncio
    async def test_unusable_credentials_are_not_returned(self):
        executor = FakeExecutor(Credentials(refresh_token="only-refresh"))

        assert await refresh_with_retry(lambda: executor.refresh_credentials(Credentials()), 1) is None

    @pytest.mark.asyncio
    async def test_default_attempts_come_from_settings(self):
        executor = FakeExecutor()

        assert await refresh_with_retry(lambda: executor.refresh_credentials(Credentials())) is None
        assert executor.calls == 3

    @pytest.mark.asyncio
    async def test_invalid_attempt_budget_is_rejected(self):
        executor = FakeExecutor()
        with pytest.raises(ValueError):
            await refresh_with_retry(lambda: executor.refresh_credentials(Credentials()), 0)
        assert executor.calls == 0


class TestExecutors:
    def test_static_key_providers_use_default_executor(self):
        assert isinstance(get_executor("openai"), DefaultExecutor)
        assert isinstance(get_executor("openai-compatible-x"), DefaultExecutor)
        assert isinstance(get_executor("nonsense"), DefaultExecutor)

    def test_cursor_uses_oauth_executor(self):
        assert isinstance(get_executor("cursor"), OAuthRefreshExecutor)

    def test_registered_override_wins(self, install_executor):
        fake = install_executor("openai", FakeExecutor())
        assert get_executor("openai") is fake

    @pytest.mark.asyncio
    async def test_default_executor_cannot_refresh(self):
        assert await DefaultExecutor().refresh_credentials(Credentials(api_key="k")) is None

    @pytest.mark.asyncio
    async def test_oauth_executor_exchanges_refresh_token(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"access_token": "at-2", "refresh_token": "rt-2", "expires_in": 3600},
            )

        executor = OAuthRefreshExecutor(transport=httpx.MockTransport(handler))
        creds = Credentials(
            access_token="at-1",
            refresh_token="rt-1",
            provider_specific_data={"token_url": "https://auth.example.com/oauth/token"},
        )

        result = await executor.refresh_credentials(creds)

        assert result is not None
        assert result.access_token == "at-2"
        assert result.refresh_token == "rt-2"
        assert result.expires_at is not None
        assert creds.access_token == "at-1"
        assert str(seen[0].url) == "https://auth.example.com/oauth/token"
        form = seen[0].content.decode()
        assert "grant_type=refresh_token" in form
        assert "refresh_token=rt-1" in form

    @pytest.mark.asyncio
    async def test_oauth_executor_without_refresh_token_returns_none(self):
        executor = OAuthRefreshExecutor(token_url="https://auth.example.com/token")
        assert await executor.refresh_credentials(Credentials(access_token="at")) is None

    @pytest.mark.asyncio
    async def test_oauth_executor_raises_on_rejected_refresh(self):
        executor = OAuthRefreshExecutor(
            token_url="https://auth.example.com/token",
            transport=httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "invalid_grant"})),
        )
        with pytest.raises(TokenRefreshError) as exc_info:
            await executor.refresh_credentials(Credentials(refresh_token="rt"))
        assert exc_info.value.status_code == 400


class TestCredentials:
    def test_merge_overwrites_only_set_fields(self):
        creds = Credentials(
            api_key=None,
            access_token="old",
            refresh_token="rt",
            provider_specific_data={"base_url": "https://a", "org": "o"},
        )
        returned = creds.merge(Credentials(access_token="new", provider_specific_data={"org": "p"}))

        assert returned is creds
        assert creds.access_token == "new"
        assert creds.refresh_token == "rt"
        assert creds.provider_specific_data == {"base_url": "https://a", "org": "p"}

    def test_repr_hides_secrets(self):
        text = repr(Credentials(api_key="sk-secret", access_token="tok-secret"))
        assert "sk-secret" not in text
        assert "tok-secret" not in text
