"""Pytest configuration and shared test doubles.

Upstream providers are simulated with httpx.MockTransport; no test makes
a real network call.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

import httpx
import pytest

from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.executors import ExecutorBase, register_executor, unregister_executor

# =============================================================================
# Test Doubles
# =============================================================================


class UpstreamRecorder:
    """MockTransport handler replaying a scripted sequence of outcomes.

    Each scripted item is an httpx.Response or an exception to raise. Every
    request that reaches the transport is recorded.
    """

    def __init__(self, *outcomes: httpx.Response | Exception) -> None:
        self._outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._outcomes:
            raise AssertionError(f"Unexpected upstream call to {request.url}")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def calls(self) -> int:
        return len(self.requests)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class FakeExecutor(ExecutorBase):
    """Executor returning (or raising) scripted refresh results."""

    PROVIDER = "fake"

    def __init__(self, *results: Credentials | Exception | None) -> None:
        self._results = list(results)
        self.calls = 0

    async def refresh_credentials(self, credentials: Credentials, log: Any = None) -> Credentials | None:
        self.calls += 1
        result = self._results.pop(0) if self._results else None
        if isinstance(result, Exception):
            raise result
        return result


def json_response(status_code: int, payload: Any) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


EMBEDDINGS_OK = {
    "object": "list",
    "data": [{"object": "embedding", "index": 0, "embedding": [0.1, 0.2, 0.3]}],
    "model": "text-embedding-3-small",
    "usage": {"prompt_tokens": 2, "total_tokens": 2},
}

UNAUTHORIZED = {"error": {"message": "Invalid API key", "type": "invalid_request_error"}}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(api_key="sk-old-key")


@pytest.fixture
def install_executor() -> Iterator[Callable[[str, ExecutorBase], ExecutorBase]]:
    """Register executors for the duration of one test."""
    installed: list[str] = []

    def _install(provider: str, executor: ExecutorBase) -> ExecutorBase:
        register_executor(provider, executor)
        installed.append(provider)
        return executor

    yield _install

    for provider in installed:
        unregister_executor(provider)
