"""
Credential refresh executors.

Usage:
    from endpoint_proxy.gateway.executors import get_executor

    executor = get_executor("cursor")
    new_credentials = await executor.refresh_credentials(credentials, log)
"""

from typing import Dict

from endpoint_proxy.gateway.executors.base import DefaultExecutor, ExecutorBase
from endpoint_proxy.gateway.executors.oauth import OAuthRefreshExecutor, TokenRefreshError
from endpoint_proxy.gateway.providers import ProviderKind, ProviderRef


_DEFAULT_EXECUTOR = DefaultExecutor()

# Executors by provider family
_KIND_EXECUTORS: Dict[ProviderKind, ExecutorBase] = {
    ProviderKind.CURSOR: OAuthRefreshExecutor(),
}

# Explicit per-provider-id overrides
_EXECUTOR_OVERRIDES: Dict[str, ExecutorBase] = {}


def get_executor(provider: str) -> ExecutorBase:
    """Get the executor for a provider id; never fails."""
    if provider in _EXECUTOR_OVERRIDES:
        return _EXECUTOR_OVERRIDES[provider]
    kind = ProviderRef.parse(provider).kind
    return _KIND_EXECUTORS.get(kind, _DEFAULT_EXECUTOR)


def register_executor(provider: str, executor: ExecutorBase) -> None:
    """
    Register an executor for a specific provider id.

    Args:
        provider: Provider id, e.g. "openai-compatible-vllm"
        executor: ExecutorBase instance
    """
    _EXECUTOR_OVERRIDES[provider] = executor


def unregister_executor(provider: str) -> None:
    _EXECUTOR_OVERRIDES.pop(provider, None)


__all__ = [
    "ExecutorBase",
    "DefaultExecutor",
    "OAuthRefreshExecutor",
    "TokenRefreshError",
    "get_executor",
    "register_executor",
    "unregister_executor",
]
