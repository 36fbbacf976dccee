"""
Provider Adapters Package.

Each adapter builds the upstream URL, headers and body for one provider
family. Adapters are looked up by ProviderKind; ProviderKind.UNKNOWN has
no adapter and is reported as an unsupported provider rather than
guessed at.

Usage:
    from endpoint_proxy.gateway.adapters import build_request

    request = build_request("openrouter", credentials, body, Endpoint.EMBEDDINGS)
"""

from typing import Any, Dict, Optional

from endpoint_proxy.gateway.adapters.base import (
    AdapterBase,
    UpstreamRequest,
    default_compatible_base_url,
    validate_chat_request,
    validate_embeddings_request,
    validate_request,
)
from endpoint_proxy.gateway.adapters.cursor import CursorAdapter
from endpoint_proxy.gateway.adapters.openai import OpenAIAdapter, OpenRouterAdapter
from endpoint_proxy.gateway.adapters.openai_compatible import OpenAICompatibleAdapter
from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.errors import UnsupportedProviderError
from endpoint_proxy.gateway.formats import Endpoint
from endpoint_proxy.gateway.providers import ProviderKind, ProviderRef


# Adapters are stateless, so one shared instance per provider family
_ADAPTERS: Dict[ProviderKind, AdapterBase] = {
    ProviderKind.OPENAI: OpenAIAdapter(),
    ProviderKind.OPENROUTER: OpenRouterAdapter(),
    ProviderKind.OPENAI_COMPATIBLE: OpenAICompatibleAdapter(),
    ProviderKind.CURSOR: CursorAdapter(),
}


def get_adapter(provider: ProviderRef) -> AdapterBase:
    """
    Get the adapter for a resolved provider.

    Raises:
        UnsupportedProviderError: For ProviderKind.UNKNOWN
    """
    adapter = _ADAPTERS.get(provider.kind)
    if adapter is None:
        raise UnsupportedProviderError(
            provider.provider_id,
            f"Provider '{provider.provider_id}' is not supported. "
            f"Use openai, openrouter, cursor, or an openai-compatible provider.",
        )
    return adapter


def resolve_provider(provider: str, credentials: Optional[Credentials]) -> ProviderRef:
    data = credentials.provider_specific_data if credentials else None
    return ProviderRef.parse(provider, data, default_compatible_base_url())


def build_request(
    provider: str,
    credentials: Credentials,
    body: Dict[str, Any],
    endpoint: Endpoint,
    model: Optional[str] = None,
) -> UpstreamRequest:
    """
    Validate a canonical body and build the upstream request for it.

    Args:
        provider: Provider id from model configuration
        credentials: Connection credentials
        body: Canonical request body
        endpoint: Canonical endpoint being served
        model: Upstream model name; defaults to body["model"]

    Returns:
        UpstreamRequest

    Raises:
        ClientInputError: If the body fails validation
        UnsupportedProviderError: If the provider (or provider/endpoint
            pair) has no endpoint mapping
    """
    validate_request(body, endpoint)
    ref = resolve_provider(provider, credentials)
    adapter = get_adapter(ref)
    return adapter.build_upstream_request(ref, credentials, body, endpoint, model=model)


def build_headers(provider: str, credentials: Credentials) -> Dict[str, str]:
    """Rebuild request headers from (possibly refreshed) credentials."""
    ref = resolve_provider(provider, credentials)
    return get_adapter(ref).build_headers(ref, credentials)


__all__ = [
    "AdapterBase",
    "UpstreamRequest",
    "OpenAIAdapter",
    "OpenRouterAdapter",
    "OpenAICompatibleAdapter",
    "CursorAdapter",
    "get_adapter",
    "resolve_provider",
    "build_request",
    "build_headers",
    "validate_request",
    "validate_chat_request",
    "validate_embeddings_request",
]
