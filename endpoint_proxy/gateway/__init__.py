"""
Provider Gateway Package.

Accepts requests in the OpenAI-compatible dialect and dispatches them to
OpenAI, OpenRouter, OpenAI-compatible self-hosted servers, or Cursor,
translating bodies where the provider speaks another dialect and
refreshing expired credentials transparently.

Architecture:
- translators: format registry and dialect translators
- adapters: per-provider URL/header/body construction
- executors: per-provider credential refresh
- services: refresh coordinator, credential store
- dispatch: the end-to-end request state machine
- routers: FastAPI endpoints

Usage:
    from endpoint_proxy.gateway import handle_embeddings_core

    result = await handle_embeddings_core(
        body=body,
        model_info=ProviderModelInfo("openai", "text-embedding-3-small"),
        credentials=credentials,
    )
"""

from endpoint_proxy.gateway.adapters import build_request, get_adapter
from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.dispatch import (
    handle_chat_core,
    handle_dispatch,
    handle_embeddings_core,
)
from endpoint_proxy.gateway.errors import (
    ClientInputError,
    DispatchFailure,
    DispatchResult,
    DispatchSuccess,
    GatewayError,
    UnsupportedProviderError,
    UpstreamError,
)
from endpoint_proxy.gateway.formats import Endpoint, Format
from endpoint_proxy.gateway.providers import (
    ProviderKind,
    ProviderModelInfo,
    ProviderRef,
    resolve_model_info,
)

__all__ = [
    # Dispatch
    "handle_dispatch",
    "handle_embeddings_core",
    "handle_chat_core",
    # Request building
    "build_request",
    "get_adapter",
    # Types
    "Credentials",
    "Endpoint",
    "Format",
    "ProviderKind",
    "ProviderModelInfo",
    "ProviderRef",
    "resolve_model_info",
    # Results and errors
    "DispatchResult",
    "DispatchSuccess",
    "DispatchFailure",
    "ClientInputError",
    "UnsupportedProviderError",
    "GatewayError",
    "UpstreamError",
]
