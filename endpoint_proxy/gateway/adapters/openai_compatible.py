"""
OpenAI-Compatible Adapter for self-hosted deployments.

Handles the "openai-compatible-<name>" provider family: vLLM, sglang,
Xinference, LMStudio, Ollama's OpenAI layer and similar servers. The
endpoint root comes from the connection's provider-specific data.
"""

from typing import FrozenSet

from endpoint_proxy.gateway.adapters.base import AdapterBase, default_compatible_base_url
from endpoint_proxy.gateway.formats import Endpoint
from endpoint_proxy.gateway.providers import ProviderRef


class OpenAICompatibleAdapter(AdapterBase):
    """Adapter for OpenAI-compatible servers."""

    SUPPORTED_ENDPOINTS: FrozenSet[Endpoint] = frozenset({
        Endpoint.EMBEDDINGS,
        Endpoint.CHAT_COMPLETIONS,
    })

    def base_url(self, provider: ProviderRef) -> str:
        return (provider.base_url or default_compatible_base_url()).rstrip("/")
