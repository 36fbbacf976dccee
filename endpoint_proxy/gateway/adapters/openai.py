"""
OpenAI and OpenRouter adapters.

Both speak the canonical dialect natively, so these adapters only pick
the host and, for OpenRouter, add the attribution headers its terms of
use require.
"""

from typing import Dict, FrozenSet

from endpoint_proxy.core.config import settings
from endpoint_proxy.gateway.adapters.base import AdapterBase
from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.formats import Endpoint
from endpoint_proxy.gateway.providers import ProviderRef


class OpenAIAdapter(AdapterBase):
    """Adapter for the official OpenAI API (passthrough)."""

    SUPPORTED_ENDPOINTS: FrozenSet[Endpoint] = frozenset({
        Endpoint.EMBEDDINGS,
        Endpoint.CHAT_COMPLETIONS,
    })

    BASE_URL = "https://api.openai.com/v1"

    def base_url(self, provider: ProviderRef) -> str:
        return self.BASE_URL


class OpenRouterAdapter(OpenAIAdapter):
    """Adapter for OpenRouter."""

    BASE_URL = "https://openrouter.ai/api/v1"

    def build_headers(self, provider: ProviderRef, credentials: Credentials) -> Dict[str, str]:
        headers = super().build_headers(provider, credentials)
        headers["HTTP-Referer"] = settings.gateway.openrouter_referer
        headers["X-Title"] = settings.gateway.openrouter_title
        return headers
