"""
Cursor Adapter.

Cursor does not accept OpenAI chat history as-is; chat bodies go through
the OPENAI -> CURSOR translator. Cursor exposes no embeddings endpoint.
"""

from typing import Any, Dict, FrozenSet

from endpoint_proxy.core.config import settings
from endpoint_proxy.gateway.adapters.base import AdapterBase
from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.formats import Endpoint, Format
from endpoint_proxy.gateway.providers import ProviderRef
from endpoint_proxy.gateway.translators import translate_request


class CursorAdapter(AdapterBase):
    """Adapter for Cursor's chat API."""

    SUPPORTED_ENDPOINTS: FrozenSet[Endpoint] = frozenset({
        Endpoint.CHAT_COMPLETIONS,
    })

    def base_url(self, provider: ProviderRef) -> str:
        return settings.gateway.cursor_base_url

    def build_chat_body(
        self,
        provider: ProviderRef,
        model: str,
        body: Dict[str, Any],
        credentials: Credentials,
    ) -> Dict[str, Any]:
        return translate_request(
            Format.OPENAI,
            provider.target_format,
            model,
            body,
            stream=bool(body.get("stream")),
            credentials=credentials,
        )
