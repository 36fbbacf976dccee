"""
Provider Adapter Base Class.

This module defines the base interface for upstream adapters.
Each adapter turns a canonical (OpenAI-format) request plus provider
credentials into the URL, headers and body the upstream expects.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Dict, FrozenSet, Optional

from endpoint_proxy.core.config import settings
from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.errors import ClientInputError, UnsupportedProviderError
from endpoint_proxy.gateway.formats import Endpoint
from endpoint_proxy.gateway.providers import ProviderRef


@dataclass(frozen=True)
class UpstreamRequest:
    """Request to send to upstream provider."""

    url: str
    headers: Dict[str, str]
    body: Dict[str, Any]
    method: str = "POST"

    def with_headers(self, headers: Dict[str, str]) -> "UpstreamRequest":
        """Same URL and body with replacement headers (used when replaying)."""
        return replace(self, headers=dict(headers))


# =============================================================================
# Input validation
# =============================================================================

def validate_embeddings_request(body: Dict[str, Any]) -> None:
    """
    Check the embeddings input field.

    An empty list is passed through; the upstream decides what it means.

    Raises:
        ClientInputError: If input is missing, an empty string, or not a
            string or list
    """
    value = body.get("input")
    if value is None or value == "":
        raise ClientInputError("Missing required field: input")
    if not isinstance(value, (str, list)):
        raise ClientInputError("input must be a string or array of strings")


def _validate_message(index: int, message: Any) -> None:
    if not isinstance(message, dict):
        raise ClientInputError(f"messages[{index}] must be an object")
    tool_calls = message.get("tool_calls")
    if tool_calls is None:
        return
    if not isinstance(tool_calls, list):
        raise ClientInputError(f"messages[{index}].tool_calls must be an array")
    for position, tool_call in enumerate(tool_calls):
        if not isinstance(tool_call, dict):
            raise ClientInputError(f"messages[{index}].tool_calls[{position}] must be an object")


def validate_chat_request(body: Dict[str, Any]) -> None:
    """
    Check the chat messages field.

    Raises:
        ClientInputError: If messages is missing/empty/not a list, an entry
            or one of its tool calls is not an object, or streaming is
            requested
    """
    messages = body.get("messages")
    if not messages:
        raise ClientInputError("Missing required field: messages")
    if not isinstance(messages, list):
        raise ClientInputError("messages must be an array of message objects")
    for index, message in enumerate(messages):
        _validate_message(index, message)
    if body.get("stream"):
        raise ClientInputError("Streaming responses are not supported by this endpoint")


VALIDATORS = {
    Endpoint.EMBEDDINGS: validate_embeddings_request,
    Endpoint.CHAT_COMPLETIONS: validate_chat_request,
}


def validate_request(body: Any, endpoint: Endpoint) -> None:
    if not isinstance(body, dict):
        raise ClientInputError("Request body must be a JSON object")
    VALIDATORS[endpoint](body)


# =============================================================================
# Adapter base
# =============================================================================

class AdapterBase(ABC):
    """
    Base class for provider adapters.

    Subclasses provide the base URL; the base class assembles headers and
    the body for each endpoint. Adapters are stateless and shared.
    """

    SUPPORTED_ENDPOINTS: FrozenSet[Endpoint] = frozenset()

    def supports(self, endpoint: Endpoint) -> bool:
        return endpoint in self.SUPPORTED_ENDPOINTS

    @abstractmethod
    def base_url(self, provider: ProviderRef) -> str:
        """Upstream API root, without trailing slash."""

    def build_url(self, provider: ProviderRef, endpoint: Endpoint) -> str:
        return f"{self.base_url(provider).rstrip('/')}{endpoint.path}"

    def build_headers(self, provider: ProviderRef, credentials: Credentials) -> Dict[str, str]:
        """JSON content type plus bearer auth from the credentials."""
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credentials.bearer_token}",
        }

    def build_embeddings_body(self, model: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """Minimal OpenAI embeddings body."""
        return {
            "model": model,
            "input": body["input"],
            "encoding_format": body.get("encoding_format") or "float",
        }

    def build_chat_body(
        self,
        provider: ProviderRef,
        model: str,
        body: Dict[str, Any],
        credentials: Credentials,
    ) -> Dict[str, Any]:
        """Compatible providers receive the canonical body with the upstream model."""
        return {**body, "model": model}

    def build_body(
        self,
        provider: ProviderRef,
        model: str,
        body: Dict[str, Any],
        endpoint: Endpoint,
        credentials: Credentials,
    ) -> Dict[str, Any]:
        if endpoint is Endpoint.EMBEDDINGS:
            return self.build_embeddings_body(model, body)
        return self.build_chat_body(provider, model, body, credentials)

    def build_upstream_request(
        self,
        provider: ProviderRef,
        credentials: Credentials,
        body: Dict[str, Any],
        endpoint: Endpoint,
        model: Optional[str] = None,
    ) -> UpstreamRequest:
        """
        Build the upstream request.

        Args:
            provider: Resolved provider
            credentials: Credentials used for the Authorization header
            body: Canonical request body (validated)
            endpoint: Canonical endpoint being served
            model: Upstream model name; defaults to body["model"]

        Returns:
            UpstreamRequest ready to be sent

        Raises:
            UnsupportedProviderError: If the adapter cannot serve the endpoint
        """
        if not self.supports(endpoint):
            raise UnsupportedProviderError(
                provider.provider_id,
                f"Provider '{provider.provider_id}' does not support {endpoint.value}. "
                f"Use openai, openrouter, or an openai-compatible provider.",
            )

        upstream_model = model or body.get("model") or ""
        return UpstreamRequest(
            url=self.build_url(provider, endpoint),
            headers=self.build_headers(provider, credentials),
            body=self.build_body(provider, upstream_model, body, endpoint, credentials),
        )


def default_compatible_base_url() -> str:
    return settings.gateway.compatible_default_base_url
