"""
Format translators.

The registry is built once, on first use, from the built-in translator
modules and is read-only afterwards.

Usage:
    from endpoint_proxy.gateway.translators import translate_request

    body = translate_request(Format.OPENAI, Format.CURSOR, model, openai_body)
"""

from functools import lru_cache
from typing import Any, Dict, Optional

from endpoint_proxy.gateway.formats import Format
from endpoint_proxy.gateway.translators import openai_to_cursor
from endpoint_proxy.gateway.translators.normalizers import (
    normalize_chat_response,
    normalize_embeddings_response,
    normalize_response,
)
from endpoint_proxy.gateway.translators.registry import (
    TranslatorConfigurationError,
    TranslatorRegistration,
    TranslatorRegistry,
    TranslatorRegistryBuilder,
)


# Modules exposing register(builder); order does not matter
_BUILTIN_TRANSLATORS = (
    openai_to_cursor,
)


def build_registry() -> TranslatorRegistry:
    """Build a fresh registry containing every built-in translator."""
    builder = TranslatorRegistryBuilder()
    for module in _BUILTIN_TRANSLATORS:
        module.register(builder)
    return builder.freeze()


@lru_cache
def get_translator_registry() -> TranslatorRegistry:
    """Get the process-wide translator registry."""
    return build_registry()


def translate_request(
    source: Format,
    target: Format,
    model: str,
    body: Dict[str, Any],
    stream: bool = False,
    credentials: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Translate a request body between dialects.

    Same-dialect requests are returned as a shallow copy with the model
    replaced.

    Raises:
        TranslatorConfigurationError: If no translator exists for the pair
    """
    if source == target:
        return {**body, "model": model}
    registration = get_translator_registry().require(source, target)
    return registration.request_fn(model, body, stream, credentials)


def translate_response(source: Format, target: Format, response: Any) -> Any:
    """
    Translate a provider response back to the source dialect.

    ``source``/``target`` name the request direction; the pair's response
    translator is optional and its absence means the body is already
    canonical.
    """
    if source == target:
        return response
    registration = get_translator_registry().require(source, target)
    if registration.response_fn is None or not isinstance(response, dict):
        return response
    return registration.response_fn(response)


__all__ = [
    "TranslatorConfigurationError",
    "TranslatorRegistration",
    "TranslatorRegistry",
    "TranslatorRegistryBuilder",
    "build_registry",
    "get_translator_registry",
    "translate_request",
    "translate_response",
    "normalize_response",
    "normalize_chat_response",
    "normalize_embeddings_response",
]
