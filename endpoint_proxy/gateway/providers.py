"""
Provider identification and model resolution.

Provider ids arrive as plain strings from model configuration. They are
resolved once into a closed set of ProviderKind variants so that URL,
header and body construction can match exhaustively instead of branching
on string prefixes throughout the code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from endpoint_proxy.gateway.errors import ClientInputError
from endpoint_proxy.gateway.formats import Format


COMPATIBLE_PREFIX = "openai-compatible-"


class ProviderKind(str, Enum):
    """Known upstream provider families."""

    OPENAI = "openai"
    OPENROUTER = "openrouter"
    OPENAI_COMPATIBLE = "openai-compatible"
    CURSOR = "cursor"
    UNKNOWN = "unknown"


# Short aliases accepted as the model prefix ("oai/text-embedding-3-small")
PROVIDER_ID_TO_ALIAS: Dict[str, str] = {
    "openai": "oai",
    "openrouter": "or",
    "cursor": "cu",
}

ALIAS_TO_PROVIDER_ID: Dict[str, str] = {
    alias: provider_id for provider_id, alias in PROVIDER_ID_TO_ALIAS.items()
}


@dataclass(frozen=True)
class ProviderModelInfo:
    """Provider and upstream model a request is routed to."""

    provider: str
    model: str


@dataclass(frozen=True)
class ProviderRef:
    """
    A provider id resolved to its family.

    base_url is only meaningful for OPENAI_COMPATIBLE and carries the
    caller-configured endpoint root (already stripped of a trailing slash).
    """

    kind: ProviderKind
    provider_id: str
    base_url: Optional[str] = None

    @classmethod
    def parse(
        cls,
        provider_id: Optional[str],
        provider_specific_data: Optional[Dict[str, object]] = None,
        default_base_url: str = "https://api.openai.com/v1",
    ) -> "ProviderRef":
        """
        Resolve a provider id string.

        Args:
            provider_id: Provider identifier from model configuration
            provider_specific_data: Credential extras; "base_url" is read
                for the openai-compatible family
            default_base_url: Base URL used when a compatible provider has none

        Returns:
            ProviderRef; unrecognized ids resolve to ProviderKind.UNKNOWN
        """
        pid = provider_id or ""

        if pid == ProviderKind.OPENAI.value:
            return cls(ProviderKind.OPENAI, pid)
        if pid == ProviderKind.OPENROUTER.value:
            return cls(ProviderKind.OPENROUTER, pid)
        if pid == ProviderKind.CURSOR.value:
            return cls(ProviderKind.CURSOR, pid)
        if pid.startswith(COMPATIBLE_PREFIX) and len(pid) > len(COMPATIBLE_PREFIX):
            data = provider_specific_data or {}
            base_url = data.get("base_url") or data.get("baseUrl") or default_base_url
            return cls(ProviderKind.OPENAI_COMPATIBLE, pid, str(base_url).rstrip("/"))

        return cls(ProviderKind.UNKNOWN, pid)

    @property
    def target_format(self) -> Format:
        return get_model_target_format(self.kind)

    @property
    def tag(self) -> str:
        """Upper-cased provider id for log lines and error messages."""
        return (self.provider_id or "unknown").upper()


def get_model_target_format(kind: ProviderKind) -> Format:
    """Return the wire dialect a provider family expects."""
    if kind is ProviderKind.CURSOR:
        return Format.CURSOR
    return Format.OPENAI


def resolve_model_info(model: Optional[str]) -> ProviderModelInfo:
    """
    Split a "<provider-or-alias>/<model>" string.

    Only the first slash separates the provider, so upstream model names
    that contain slashes (e.g. OpenRouter's "openai/gpt-4o") survive.

    Raises:
        ClientInputError: If the string is empty or carries no provider prefix
    """
    if not model or not isinstance(model, str):
        raise ClientInputError("Missing required field: model")

    prefix, sep, upstream_model = model.partition("/")
    if not sep or not prefix or not upstream_model:
        raise ClientInputError(
            f"Invalid model '{model}'. Expected format '<provider>/<model>'."
        )

    provider = ALIAS_TO_PROVIDER_ID.get(prefix, prefix)
    return ProviderModelInfo(provider=provider, model=upstream_model)
