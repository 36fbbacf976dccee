"""
Format translation registry.

Translators are registered into a builder during startup and the builder
is frozen into a read-only TranslatorRegistry before any lookup happens.
Lookups are by exact (source, target) pair; there is no fallback.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple

from endpoint_proxy.gateway.formats import Format


RequestTranslator = Callable[..., Dict[str, Any]]
ResponseTranslator = Callable[[Dict[str, Any]], Dict[str, Any]]
FormatPair = Tuple[Format, Format]


class TranslatorConfigurationError(RuntimeError):
    """Raised for duplicate or missing translator registrations."""


@dataclass(frozen=True)
class TranslatorRegistration:
    """A request translator and optional response translator for one pair."""

    source_format: Format
    target_format: Format
    request_fn: RequestTranslator
    response_fn: Optional[ResponseTranslator] = None


class TranslatorRegistry:
    """Read-only lookup over frozen translator registrations."""

    def __init__(self, entries: Mapping[FormatPair, TranslatorRegistration]):
        self._entries = MappingProxyType(dict(entries))

    def lookup(self, source: Format, target: Format) -> Optional[TranslatorRegistration]:
        return self._entries.get((source, target))

    def require(self, source: Format, target: Format) -> TranslatorRegistration:
        """
        Look up a pair that must exist.

        Raises:
            TranslatorConfigurationError: If the pair was never registered
        """
        registration = self.lookup(source, target)
        if registration is None:
            raise TranslatorConfigurationError(
                f"No translator registered for {source.value} -> {target.value}"
            )
        return registration

    def pairs(self) -> Iterator[FormatPair]:
        return iter(self._entries)

    def __contains__(self, pair: object) -> bool:
        return pair in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class TranslatorRegistryBuilder:
    """Collects registrations at startup; single-threaded by contract."""

    def __init__(self) -> None:
        self._entries: Dict[FormatPair, TranslatorRegistration] = {}
        self._frozen = False

    def register(
        self,
        source: Format,
        target: Format,
        request_fn: RequestTranslator,
        response_fn: Optional[ResponseTranslator] = None,
    ) -> None:
        """
        Register a translator pair.

        Args:
            source: Dialect of the incoming body
            target: Dialect the provider expects
            request_fn: Builds the provider body from the canonical body
            response_fn: Optional provider-to-canonical response translator

        Raises:
            TranslatorConfigurationError: If the pair is already registered
                or the builder has been frozen
        """
        if self._frozen:
            raise TranslatorConfigurationError("Registry is frozen; register translators at startup")

        key = (source, target)
        if key in self._entries:
            raise TranslatorConfigurationError(
                f"Translator already registered for {source.value} -> {target.value}"
            )
        self._entries[key] = TranslatorRegistration(
            source_format=source,
            target_format=target,
            request_fn=request_fn,
            response_fn=response_fn,
        )

    def freeze(self) -> TranslatorRegistry:
        self._frozen = True
        return TranslatorRegistry(self._entries)
