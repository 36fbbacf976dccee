"""
Wire dialect identifiers.

Every request entering the gateway is in the OPENAI dialect. Providers
that speak something else declare their own target format and get a
translator registered for the (OPENAI, target) pair.
"""

from enum import Enum


class Format(str, Enum):
    """Protocol dialects known to the translator registry."""

    OPENAI = "openai"
    CURSOR = "cursor"


class Endpoint(str, Enum):
    """Canonical endpoints handled by the dispatch core."""

    EMBEDDINGS = "embeddings"
    CHAT_COMPLETIONS = "chat_completions"

    @property
    def path(self) -> str:
        """Path suffix appended to an upstream base URL."""
        return _ENDPOINT_PATHS[self]

    @property
    def label(self) -> str:
        """Short upper-case tag used in log events."""
        return "EMBEDDINGS" if self is Endpoint.EMBEDDINGS else "CHAT"


_ENDPOINT_PATHS = {
    Endpoint.EMBEDDINGS: "/embeddings",
    Endpoint.CHAT_COMPLETIONS: "/chat/completions",
}
