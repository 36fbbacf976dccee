"""
Provider credentials.

A Credentials object belongs to one logical provider connection. The
dispatch core borrows it for the duration of a request and merges
refreshed values into it in place; persisting the result is the caller's
job (see the on_credentials_refreshed callback).

Concurrent dispatches sharing one Credentials object are not serialized:
if two of them refresh at the same time, the last merge wins. Callers
that need stronger guarantees must serialize access themselves.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional


@dataclass
class Credentials:
    """Mutable credential bundle for one provider connection."""

    api_key: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None
    provider_specific_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def bearer_token(self) -> str:
        """Token sent in the Authorization header; api_key wins over access_token."""
        return self.api_key or self.access_token or ""

    def is_usable(self) -> bool:
        """True when there is something to authenticate with."""
        return bool(self.api_key or self.access_token)

    def merge(self, other: "Credentials") -> "Credentials":
        """
        Merge another credential set into this one, in place.

        Only fields that are set on ``other`` overwrite; provider-specific
        data is merged key by key rather than replaced.

        Returns:
            self, for chaining
        """
        for f in fields(self):
            if f.name == "provider_specific_data":
                continue
            value = getattr(other, f.name)
            if value is not None and value != "":
                setattr(self, f.name, value)

        if other.provider_specific_data:
            self.provider_specific_data = {
                **self.provider_specific_data,
                **other.provider_specific_data,
            }
        return self

    def secrets(self) -> list[str]:
        """Raw secret values, used to scrub error messages."""
        return [s for s in (self.api_key, self.access_token, self.refresh_token) if s]

    def __repr__(self) -> str:
        def mask(value: Optional[str]) -> str:
            return "None" if not value else "'***'"

        return (
            f"Credentials(api_key={mask(self.api_key)}, "
            f"access_token={mask(self.access_token)}, "
            f"refresh_token={mask(self.refresh_token)}, "
            f"expires_at={self.expires_at!r}, "
            f"provider_specific_data_keys={sorted(self.provider_specific_data)!r})"
        )
