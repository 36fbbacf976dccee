"""
In-memory credential store.

Holds one Credentials object per provider id, seeded from settings at
startup. The dispatch core mutates these objects in place on refresh;
the store additionally remembers the latest upstream error per provider
so that a successful request can clear it.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

import structlog

from endpoint_proxy.core.config import ProviderKeySettings
from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.providers import COMPATIBLE_PREFIX

logger = structlog.get_logger(__name__)


@dataclass
class ProviderErrorState:
    """Last failure recorded for a provider connection."""

    status_code: int
    message: str
    occurred_at: datetime


class CredentialStore:
    """Process-local credential registry."""

    def __init__(self) -> None:
        self._credentials: Dict[str, Credentials] = {}
        self._errors: Dict[str, ProviderErrorState] = {}

    @classmethod
    def from_settings(cls, keys: ProviderKeySettings) -> "CredentialStore":
        """Seed a store from PROVIDER_* environment settings."""
        store = cls()
        if keys.openai_api_key:
            store.put("openai", Credentials(api_key=keys.openai_api_key))
        if keys.openrouter_api_key:
            store.put("openrouter", Credentials(api_key=keys.openrouter_api_key))
        if keys.cursor_access_token or keys.cursor_refresh_token:
            data = {"token_url": keys.cursor_token_url} if keys.cursor_token_url else {}
            store.put(
                "cursor",
                Credentials(
                    access_token=keys.cursor_access_token,
                    refresh_token=keys.cursor_refresh_token,
                    provider_specific_data=data,
                ),
            )
        if keys.compatible_name:
            data = {"base_url": keys.compatible_base_url} if keys.compatible_base_url else {}
            store.put(
                f"{COMPATIBLE_PREFIX}{keys.compatible_name}",
                Credentials(api_key=keys.compatible_api_key, provider_specific_data=data),
            )
        logger.info("credential_store_seeded", providers=sorted(store._credentials))
        return store

    def get(self, provider: str) -> Optional[Credentials]:
        return self._credentials.get(provider)

    def put(self, provider: str, credentials: Credentials) -> None:
        self._credentials[provider] = credentials

    def update(self, provider: str, new_credentials: Credentials) -> Credentials:
        """
        Merge refreshed credentials into the stored entry.

        The dispatch core has normally merged already (the stored object is
        the one it borrowed); merging again is idempotent.
        """
        current = self._credentials.get(provider)
        if current is None:
            self._credentials[provider] = new_credentials
            current = new_credentials
        elif current is not new_credentials:
            current.merge(new_credentials)
        logger.info("credentials_updated", provider=provider)
        return current

    def record_error(self, provider: str, status_code: int, message: str) -> None:
        self._errors[provider] = ProviderErrorState(
            status_code=status_code,
            message=message,
            occurred_at=datetime.now(timezone.utc),
        )

    def clear_error(self, provider: str) -> None:
        self._errors.pop(provider, None)

    def last_error(self, provider: str) -> Optional[ProviderErrorState]:
        return self._errors.get(provider)

    def providers(self) -> list[str]:
        return sorted(self._credentials)
