"""Gateway services: credential refresh coordination and credential storage."""

from endpoint_proxy.gateway.services.credential_store import CredentialStore, ProviderErrorState
from endpoint_proxy.gateway.services.token_refresh import refresh_with_retry

__all__ = [
    "CredentialStore",
    "ProviderErrorState",
    "refresh_with_retry",
]
