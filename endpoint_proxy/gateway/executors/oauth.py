"""
OAuth refresh-token executor.

Exchanges a refresh token for a new access token using the standard
refresh_token grant. The token endpoint comes from the connection's
provider-specific data ("token_url") or from the executor's default.
"""

import time
from typing import Any, Dict, Optional

import httpx
import structlog

from endpoint_proxy.core.config import settings
from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.executors.base import ExecutorBase

logger = structlog.get_logger(__name__)


class TokenRefreshError(Exception):
    """Raised when the token endpoint rejects a refresh."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OAuthRefreshExecutor(ExecutorBase):
    """Refresh access tokens with a refresh_token grant."""

    PROVIDER = "oauth"

    def __init__(
        self,
        token_url: Optional[str] = None,
        client_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token_url = token_url
        self.client_id = client_id
        self._transport = transport

    def _token_url(self, credentials: Credentials) -> Optional[str]:
        data = credentials.provider_specific_data
        return data.get("token_url") or data.get("tokenUrl") or self.token_url

    async def refresh_credentials(
        self,
        credentials: Credentials,
        log: Optional[Any] = None,
    ) -> Optional[Credentials]:
        log = log or logger

        if not credentials.refresh_token:
            log.debug("token_refresh_skipped", reason="no_refresh_token")
            return None

        token_url = self._token_url(credentials)
        if not token_url:
            log.debug("token_refresh_skipped", reason="no_token_url")
            return None

        form: Dict[str, str] = {
            "grant_type": "refresh_token",
            "refresh_token": credentials.refresh_token,
        }
        client_id = credentials.provider_specific_data.get("client_id") or self.client_id
        if client_id:
            form["client_id"] = str(client_id)

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(settings.gateway.upstream_timeout_seconds),
            transport=self._transport,
        ) as client:
            response = await client.post(
                token_url,
                data=form,
                headers={"Accept": "application/json"},
            )

        if response.status_code >= 400:
            raise TokenRefreshError(
                f"Token endpoint returned {response.status_code}",
                status_code=response.status_code,
            )

        payload = response.json()
        access_token = payload.get("access_token")
        if not access_token:
            raise TokenRefreshError("Token endpoint response has no access_token")

        expires_in = payload.get("expires_in")
        return Credentials(
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
            expires_at=time.time() + float(expires_in) if expires_in else None,
        )
