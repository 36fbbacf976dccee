"""
Executor base classes.

An executor owns the credential-refresh mechanics of one provider. The
dispatch core calls refresh_credentials() through the refresh
coordinator when the upstream rejects a request with 401/403.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog

from endpoint_proxy.gateway.credentials import Credentials

logger = structlog.get_logger(__name__)


class ExecutorBase(ABC):
    """Per-provider credential refresh strategy."""

    PROVIDER: str = "base"

    @abstractmethod
    async def refresh_credentials(
        self,
        credentials: Credentials,
        log: Optional[Any] = None,
    ) -> Optional[Credentials]:
        """
        Obtain fresh credentials.

        Args:
            credentials: Current (rejected) credentials; must not be mutated
            log: Optional logger supplied by the caller

        Returns:
            New credentials, or None when this provider cannot refresh.
            May raise; the refresh coordinator treats an exception as a
            failed attempt.
        """


class DefaultExecutor(ExecutorBase):
    """Static API keys cannot be refreshed."""

    PROVIDER = "default"

    async def refresh_credentials(
        self,
        credentials: Credentials,
        log: Optional[Any] = None,
    ) -> Optional[Credentials]:
        (log or logger).debug("token_refresh_unavailable", executor=self.PROVIDER)
        return None
