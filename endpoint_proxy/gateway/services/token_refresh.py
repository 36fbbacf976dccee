"""
Credential refresh coordinator.

Runs a provider refresh operation with a bounded number of attempts.
Attempts are independent: the coordinator does not look at why one
failed, only at whether it produced usable credentials.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import structlog

from endpoint_proxy.core.config import settings
from endpoint_proxy.gateway.credentials import Credentials

logger = structlog.get_logger(__name__)


RefreshOperation = Callable[[], Awaitable[Optional[Credentials]]]


async def refresh_with_retry(
    refresh_operation: RefreshOperation,
    max_attempts: Optional[int] = None,
    log: Optional[Any] = None,
) -> Optional[Credentials]:
    """
    Call ``refresh_operation`` until it yields usable credentials.

    Args:
        refresh_operation: Zero-argument coroutine factory returning
            Credentials or None
        max_attempts: Attempt budget; defaults to
            settings.gateway.refresh_max_attempts
        log: Optional logger; defaults to this module's logger

    Returns:
        The first usable Credentials, or None once every attempt failed.
        Exceptions from individual attempts are logged and swallowed.
    """
    attempts = settings.gateway.refresh_max_attempts if max_attempts is None else max_attempts
    if attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    log = log or logger

    for attempt in range(1, attempts + 1):
        try:
            result = await refresh_operation()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.warning(
                "token_refresh_attempt_failed",
                attempt=attempt,
                max_attempts=attempts,
                error=f"{e.__class__.__name__}: {e}",
            )
            continue

        if result is not None and result.is_usable():
            if attempt > 1:
                log.info("token_refresh_succeeded", attempt=attempt)
            return result

        log.debug("token_refresh_attempt_empty", attempt=attempt, max_attempts=attempts)

    return None
