"""
Dispatch core.

One call to handle_dispatch() serves one canonical request end to end:

    validate -> build -> request -> [401/403: refresh -> replay once]
             -> parse -> normalize -> DispatchResult

Every failure is returned as a DispatchFailure; nothing but task
cancellation propagates out. Retries happen only on the
refresh-and-replay path, and the replay itself is never retried.
"""

import asyncio
import inspect
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Union

import httpx
import structlog
from fastapi.responses import JSONResponse

from endpoint_proxy.core.config import settings
from endpoint_proxy.gateway.adapters import (
    UpstreamRequest,
    build_headers,
    build_request,
    resolve_provider,
)
from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.errors import (
    AuthExpiredError,
    DispatchError,
    DispatchFailure,
    DispatchResult,
    DispatchSuccess,
    GatewayError,
    UpstreamError,
    format_provider_error,
    is_auth_failure,
    parse_upstream_error,
    redact_credentials,
)
from endpoint_proxy.gateway.executors import get_executor
from endpoint_proxy.gateway.formats import Endpoint, Format
from endpoint_proxy.gateway.providers import ProviderModelInfo, ProviderRef
from endpoint_proxy.gateway.services.token_refresh import refresh_with_retry
from endpoint_proxy.gateway.translators import normalize_response, translate_response

logger = structlog.get_logger(__name__)


CredentialsCallback = Callable[[Credentials], Union[None, Awaitable[None]]]
SuccessCallback = Callable[[], Union[None, Awaitable[None]]]

SUCCESS_HEADERS = {"Access-Control-Allow-Origin": "*"}


# =============================================================================
# Logger
# =============================================================================

class DispatchLogger:
    """
    Same-shape view over an optional caller logger.

    Callers may hand in a structlog logger or any object exposing a
    subset of debug/info/warn(ing)/exception. Each level falls back to
    the closest method the logger has and is a no-op when none exists.
    Methods are called structlog style: event name plus keyword context.
    """

    _FALLBACKS = {
        "debug": ("debug",),
        "info": ("info",),
        "warning": ("warning", "warn"),
        "exception": ("exception", "error", "warning", "warn"),
    }

    def __init__(self, log: Optional[Any] = None):
        self._log = logger if log is None else log

    def _emit(self, level: str, event: str, **kw: Any) -> None:
        for name in self._FALLBACKS[level]:
            method = getattr(self._log, name, None)
            if callable(method):
                method(event, **kw)
                return

    def debug(self, event: str, **kw: Any) -> None:
        self._emit("debug", event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._emit("info", event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._emit("warning", event, **kw)

    warn = warning

    def exception(self, event: str, **kw: Any) -> None:
        self._emit("exception", event, **kw)


# =============================================================================
# Helpers
# =============================================================================

@asynccontextmanager
async def _client_scope(client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
    """Use the caller's client, or open one for the duration of the dispatch."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(settings.gateway.upstream_timeout_seconds)
    ) as owned:
        yield owned


async def _send(client: httpx.AsyncClient, request: UpstreamRequest) -> httpx.Response:
    return await client.request(
        method=request.method,
        url=request.url,
        headers=request.headers,
        json=request.body,
    )


async def _invoke_callback(callback: Optional[Callable[..., Any]], *args: Any, name: str, log: Any) -> None:
    """Run an optional, possibly async, caller callback; its failures are logged only."""
    if callback is None:
        return
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except asyncio.CancelledError:
        raise
    except Exception as e:
        log.warning("dispatch_callback_failed", callback=name, error=f"{e.__class__.__name__}: {e}")


def _raise_for_auth(response: httpx.Response) -> None:
    """Signal that the upstream rejected the credentials (401/403)."""
    if is_auth_failure(response.status_code):
        raise AuthExpiredError(
            f"Upstream rejected credentials with status {response.status_code}",
            status_code=response.status_code,
        )


def _describe_input(body: Dict[str, Any], endpoint: Endpoint) -> str:
    if endpoint is Endpoint.EMBEDDINGS:
        value = body.get("input")
        return f"array[{len(value)}]" if isinstance(value, list) else "string"
    return f"messages[{len(body.get('messages') or [])}]"


# =============================================================================
# Refresh and replay
# =============================================================================

async def _refresh_and_replay(
    http: httpx.AsyncClient,
    request: UpstreamRequest,
    original: httpx.Response,
    *,
    ref: ProviderRef,
    endpoint: Endpoint,
    credentials: Credentials,
    log: Any,
    on_credentials_refreshed: Optional[CredentialsCallback],
) -> httpx.Response:
    """
    Refresh credentials and replay the request once.

    Returns the replacement response, or ``original`` when the refresh
    produced nothing usable or the replay itself failed at transport level.
    """
    provider, tag = ref.provider_id, ref.tag
    executor = get_executor(provider)

    new_credentials = await refresh_with_retry(
        lambda: executor.refresh_credentials(credentials, log),
        log=log,
    )
    if new_credentials is None:
        log.warning("token_refresh_failed", provider=tag, status_code=original.status_code)
        return original

    log.info("token_refreshed", provider=tag, endpoint=endpoint.value)
    credentials.merge(new_credentials)
    await _invoke_callback(
        on_credentials_refreshed, new_credentials, name="on_credentials_refreshed", log=log
    )

    retry_request = request.with_headers(build_headers(provider, credentials))
    try:
        return await _send(http, retry_request)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        log.warning(
            "retry_after_refresh_failed",
            provider=tag,
            error=e.__class__.__name__,
        )
        return original


# =============================================================================
# Dispatch
# =============================================================================

async def _dispatch(
    *,
    body: Dict[str, Any],
    model_info: ProviderModelInfo,
    credentials: Credentials,
    endpoint: Endpoint,
    log: Any,
    on_credentials_refreshed: Optional[CredentialsCallback],
    on_request_success: Optional[SuccessCallback],
    client: Optional[httpx.AsyncClient],
) -> DispatchSuccess:
    provider, model = model_info.provider, model_info.model

    # Validating + Building
    request = build_request(provider, credentials, body, endpoint, model=model)
    ref = resolve_provider(provider, credentials)
    tag = ref.tag

    log.debug(
        "dispatch_request",
        endpoint=endpoint.label,
        provider=tag,
        model=model,
        input_type=_describe_input(body, endpoint),
    )

    async with _client_scope(client) as http:
        # Requesting
        try:
            response = await _send(http, request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            message = redact_credentials(
                format_provider_error(e, provider, model, 502), credentials.secrets()
            )
            log.debug("upstream_fetch_error", provider=tag, error=message)
            raise GatewayError(message) from e

        # AuthCheck -> Refreshing -> Retrying
        try:
            _raise_for_auth(response)
        except AuthExpiredError as e:
            log.debug("auth_expired", provider=tag, status_code=e.status_code)
            response = await _refresh_and_replay(
                http,
                request,
                response,
                ref=ref,
                endpoint=endpoint,
                credentials=credentials,
                log=log,
                on_credentials_refreshed=on_credentials_refreshed,
            )

    # ParsingResponse
    if not response.is_success:
        status_code, upstream_message = parse_upstream_error(response, provider)
        message = redact_credentials(
            format_provider_error(upstream_message, provider, model, status_code),
            credentials.secrets(),
        )
        log.debug("upstream_error", provider=tag, status_code=status_code, error=message)
        raise UpstreamError(message, status_code=status_code)

    try:
        response_body = response.json()
    except ValueError as e:
        raise GatewayError(f"Invalid JSON response from {provider}") from e

    # Normalizing
    await _invoke_callback(on_request_success, name="on_request_success", log=log)

    normalized = normalize_response(
        endpoint,
        translate_response(Format.OPENAI, ref.target_format, response_body),
        model,
    )

    usage = normalized.get("usage") if isinstance(normalized, dict) else None
    log.debug("dispatch_success", provider=tag, model=model, usage=usage or {})

    return DispatchSuccess(
        response=JSONResponse(content=normalized, headers=dict(SUCCESS_HEADERS))
    )


async def handle_dispatch(
    *,
    body: Dict[str, Any],
    model_info: ProviderModelInfo,
    credentials: Credentials,
    endpoint: Endpoint,
    log: Optional[Any] = None,
    on_credentials_refreshed: Optional[CredentialsCallback] = None,
    on_request_success: Optional[SuccessCallback] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> DispatchResult:
    """
    Serve one canonical request against its upstream provider.

    Args:
        body: Parsed canonical request body; not modified
        model_info: Provider id and upstream model
        credentials: Connection credentials, merged in place on refresh.
            Not synchronized: concurrent dispatches refreshing the same
            object race and the last merge wins.
        endpoint: Canonical endpoint being served
        log: Optional logger; defaults to this module's structlog logger.
            Wrapped in a DispatchLogger, so partial loggers are accepted
        on_credentials_refreshed: Called (sync or async) with the new
            credentials after a successful refresh
        on_request_success: Called (sync or async) once the upstream body
            decoded successfully
        client: Optional httpx client; one is opened per dispatch otherwise

    Returns:
        DispatchSuccess or DispatchFailure
    """
    log = DispatchLogger(log)
    try:
        return await _dispatch(
            body=body,
            model_info=model_info,
            credentials=credentials,
            endpoint=endpoint,
            log=log,
            on_credentials_refreshed=on_credentials_refreshed,
            on_request_success=on_request_success,
            client=client,
        )
    except asyncio.CancelledError:
        raise
    except DispatchError as e:
        return e.to_failure()
    except Exception as e:
        log.exception("dispatch_unexpected_error", provider=model_info.provider, model=model_info.model)
        message = redact_credentials(
            format_provider_error(e, model_info.provider, model_info.model, 500),
            credentials.secrets() if credentials else [],
        )
        return DispatchFailure(status_code=500, message=message)


async def handle_embeddings_core(**kwargs: Any) -> DispatchResult:
    """Dispatch a /v1/embeddings request."""
    return await handle_dispatch(endpoint=Endpoint.EMBEDDINGS, **kwargs)


async def handle_chat_core(**kwargs: Any) -> DispatchResult:
    """Dispatch a non-streaming /v1/chat/completions request."""
    return await handle_dispatch(endpoint=Endpoint.CHAT_COMPLETIONS, **kwargs)
