"""
Gateway error taxonomy and the dispatch result union.

Errors are raised inside the dispatch pipeline and converted into a
DispatchFailure at its boundary, so callers only ever see a
DispatchResult. AuthExpiredError is internal: it marks the
refresh-and-replay path and is never surfaced.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import httpx
from fastapi.responses import JSONResponse


# =============================================================================
# Result union
# =============================================================================

@dataclass(frozen=True)
class DispatchSuccess:
    """Successful dispatch carrying the response to return to the client."""

    response: JSONResponse

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class DispatchFailure:
    """Failed dispatch with an HTTP status and a human-readable message."""

    status_code: int
    message: str
    error_type: str = "internal_error"

    @property
    def success(self) -> bool:
        return False

    @property
    def is_client_error(self) -> bool:
        """True when the request itself was rejected before reaching the provider."""
        return self.error_type in CLIENT_ERROR_TYPES

    def to_dict(self) -> Dict[str, Any]:
        """Failure envelope consumed by the calling layer."""
        return {
            "success": False,
            "status": self.status_code,
            "error": self.message,
        }

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content=self.to_dict(),
            headers={"Access-Control-Allow-Origin": "*"},
        )


DispatchResult = Union[DispatchSuccess, DispatchFailure]


def create_error_result(
    status_code: int,
    message: str,
    error_type: str = "internal_error",
) -> DispatchFailure:
    return DispatchFailure(status_code=status_code, message=message, error_type=error_type)


# =============================================================================
# Exceptions
# =============================================================================

class DispatchError(Exception):
    """Base exception for failures inside the dispatch pipeline."""

    default_status_code: int = 500
    default_error_type: str = "internal_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status_code
        self.error_type = error_type or self.default_error_type

    def to_failure(self) -> DispatchFailure:
        return DispatchFailure(
            status_code=self.status_code,
            message=self.message,
            error_type=self.error_type,
        )


class ClientInputError(DispatchError):
    """Missing or mistyped request fields. Never retried, never hits the network."""

    default_status_code = 400
    default_error_type = "invalid_request_error"


class UnsupportedProviderError(DispatchError):
    """No endpoint mapping exists for the provider (or provider/endpoint pair)."""

    default_status_code = 400
    default_error_type = "unsupported_provider"

    def __init__(self, provider: str, message: Optional[str] = None):
        super().__init__(message or f"Provider '{provider}' is not supported")
        self.provider = provider


class GatewayError(DispatchError):
    """Transport failure or malformed upstream body."""

    default_status_code = 502
    default_error_type = "gateway_error"


class UpstreamError(DispatchError):
    """Non-2xx response from the upstream provider."""

    default_error_type = "upstream_error"


class AuthExpiredError(DispatchError):
    """Upstream rejected the credentials; resolved by refresh and replay."""

    default_status_code = 401
    default_error_type = "auth_expired"


# Failures raised before any upstream call; they say nothing about provider health
CLIENT_ERROR_TYPES = frozenset({
    ClientInputError.default_error_type,
    UnsupportedProviderError.default_error_type,
})


# =============================================================================
# Helpers
# =============================================================================

AUTH_FAILURE_STATUSES = frozenset({401, 403})


def is_auth_failure(status_code: int) -> bool:
    return status_code in AUTH_FAILURE_STATUSES


def parse_upstream_error(response: httpx.Response, provider: str) -> Tuple[int, str]:
    """
    Extract status and message from a failed upstream response.

    Understands the OpenAI error shape ({"error": {"message": ...}}),
    a bare string error, and top-level "message"/"detail" fields. Falls
    back to the raw text, then to the reason phrase.

    Returns:
        (status_code, message)
    """
    status_code = response.status_code
    text = response.text or ""
    message: Optional[str] = None

    try:
        body = json.loads(text) if text else None
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            message = error.get("message") or error.get("type")
        elif isinstance(error, str):
            message = error
        if not message:
            detail = body.get("message") or body.get("detail")
            if isinstance(detail, str):
                message = detail

    if not message:
        message = text.strip() or response.reason_phrase or f"Upstream error from {provider}"

    return status_code, str(message)


# Shorter values are too likely to occur in ordinary text
MIN_REDACTED_SECRET_LENGTH = 8


def redact_credentials(message: str, secrets: Iterable[str]) -> str:
    """Replace every occurrence of a secret value with '***'."""
    for secret in secrets:
        if secret and len(secret) >= MIN_REDACTED_SECRET_LENGTH:
            message = message.replace(secret, "***")
    return message


def format_provider_error(
    error: Union[BaseException, str],
    provider: str,
    model: str,
    status_code: int,
) -> str:
    """Format an error message naming the provider and model."""
    detail = str(error) or error.__class__.__name__
    return f"[{status_code}]: {(provider or 'unknown').upper()}/{model}: {detail}"
