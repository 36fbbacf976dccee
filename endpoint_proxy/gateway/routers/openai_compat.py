"""
Gateway Data Plane Router.

OpenAI-compatible endpoints that hand requests to the dispatch core.

Endpoints:
- POST /v1/embeddings - Vector embeddings
- POST /v1/chat/completions - Chat completions (non-streaming)
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.dispatch import handle_dispatch
from endpoint_proxy.gateway.errors import (
    ClientInputError,
    DispatchSuccess,
    create_error_result,
)
from endpoint_proxy.gateway.formats import Endpoint
from endpoint_proxy.gateway.providers import resolve_model_info
from endpoint_proxy.gateway.services.credential_store import CredentialStore

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["gateway"])


# =============================================================================
# Dependencies
# =============================================================================

def get_credential_store(request: Request) -> CredentialStore:
    """Credential store attached to the application at startup."""
    return request.app.state.credential_store


# =============================================================================
# Helper Functions
# =============================================================================

async def read_json_body(request: Request) -> Dict[str, Any]:
    """
    Parse the request body as a JSON object.

    Raises:
        ClientInputError: If the body is not valid JSON or not an object
    """
    try:
        body = await request.json()
    except ValueError:
        raise ClientInputError("Invalid JSON body")
    if not isinstance(body, dict):
        raise ClientInputError("Request body must be a JSON object")
    return body


async def dispatch_request(
    request: Request,
    endpoint: Endpoint,
    store: CredentialStore,
) -> Response:
    """Resolve model and credentials, dispatch, and render the result."""
    try:
        body = await read_json_body(request)
        model_info = resolve_model_info(body.get("model"))
    except ClientInputError as e:
        return e.to_failure().to_response()

    credentials = store.get(model_info.provider)
    if credentials is None:
        failure = create_error_result(
            401, f"No credentials configured for provider '{model_info.provider}'"
        )
        return failure.to_response()

    provider = model_info.provider

    def on_credentials_refreshed(new_credentials: Credentials) -> None:
        store.update(provider, new_credentials)

    def on_request_success() -> None:
        store.clear_error(provider)

    result = await handle_dispatch(
        body=body,
        model_info=model_info,
        credentials=credentials,
        endpoint=endpoint,
        log=logger.bind(endpoint=endpoint.value),
        on_credentials_refreshed=on_credentials_refreshed,
        on_request_success=on_request_success,
        client=getattr(request.app.state, "http_client", None),
    )

    if isinstance(result, DispatchSuccess):
        return result.response

    # Rejected requests say nothing about the provider connection
    if not result.is_client_error:
        store.record_error(provider, result.status_code, result.message)
    logger.info(
        "dispatch_failed",
        endpoint=endpoint.value,
        provider=provider,
        status_code=result.status_code,
    )
    return result.to_response()


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/embeddings")
async def embeddings(
    request: Request,
    store: CredentialStore = Depends(get_credential_store),
) -> Response:
    """
    Create embeddings for text input.

    Compatible with OpenAI's /v1/embeddings endpoint.
    """
    return await dispatch_request(request, Endpoint.EMBEDDINGS, store)


@router.post("/chat/completions")
async def chat_completions(
    request: Request,
    store: CredentialStore = Depends(get_credential_store),
) -> Response:
    """
    Create a chat completion.

    Compatible with OpenAI's /v1/chat/completions endpoint (non-streaming).
    """
    return await dispatch_request(request, Endpoint.CHAT_COMPLETIONS, store)


@router.get("/providers")
async def list_providers(
    store: CredentialStore = Depends(get_credential_store),
) -> JSONResponse:
    """List providers that have credentials, with their last recorded error."""
    data = []
    for provider in store.providers():
        error = store.last_error(provider)
        data.append({
            "id": provider,
            "object": "provider",
            "last_error": None if error is None else {
                "status": error.status_code,
                "message": error.message,
                "occurred_at": error.occurred_at.isoformat(),
            },
        })
    return JSONResponse(content={"object": "list", "data": data})
