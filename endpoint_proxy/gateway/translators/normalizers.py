"""
Response normalizers.

Bring decoded upstream bodies into OpenAI shape. Bodies that are already
canonical pass through with at most the missing bookkeeping fields added.
"""

from typing import Any, Callable, Dict

from endpoint_proxy.gateway.formats import Endpoint


ResponseNormalizer = Callable[[Dict[str, Any], str], Dict[str, Any]]


def normalize_embeddings_response(response: Dict[str, Any], model: str) -> Dict[str, Any]:
    """Normalize an embeddings response to {"object": "list", "data": [...]}."""
    if response.get("object") == "list" and isinstance(response.get("data"), list):
        return response

    # Some self-hosted servers return a bare {"embeddings": [[...], ...]}
    embeddings = response.get("embeddings")
    if isinstance(embeddings, list) and "data" not in response:
        normalized: Dict[str, Any] = {
            "object": "list",
            "data": [
                {"object": "embedding", "index": i, "embedding": vector}
                for i, vector in enumerate(embeddings)
            ],
            "model": response.get("model", model),
        }
        if "usage" in response:
            normalized["usage"] = response["usage"]
        return normalized

    if isinstance(response.get("data"), list):
        response.setdefault("object", "list")
        response.setdefault("model", model)
    return response


def normalize_chat_response(response: Dict[str, Any], model: str) -> Dict[str, Any]:
    """Fill in fields OpenAI clients expect on a chat completion."""
    if "object" not in response and "choices" in response:
        response["object"] = "chat.completion"

    if "model" not in response and model:
        response["model"] = model

    if "usage" not in response and "choices" in response:
        response["usage"] = {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
        }

    return response


RESPONSE_NORMALIZERS: Dict[Endpoint, ResponseNormalizer] = {
    Endpoint.EMBEDDINGS: normalize_embeddings_response,
    Endpoint.CHAT_COMPLETIONS: normalize_chat_response,
}


def normalize_response(endpoint: Endpoint, response: Any, model: str) -> Any:
    """Apply the endpoint's normalizer; non-object bodies pass through untouched."""
    normalizer = RESPONSE_NORMALIZERS.get(endpoint)
    if normalizer is None or not isinstance(response, dict):
        return response
    return normalizer(response, model)
