"""Tests for provider resolution and upstream request building."""

from __future__ import annotations

import pytest

from endpoint_proxy.gateway.adapters import build_headers, build_request
from endpoint_proxy.gateway.credentials import Credentials
from endpoint_proxy.gateway.errors import ClientInputError, UnsupportedProviderError
from endpoint_proxy.gateway.formats import Endpoint, Format
from endpoint_proxy.gateway.providers import (
    ProviderKind,
    ProviderRef,
    resolve_model_info,
)

EMBED_BODY = {"model": "text-embedding-3-small", "input": "hello"}
CHAT_BODY = {"model": "gpt-4o", "messages": [{"role": "user", "content": "hi"}]}


class TestProviderRef:
    @pytest.mark.parametrize(
        ("provider_id", "kind"),
        [
            ("openai", ProviderKind.OPENAI),
            ("openrouter", ProviderKind.OPENROUTER),
            ("cursor", ProviderKind.CURSOR),
            ("openai-compatible-vllm", ProviderKind.OPENAI_COMPATIBLE),
            ("openai-compatible-", ProviderKind.UNKNOWN),
            ("anthropic", ProviderKind.UNKNOWN),
            ("", ProviderKind.UNKNOWN),
            (None, ProviderKind.UNKNOWN),
        ],
    )
    def test_parse(self, provider_id, kind):
        assert ProviderRef.parse(provider_id).kind is kind

    def test_compatible_base_url_is_stripped(self):
        ref = ProviderRef.parse("openai-compatible-local", {"base_url": "http://gpu:8000/v1/"})
        assert ref.base_url == "http://gpu:8000/v1"

    def test_target_format(self):
        assert ProviderRef.parse("cursor").target_format is Format.CURSOR
        assert ProviderRef.parse("openrouter").target_format is Format.OPENAI


class TestResolveModelInfo:
    def test_alias_is_expanded(self):
        info = resolve_model_info("oai/text-embedding-3-small")
        assert (info.provider, info.model) == ("openai", "text-embedding-3-small")

    def test_only_first_slash_separates_provider(self):
        info = resolve_model_info("openrouter/openai/gpt-4o")
        assert (info.provider, info.model) == ("openrouter", "openai/gpt-4o")

    @pytest.mark.parametrize("model", [None, "", "gpt-4o", "/gpt-4o", "openai/"])
    def test_invalid_model_is_a_client_error(self, model):
        with pytest.raises(ClientInputError):
            resolve_model_info(model)


class TestBuildRequest:
    @pytest.mark.parametrize(
        ("provider", "credentials", "endpoint", "body"),
        [
            ("openai", Credentials(api_key="sk-a"), Endpoint.EMBEDDINGS, EMBED_BODY),
            ("openrouter", Credentials(api_key="sk-or"), Endpoint.EMBEDDINGS, EMBED_BODY),
            (
                "openai-compatible-vllm",
                Credentials(api_key="local", provider_specific_data={"base_url": "https://gpu.example.com/v1"}),
                Endpoint.EMBEDDINGS,
                EMBED_BODY,
            ),
            ("openai", Credentials(api_key="sk-a"), Endpoint.CHAT_COMPLETIONS, CHAT_BODY),
            ("cursor", Credentials(access_token="cur-token"), Endpoint.CHAT_COMPLETIONS, CHAT_BODY),
        ],
    )
    def test_url_is_https_and_bearer_comes_from_credentials(self, provider, credentials, endpoint, body):
        request = build_request(provider, credentials, body, endpoint)

        assert request.url.startswith("https://")
        assert request.url.endswith(endpoint.path)
        assert request.headers["Authorization"] == f"Bearer {credentials.bearer_token}"
        assert request.headers["Content-Type"] == "application/json"
        assert request.method == "POST"

    def test_fixed_hosts(self):
        creds = Credentials(api_key="k")
        assert build_request("openai", creds, EMBED_BODY, Endpoint.EMBEDDINGS).url == (
            "https://api.openai.com/v1/embeddings"
        )
        assert build_request("openrouter", creds, EMBED_BODY, Endpoint.EMBEDDINGS).url == (
            "https://openrouter.ai/api/v1/embeddings"
        )

    def test_openrouter_adds_attribution_headers(self):
        request = build_request("openrouter", Credentials(api_key="k"), EMBED_BODY, Endpoint.EMBEDDINGS)
        assert request.headers["HTTP-Referer"] == "https://endpoint-proxy.local"
        assert request.headers["X-Title"] == "Endpoint Proxy"

    def test_openai_has_no_attribution_headers(self):
        request = build_request("openai", Credentials(api_key="k"), EMBED_BODY, Endpoint.EMBEDDINGS)
        assert "HTTP-Referer" not in request.headers
        assert "X-Title" not in request.headers

    def test_compatible_provider_uses_base_url_without_trailing_slash(self):
        creds = Credentials(api_key="k", provider_specific_data={"base_url": "https://llm.internal/v1/"})
        request = build_request("openai-compatible-internal", creds, EMBED_BODY, Endpoint.EMBEDDINGS)
        assert request.url == "https://llm.internal/v1/embeddings"

    def test_compatible_provider_defaults_base_url(self):
        request = build_request("openai-compatible-x", Credentials(api_key="k"), EMBED_BODY, Endpoint.EMBEDDINGS)
        assert request.url == "https://api.openai.com/v1/embeddings"

    def test_api_key_takes_precedence_over_access_token(self):
        creds = Credentials(api_key="key", access_token="token")
        request = build_request("openai", creds, EMBED_BODY, Endpoint.EMBEDDINGS)
        assert request.headers["Authorization"] == "Bearer key"

    def test_access_token_used_when_no_api_key(self):
        creds = Credentials(access_token="token")
        assert build_headers("openai", creds)["Authorization"] == "Bearer token"

    def test_embeddings_body_is_minimal_with_default_encoding(self):
        body = {"model": "oai/text-embedding-3-small", "input": ["a", "b"], "user": "u-1", "dimensions": 8}
        request = build_request("openai", Credentials(api_key="k"), body, Endpoint.EMBEDDINGS, model="text-embedding-3-small")
        assert request.body == {
            "model": "text-embedding-3-small",
            "input": ["a", "b"],
            "encoding_format": "float",
        }

    def test_embeddings_body_keeps_explicit_encoding(self):
        body = {"model": "m", "input": "x", "encoding_format": "base64"}
        request = build_request("openai", Credentials(api_key="k"), body, Endpoint.EMBEDDINGS)
        assert request.body["encoding_format"] == "base64"

    def test_chat_body_for_compatible_provider_is_passthrough_with_model(self):
        body = {**CHAT_BODY, "temperature": 0.1}
        request = build_request("openrouter", Credentials(api_key="k"), body, Endpoint.CHAT_COMPLETIONS, model="openai/gpt-4o")
        assert request.body == {**body, "model": "openai/gpt-4o"}
        assert body["model"] == "gpt-4o"

    def test_cursor_chat_body_is_translated(self):
        body = {
            "model": "cu/claude",
            "messages": [{"role": "system", "content": "rules"}, {"role": "user", "content": "hi"}],
            "user": "u-1",
        }
        request = build_request("cursor", Credentials(access_token="t"), body, Endpoint.CHAT_COMPLETIONS, model="claude")
        assert request.url == "https://api2.cursor.sh/v1/chat/completions"
        assert request.body["messages"][0] == {"role": "user", "content": "[System Instructions]\nrules"}
        assert request.body["max_tokens"] == 32000
        assert "user" not in request.body

    def test_unknown_provider_is_unsupported(self):
        with pytest.raises(UnsupportedProviderError, match="'anthropic'") as exc_info:
            build_request("anthropic", Credentials(api_key="k"), EMBED_BODY, Endpoint.EMBEDDINGS)
        assert exc_info.value.status_code == 400
        assert exc_info.value.provider == "anthropic"

    def test_cursor_embeddings_are_unsupported(self):
        with pytest.raises(UnsupportedProviderError, match="cursor"):
            build_request("cursor", Credentials(access_token="t"), EMBED_BODY, Endpoint.EMBEDDINGS)

    @pytest.mark.parametrize("value", [None, "", 42, {"text": "x"}])
    def test_invalid_embeddings_input_is_a_client_error(self, value):
        body = {"model": "m"} if value is None else {"model": "m", "input": value}
        with pytest.raises(ClientInputError) as exc_info:
            build_request("openai", Credentials(api_key="k"), body, Endpoint.EMBEDDINGS)
        assert exc_info.value.status_code == 400

    def test_empty_input_list_is_passed_through(self):
        body = {"model": "m", "input": []}
        request = build_request("openai", Credentials(api_key="k"), body, Endpoint.EMBEDDINGS)
        assert request.body["input"] == []

    def test_input_validation_precedes_provider_resolution(self):
        with pytest.raises(ClientInputError):
            build_request("anthropic", Credentials(api_key="k"), {"model": "m"}, Endpoint.EMBEDDINGS)

    @pytest.mark.parametrize(
        "body",
        [
            {"model": "m"},
            {"model": "m", "messages": []},
            {"model": "m", "messages": "hi"},
            {"model": "m", "messages": [{"role": "user", "content": "hi"}], "stream": True},
            {"model": "m", "messages": ["hello"]},
            {"model": "m", "messages": [{"role": "user", "content": "hi"}, None]},
            {"model": "m", "messages": [{"role": "assistant", "content": "", "tool_calls": "call"}]},
            {"model": "m", "messages": [{"role": "assistant", "content": "", "tool_calls": ["call_1"]}]},
        ],
    )
    def test_invalid_chat_request_is_a_client_error(self, body):
        with pytest.raises(ClientInputError):
            build_request("openai", Credentials(api_key="k"), body, Endpoint.CHAT_COMPLETIONS)

    def test_retry_headers_keep_url_and_body(self):
        creds = Credentials(api_key="old")
        request = build_request("openai", creds, EMBED_BODY, Endpoint.EMBEDDINGS)
        replay = request.with_headers(build_headers("openai", Credentials(api_key="new")))
        assert replay.url == request.url
        assert replay.body == request.body
        assert replay.headers["Authorization"] == "Bearer new"
        assert request.headers["Authorization"] == "Bearer old"
