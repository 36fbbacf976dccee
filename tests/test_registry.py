"""Tests for the format translation registry."""

from __future__ import annotations

import pytest

from endpoint_proxy.gateway.formats import Format
from endpoint_proxy.gateway.translators import (
    TranslatorConfigurationError,
    TranslatorRegistryBuilder,
    build_registry,
    get_translator_registry,
    translate_request,
    translate_response,
)
from endpoint_proxy.gateway.translators.openai_to_cursor import build_cursor_request


def _noop(model, body, stream=False, credentials=None):
    return dict(body)


def test_duplicate_registration_is_rejected():
    builder = TranslatorRegistryBuilder()
    builder.register(Format.OPENAI, Format.CURSOR, _noop)

    with pytest.raises(TranslatorConfigurationError, match="already registered"):
        builder.register(Format.OPENAI, Format.CURSOR, _noop)


def test_registration_after_freeze_is_rejected():
    builder = TranslatorRegistryBuilder()
    builder.freeze()

    with pytest.raises(TranslatorConfigurationError, match="frozen"):
        builder.register(Format.OPENAI, Format.CURSOR, _noop)


def test_lookup_is_exact_with_no_fallback():
    builder = TranslatorRegistryBuilder()
    builder.register(Format.OPENAI, Format.CURSOR, _noop)
    registry = builder.freeze()

    assert registry.lookup(Format.OPENAI, Format.CURSOR) is not None
    assert registry.lookup(Format.CURSOR, Format.OPENAI) is None
    with pytest.raises(TranslatorConfigurationError, match="cursor -> openai"):
        registry.require(Format.CURSOR, Format.OPENAI)


def test_frozen_registry_is_isolated_from_builder():
    builder = TranslatorRegistryBuilder()
    registry = builder.freeze()
    assert len(registry) == 0
    assert (Format.OPENAI, Format.CURSOR) not in registry


def test_builtin_registry_contains_cursor_translator():
    registry = get_translator_registry()
    registration = registry.require(Format.OPENAI, Format.CURSOR)

    assert registration.request_fn is build_cursor_request
    assert registration.response_fn is None
    assert registry is get_translator_registry()


def test_build_registry_returns_equivalent_fresh_instance():
    fresh = build_registry()
    assert fresh is not get_translator_registry()
    assert sorted(fresh.pairs()) == sorted(get_translator_registry().pairs())


def test_same_dialect_translation_only_replaces_model():
    body = {"model": "oai/gpt-4o", "messages": [{"role": "user", "content": "hi"}]}
    result = translate_request(Format.OPENAI, Format.OPENAI, "gpt-4o", body)

    assert result == {"model": "gpt-4o", "messages": body["messages"]}
    assert body["model"] == "oai/gpt-4o"


def test_absent_response_translator_passes_body_through():
    payload = {"object": "chat.completion", "choices": []}
    assert translate_response(Format.OPENAI, Format.CURSOR, payload) is payload
