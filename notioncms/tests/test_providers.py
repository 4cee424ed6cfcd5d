"""
Tests for LLM providers and provider selection.
"""

import logging
from types import SimpleNamespace

import pytest

from notioncms.providers import (
    AnthropicProvider,
    GoogleProvider,
    OpenAIProvider,
    create_caption_provider,
)
from notioncms.providers.base import encode_image


def settings(**overrides) -> SimpleNamespace:
    values = {
        "ANTHROPIC_API_KEY": "",
        "OPENAI_API_KEY": "",
        "GOOGLE_API_KEY": "",
        "LLM_PROVIDER": "",
        "LLM_MODEL": "",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestCaptionProvider:

    def test_no_keys_means_no_provider(self):
        assert create_caption_provider(settings()) is None

    def test_first_available_key_wins(self):
        provider = create_caption_provider(settings(ANTHROPIC_API_KEY="sk-ant", OPENAI_API_KEY="sk-openai"))
        assert isinstance(provider, AnthropicProvider)
        assert provider.name == "anthropic"

    def test_llm_provider_pins_vendor(self):
        provider = create_caption_provider(settings(
            ANTHROPIC_API_KEY="sk-ant", OPENAI_API_KEY="sk-openai", LLM_PROVIDER=" OpenAI ",
        ))
        assert isinstance(provider, OpenAIProvider)

    def test_pinned_vendor_without_key_falls_back(self):
        provider = create_caption_provider(settings(GOOGLE_API_KEY="g-key", LLM_PROVIDER="openai"))
        assert isinstance(provider, GoogleProvider)

    def test_unknown_vendor_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="notioncms.providers.factory"):
            provider = create_caption_provider(settings(OPENAI_API_KEY="sk-openai", LLM_PROVIDER="mistral"))
        assert provider.name == "openai"
        assert "mistral" in caplog.text

    def test_llm_model_alias_is_resolved(self):
        provider = create_caption_provider(settings(OPENAI_API_KEY="sk-openai", LLM_MODEL="gpt4-mini"))
        assert provider._default_model == "gpt-4o-mini"

    def test_vendor_default_model_without_override(self):
        provider = create_caption_provider(settings(OPENAI_API_KEY="sk-openai"))
        assert provider._default_model == "gpt-4o"



def test_encode_image():
    assert encode_image(b"abc") == "YWJj"


def test_anthropic_sends_inline_image():
    provider = AnthropicProvider(api_key="sk-ant", default_model="haiku")
    calls = []

    class Messages:
        def create(self, **kwargs):
            calls.append(kwargs)
            return SimpleNamespace(
                content=[SimpleNamespace(text="A lighthouse at dusk.")],
                usage=SimpleNamespace(input_tokens=1200, output_tokens=9),
                stop_reason="end_turn",
            )

    provider.client = SimpleNamespace(messages=Messages())
    response = provider.describe_image(b"abc", "image/png", "Describe it", max_tokens=50)

    assert response.text == "A lighthouse at dusk."
    assert response.model == "claude-haiku-4-5-20251001"
    image, text = calls[0]["messages"][0]["content"]
    assert image["source"] == {"type": "base64", "media_type": "image/png", "data": "YWJj"}
    assert text == {"type": "text", "text": "Describe it"}
    assert calls[0]["max_tokens"] == 50


@pytest.mark.asyncio
async def test_async_wrapper_runs_sync_call():
    provider = OpenAIProvider(api_key="sk-openai")

    class Completions:
        def create(self, **kwargs):
            message = SimpleNamespace(content="Two cats.")
            return SimpleNamespace(
                choices=[SimpleNamespace(message=message, finish_reason="stop")],
                usage=SimpleNamespace(prompt_tokens=10, completion_tokens=3),
            )

    provider.client = SimpleNamespace(chat=SimpleNamespace(completions=Completions()))
    response = await provider.describe_image_async(b"abc", "image/jpeg", "Describe it")

    assert response.text == "Two cats."
    assert response.metadata["provider"] == "openai"
