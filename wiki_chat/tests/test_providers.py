import pytest

from wiki_chat.providers import create_provider
from wiki_chat.providers.anthropic_client import AnthropicClient
from wiki_chat.providers.openai_compat_client import OpenAICompatClient
from wiki_chat.providers.registry import get_provider_config


def test_create_provider_default(cfg):
    provider = create_provider(cfg=cfg)
    assert isinstance(provider, AnthropicClient)
    assert provider.name == "anthropic"


def test_create_provider_explicit(cfg):
    provider = create_provider("Kimi", cfg=cfg)
    assert isinstance(provider, OpenAICompatClient)
    assert provider.name == "kimi"


def test_unknown_provider(cfg):
    with pytest.raises(KeyError):
        create_provider("nope", cfg=cfg)


def test_registry_token_budgets():
    models = get_provider_config("anthropic").models
    assert models["keywords"].max_tokens == 100
    assert models["answer"].max_tokens == 1500
