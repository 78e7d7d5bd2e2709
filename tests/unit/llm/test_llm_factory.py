"""Unit tests for LLMProviderFactory."""

import pytest

from chainsage.config import LLMSettings
from chainsage.gateway import ServiceGateway
from chainsage.llm.factory import LLMProviderFactory
from chainsage.llm.google import GoogleProvider


@pytest.fixture
def gateway():
    return ServiceGateway(timeout=5.0)


def test_create_default_provider_uses_query_profile(gateway):
    config = LLMSettings(google_api_key="gem-key", google_model="gemini-1.5-pro")

    provider = LLMProviderFactory.create_default_provider(config, gateway)

    assert isinstance(provider, GoogleProvider)
    assert provider.api_key == "gem-key"
    assert provider.model == "gemini-1.5-pro"
    assert provider.temperature == config.query_temperature
    assert provider.top_p == config.query_top_p


def test_provider_created_without_key(gateway):
    """Keys are checked on first use, not at construction."""
    provider = LLMProviderFactory.create_default_provider(LLMSettings(), gateway)

    assert provider.api_key is None


def test_unknown_provider_rejected(gateway):
    with pytest.raises(ValueError, match="Unknown provider type"):
        LLMProviderFactory.create_provider("openai", LLMSettings(), gateway)
