"""
LLM Provider Module

Gemini access over REST, behind a provider interface.

Usage:
    from chainsage.llm import LLMProviderFactory, LLMRequest
    from chainsage.config import get_settings

    settings = get_settings()
    provider = LLMProviderFactory.create_default_provider(settings.llm, gateway)

    request = LLMRequest.from_prompt("Hello!", settings.llm.summary_generation_config())
    response = await provider.generate(request)
    print(response.content)
"""

from chainsage.llm.base import BaseLLMProvider, InvalidLLMResponseError, LLMProviderError
from chainsage.llm.factory import LLMProviderFactory
from chainsage.llm.google import GoogleProvider
from chainsage.llm.models import (
    GenerationConfig,
    LLMMessage,
    LLMRequest,
    LLMResponse,
    LLMUsage,
)

__all__ = [
    # Base classes
    "BaseLLMProvider",
    "LLMProviderError",
    "InvalidLLMResponseError",
    # Models
    "GenerationConfig",
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    # Factory
    "LLMProviderFactory",
    # Providers
    "GoogleProvider",
]
