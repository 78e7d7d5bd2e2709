"""
LLM Provider Factory

Factory and registry for creating LLM provider instances from configuration.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from chainsage.gateway import ServiceGateway
from chainsage.llm.base import BaseLLMProvider
from chainsage.llm.google import GoogleProvider

if TYPE_CHECKING:
    from chainsage.config import LLMSettings

logger = logging.getLogger(__name__)


class LLMProviderFactory:
    """Factory for creating LLM provider instances."""

    # Registry of available providers
    PROVIDERS = {
        "google": GoogleProvider,
    }

    @staticmethod
    def create_provider(
        provider_type: Literal["google"],
        config: LLMSettings,
        gateway: ServiceGateway,
    ) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Args:
            provider_type: Type of provider to create
            config: LLM configuration settings
            gateway: Shared outbound HTTP gateway

        Returns:
            Configured provider instance

        Raises:
            ValueError: If provider type is unknown
        """
        if provider_type not in LLMProviderFactory.PROVIDERS:
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Available providers: {list(LLMProviderFactory.PROVIDERS.keys())}"
            )

        logger.info(
            f"Creating {provider_type} provider",
            extra={"provider": provider_type, "has_api_key": bool(config.google_api_key)},
        )
        return LLMProviderFactory._create_google(config, gateway)

    @staticmethod
    def create_default_provider(
        config: LLMSettings,
        gateway: ServiceGateway,
    ) -> BaseLLMProvider:
        """Create the provider named by ``config.provider``."""
        return LLMProviderFactory.create_provider(config.provider, config, gateway)

    @staticmethod
    def _create_google(config: LLMSettings, gateway: ServiceGateway) -> GoogleProvider:
        """Create Google provider instance."""
        defaults = config.query_generation_config()
        return GoogleProvider(
            gateway=gateway,
            api_key=config.google_api_key,
            model=config.google_model,
            base_url=config.google_base_url,
            temperature=defaults.temperature,
            top_p=defaults.top_p,
            candidate_count=defaults.candidate_count,
            timeout=config.timeout,
        )
