"""
LLM Provider Factory

Creates the configured provider from LLMSettings.
"""

import logging

from querypilot.config import LLMSettings, ProviderName
from querypilot.llm.anthropic import AnthropicProvider
from querypilot.llm.base import BaseLLMProvider
from querypilot.llm.local import LocalProvider
from querypilot.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)


class LLMProviderFactory:
    """Factory for creating LLM provider instances."""

    PROVIDERS: dict[str, type[BaseLLMProvider]] = {
        "openai": OpenAIProvider,
        "anthropic": AnthropicProvider,
        "local": LocalProvider,
    }

    @staticmethod
    def create_provider(provider_type: ProviderName, config: LLMSettings) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Raises:
            ValueError: If provider type is unknown or its API key is missing
        """
        provider_cls = LLMProviderFactory.PROVIDERS.get(provider_type)
        if provider_cls is None:
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Available providers: {list(LLMProviderFactory.PROVIDERS.keys())}"
            )

        kwargs = {
            "model": config.model_for(provider_type),
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "timeout": config.timeout,
        }
        if provider_cls is LocalProvider:
            kwargs["base_url"] = config.local_base_url
        else:
            api_key = config.api_key_for(provider_type)
            if not api_key:
                raise ValueError(
                    f"{provider_type} API key is required. "
                    f"Set LLM_{provider_type.upper()}_API_KEY"
                )
            kwargs["api_key"] = api_key

        logger.info(f"Creating {provider_type} provider", extra={"provider": provider_type})
        return provider_cls(**kwargs)

    @staticmethod
    def create_default_provider(config: LLMSettings) -> BaseLLMProvider:
        """Create provider using default_provider from config."""
        return LLMProviderFactory.create_provider(config.default_provider, config)
