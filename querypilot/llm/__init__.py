"""
LLM Provider Module

Provider abstraction used by the session to turn a question into a plan.

Usage:
    from querypilot.config import get_settings
    from querypilot.llm import LLMProviderFactory

    provider = LLMProviderFactory.create_default_provider(get_settings().llm)
    text = await provider.generate_text("List overdue invoices", system=prompt)
"""

from querypilot.llm.anthropic import AnthropicProvider
from querypilot.llm.base import BaseLLMProvider
from querypilot.llm.factory import LLMProviderFactory
from querypilot.llm.local import LocalProvider
from querypilot.llm.models import LLMMessage, LLMRequest, LLMResponse, LLMUsage
from querypilot.llm.openai import OpenAIProvider

__all__ = [
    # Base classes
    "BaseLLMProvider",
    # Models
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    # Factory
    "LLMProviderFactory",
    # Providers
    "OpenAIProvider",
    "AnthropicProvider",
    "LocalProvider",
]
