"""
Base LLM Provider

Abstract interface the session uses to ask a model for a query plan.
Plan parsing and SQL compilation never depend on this layer.
"""

import logging
from abc import ABC, abstractmethod

from querypilot.llm.models import LLMMessage, LLMRequest, LLMResponse

logger = logging.getLogger(__name__)


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Attributes:
        provider_name: Unique identifier for this provider
        model: Model name sent with every request
        temperature: Sampling temperature
        max_tokens: Maximum tokens to generate per reply
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        provider_name: str,
        model: str,
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
    ):
        self.provider_name = provider_name
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        logger.info(
            f"Initialized {provider_name} provider with model: {model}",
            extra={
                "provider": provider_name,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Raises:
            Exception: Provider-specific errors (API errors, timeouts, etc.)
        """
        pass  # pragma: no cover - abstract method

    async def generate_text(
        self, prompt: str, system: str | None = None, json_output: bool = False
    ) -> str:
        """Send one user prompt (plus optional system prompt) and return the text."""
        messages = []
        if system:
            messages.append(LLMMessage(role="system", content=system))
        messages.append(LLMMessage(role="user", content=prompt))

        response = await self.generate(LLMRequest(messages=messages, json_output=json_output))
        if response.truncated:
            logger.warning(
                f"{self.provider_name} reply stopped at max_tokens ({self.max_tokens})",
                extra={"provider": self.provider_name, "model": response.model},
            )
        return response.content

    async def close(self) -> None:
        """Release provider resources. Providers without any can ignore this."""
        return None

    def _log_request(self, request: LLMRequest) -> None:
        logger.debug(
            f"{self.provider_name} request",
            extra={
                "provider": self.provider_name,
                "message_count": len(request.messages),
                "json_output": request.json_output,
            },
        )

    def _log_response(self, response: LLMResponse) -> None:
        logger.debug(
            f"{self.provider_name} response",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "finish_reason": response.finish_reason,
            },
        )
