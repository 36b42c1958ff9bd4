"""
Anthropic LLM Provider

Claude models through the async anthropic SDK. The messages API has no
JSON mode switch, so `json_output` is not forwarded.
"""

import logging

import anthropic
from anthropic import AsyncAnthropic

from querypilot.llm.base import BaseLLMProvider
from querypilot.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseLLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
    ):
        super().__init__("anthropic", model, temperature, max_tokens, timeout)
        self.client = AsyncAnthropic(api_key=api_key, timeout=float(timeout))

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Run one messages call; the system prompt travels outside the turns."""
        self._log_request(request)

        params = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": request.chat_turns(),
        }
        if request.system:
            params["system"] = request.system

        try:
            message = await self.client.messages.create(**params)
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise

        response = LLMResponse(
            content="".join(
                block.text for block in message.content if getattr(block, "type", "") == "text"
            ),
            model=message.model,
            provider=self.provider_name,
            usage=LLMUsage(
                prompt_tokens=message.usage.input_tokens,
                completion_tokens=message.usage.output_tokens,
            ),
            finish_reason="length" if message.stop_reason == "max_tokens" else "stop",
        )
        self._log_response(response)
        return response

    async def close(self) -> None:
        await self.client.close()
