"""
OpenAI LLM Provider

Chat completions through the async openai SDK. JSON output maps to the
`json_object` response format, which requires the word "JSON" somewhere in
the messages; the plan system prompt satisfies that.
"""

import logging

import openai
from openai import AsyncOpenAI

from querypilot.llm.base import BaseLLMProvider
from querypilot.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

_FINISH_REASONS = {"length": "length", "content_filter": "content_filter"}


class OpenAIProvider(BaseLLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
    ):
        super().__init__("openai", model, temperature, max_tokens, timeout)
        self.client = AsyncOpenAI(api_key=api_key, timeout=float(timeout))

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Run one chat completion.

        Raises:
            openai.APITimeoutError: On timeout
            openai.APIError: On any other API failure
        """
        self._log_request(request)

        params = {
            "model": self.model,
            "messages": request.all_turns(),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if request.json_output:
            params["response_format"] = {"type": "json_object"}

        try:
            completion = await self.client.chat.completions.create(**params)
        except openai.APITimeoutError as e:
            logger.error(f"OpenAI request timed out after {self.timeout}s: {e}")
            raise
        except openai.APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise

        choice = completion.choices[0]
        usage = completion.usage
        response = LLMResponse(
            content=choice.message.content or "",
            model=completion.model,
            provider=self.provider_name,
            usage=LLMUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
            ),
            finish_reason=_FINISH_REASONS.get(choice.finish_reason, "stop"),
        )
        self._log_response(response)
        return response

    async def close(self) -> None:
        await self.client.close()
