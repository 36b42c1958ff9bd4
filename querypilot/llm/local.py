"""
Local LLM Provider

Talks to a local model server over httpx. The Ollama chat endpoint is tried
first; on any HTTP failure the OpenAI-compatible endpoint (vLLM, llama.cpp
server, Ollama's own /v1) is used instead.
"""

import logging

import httpx

from querypilot.llm.base import BaseLLMProvider
from querypilot.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

OLLAMA_CHAT_PATH = "/api/chat"
OPENAI_CHAT_PATH = "/v1/chat/completions"


class LocalProvider(BaseLLMProvider):
    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__("local", model, temperature, max_tokens, timeout)
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=float(timeout))

    def _ollama_payload(self, request: LLMRequest) -> dict:
        payload = {
            "model": self.model,
            "messages": request.all_turns(),
            "stream": False,
            "options": {"temperature": self.temperature, "num_predict": self.max_tokens},
        }
        if request.json_output:
            payload["format"] = "json"
        return payload

    def _openai_payload(self, request: LLMRequest) -> dict:
        payload = {
            "model": self.model,
            "messages": request.all_turns(),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if request.json_output:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Raises:
            httpx.HTTPError: If both endpoints fail
        """
        self._log_request(request)

        try:
            data = await self._post(OLLAMA_CHAT_PATH, self._ollama_payload(request))
            response = self._from_ollama(data)
        except httpx.HTTPError as e:
            logger.debug(
                f"Ollama endpoint unavailable at {self.base_url}, using {OPENAI_CHAT_PATH}: {e}"
            )
            data = await self._post(OPENAI_CHAT_PATH, self._openai_payload(request))
            response = self._from_openai(data)

        self._log_response(response)
        return response

    def _from_ollama(self, data: dict) -> LLMResponse:
        return LLMResponse(
            content=data.get("message", {}).get("content") or "",
            model=data.get("model", self.model),
            provider=self.provider_name,
            usage=LLMUsage(
                prompt_tokens=data.get("prompt_eval_count") or 0,
                completion_tokens=data.get("eval_count") or 0,
            ),
            finish_reason="length" if data.get("done_reason") == "length" else "stop",
        )

    def _from_openai(self, data: dict) -> LLMResponse:
        choice = (data.get("choices") or [{}])[0]
        usage = data.get("usage") or {}
        return LLMResponse(
            content=choice.get("message", {}).get("content") or "",
            model=data.get("model", self.model),
            provider=self.provider_name,
            usage=LLMUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
            ),
            finish_reason="length" if choice.get("finish_reason") == "length" else "stop",
        )

    async def _post(self, path: str, payload: dict) -> dict:
        response = await self.client.post(f"{self.base_url}{path}", json=payload)
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        await self.client.aclose()
