"""
Chat models passed between the session and an LLM provider.

A plan request is always one optional system prompt followed by one user
prompt; providers translate these models into their own wire format.
"""

from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]
FinishReason = Literal["stop", "length", "content_filter"]


class LLMMessage(BaseModel):
    """One chat turn."""

    role: Role
    content: str = Field(..., min_length=1)

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class LLMRequest(BaseModel):
    """
    Chat exchange sent to a provider.

    Sampling settings belong to the provider instance, not the request.
    `json_output` asks the provider to constrain the reply to a single JSON
    object where its API has such a switch; the plan parser still accepts
    fenced or prose-wrapped JSON, so providers without one ignore it.
    """

    messages: list[LLMMessage] = Field(..., min_length=1)
    json_output: bool = False

    @property
    def system(self) -> str | None:
        prompts = [m.content for m in self.messages if m.role == "system"]
        return "\n\n".join(prompts) if prompts else None

    def chat_turns(self) -> list[dict[str, str]]:
        """Non-system messages, for APIs that take the system prompt apart."""
        return [m.as_dict() for m in self.messages if m.role != "system"]

    def all_turns(self) -> list[dict[str, str]]:
        return [m.as_dict() for m in self.messages]


class LLMUsage(BaseModel):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class LLMResponse(BaseModel):
    """Text produced by a provider, with accounting."""

    content: str
    model: str
    provider: str
    usage: LLMUsage = Field(default_factory=LLMUsage)
    finish_reason: FinishReason = "stop"

    @property
    def truncated(self) -> bool:
        """True when generation stopped at the token limit."""
        return self.finish_reason == "length"
