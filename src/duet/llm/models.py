from collections.abc import AsyncIterator
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """Closed set of conversational roles used everywhere inside duet.

    External spellings ("human", "ai", any casing) are normalized with
    ``Role.parse`` as soon as they are read; nothing past the boundary
    carries a raw role string.
    """

    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def parse(cls, value: "str | Role") -> "Role":
        """Normalize an external role spelling.

        Raises:
            ValueError: If the spelling maps to neither role
        """
        if isinstance(value, Role):
            return value
        normalized = _ROLE_ALIASES.get(value.strip().lower())
        if normalized is None:
            raise ValueError(f"Unknown conversational role: {value!r}")
        return normalized


_ROLE_ALIASES = {
    "user": Role.USER,
    "human": Role.USER,
    "assistant": Role.ASSISTANT,
    "ai": Role.ASSISTANT,
}


class StreamingResponse:
    """Wrapper for streaming LLM responses that captures usage info.

    Acts as an async iterator for text chunks while storing token usage
    that becomes available at the end of the stream.

    Usage:
        stream = await provider.chat_completion_stream(messages)
        async for chunk in stream:
            print(chunk, end="")
        # After iteration, usage is available
        print(stream.usage)  # {"prompt_tokens": 100, "completion_tokens": 50, ...}
    """

    def __init__(self, async_iter: AsyncIterator[str]):
        self._iter = async_iter
        self._usage: dict[str, Any] | None = None

    @property
    def usage(self) -> dict[str, Any] | None:
        """Get token usage info (available after iteration completes)."""
        return self._usage

    def set_usage(self, usage: dict[str, Any]) -> None:
        """Set token usage info (called by provider at end of stream)."""
        self._usage = usage

    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> str:
        return await self._iter.__anext__()


class ChatMessage(BaseModel):
    """One role-tagged entry of a prompt history."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Who said it, from the responding model's point of view")
    content: str = Field(description="Content of the message")

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> Role:
        if isinstance(value, str):
            return Role.parse(value)
        return value


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Generated text content")
    model: str = Field(description="Model that generated the response")
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )
