from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, LLMResponse, StreamingResponse


class LLMProvider(ABC):
    """A chat backend one participant talks through.

    Callers never see which vendor sits behind a route. Each adapter owns
    its client, its credentials and the translation of a role-tagged
    history into the vendor payload, including where the system
    instruction is placed. The history passed in holds only user and
    assistant turns; the instruction always arrives on its own.

    Usable as an async context manager:
        async with provider:
            reply = await provider.chat_completion(history, system_prompt)
    """

    @abstractmethod
    async def chat_completion(
        self,
        messages: list[ChatMessage],
        system_prompt: str = "",
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Produce one complete reply for the history.

        Args:
            messages: Role-tagged conversation history
            system_prompt: System instruction (may be empty)
            model: Model to use (None uses provider's default)
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            **kwargs: Provider-specific parameters

        Returns:
            LLMResponse with the reply text, model name and token usage

        Raises:
            Whatever the vendor SDK raises; the HTTP layer maps it to a
            readable message.
        """

    @abstractmethod
    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        system_prompt: str = "",
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Produce a reply as a stream of text deltas.

        Token usage is filled in on the returned StreamingResponse once
        iteration finishes.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP client."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Close on exit.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
