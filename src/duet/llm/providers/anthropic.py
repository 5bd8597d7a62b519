"""Claude adapter over the Messages API (anthropic SDK)."""

from collections.abc import AsyncIterator
from typing import Any

from anthropic import AsyncAnthropic

from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, Role, StreamingResponse

DEFAULT_MAX_TOKENS = 4096


def _to_anthropic_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    """Messages API format: starts with a user turn, roles alternate.

    Consecutive entries with the same role are joined into one turn.
    """
    converted: list[dict[str, str]] = []
    for msg in messages:
        if not converted and msg.role is not Role.USER:
            continue
        if converted and converted[-1]["role"] == msg.role.value:
            converted[-1]["content"] += "\n\n" + msg.content
        else:
            converted.append({"role": msg.role.value, "content": msg.content})
    return converted


class AnthropicProvider(LLMProvider):
    """Route for the claude-* models.

    Differences from the Chat Completions routes:
    - System instruction goes in the top-level ``system`` parameter
    - ``max_tokens`` is mandatory for the Messages API
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        """Create the AsyncAnthropic client.

        Args:
            api_key: Anthropic API key
            model: Default model to use
            base_url: Optional custom API base URL
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._model = model
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Model used when a request names none."""
        return self._model

    def _request_params(
        self,
        messages: list[ChatMessage],
        system_prompt: str,
        model: str | None,
        temperature: float,
        max_tokens: int | None,
        **kwargs: Any
    ) -> dict[str, Any]:
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": _to_anthropic_messages(messages),
            "temperature": temperature,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            **kwargs
        }
        if system_prompt:
            request_params["system"] = system_prompt
        return request_params

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        system_prompt: str = "",
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Ask Claude for a single reply.

        Args:
            messages: Conversation history
            system_prompt: System instruction
            model: Model to use (overrides default)
            temperature: Sampling temperature (Anthropic accepts 0.0 to 1.0)
            max_tokens: Maximum tokens to generate (default: 4096)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            LLMResponse with the joined text blocks
        """
        request_params = self._request_params(
            messages, system_prompt, model, min(temperature, 1.0), max_tokens, **kwargs
        )
        response = await self._client.messages.create(**request_params)

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens
            }

        # Only text blocks contribute
        content = ""
        for block in response.content:
            if hasattr(block, "text"):
                content += block.text

        return LLMResponse(
            content=content,
            model=response.model,
            usage=usage
        )

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        system_prompt: str = "",
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Stream a Claude reply.

        Usage is assembled from the message_start and message_delta events.
        """
        request_params = self._request_params(
            messages, system_prompt, model, min(temperature, 1.0), max_tokens, **kwargs
        )
        response: StreamingResponse
        response = StreamingResponse(self._stream_generator(request_params, lambda: response))
        return response

    async def _stream_generator(
        self,
        request_params: dict[str, Any],
        owner: Any,
    ) -> AsyncIterator[str]:
        """Yield text deltas and capture usage from stream events."""
        input_tokens = 0
        output_tokens = 0

        async with self._client.messages.stream(**request_params) as stream:
            async for event in stream:
                event_type = getattr(event, "type", None)
                # message_start carries input_tokens
                if event_type == "message_start":
                    if hasattr(event, "message") and hasattr(event.message, "usage"):
                        input_tokens = event.message.usage.input_tokens
                # message_delta carries cumulative output_tokens
                elif event_type == "message_delta":
                    if hasattr(event, "usage") and hasattr(event.usage, "output_tokens"):
                        output_tokens = event.usage.output_tokens
                elif (
                    event_type == "content_block_delta"
                    and hasattr(event, "delta")
                    and hasattr(event.delta, "text")
                ):
                    yield event.delta.text

            owner().set_usage({
                "prompt_tokens": input_tokens,
                "completion_tokens": output_tokens,
                "total_tokens": input_tokens + output_tokens,
            })

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.close()
