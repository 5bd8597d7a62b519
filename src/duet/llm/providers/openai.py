from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, StreamingResponse


def _to_openai_messages(
    messages: list[ChatMessage],
    system_prompt: str,
) -> list[dict[str, str]]:
    """Convert history to Chat Completions format, system instruction first."""
    converted = []
    if system_prompt:
        converted.append({"role": "system", "content": system_prompt})
    converted.extend(
        {"role": msg.role.value, "content": msg.content}
        for msg in messages
    )
    return converted


class OpenAICompatibleProvider(LLMProvider):
    """Provider for any backend speaking the OpenAI Chat Completions API.

    OpenAI itself, DeepSeek and Groq differ only in base URL and model
    naming, which the provider registry supplies.

    Hidden design decisions:
    - API client initialization (via the OpenAI SDK)
    - Message format conversion
    - Usage capture from the final stream chunk
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Create the AsyncOpenAI client for one base URL.

        Args:
            api_key: API key for the backend
            model: Default model to use
            base_url: Optional custom API base URL (DeepSeek, Groq, proxies)
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Model used when a request names none."""
        return self._model

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        system_prompt: str = "",
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Request one non-streamed reply.

        Args:
            messages: Conversation history
            system_prompt: System instruction, sent as the leading system message
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional API parameters

        Returns:
            LLMResponse built from the first choice
        """
        model_to_use = model or self._model

        request_params: dict[str, Any] = {
            "model": model_to_use,
            "messages": _to_openai_messages(messages, system_prompt),
            "temperature": temperature,
            **kwargs
        }
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens

        completion = await self._client.chat.completions.create(**request_params)

        usage = None
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens
            }

        content = ""
        if completion.choices:
            content = completion.choices[0].message.content or ""

        return LLMResponse(
            content=content,
            model=completion.model,
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
        """Request a streamed reply.

        Usage arrives on the last chunk when the backend honours
        stream_options.include_usage.
        """
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": _to_openai_messages(messages, system_prompt),
            "temperature": temperature,
            "stream": True,
            "stream_options": {"include_usage": True},
            **kwargs,
        }
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens

        # Each stream owns its response object; both participants may share
        # one provider instance.
        response: StreamingResponse
        response = StreamingResponse(self._stream_generator(request_params, lambda: response))
        return response

    async def _stream_generator(
        self,
        request_params: dict[str, Any],
        owner: Any,
    ) -> AsyncIterator[str]:
        """Yield content deltas and record usage from the final chunk."""
        stream = await self._client.chat.completions.create(**request_params)

        async for chunk in stream:
            if chunk.usage is not None:
                owner().set_usage({
                    "prompt_tokens": chunk.usage.prompt_tokens,
                    "completion_tokens": chunk.usage.completion_tokens,
                    "total_tokens": chunk.usage.total_tokens,
                })
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content

    async def close(self) -> None:
        """Close the client.

        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()
