"""Generation service behind the HTTP backend.

Hides how a wire request becomes a provider call:
- which provider and backend model name serve the model id (registry),
- how external role spellings and ``system`` entries are normalized,
- how provider failures become remediation text.
"""

from collections.abc import AsyncIterator
from typing import Any

from pydantic import Field, ValidationError

from ..conversation.models import GenerationRequest, GenerationResult, StreamEvent
from ..errors import DuetError, EmptyResultError, InvalidRequestError
from ..llm import ChatMessage, ProviderRegistry, Role

# The backend's own defaults, used when a client omits the fields
SERVER_DEFAULT_TEMPERATURE = 0.7
SERVER_DEFAULT_MAX_TOKENS = 200

FALLBACK_USER_MESSAGE = "Hello"


class BackendRequest(GenerationRequest):
    """GenerationRequest as received by the backend, with server defaults."""

    temperature: float = SERVER_DEFAULT_TEMPERATURE
    max_tokens: int = Field(default=SERVER_DEFAULT_MAX_TOKENS, gt=0)


def parse_request(payload: Any) -> BackendRequest:
    """Validate a raw JSON body.

    Raises:
        InvalidRequestError: If the model is missing or the history is not a list
    """
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object")
    model = payload.get("model")
    if not isinstance(model, str) or not model.strip():
        raise InvalidRequestError("Model is required")
    history = payload.get("conversationHistory", payload.get("conversation_history"))
    if not isinstance(history, list):
        raise InvalidRequestError("Conversation history must be an array")
    try:
        return BackendRequest.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise InvalidRequestError(f"Invalid request field {location}: {first.get('msg')}") from e


def prepare_messages(request: GenerationRequest) -> tuple[list[ChatMessage], str]:
    """Normalize history roles and fold ``system`` entries into the system prompt.

    Guarantees at least one USER entry.
    """
    system_parts = [request.system_prompt] if request.system_prompt else []
    messages: list[ChatMessage] = []
    for entry in request.conversation_history:
        if entry.role == "system":
            if entry.content:
                system_parts.append(entry.content)
            continue
        messages.append(ChatMessage(role=Role.parse(entry.role), content=entry.content))

    if not any(m.role is Role.USER for m in messages):
        messages.append(ChatMessage(role=Role.USER, content=FALLBACK_USER_MESSAGE))
    return messages, "\n\n".join(system_parts)


class GenerationService:
    """Runs generation requests against the provider registry.

    Example:
        service = GenerationService(ProviderRegistry())
        result = await service.generate(parse_request(body))
    """

    def __init__(self, registry: ProviderRegistry | None = None) -> None:
        self._registry = registry or ProviderRegistry()
        self._debug_callback: Any | None = None

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback: callable(level, component, message)."""
        self._debug_callback = callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Service", message)

    def explain(self, error: Exception, model: str) -> str:
        """User-facing text for a provider failure, with remediation where known."""
        message = str(error) or "Failed to generate response"
        status = getattr(error, "status_code", None)
        try:
            route = self._registry.resolve(model)
        except DuetError:
            return message

        if (
            status == 404
            or "does not exist" in message
            or "model_not_found" in message.lower()
        ):
            base_url = self._registry.base_url(route) or "the provider default"
            return (
                f'{route.name} model "{model}" not found (404). Please verify:\n'
                f"1. {route.api_key_env} is set correctly in your .env file\n"
                f"2. The model name is correct (sent as \"{route.normalize(model)}\")\n"
                f"3. Your API key has access to this model\n"
                f"4. The base URL is correct ({base_url})"
            )
        if status == 401 or "Unauthorized" in message or "Invalid API key" in message:
            hint = f"\n\n{route.key_hint}" if route.key_hint else ""
            return (
                f"Invalid {route.name} API key (401). "
                f"Please check your {route.api_key_env} in the .env file.{hint}"
            )
        return message

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Blocking generation. Provider failures become ``success=False``.

        Raises:
            ConfigurationError: If the model has no route or no credential
        """
        messages, system_prompt = prepare_messages(request)
        provider, model_name = self._registry.provider_for(request.model)
        self._debug(
            "info",
            f"generate {self._registry.describe(request.model)} with {len(messages)} messages",
        )
        try:
            response = await provider.chat_completion(
                messages,
                system_prompt=system_prompt,
                model=model_name,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )
        except Exception as e:
            self._debug("error", f"provider call failed: {e!r}")
            return GenerationResult.failure(self.explain(e, request.model))

        if not response.content.strip():
            return GenerationResult.failure(str(EmptyResultError()))
        return GenerationResult(content=response.content, success=True)

    async def stream(self, request: GenerationRequest) -> AsyncIterator[str]:
        """Incremental generation; yields text chunks.

        Raises:
            ConfigurationError: If the model has no route or no credential
            Exception: Provider errors, raised while iterating
        """
        messages, system_prompt = prepare_messages(request)
        provider, model_name = self._registry.provider_for(request.model)
        self._debug(
            "info",
            f"stream {self._registry.describe(request.model)} with {len(messages)} messages",
        )
        stream = await provider.chat_completion_stream(
            messages,
            system_prompt=system_prompt,
            model=model_name,
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )
        async for chunk in stream:
            yield chunk
        if stream.usage:
            self._debug("debug", f"stream usage: {stream.usage}")

    async def stream_events(self, payload: Any) -> AsyncIterator[str]:
        """SSE frames for a raw request body. Every failure becomes an error frame."""
        try:
            request = parse_request(payload)
            self._registry.check_credentials(request.model)
        except DuetError as e:
            self._debug("warning", f"stream rejected: {e}")
            yield StreamEvent(error=str(e), done=True).to_sse()
            return

        chunks = 0
        try:
            async for chunk in self.stream(request):
                chunks += 1
                yield StreamEvent(content=chunk, done=False).to_sse()
        except DuetError as e:
            yield StreamEvent(error=str(e), done=True).to_sse()
            return
        except Exception as e:
            self._debug("error", f"stream failed after {chunks} chunks: {e!r}")
            yield StreamEvent(error=self.explain(e, request.model), done=True).to_sse()
            return

        self._debug("debug", f"stream finished after {chunks} chunks")
        yield StreamEvent(content="", done=True).to_sse()

    async def close(self) -> None:
        await self._registry.close()
