"""HTTP transport to the generation backend.

Hides how a turn's text reaches the orchestrator:
- the blocking ``/llm/generate`` call,
- the ``/llm/stream`` server-sent event channel and its frame format,
- falling back to the blocking call when streaming is unavailable,
- turning every failure into a result or an error callback.

Nothing raised inside a generation call crosses this module's public
methods.
"""

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx

from ..errors import DuetError, EmptyResultError, TransportError
from .models import GenerationRequest, GenerationResult, StreamEvent
from .pacing import PacedEmitter

FragmentCallback = Callable[[str], None]
CompleteCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]

DEFAULT_TIMEOUT = 120.0


def parse_sse_line(line: str) -> StreamEvent | None:
    """Parse one event-stream line; None for anything that is not a valid frame."""
    if not line.startswith("data:"):
        return None
    data = line[len("data:"):]
    if data.startswith(" "):
        data = data[1:]
    try:
        payload = json.loads(data)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    try:
        return StreamEvent.model_validate(payload)
    except ValueError:
        return None


def _with_hints(message: str) -> str:
    """Append remediation tips for errors users commonly hit."""
    if "does not exist" in message or "MODEL_NOT_FOUND" in message:
        return (
            f"{message}\n\nTips:\n"
            "1. For DeepSeek: make sure DEEPSEEK_API_KEY is set in the server's .env file\n"
            '2. Try "deepseek-chat" or "gpt-3.5-turbo" instead\n'
            "3. You can change the model in the panel's model selector"
        )
    if "quota" in message or "429" in message or "exceeded" in message:
        return (
            "API quota exceeded\n\nSolutions:\n"
            '1. Switch this side to another provider (e.g. "deepseek-chat" or a Groq model)\n'
            "2. Add billing to the provider account\n"
            "3. Wait for the quota to reset"
        )
    return message


class _Terminal:
    """Guard that lets exactly one of complete/error fire, exactly once."""

    def __init__(self, on_complete: CompleteCallback, on_error: ErrorCallback) -> None:
        self._on_complete = on_complete
        self._on_error = on_error
        self.fired = False

    def complete(self) -> None:
        if not self.fired:
            self.fired = True
            self._on_complete()

    def error(self, message: str) -> None:
        if not self.fired:
            self.fired = True
            self._on_error(message)


class TransportAdapter:
    """Client for the generation backend.

    Supports async context manager protocol for proper resource cleanup:
        async with TransportAdapter("http://localhost:3002/api") as transport:
            result = await transport.generate(request)
    """

    def __init__(
        self,
        api_url: str,
        client: httpx.AsyncClient | None = None,
        emitter: PacedEmitter | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the transport.

        Args:
            api_url: Backend API root, e.g. http://localhost:3002/api
            client: Pre-built httpx client (tests pass one with a MockTransport)
            emitter: Paced emitter used for every revealed fragment
            timeout: Request timeout when the client is created here
        """
        self._api_url = api_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._emitter = emitter or PacedEmitter()
        self._debug_callback: Any | None = None

    @property
    def api_url(self) -> str:
        return self._api_url

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback: callable(level, component, message)."""
        self._debug_callback = callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Transport", message)

    # ------------------------------------------------------------------
    # Blocking mode
    # ------------------------------------------------------------------

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run one blocking generation. Never raises."""
        try:
            return await self._generate(request)
        except DuetError as e:
            self._debug("error", f"generate failed: {e}")
            return GenerationResult.failure(str(e))
        except httpx.HTTPError as e:
            self._debug("error", f"generate transport failure: {e!r}")
            return GenerationResult.failure(f"Failed to reach generation backend: {e}")
        except Exception as e:
            self._debug("error", f"generate unexpected failure: {e!r}")
            return GenerationResult.failure(str(e) or "Failed to generate response")

    async def _generate(self, request: GenerationRequest) -> GenerationResult:
        self._debug("debug", f"POST /llm/generate model={request.model}")
        response = await self._client.post(
            f"{self._api_url}/llm/generate", json=request.to_wire()
        )
        if response.is_error:
            message = self._json_error(response) or f"HTTP error! status: {response.status_code}"
            raise TransportError(_with_hints(message), status_code=response.status_code)

        try:
            result = GenerationResult.model_validate(response.json())
        except ValueError as e:
            raise TransportError("Malformed response from generation backend") from e

        if not result.success:
            raise TransportError(result.error or "Failed to generate response")
        if not result.content.strip():
            raise EmptyResultError()
        return result

    @staticmethod
    def _json_error(response: httpx.Response) -> str | None:
        try:
            payload = response.json()
        except ValueError:
            return None
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return None

    # ------------------------------------------------------------------
    # Incremental mode
    # ------------------------------------------------------------------

    async def stream(
        self,
        request: GenerationRequest,
        on_fragment: FragmentCallback,
        on_complete: CompleteCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Run one streaming generation.

        ``on_fragment`` receives the text one character at a time through the
        paced emitter. Exactly one of ``on_complete``/``on_error`` fires,
        exactly once, before this coroutine returns. Never raises, except
        that cancellation is reported through ``on_error`` and re-raised.
        """
        terminal = _Terminal(on_complete, on_error)
        try:
            await self._stream(request, on_fragment, terminal)
        except asyncio.CancelledError:
            terminal.error("Generation cancelled")
            raise
        except DuetError as e:
            self._debug("error", f"stream failed: {e}")
            terminal.error(str(e))
        except httpx.HTTPError as e:
            self._debug("error", f"stream transport failure: {e!r}")
            terminal.error(f"Failed to reach generation backend: {e}")
        except Exception as e:
            self._debug("error", f"stream unexpected failure: {e!r}")
            terminal.error(str(e) or "Failed to stream response")
        finally:
            # Channel closed without a terminal frame
            terminal.complete()

    async def _stream(
        self,
        request: GenerationRequest,
        on_fragment: FragmentCallback,
        terminal: _Terminal,
    ) -> None:
        self._debug("debug", f"POST /llm/stream model={request.model}")
        async with self._client.stream(
            "POST", f"{self._api_url}/llm/stream", json=request.to_wire()
        ) as response:
            if response.status_code == 404:
                fallback = True
            elif response.is_error:
                message = await self._stream_error(response)
                raise TransportError(_with_hints(message), status_code=response.status_code)
            else:
                fallback = False
                await self._consume_events(response, on_fragment, terminal)

        if fallback:
            await self._replay_blocking(request, on_fragment, terminal)

    async def _consume_events(
        self,
        response: httpx.Response,
        on_fragment: FragmentCallback,
        terminal: _Terminal,
    ) -> None:
        await self._emitter.replay(self._content_frames(response, terminal), on_fragment)

    async def _content_frames(
        self, response: httpx.Response, terminal: _Terminal
    ) -> AsyncIterator[str]:
        """Content of each frame; error, done and end of body settle ``terminal``."""
        frames = 0
        async for line in response.aiter_lines():
            event = parse_sse_line(line)
            if event is None:
                continue
            frames += 1
            if event.error:
                self._debug("warning", f"error frame after {frames} frames: {event.error}")
                terminal.error(event.error)
                return
            if event.content:
                yield event.content
            if event.done:
                self._debug("debug", f"stream done after {frames} frames")
                terminal.complete()
                return
        self._debug("debug", f"stream closed after {frames} frames")
        terminal.complete()

    async def _replay_blocking(
        self,
        request: GenerationRequest,
        on_fragment: FragmentCallback,
        terminal: _Terminal,
    ) -> None:
        """Fallback: one blocking call, replayed through the paced emitter."""
        self._debug("warning", "Streaming endpoint not available, falling back to non-streaming")
        result = await self.generate(request)
        if not (result.success and result.content):
            terminal.error(result.error or "Failed to generate response")
            return
        await self._emitter.replay(result.content, on_fragment)
        terminal.complete()

    async def _stream_error(self, response: httpx.Response) -> str:
        """Best-effort error text from a failed streaming response."""
        default = f"HTTP error! status: {response.status_code}"
        content_type = response.headers.get("content-type", "")
        if "text/event-stream" in content_type:
            async for line in response.aiter_lines():
                event = parse_sse_line(line)
                if event is not None and event.error:
                    return event.error
            return default
        await response.aread()
        return self._json_error(response) or default

    async def close(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "TransportAdapter":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
