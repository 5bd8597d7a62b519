"""Pytest configuration and shared fixtures."""
import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
import pytest

from duet.conversation import (
    ConversationOrchestrator,
    GenerationRequest,
    PacedEmitter,
    Timing,
    TransportAdapter,
)

API_URL = "http://backend.test/api"


@dataclass
class Fail:
    """Script step: the generation ends with an error."""

    message: str


class Gate:
    """Script step: emit ``head``, wait for ``release``, then finish.

    ``reached`` is set once the head has been delivered, so a test can act
    while the turn is mid-stream.
    """

    def __init__(self, head: str = "Hel", tail: str = "lo", fail: str | None = None) -> None:
        self.head = head
        self.tail = tail
        self.fail = fail
        self.reached = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, on_fragment, on_complete, on_error) -> None:
        for char in self.head:
            on_fragment(char)
        self.reached.set()
        await self.release.wait()
        if self.fail is not None:
            on_error(self.fail)
            return
        for char in self.tail:
            on_fragment(char)
        on_complete()


Script = list[str] | Fail | Callable[..., Awaitable[None]]


class ScriptedTransport:
    """Transport double replaying one script per stream call.

    A list of fragments is delivered one character at a time and then
    completed, like the real transport's paced emitter.
    """

    api_url = API_URL

    def __init__(self, *scripts: Script) -> None:
        self.scripts = list(scripts)
        self.requests: list[GenerationRequest] = []
        self.closed = False

    def set_debug_callback(self, callback) -> None:
        pass

    async def stream(self, request, on_fragment, on_complete, on_error) -> None:
        self.requests.append(request)
        script = self.scripts.pop(0) if self.scripts else ["ok"]
        if isinstance(script, Fail):
            on_error(script.message)
            return
        if callable(script):
            await script(on_fragment, on_complete, on_error)
            return
        for fragment in script:
            for char in fragment:
                on_fragment(char)
                await asyncio.sleep(0)
        on_complete()

    async def close(self) -> None:
        self.closed = True


async def wait_for(predicate: Callable[[], bool], attempts: int = 200) -> None:
    """Yield to the loop until ``predicate`` holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


def sse_body(*frames: str) -> str:
    return "".join(f"{frame}\n\n" for frame in frames)


def mock_transport_adapter(handler: Callable[[httpx.Request], httpx.Response]) -> TransportAdapter:
    """TransportAdapter over an httpx MockTransport, with no reveal delay."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TransportAdapter(API_URL, client=client, emitter=PacedEmitter(delay=0))


@pytest.fixture
def instant_timing() -> Timing:
    return Timing.instant()


@pytest.fixture
def make_conversation(instant_timing):
    """Factory for orchestrators with no delays."""

    def _make(transport, **kwargs) -> ConversationOrchestrator:
        kwargs.setdefault("timing", instant_timing)
        return ConversationOrchestrator(transport, **kwargs)

    return _make
