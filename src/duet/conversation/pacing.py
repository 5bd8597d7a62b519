"""Paced character reveal.

Both transport paths (true streaming and the blocking fallback) hand their
text to one PacedEmitter, so the reveal speed cannot drift between them.
"""

import asyncio
from collections.abc import AsyncIterable, Awaitable, Callable, Iterable

from .config import REVEAL_DELAY

Sleep = Callable[[float], Awaitable[None]]


class PacedEmitter:
    """Re-emit fragments one character at a time with a fixed delay.

    The sink is called once per character, so every character is its own
    observable state change.
    """

    def __init__(self, delay: float = REVEAL_DELAY, sleep: Sleep = asyncio.sleep) -> None:
        self._delay = delay
        self._sleep = sleep

    @property
    def delay(self) -> float:
        return self._delay

    async def emit(self, fragment: str, sink: Callable[[str], None]) -> int:
        """Reveal one fragment. Returns the number of characters emitted."""
        count = 0
        for char in fragment:
            sink(char)
            count += 1
            await self._sleep(self._delay)
        return count

    async def replay(
        self,
        fragments: str | Iterable[str] | AsyncIterable[str],
        sink: Callable[[str], None],
    ) -> int:
        """Reveal a whole fragment sequence, sync or async."""
        if isinstance(fragments, str):
            return await self.emit(fragments, sink)
        total = 0
        if isinstance(fragments, AsyncIterable):
            async for fragment in fragments:
                total += await self.emit(fragment, sink)
        else:
            for fragment in fragments:
                total += await self.emit(fragment, sink)
        return total
