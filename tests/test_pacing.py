"""Unit tests for the paced emitter."""
import asyncio

import pytest
from hypothesis import given
from hypothesis import strategies as st

from duet.conversation import PacedEmitter


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class TestPacedEmitter:
    """Tests for PacedEmitter."""

    @pytest.mark.asyncio
    async def test_emits_one_character_per_call(self):
        """Test that the sink sees single characters with a delay after each."""
        sleep = RecordingSleep()
        emitter = PacedEmitter(delay=0.015, sleep=sleep)
        seen: list[str] = []

        count = await emitter.emit("Hi!", seen.append)

        assert seen == ["H", "i", "!"]
        assert count == 3
        assert sleep.delays == [0.015, 0.015, 0.015]

    @pytest.mark.asyncio
    async def test_empty_fragment_emits_nothing(self):
        """Test that an empty fragment neither emits nor sleeps."""
        sleep = RecordingSleep()
        emitter = PacedEmitter(sleep=sleep)
        seen: list[str] = []

        assert await emitter.emit("", seen.append) == 0
        assert seen == []
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_replay_fragment_boundaries_do_not_matter(self):
        """Test that ["Hel", "lo"] and "Hello" reveal the same characters."""
        emitter = PacedEmitter(delay=0, sleep=RecordingSleep())
        split: list[str] = []
        whole: list[str] = []

        await emitter.replay(["Hel", "lo"], split.append)
        await emitter.replay("Hello", whole.append)

        assert "".join(split) == "Hello"
        assert split == whole

    @pytest.mark.asyncio
    async def test_replay_async_iterable(self):
        """Test replaying an async fragment source."""
        async def fragments():
            yield "ab"
            yield ""
            yield "c"

        emitter = PacedEmitter(delay=0, sleep=RecordingSleep())
        seen: list[str] = []

        total = await emitter.replay(fragments(), seen.append)

        assert seen == ["a", "b", "c"]
        assert total == 3

    def test_default_delay(self):
        """Test the default reveal delay of 15 ms."""
        assert PacedEmitter().delay == 0.015

    @given(st.lists(st.text(max_size=10), max_size=10))
    def test_concatenation_is_preserved(self, fragments: list[str]):
        """Property test: replay never drops or duplicates characters."""
        emitter = PacedEmitter(delay=0, sleep=RecordingSleep())
        seen: list[str] = []

        asyncio.run(emitter.replay(fragments, seen.append))

        assert "".join(seen) == "".join(fragments)
        assert all(len(char) == 1 for char in seen)
