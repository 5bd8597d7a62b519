"""Data models for the conversation engine.

Two groups live here:
- in-process state (participants, messages, turn state, panel flags),
  plain dataclasses mutated only by the orchestrator;
- the generation backend wire format (requests, results, stream events),
  pydantic models shared by the transport client and the server.
"""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..llm.models import ChatMessage
from .config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    MAX_TOKENS_MAX,
    MAX_TOKENS_MIN,
    TEMPERATURE_MAX,
    TEMPERATURE_MIN,
)


class ParticipantId(str, Enum):
    """The two conversational sides."""

    ONE = "llm1"
    TWO = "llm2"

    @property
    def peer(self) -> "ParticipantId":
        return ParticipantId.TWO if self is ParticipantId.ONE else ParticipantId.ONE

    @property
    def number(self) -> int:
        return 1 if self is ParticipantId.ONE else 2

    @property
    def title(self) -> str:
        return f"LLM {self.number}"

    @classmethod
    def parse(cls, value: "str | int | ParticipantId") -> "ParticipantId":
        """Accept 'llm1', '1', 1 and friends."""
        if isinstance(value, ParticipantId):
            return value
        text = str(value).strip().lower()
        if text in ("1", "llm1", "one"):
            return cls.ONE
        if text in ("2", "llm2", "two"):
            return cls.TWO
        raise ValueError(f"Unknown participant: {value!r}")


class ParticipantConfig(BaseModel):
    """Model settings for one side.

    Mutable at any time; the orchestrator copies it when a turn starts so a
    change mid-turn only affects the next turn.
    """

    model_config = ConfigDict(validate_assignment=True)

    model: str = Field(min_length=1, description="Model identifier")
    temperature: float = Field(
        default=DEFAULT_TEMPERATURE, ge=TEMPERATURE_MIN, le=TEMPERATURE_MAX
    )
    max_tokens: int = Field(
        default=DEFAULT_MAX_TOKENS, ge=MAX_TOKENS_MIN, le=MAX_TOKENS_MAX
    )
    system_prompt: str = Field(default="", description="System instruction")


_last_message_id = 0


def next_message_id() -> int:
    """Creation-time id, strictly increasing within the process."""
    global _last_message_id
    _last_message_id = max(time.time_ns(), _last_message_id + 1)
    return _last_message_id


@dataclass
class Message:
    """A message in one participant's log.

    ``content`` only changes while the id is in the streaming registry.
    The id orders messages across both logs.
    """

    participant: ParticipantId
    content: str = ""
    id: int = field(default_factory=next_message_id)
    timestamp: datetime = field(default_factory=datetime.now)
    greeting: bool = False

    @property
    def display_time(self) -> str:
        return self.timestamp.strftime("%H:%M:%S")


@dataclass
class TurnState:
    """Whose turn it is, how many turns, and whether a cycle is active."""

    current: ParticipantId | None = None
    count: int = 0
    running: bool = False


@dataclass
class PanelFlags:
    """Transient per-side indicators."""

    thinking: bool = False
    typing: bool = False
    generating: bool = False

    def clear(self) -> None:
        self.thinking = False
        self.typing = False
        self.generating = False


Severity = Literal["information", "warning", "error"]


@dataclass(frozen=True)
class Notification:
    """A transient user-visible message."""

    message: str
    severity: Severity = "error"
    participant: ParticipantId | None = None
    timestamp: datetime = field(default_factory=datetime.now)


# ---------------------------------------------------------------------------
# Generation backend wire format
# ---------------------------------------------------------------------------

WireRole = Literal["user", "assistant", "system", "human", "ai"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HistoryEntry(_CamelModel):
    """One ``conversationHistory`` item as it travels over HTTP."""

    role: WireRole
    content: str

    @field_validator("role", mode="before")
    @classmethod
    def _lowercase_role(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @classmethod
    def from_chat_message(cls, message: ChatMessage) -> "HistoryEntry":
        return cls(role=message.role.value, content=message.content)


class GenerationRequest(_CamelModel):
    """Body of ``POST /llm/generate`` and ``POST /llm/stream``."""

    model: str
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    system_prompt: str = ""
    conversation_history: list[HistoryEntry] = Field(default_factory=list)

    @classmethod
    def for_turn(
        cls,
        config: ParticipantConfig,
        history: list[ChatMessage],
    ) -> "GenerationRequest":
        return cls(
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            system_prompt=config.system_prompt,
            conversation_history=[HistoryEntry.from_chat_message(m) for m in history],
        )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class GenerationResult(BaseModel):
    """Result of a blocking generation; never an exception."""

    content: str = ""
    success: bool
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> "GenerationResult":
        return cls(content=f"Error: {error}", success=False, error=error)


class StreamEvent(BaseModel):
    """One ``data:`` frame of the event stream."""

    content: str | None = None
    error: str | None = None
    done: bool = False

    def to_sse(self) -> str:
        payload = self.model_dump(exclude_none=True)
        return f"data: {json.dumps(payload)}\n\n"
