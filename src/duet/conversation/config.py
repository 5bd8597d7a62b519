"""Conversation configuration constants.

Centralizes the timing, bounds and defaults of the turn engine.
"""

from dataclasses import dataclass
from enum import Enum

# Pre-response latency shown as "thinking" (seconds)
THINKING_DELAY = 2.0
# Delay before the automatic first turn fires (seconds)
SETTLE_DELAY = 0.5
# Delay between revealed characters (seconds)
REVEAL_DELAY = 0.015

# Most recent entries per participant fed to the model
HISTORY_WINDOW = 20

# Participant configuration domains
TEMPERATURE_MIN = 0.0
TEMPERATURE_MAX = 2.0
TEMPERATURE_STEP = 0.1
MAX_TOKENS_MIN = 100
MAX_TOKENS_MAX = 4000
MAX_TOKENS_STEP = 100

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000
DEFAULT_MODELS = ("gpt-4", "claude-3-opus")

BASE_SYSTEM_PROMPTS = (
    "You are a helpful AI assistant engaging in a collaborative conversation.",
    "You are a thoughtful AI assistant participating in an intellectual exchange.",
)

EMPTY_RESPONSE_MESSAGE = "Received empty response"


class TurnPolicy(str, Enum):
    """How the orchestrator treats overlapping turn requests.

    EXCLUSIVE holds one permit for the whole conversation: while either
    side generates, any further request is rejected.
    LENIENT only rejects a side that is already generating, so both sides
    may generate at once; only the surface keeps the inactive side from
    sending.
    """

    EXCLUSIVE = "exclusive"
    LENIENT = "lenient"


@dataclass(frozen=True)
class Timing:
    """Delays used by the orchestrator and the paced emitter."""

    thinking_delay: float = THINKING_DELAY
    settle_delay: float = SETTLE_DELAY
    reveal_delay: float = REVEAL_DELAY

    @classmethod
    def instant(cls) -> "Timing":
        """No delays at all; for tests and scripted runs."""
        return cls(thinking_delay=0.0, settle_delay=0.0, reveal_delay=0.0)
