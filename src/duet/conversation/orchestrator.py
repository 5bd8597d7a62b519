"""Turn/stream orchestration for a two-participant conversation.

This module hides the conversation state machine:
- per-side configuration, message logs and transient flags,
- the turn pointer, turn counter and running flag,
- the streaming registry that keeps a peer's draft out of the other panel,
- the one-turn-at-a-time permit,
- the generation epoch that turns late callbacks into no-ops after reset.

Everything runs on one asyncio loop. State is only touched between await
points, so the order placeholder -> content -> finalize/discard holds
without locks.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from ..errors import TurnRejectedError
from .config import (
    BASE_SYSTEM_PROMPTS,
    DEFAULT_MODELS,
    EMPTY_RESPONSE_MESSAGE,
    HISTORY_WINDOW,
    Timing,
    TurnPolicy,
)
from .history import format_history, greeting_text, system_prompt_for, topic_seed
from .models import (
    GenerationRequest,
    Message,
    Notification,
    PanelFlags,
    ParticipantConfig,
    ParticipantId,
    Severity,
    TurnState,
)


class StreamingTransport(Protocol):
    """What the orchestrator needs from a transport."""

    async def stream(
        self,
        request: GenerationRequest,
        on_fragment: Callable[[str], None],
        on_complete: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None: ...


@dataclass
class _TurnOutcome:
    completed: bool = False
    error: str | None = None

    def complete(self) -> None:
        self.completed = True

    def fail(self, message: str) -> None:
        self.error = message or "Failed to generate response"


def default_configs(topic: str | None = None) -> dict[ParticipantId, ParticipantConfig]:
    """Starting configuration for both sides, with topic-aware system prompts."""
    return {
        participant: ParticipantConfig(
            model=DEFAULT_MODELS[index],
            system_prompt=system_prompt_for(topic, BASE_SYSTEM_PROMPTS[index]),
        )
        for index, participant in enumerate(ParticipantId)
    }


class ConversationOrchestrator:
    """State machine driving a turn-based dialogue between two models.

    Example:
        async with TransportAdapter(api_url) as transport:
            conversation = ConversationOrchestrator(transport, topic="future of AI")
            await conversation.autostart()          # participant 1 opens
            await conversation.request_turn(ParticipantId.TWO)
    """

    def __init__(
        self,
        transport: StreamingTransport,
        topic: str | None = None,
        starting: ParticipantId = ParticipantId.ONE,
        configs: Mapping[ParticipantId, ParticipantConfig] | None = None,
        policy: TurnPolicy = TurnPolicy.EXCLUSIVE,
        timing: Timing | None = None,
        seed_greetings: bool = False,
        history_window: int = HISTORY_WINDOW,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize a conversation.

        Args:
            transport: Streaming generation transport
            topic: Conversation topic; seeds system prompts and the first turn
            starting: Side that opens the conversation
            configs: Per-side configuration (defaults derived from the topic)
            policy: Whether overlapping turns are rejected (EXCLUSIVE) or
                only same-side overlaps are (LENIENT)
            timing: Thinking and settle delays
            seed_greetings: Start each log with a synthetic greeting message
            history_window: Most recent entries per side sent to the model
            sleep: Awaitable sleep, injectable for tests
        """
        self._transport = transport
        self._topic = topic.strip() if topic and topic.strip() else None
        self._starting = ParticipantId.parse(starting)
        base_configs = dict(configs) if configs is not None else default_configs(self._topic)
        self._configs = {p: base_configs[p].model_copy() for p in ParticipantId}
        self._policy = TurnPolicy(policy)
        self._timing = timing or Timing()
        self._seed_greetings = seed_greetings
        self._history_window = history_window
        self._sleep = sleep

        self._turn = TurnState()
        self._logs: dict[ParticipantId, list[Message]] = {
            p: self._fresh_log(p) for p in ParticipantId
        }
        self._flags = {p: PanelFlags() for p in ParticipantId}
        self._streaming: set[int] = set()
        self._notifications: list[Notification] = []
        self._epoch = 0
        self._autostart_latched = False

        self._change_callback: Callable[[], None] | None = None
        self._notify_callback: Callable[[Notification], None] | None = None
        self._debug_callback: Any | None = None

    # ------------------------------------------------------------------
    # Observer hooks
    # ------------------------------------------------------------------

    def set_change_callback(self, callback: Callable[[], None] | None) -> None:
        """Called after every state mutation, including each revealed character."""
        self._change_callback = callback

    def set_notify_callback(self, callback: Callable[[Notification], None] | None) -> None:
        """Called for every user-visible notification."""
        self._notify_callback = callback

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback for execution logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Turn", message)

    def _changed(self) -> None:
        if self._change_callback:
            self._change_callback()

    def notify(
        self,
        message: str,
        severity: Severity = "error",
        participant: ParticipantId | None = None,
    ) -> None:
        notification = Notification(message=message, severity=severity, participant=participant)
        self._notifications.append(notification)
        self._debug("warning" if severity != "information" else "info", message)
        if self._notify_callback:
            self._notify_callback(notification)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def topic(self) -> str | None:
        return self._topic

    @property
    def starting(self) -> ParticipantId:
        return self._starting

    @property
    def policy(self) -> TurnPolicy:
        return self._policy

    @property
    def turn(self) -> TurnState:
        return TurnState(self._turn.current, self._turn.count, self._turn.running)

    @property
    def streaming_ids(self) -> frozenset[int]:
        return frozenset(self._streaming)

    @property
    def notifications(self) -> list[Notification]:
        return list(self._notifications)

    @property
    def generating_participant(self) -> ParticipantId | None:
        for participant in ParticipantId:
            if self._flags[participant].generating:
                return participant
        return None

    def flags(self, participant: ParticipantId) -> PanelFlags:
        current = self._flags[participant]
        return PanelFlags(current.thinking, current.typing, current.generating)

    def log(self, participant: ParticipantId) -> list[Message]:
        return list(self._logs[participant])

    def config(self, participant: ParticipantId) -> ParticipantConfig:
        return self._configs[participant].model_copy()

    def panel_messages(self, participant: ParticipantId) -> list[Message]:
        """Messages visible in a side's panel, ordered by id.

        A side always sees its own draft grow; the peer's in-progress
        message stays hidden until it is complete.
        """
        visible = [
            message
            for log in self._logs.values()
            for message in log
            if message.participant is participant or message.id not in self._streaming
        ]
        return sorted(visible, key=lambda m: m.id)

    def can_request(self, participant: ParticipantId) -> bool:
        """Whether request_turn(participant) would currently be accepted."""
        try:
            self._check_permit(participant)
        except TurnRejectedError:
            return False
        return True

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_model(self, participant: ParticipantId, model: str) -> None:
        self._configs[participant].model = model
        self._changed()

    def set_temperature(self, participant: ParticipantId, temperature: float) -> None:
        self._configs[participant].temperature = temperature
        self._changed()

    def set_max_tokens(self, participant: ParticipantId, max_tokens: int) -> None:
        self._configs[participant].max_tokens = max_tokens
        self._changed()

    def set_system_prompt(self, participant: ParticipantId, system_prompt: str) -> None:
        self._configs[participant].system_prompt = system_prompt
        self._changed()

    # ------------------------------------------------------------------
    # Cycle control
    # ------------------------------------------------------------------

    def start(self, participant: ParticipantId | None = None) -> None:
        """Begin a cycle. Does not generate anything by itself."""
        self._turn.running = True
        self._turn.current = ParticipantId.parse(participant) if participant else self._starting
        self._turn.count = 1
        self._debug("info", f"cycle started, {self._turn.current.title} first")
        self._changed()

    def pause(self) -> None:
        """Stop the cycle. A generation already under way still finishes."""
        self._turn.running = False
        self._turn.current = None
        self._debug("info", "cycle paused")
        self._changed()

    def reset(self) -> None:
        """Return to the initial state. Safe at any time, even mid-generation.

        In-flight transport calls are not cancelled; bumping the epoch makes
        their remaining callbacks no-ops.
        """
        self._epoch += 1
        self._turn = TurnState()
        for participant in ParticipantId:
            self._logs[participant] = self._fresh_log(participant)
            self._flags[participant].clear()
        self._streaming.clear()
        self._notifications.clear()
        self._debug("info", f"conversation reset (epoch {self._epoch})")
        self._changed()

    async def autostart(self) -> bool:
        """Open the conversation once, after the settle delay.

        Fires at most once per orchestrator lifetime, and only when a topic
        is set and no cycle has started. Returns whether a turn was run.
        """
        if self._autostart_latched:
            return False
        self._autostart_latched = True
        if not self._topic or self._turn.running:
            return False

        epoch = self._epoch
        await self._sleep(self._timing.settle_delay)
        if epoch != self._epoch or self._turn.running:
            self._debug("debug", "autostart skipped, conversation changed during settle")
            return False

        self._debug("info", f"autostart: {self._starting.title} opens on {self._topic!r}")
        try:
            await self.request_turn(self._starting)
        except TurnRejectedError as e:
            self._debug("debug", f"autostart skipped: {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def _fresh_log(self, participant: ParticipantId) -> list[Message]:
        if not self._seed_greetings:
            return []
        text = greeting_text(participant, self._topic, participant is self._starting)
        return [Message(participant=participant, content=text, greeting=True)]

    def _check_permit(self, participant: ParticipantId) -> None:
        if self._flags[participant].generating:
            raise TurnRejectedError(
                f"{participant.title} is already generating a response.",
                holder=participant.value,
            )
        if self._policy is TurnPolicy.EXCLUSIVE:
            holder = self.generating_participant
            if holder is not None:
                raise TurnRejectedError(
                    f"{holder.title} is still generating; wait for its turn to finish.",
                    holder=holder.value,
                )

    def _settled_log(self, participant: ParticipantId) -> list[Message]:
        return [m for m in self._logs[participant] if m.id not in self._streaming]

    def _build_history_request(
        self,
        participant: ParticipantId,
        config: ParticipantConfig,
    ) -> GenerationRequest:
        history = format_history(
            self._settled_log(ParticipantId.ONE),
            self._settled_log(ParticipantId.TWO),
            participant,
            window=self._history_window,
        )
        if not history and self._topic:
            history = [topic_seed(self._topic)]
        return GenerationRequest.for_turn(config, history)

    def _release(self, participant: ParticipantId, placeholder: Message | None) -> None:
        flags = self._flags[participant]
        flags.thinking = False
        flags.generating = False
        self._flags[participant.peer].typing = False
        if placeholder is not None:
            self._streaming.discard(placeholder.id)

    def _discard(self, placeholder: Message | None) -> None:
        if placeholder is None:
            return
        log = self._logs[placeholder.participant]
        if placeholder in log:
            log.remove(placeholder)

    async def request_turn(self, participant: ParticipantId) -> bool:
        """Run one turn for ``participant``.

        Starts the cycle if none is running. Returns True when the turn
        produced text and the turn pointer advanced; False on an empty or
        failed generation (a notification is recorded) or when the
        conversation was reset while the turn was in flight.

        Raises:
            TurnRejectedError: If the turn permit is held (see TurnPolicy)
        """
        participant = ParticipantId.parse(participant)
        self._check_permit(participant)

        epoch = self._epoch
        peer = participant.peer
        flags = self._flags[participant]
        if not self._turn.running:
            self._turn.running = True
            self._turn.current = participant
            if self._turn.count == 0:
                self._turn.count = 1
        config = self._configs[participant].model_copy()

        flags.thinking = True
        flags.generating = True
        self._debug("info", f"{participant.title} thinking ({config.model})")
        self._changed()

        placeholder: Message | None = None
        outcome = _TurnOutcome()
        try:
            await self._sleep(self._timing.thinking_delay)
            if epoch != self._epoch:
                return False

            flags.thinking = False
            self._flags[peer].typing = True
            request = self._build_history_request(participant, config)

            placeholder = Message(participant=participant)
            self._logs[participant].append(placeholder)
            self._streaming.add(placeholder.id)
            self._debug(
                "debug",
                f"{participant.title} streaming with {len(request.conversation_history)} history entries",
            )
            self._changed()

            draft = placeholder

            def on_fragment(char: str) -> None:
                if epoch != self._epoch or draft.id not in self._streaming:
                    return
                draft.content += char
                self._changed()

            try:
                await self._transport.stream(request, on_fragment, outcome.complete, outcome.fail)
            except Exception as e:
                outcome.fail(str(e))
        except asyncio.CancelledError:
            if epoch == self._epoch:
                self._discard(placeholder)
            raise
        finally:
            if epoch == self._epoch:
                self._release(participant, placeholder)

        if epoch != self._epoch:
            self._debug("debug", f"dropping stale {participant.title} result")
            return False
        return self._finish(participant, placeholder, outcome)

    def _finish(
        self,
        participant: ParticipantId,
        placeholder: Message | None,
        outcome: _TurnOutcome,
    ) -> bool:
        if outcome.error is not None:
            self._discard(placeholder)
            self.notify(outcome.error, "error", participant)
            self._changed()
            return False

        if placeholder is None or not placeholder.content.strip():
            self._discard(placeholder)
            self.notify(EMPTY_RESPONSE_MESSAGE, "error", participant)
            self._changed()
            return False

        self._turn.current = participant.peer
        self._turn.count += 1
        self._debug(
            "info",
            f"{participant.title} finished ({len(placeholder.content)} chars), turn {self._turn.count}",
        )
        self._changed()
        return True
