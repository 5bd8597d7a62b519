"""Callbacks and view snapshots a presentation surface binds to.

A surface (the Textual app, or a test) never touches orchestrator state
directly: it calls these bindings on user input and renders the views
after every change notification.
"""

from dataclasses import dataclass

from ..errors import TurnRejectedError
from .config import TurnPolicy
from .models import Message, ParticipantConfig, ParticipantId
from .orchestrator import ConversationOrchestrator


class PanelBindings:
    """Input callbacks for one side's panel."""

    def __init__(self, orchestrator: ConversationOrchestrator, participant: ParticipantId) -> None:
        self._orchestrator = orchestrator
        self.participant = ParticipantId.parse(participant)

    def on_model_change(self, model: str) -> None:
        self._orchestrator.set_model(self.participant, model)

    def on_temperature_change(self, temperature: float) -> None:
        self._orchestrator.set_temperature(self.participant, temperature)

    def on_max_tokens_change(self, max_tokens: int) -> None:
        self._orchestrator.set_max_tokens(self.participant, max_tokens)

    def on_system_prompt_change(self, system_prompt: str) -> None:
        self._orchestrator.set_system_prompt(self.participant, system_prompt)

    async def on_send_message(self) -> bool:
        """Request a turn for this side; a held permit becomes a warning."""
        try:
            return await self._orchestrator.request_turn(self.participant)
        except TurnRejectedError as e:
            self._orchestrator.notify(str(e), "warning", self.participant)
            return False


class ControlBindings:
    """Input callbacks for the global start/pause/reset controls."""

    def __init__(self, orchestrator: ConversationOrchestrator) -> None:
        self._orchestrator = orchestrator

    def on_start(self) -> None:
        self._orchestrator.start()

    def on_pause(self) -> None:
        self._orchestrator.pause()

    def on_reset(self) -> None:
        self._orchestrator.reset()


@dataclass(frozen=True)
class PanelView:
    """What one panel shows at a point in time."""

    participant: ParticipantId
    title: str
    messages: tuple[Message, ...]
    thinking: bool
    typing: bool
    generating: bool
    can_send: bool
    is_current: bool
    config: ParticipantConfig

    @property
    def status(self) -> str:
        if self.thinking:
            return "thinking..."
        if self.generating:
            return "responding..."
        if self.typing:
            return f"{self.participant.peer.title} is typing..."
        return "your turn" if self.is_current else ""


@dataclass(frozen=True)
class ControlsView:
    running: bool
    current: ParticipantId | None
    count: int
    policy: TurnPolicy

    @property
    def current_label(self) -> str:
        return self.current.title if self.current else "none"


def build_panel_view(orchestrator: ConversationOrchestrator, participant: ParticipantId) -> PanelView:
    flags = orchestrator.flags(participant)
    turn = orchestrator.turn
    return PanelView(
        participant=participant,
        title=participant.title,
        messages=tuple(orchestrator.panel_messages(participant)),
        thinking=flags.thinking,
        typing=flags.typing,
        generating=flags.generating,
        can_send=orchestrator.can_request(participant),
        is_current=turn.running and turn.current is participant,
        config=orchestrator.config(participant),
    )


def build_controls_view(orchestrator: ConversationOrchestrator) -> ControlsView:
    turn = orchestrator.turn
    return ControlsView(
        running=turn.running,
        current=turn.current,
        count=turn.count,
        policy=orchestrator.policy,
    )
