"""Conversation engine: turn orchestration, prompt history and transport.

The orchestrator owns all conversation state; the transport hides the
generation backend; the history formatter hides how two logs become one
prompt. Surfaces bind through ``surface``.
"""

from .config import Timing, TurnPolicy
from .history import format_history, system_prompt_for, topic_seed
from .models import (
    GenerationRequest,
    GenerationResult,
    HistoryEntry,
    Message,
    Notification,
    PanelFlags,
    ParticipantConfig,
    ParticipantId,
    StreamEvent,
    TurnState,
)
from .orchestrator import ConversationOrchestrator, default_configs
from .pacing import PacedEmitter
from .surface import (
    ControlBindings,
    ControlsView,
    PanelBindings,
    PanelView,
    build_controls_view,
    build_panel_view,
)
from .transport import TransportAdapter, parse_sse_line

__all__ = [
    "Timing",
    "TurnPolicy",
    "format_history",
    "system_prompt_for",
    "topic_seed",
    "GenerationRequest",
    "GenerationResult",
    "HistoryEntry",
    "Message",
    "Notification",
    "PanelFlags",
    "ParticipantConfig",
    "ParticipantId",
    "StreamEvent",
    "TurnState",
    "ConversationOrchestrator",
    "default_configs",
    "PacedEmitter",
    "ControlBindings",
    "ControlsView",
    "PanelBindings",
    "PanelView",
    "build_controls_view",
    "build_panel_view",
    "TransportAdapter",
    "parse_sse_line",
]
