"""
Duet: a split-screen dialogue between two independently configured language models.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .conversation import (
    ConversationOrchestrator,
    ParticipantConfig,
    ParticipantId,
    TransportAdapter,
    TurnPolicy,
)
from .errors import (
    ConfigurationError,
    DuetError,
    EmptyResultError,
    TransportError,
    TurnRejectedError,
)

__all__ = [
    "ConversationOrchestrator",
    "ParticipantConfig",
    "ParticipantId",
    "TransportAdapter",
    "TurnPolicy",
    "ConfigurationError",
    "DuetError",
    "EmptyResultError",
    "TransportError",
    "TurnRejectedError",
]
