"""Prompt history construction.

Turns the two per-participant logs into the role-tagged history one side
sends to its model. Each side sees its peer's messages as USER turns and
its own as ASSISTANT turns.
"""

from collections.abc import Sequence

from ..llm.models import ChatMessage, Role
from .config import HISTORY_WINDOW
from .models import Message, ParticipantId


def _recent(log: Sequence[Message], window: int) -> list[Message]:
    entries = list(log)
    if entries and entries[0].greeting:
        entries = entries[1:]
    if window <= 0:
        return []
    return entries[-window:]


def _has_text(message: Message) -> bool:
    return bool(message.content.strip())


def format_history(
    log_one: Sequence[Message],
    log_two: Sequence[Message],
    responder: ParticipantId,
    window: int = HISTORY_WINDOW,
) -> list[ChatMessage]:
    """Build the prompt history for ``responder``'s next turn.

    Entries are paired by index (peer first, then own), trailing ASSISTANT
    entries are dropped so the model answers a USER turn, and the peer's
    latest non-empty message is put last. Returns an empty list when no
    USER entry survives, meaning the conversation has not really started
    yet.
    """
    own_log, peer_log = (log_one, log_two) if responder is ParticipantId.ONE else (log_two, log_one)
    own = _recent(own_log, window)
    peer = _recent(peer_log, window)

    # (role, source message) pairs so the final append can be deduplicated
    entries: list[tuple[Role, Message]] = []
    for i in range(max(len(own), len(peer))):
        if i < len(peer) and _has_text(peer[i]):
            entries.append((Role.USER, peer[i]))
        if i < len(own) and _has_text(own[i]):
            entries.append((Role.ASSISTANT, own[i]))

    while entries and entries[-1][0] is Role.ASSISTANT:
        entries.pop()
    latest = next((m for m in reversed(peer) if _has_text(m)), None)
    if latest is not None and (not entries or entries[-1][1] is not latest):
        entries.append((Role.USER, latest))

    history = [ChatMessage(role=role, content=msg.content) for role, msg in entries]
    if not any(m.role is Role.USER for m in history):
        return []
    return history


def topic_seed(topic: str) -> ChatMessage:
    """Opening USER entry used when there is no history yet."""
    return ChatMessage(
        role=Role.USER,
        content=f'I\'d like to discuss: "{topic}". Let\'s begin our conversation on this topic.',
    )


def greeting_text(participant: ParticipantId, topic: str | None, starter: bool) -> str:
    """Text of the synthetic first message a fresh log may start with."""
    if starter and topic:
        return f'I\'d like to discuss: "{topic}". Let\'s begin our conversation on this topic.'
    about = f' about "{topic}"' if topic else ""
    return f"Hello! I'm LLM {participant.number}. Ready to engage in our conversation{about}."


def system_prompt_for(topic: str | None, base: str) -> str:
    """Topic-aware system instruction for a side."""
    if topic:
        return f'{base} The conversation topic is: "{topic}". Engage thoughtfully on this subject.'
    return base
