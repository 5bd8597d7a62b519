"""Unit tests for prompt history construction."""
import string

from hypothesis import given
from hypothesis import strategies as st

from duet.conversation import ParticipantId, format_history, system_prompt_for, topic_seed
from duet.conversation.history import greeting_text
from duet.conversation.models import Message
from duet.llm import Role

ONE = ParticipantId.ONE
TWO = ParticipantId.TWO


def log(participant: ParticipantId, *contents: str) -> list[Message]:
    return [Message(participant=participant, content=c) for c in contents]


class TestFormatHistory:
    """Tests for format_history."""

    def test_peer_latest_message_is_last_user_entry(self):
        """Test that A answering B ends on B's latest message."""
        a = log(ONE, "a1", "a2", "a3")
        b = log(TWO, "b1", "b2")

        history = format_history(a, b, ONE)

        assert history[-1].role is Role.USER
        assert history[-1].content == "b2"
        assert all(m.content for m in history)

    def test_interleaves_peer_then_own(self):
        """Test that entries pair up by index, peer first."""
        a = log(ONE, "a1", "a2")
        b = log(TWO, "b1", "b2")

        history = format_history(a, b, TWO)

        assert [(m.role, m.content) for m in history] == [
            (Role.USER, "a1"),
            (Role.ASSISTANT, "b1"),
            (Role.USER, "a2"),
        ]

    def test_peer_message_not_duplicated(self):
        """Test that the peer's last message appears once."""
        a = log(ONE, "a1")
        b = log(TWO)

        history = format_history(a, b, TWO)

        assert [m.content for m in history] == ["a1"]

    def test_empty_entries_are_skipped(self):
        """Test that blank content never reaches the prompt."""
        a = log(ONE, "a1", "   ", "a3")
        b = log(TWO, "", "b2")

        history = format_history(a, b, TWO)

        assert all(m.content.strip() for m in history)
        assert history[-1].content == "a3"

    def test_no_user_entry_returns_empty(self):
        """Test that only-own history means the conversation has not started."""
        a = log(ONE, "a1", "a2")

        assert format_history(a, [], ONE) == []

    def test_both_logs_empty(self):
        """Test that empty logs give an empty history."""
        assert format_history([], [], ONE) == []

    def test_leading_greeting_is_ignored(self):
        """Test that a synthetic greeting is not sent to the model."""
        a = [Message(participant=ONE, content="Hello! I'm LLM 1.", greeting=True)]
        b = [Message(participant=TWO, content="Hello! I'm LLM 2.", greeting=True)]

        assert format_history(a, b, ONE) == []

        b.append(Message(participant=TWO, content="real"))
        history = format_history(a, b, ONE)
        assert [m.content for m in history] == ["real"]

    def test_window_limits_each_log(self):
        """Test that only the most recent entries per side are used."""
        a = log(ONE, *[f"a{i}" for i in range(30)])
        b = log(TWO, *[f"b{i}" for i in range(30)])

        history = format_history(a, b, ONE, window=3)

        assert "b26" not in [m.content for m in history]
        assert history[0].content == "b27"
        assert history[-1].content == "b29"

    def test_history_is_not_forced_to_alternate(self):
        """Test that a missing own reply leaves two USER entries in a row."""
        a = log(ONE, "a1")
        b = log(TWO, "b1", "b2")

        history = format_history(a, b, ONE)

        assert [m.role for m in history] == [Role.USER, Role.ASSISTANT, Role.USER]
        assert history[-1].content == "b2"

    def test_blank_peer_tail_still_ends_on_user(self):
        """Test that a blank latest peer entry falls back to the last one with text."""
        a = log(ONE, "a1", "a2")
        b = log(TWO, "b1", "   ")

        history = format_history(a, b, ONE)

        assert [(m.role, m.content) for m in history] == [(Role.USER, "b1")]

    def test_own_tail_trimmed_after_blank_peer_entry(self):
        """Test that own entries after a blank peer entry are dropped."""
        a = log(ONE, "a1", "", "a3")
        b = log(TWO, "b1", "b2", "")

        history = format_history(a, b, ONE)

        assert [(m.role, m.content) for m in history] == [
            (Role.USER, "b1"),
            (Role.ASSISTANT, "a1"),
            (Role.USER, "b2"),
        ]

    @given(
        st.lists(st.text(alphabet=string.ascii_letters + " ", max_size=8), max_size=12),
        st.lists(st.text(alphabet=string.ascii_letters + " ", max_size=8), min_size=1, max_size=12)
        .filter(lambda entries: any(e.strip() for e in entries)),
    )
    def test_always_ends_on_peer_latest(self, own: list[str], peer: list[str]):
        """Property test: the prompt ends on the peer's latest entry with text."""
        own_log = log(ONE, *own)
        peer_log = log(TWO, *peer)
        with_text = [p for p in peer if p.strip()]

        history = format_history(own_log, peer_log, ONE)

        assert history[-1].role is Role.USER
        assert history[-1].content == with_text[-1]
        assert [m.content for m in history if m.role is Role.USER] == with_text
        assert all(m.content.strip() for m in history)


class TestTopicText:
    """Tests for topic-derived text."""

    def test_topic_seed(self):
        """Test the opening USER entry."""
        seed = topic_seed("future of AI")

        assert seed.role is Role.USER
        assert seed.content == (
            'I\'d like to discuss: "future of AI". '
            "Let's begin our conversation on this topic."
        )

    def test_system_prompt_with_topic(self):
        """Test that the topic is appended to the base instruction."""
        prompt = system_prompt_for("tea", "You are helpful.")

        assert prompt.startswith("You are helpful. ")
        assert 'The conversation topic is: "tea".' in prompt

    def test_system_prompt_without_topic(self):
        """Test that no topic leaves the base instruction alone."""
        assert system_prompt_for(None, "Base.") == "Base."

    def test_greeting_text(self):
        """Test greeting text for starter and non-starter sides."""
        assert "discuss" in greeting_text(ONE, "tea", starter=True)
        assert greeting_text(TWO, "tea", starter=False) == (
            'Hello! I\'m LLM 2. Ready to engage in our conversation about "tea".'
        )
        assert greeting_text(TWO, None, starter=True).endswith("our conversation.")
