"""Unit tests for data models and the error hierarchy."""
import pytest
from pydantic import ValidationError

from duet.conversation import (
    GenerationRequest,
    GenerationResult,
    HistoryEntry,
    Message,
    PanelFlags,
    ParticipantConfig,
    ParticipantId,
    StreamEvent,
)
from duet.conversation.models import next_message_id
from duet.errors import (
    ConfigurationError,
    DuetError,
    EmptyResultError,
    InvalidRequestError,
    TransportError,
    TurnRejectedError,
)
from duet.llm import ChatMessage, Role


class TestRole:
    """Tests for role normalization."""

    @pytest.mark.parametrize("spelling,role", [
        ("user", Role.USER),
        ("Human", Role.USER),
        (" USER ", Role.USER),
        ("assistant", Role.ASSISTANT),
        ("AI", Role.ASSISTANT),
    ])
    def test_aliases(self, spelling: str, role: Role):
        """Test that external spellings collapse to the closed set."""
        assert Role.parse(spelling) is role

    def test_unknown_role(self):
        """Test that anything else is rejected."""
        with pytest.raises(ValueError, match="Unknown conversational role"):
            Role.parse("system")

    def test_chat_message_normalizes(self):
        """Test that ChatMessage accepts external spellings."""
        message = ChatMessage(role="human", content="Hi")

        assert message.role is Role.USER


class TestParticipantId:
    """Tests for ParticipantId."""

    @pytest.mark.parametrize("value", ["llm1", "LLM1", "1", 1, "one"])
    def test_parse_one(self, value):
        assert ParticipantId.parse(value) is ParticipantId.ONE

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            ParticipantId.parse("llm3")

    def test_peer_and_title(self):
        """Test the derived properties."""
        assert ParticipantId.ONE.peer is ParticipantId.TWO
        assert ParticipantId.TWO.peer is ParticipantId.ONE
        assert ParticipantId.TWO.title == "LLM 2"


class TestParticipantConfig:
    """Tests for ParticipantConfig validation."""

    def test_defaults(self):
        """Test the default settings."""
        config = ParticipantConfig(model="gpt-4")

        assert config.temperature == 0.7
        assert config.max_tokens == 2000
        assert config.system_prompt == ""

    @pytest.mark.parametrize("field,value", [
        ("temperature", -0.1),
        ("temperature", 2.1),
        ("max_tokens", 99),
        ("max_tokens", 4001),
        ("model", ""),
    ])
    def test_out_of_range_values(self, field: str, value):
        """Test that construction rejects values outside the domain."""
        with pytest.raises(ValidationError):
            ParticipantConfig(**{"model": "gpt-4", field: value})

    def test_assignment_is_validated(self):
        """Test that later changes are validated too."""
        config = ParticipantConfig(model="gpt-4")

        with pytest.raises(ValidationError):
            config.temperature = 3.0
        config.temperature = 2.0
        assert config.temperature == 2.0


class TestWireFormat:
    """Tests for the backend request and event models."""

    def test_request_uses_camel_case(self):
        """Test the JSON body sent to the backend."""
        request = GenerationRequest.for_turn(
            ParticipantConfig(model="gpt-4", temperature=0.5, max_tokens=300, system_prompt="S"),
            [ChatMessage(role=Role.USER, content="Hi")],
        )

        assert request.to_wire() == {
            "model": "gpt-4",
            "temperature": 0.5,
            "maxTokens": 300,
            "systemPrompt": "S",
            "conversationHistory": [{"role": "user", "content": "Hi"}],
        }

    def test_request_parses_camel_case(self):
        """Test that the backend can read what the client sends."""
        request = GenerationRequest.model_validate({
            "model": "gpt-4",
            "maxTokens": 150,
            "conversationHistory": [{"role": "ASSISTANT", "content": "x"}],
        })

        assert request.max_tokens == 150
        assert request.conversation_history == [HistoryEntry(role="assistant", content="x")]

    def test_stream_event_sse(self):
        """Test the event-stream framing."""
        assert StreamEvent(content="Hi").to_sse() == 'data: {"content": "Hi", "done": false}\n\n'
        assert StreamEvent(content="", done=True).to_sse() == 'data: {"content": "", "done": true}\n\n'
        assert StreamEvent(error="boom", done=True).to_sse() == 'data: {"error": "boom", "done": true}\n\n'

    def test_failure_result(self):
        """Test the shape of a failed result."""
        result = GenerationResult.failure("boom")

        assert result.success is False
        assert result.error == "boom"
        assert result.content == "Error: boom"


class TestMessages:
    """Tests for messages and flags."""

    def test_ids_strictly_increase(self):
        """Test that ids order messages even when created in a burst."""
        ids = [next_message_id() for _ in range(1000)]

        assert ids == sorted(set(ids))

    def test_message_defaults(self):
        """Test a fresh placeholder."""
        first = Message(participant=ParticipantId.ONE)
        second = Message(participant=ParticipantId.TWO)

        assert first.content == ""
        assert not first.greeting
        assert first.id < second.id
        assert len(first.display_time) == 8

    def test_panel_flags_clear(self):
        flags = PanelFlags(thinking=True, typing=True, generating=True)

        flags.clear()

        assert flags == PanelFlags()


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_all_errors_are_duet_errors(self):
        for error in (
            ConfigurationError("x"),
            TransportError("x"),
            EmptyResultError(),
            TurnRejectedError("x"),
            InvalidRequestError("x"),
        ):
            assert isinstance(error, DuetError)

    def test_configuration_error_remediation(self):
        """Test that the remediation is appended to the message."""
        error = ConfigurationError("Key missing.", remediation="Set FOO.")

        assert str(error) == "Key missing. Set FOO."
        assert str(ConfigurationError("Key missing.")) == "Key missing."

    def test_error_attributes(self):
        """Test status and holder details."""
        assert TransportError("x", status_code=502).status_code == 502
        assert TurnRejectedError("x", holder="llm2").holder == "llm2"
        assert str(EmptyResultError()) == "Received empty response"
