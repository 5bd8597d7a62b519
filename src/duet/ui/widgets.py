"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Incremental message rendering (one widget per message id)
- Panel settings inputs and their validation
- Turn/status badges
- Log rendering and level filtering
"""

from datetime import datetime

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message as TextualMessage
from textual.widgets import Button, Input, RichLog, Select, Static, TextArea

from ..conversation import (
    ControlsView,
    Message,
    PanelBindings,
    PanelView,
    ParticipantConfig,
    ParticipantId,
)
from .config import COMPONENT_COLORS, LOG_TIMESTAMP_FORMAT, MODEL_CHOICES, LogLevel


class MessageBubble(Vertical):
    """One message in a panel; its body is updated in place while streaming."""

    def __init__(self, message: Message, own: bool) -> None:
        classes = "own" if own else "peer"
        if message.greeting:
            classes += " greeting"
        super().__init__(classes=classes)
        self._message = message
        self._rendered = message.content
        self._body = Static(Text(message.content), classes="bubble-body")

    def compose(self) -> ComposeResult:
        header = f"{self._message.participant.title} · {self._message.display_time}"
        yield Static(header, classes="bubble-header")
        yield self._body

    def sync(self) -> None:
        """Re-render the body if the content grew since the last render."""
        if self._message.content != self._rendered:
            self._rendered = self._message.content
            self._body.update(Text(self._rendered))


class MessageList(VerticalScroll):
    """Scrollable message list keyed by message id.

    Syncing mounts new bubbles, removes vanished ones (discarded drafts,
    reset) and updates the rest in place, so a revealed character only
    touches one widget.
    """

    def __init__(self, participant: ParticipantId, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._participant = participant
        self._bubbles: dict[int, MessageBubble] = {}

    @property
    def message_ids(self) -> list[int]:
        return list(self._bubbles)

    def sync(self, messages: tuple[Message, ...]) -> None:
        wanted = {m.id for m in messages}
        for message_id in [i for i in self._bubbles if i not in wanted]:
            self._bubbles.pop(message_id).remove()

        for message in messages:
            bubble = self._bubbles.get(message.id)
            if bubble is None:
                bubble = MessageBubble(message, own=message.participant is self._participant)
                self._bubbles[message.id] = bubble
                self.mount(bubble)
            else:
                bubble.sync()
        if messages:
            self.scroll_end(animate=False)


class TypingIndicator(Static):
    """Status line under the message list."""

    def show_status(self, status: str) -> None:
        self.update(status)
        self.display = bool(status)


class ChatPanel(Vertical):
    """One participant's side: messages, settings and the send button."""

    class SendRequested(TextualMessage):
        """Posted when the user asks this side to take a turn."""

        def __init__(self, participant: ParticipantId) -> None:
            super().__init__()
            self.participant = participant

    def __init__(self, participant: ParticipantId, config: ParticipantConfig, **kwargs) -> None:
        super().__init__(id=f"panel-{participant.value}", classes=participant.value, **kwargs)
        self.participant = participant
        self._config = config
        self._bindings: PanelBindings | None = None
        self.border_title = participant.title

    def _wid(self, name: str) -> str:
        return f"{name}-{self.participant.value}"

    def compose(self) -> ComposeResult:
        yield MessageList(self.participant, id=self._wid("messages"))
        yield TypingIndicator("", id=self._wid("typing"))
        with Horizontal(classes="settings-row"):
            choices = list(MODEL_CHOICES)
            if self._config.model not in choices:
                choices.insert(0, self._config.model)
            yield Select(
                [(model, model) for model in choices],
                value=self._config.model,
                allow_blank=False,
                id=self._wid("model"),
            ).with_tooltip("Model")
            yield Input(
                value=f"{self._config.temperature:g}",
                type="number",
                id=self._wid("temperature"),
            ).with_tooltip("Temperature (0-2)")
            yield Input(
                value=str(self._config.max_tokens),
                type="integer",
                id=self._wid("max-tokens"),
            ).with_tooltip("Max tokens (100-4000)")
        system = TextArea(self._config.system_prompt, id=self._wid("system"), classes="system-prompt")
        system.show_line_numbers = False
        yield system
        yield Button("Send", id=self._wid("send"), variant="success", classes="send-btn")

    def attach(self, bindings: PanelBindings) -> None:
        """Route this panel's inputs to a conversation."""
        self._bindings = bindings

    def load_config(self, config: ParticipantConfig) -> None:
        """Show a configuration in the settings inputs."""
        self._config = config
        select = self.query_one(f"#{self._wid('model')}", Select)
        choices = list(MODEL_CHOICES)
        if config.model not in choices:
            choices.insert(0, config.model)
            select.set_options([(model, model) for model in choices])
        select.value = config.model
        self.query_one(f"#{self._wid('temperature')}", Input).value = f"{config.temperature:g}"
        self.query_one(f"#{self._wid('max-tokens')}", Input).value = str(config.max_tokens)
        self.query_one(f"#{self._wid('system')}", TextArea).text = config.system_prompt

    def on_select_changed(self, event: Select.Changed) -> None:
        if self._bindings is None or event.select.id != self._wid("model"):
            return
        if isinstance(event.value, str):
            self._bindings.on_model_change(event.value)

    def on_input_changed(self, event: Input.Changed) -> None:
        if self._bindings is None:
            return
        try:
            if event.input.id == self._wid("temperature"):
                self._bindings.on_temperature_change(float(event.value))
            elif event.input.id == self._wid("max-tokens"):
                self._bindings.on_max_tokens_change(int(event.value))
            else:
                return
        except ValueError:
            # Out of range or half-typed; keep the last valid value
            event.input.add_class("-invalid")
            return
        event.input.remove_class("-invalid")

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self._bindings is not None and event.text_area.id == self._wid("system"):
            self._bindings.on_system_prompt_change(event.text_area.text)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == self._wid("send"):
            event.stop()
            self.post_message(self.SendRequested(self.participant))

    def render_view(self, view: PanelView) -> None:
        self.query_one(MessageList).sync(view.messages)
        self.query_one(TypingIndicator).show_status(view.status)
        self.query_one(f"#{self._wid('send')}", Button).disabled = not view.can_send
        self.set_class(view.is_current, "-current")
        self.set_class(view.generating, "-generating")
        self.border_subtitle = f"{view.config.model} · {len(view.messages)} messages"


class GlobalControls(Horizontal):
    """Turn counter, current-turn badge and the start/pause/reset buttons."""

    def compose(self) -> ComposeResult:
        yield Static("Turn 0", id="turn-badge", classes="badge")
        yield Static("Current: none", id="current-badge", classes="badge")
        yield Static("", id="topic-badge", classes="badge")
        yield Static("", id="controls-spacer")
        yield Button("Start", id="start-pause-btn", variant="primary")
        yield Button("Reset", id="reset-btn", variant="error")

    def show_topic(self, topic: str | None) -> None:
        badge = self.query_one("#topic-badge", Static)
        badge.update(Text(f"Topic: {topic}") if topic else "")
        badge.display = bool(topic)

    def render_view(self, view: ControlsView) -> None:
        self.query_one("#turn-badge", Static).update(f"Turn {view.count}")
        current = self.query_one("#current-badge", Static)
        current.update(f"Current: {view.current_label}")
        current.set_class(view.current is not None, "-active")
        button = self.query_one("#start-pause-btn", Button)
        button.label = "Pause" if view.running else "Start"
        button.variant = "warning" if view.running else "primary"


class DebugPanel(RichLog):
    """Log panel for real-time tracing with level filtering.

    Receives every component's debug callback. Hidden by default, shown
    with --log-level or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Hidden"

    def __init__(self, *args, log_level: int = LogLevel.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=True,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {LogLevel.name(self._log_level)}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        self.display = False

    def log_entry(self, level: int, component: str, message: str) -> None:
        """Add an entry if it meets the current level threshold."""
        if level < self._log_level:
            return
        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        comp_color = COMPONENT_COLORS.get(component, "white")
        line = Text.assemble(
            (f"{timestamp} ", "dim"),
            (f"{LogLevel.name(level):<5} ", LogLevel.color(level)),
            (f"[{component}] ", comp_color),
            message,
        )
        self.write(line)

    def callback(self, level: str, component: str, message: str) -> None:
        """Debug callback signature shared by all components."""
        self.log_entry(LogLevel.from_string(level), component, message)

    def info(self, component: str, message: str) -> None:
        self.log_entry(LogLevel.INFO, component, message)

    def warning(self, component: str, message: str) -> None:
        self.log_entry(LogLevel.WARNING, component, message)

    def show(self) -> None:
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        self.display = False
        self._update_subtitle()

    def toggle(self) -> bool:
        """Toggle visibility. Returns the new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True
