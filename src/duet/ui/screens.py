"""Modal screens for the TUI.

This module hides how the conversation topic and the opening side are
asked for when they were not given on the command line.
"""

from dataclasses import dataclass

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, RadioButton, RadioSet, Static

from ..conversation import ParticipantId


@dataclass(frozen=True)
class TopicChoice:
    topic: str
    starting: ParticipantId


class TopicScreen(ModalScreen[TopicChoice | None]):
    """Landing dialog: conversation topic plus which side opens.

    Dismisses with a TopicChoice, or None when skipped (no topic, no
    automatic first turn).
    """

    CSS = """
    TopicScreen {
        align: center middle;
        background: $background 70%;
    }

    #topic-dialog {
        width: 70;
        height: auto;
        border: tall $accent;
        background: $surface;
        padding: 1 2;
    }

    #topic-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        color: $accent;
        padding: 0 0 1 0;
        border-bottom: solid $border;
        margin-bottom: 1;
    }

    #topic-input {
        margin-bottom: 1;
    }

    #starting-set {
        width: 100%;
        layout: horizontal;
        margin-bottom: 1;
    }

    #topic-buttons {
        width: 100%;
        height: 3;
        align: center middle;
    }

    #topic-buttons Button {
        margin: 0 1;
        min-width: 12;
    }
    """

    BINDINGS = [
        Binding("escape", "skip", "Skip", show=False),
    ]

    def __init__(self, starting: ParticipantId = ParticipantId.ONE) -> None:
        super().__init__()
        self._starting = starting

    def compose(self) -> ComposeResult:
        with Vertical(id="topic-dialog"):
            yield Static("What should the two models discuss?", id="topic-title")
            yield Input(placeholder="e.g. the future of AI", id="topic-input")
            with RadioSet(id="starting-set"):
                for participant in ParticipantId:
                    yield RadioButton(
                        f"{participant.title} opens",
                        value=participant is self._starting,
                        id=f"starts-{participant.value}",
                    )
            with Horizontal(id="topic-buttons"):
                yield Button("Begin", id="btn-begin", variant="success")
                yield Button("Skip", id="btn-skip", variant="default")

    def on_mount(self) -> None:
        self.query_one("#topic-input", Input).focus()

    def _selected_starting(self) -> ParticipantId:
        pressed = self.query_one("#starting-set", RadioSet).pressed_button
        if pressed is None or pressed.id is None:
            return self._starting
        return ParticipantId.parse(pressed.id.removeprefix("starts-"))

    def _begin(self) -> None:
        topic = self.query_one("#topic-input", Input).value.strip()
        if not topic:
            self.notify("Enter a topic, or press Skip", severity="warning", timeout=3)
            return
        self.dismiss(TopicChoice(topic=topic, starting=self._selected_starting()))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._begin()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-begin":
            self._begin()
        elif event.button.id == "btn-skip":
            self.dismiss(None)

    def action_skip(self) -> None:
        self.dismiss(None)
