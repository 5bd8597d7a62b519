"""Main Textual TUI application.

Binds the conversation orchestrator to the split-screen surface: user
input goes through the surface bindings, and every orchestrator change
re-renders the panels.
"""

import asyncio
from typing import Any

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Button, Footer, Header

from ..conversation import (
    ControlBindings,
    ConversationOrchestrator,
    Notification,
    PanelBindings,
    ParticipantConfig,
    ParticipantId,
    Timing,
    TransportAdapter,
    TurnPolicy,
    build_controls_view,
    build_panel_view,
    default_configs,
)
from .config import ERROR_NOTIFY_TIMEOUT, NOTIFY_TIMEOUT, LogLevel
from .screens import TopicChoice, TopicScreen
from .styles import APP_CSS
from .themes import DUET_DAY, DUET_NIGHT, THEMES
from .widgets import ChatPanel, DebugPanel, GlobalControls


class DuetApp(App):
    """Split-screen TUI for a two-model conversation."""

    CSS = APP_CSS
    TITLE = "Duet"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+s", "toggle_running", "Start/Pause"),
        Binding("ctrl+n", "next_turn", "Next Turn"),
        Binding("ctrl+r", "reset", "Reset"),
        Binding("ctrl+d", "toggle_debug", "Debug"),
        Binding("ctrl+t", "toggle_theme", "Theme"),
    ]

    def __init__(
        self,
        transport: TransportAdapter,
        topic: str | None = None,
        starting: ParticipantId = ParticipantId.ONE,
        policy: TurnPolicy = TurnPolicy.EXCLUSIVE,
        timing: Timing | None = None,
        configs: dict[ParticipantId, ParticipantConfig] | None = None,
        seed_greetings: bool = False,
        log_level: str | None = None,
        ask_topic: bool = True,
    ) -> None:
        super().__init__()
        self._transport = transport
        self._topic = topic
        self._starting = starting
        self._policy = policy
        self._timing = timing
        self._configs = configs
        self._seed_greetings = seed_greetings
        self._log_level = log_level
        self._ask_topic = ask_topic and topic is None
        self._conversation: ConversationOrchestrator | None = None
        self._controls: ControlBindings | None = None
        self._panel_bindings: dict[ParticipantId, PanelBindings] = {}

    @property
    def conversation(self) -> ConversationOrchestrator | None:
        return self._conversation

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield GlobalControls(id="controls")
        configs = self._configs or default_configs(self._topic)
        with Horizontal(id="panels"):
            for participant in ParticipantId:
                yield ChatPanel(participant, configs[participant])
        yield DebugPanel(id="debug-panel")
        yield Footer()

    def on_mount(self) -> None:
        for theme in THEMES:
            self.register_theme(theme)
        self.theme = DUET_NIGHT.name

        debug_panel = self.query_one("#debug-panel", DebugPanel)
        if self._log_level is not None:
            debug_panel.log_level = LogLevel.from_string(self._log_level)
            debug_panel.show()
            debug_panel.info("TUI", f"Log panel enabled with level: {self._log_level.upper()}")
        self._transport.set_debug_callback(debug_panel.callback)

        if self._ask_topic:
            self.push_screen(TopicScreen(self._starting), callback=self._on_topic_chosen)
        else:
            self._attach(self._topic, self._starting)

    def _on_topic_chosen(self, choice: TopicChoice | None) -> None:
        if choice is None:
            self._attach(None, self._starting)
        else:
            self._attach(choice.topic, choice.starting)

    def _attach(self, topic: str | None, starting: ParticipantId) -> None:
        """Create the conversation and bind the panels to it."""
        conversation = ConversationOrchestrator(
            self._transport,
            topic=topic,
            starting=starting,
            configs=self._configs,
            policy=self._policy,
            timing=self._timing,
            seed_greetings=self._seed_greetings,
        )
        debug_panel = self.query_one("#debug-panel", DebugPanel)
        conversation.set_debug_callback(debug_panel.callback)
        conversation.set_change_callback(self._refresh_views)
        conversation.set_notify_callback(self._show_notification)

        self._conversation = conversation
        self._controls = ControlBindings(conversation)
        for panel in self.query(ChatPanel):
            bindings = PanelBindings(conversation, panel.participant)
            self._panel_bindings[panel.participant] = bindings
            panel.load_config(conversation.config(panel.participant))
            panel.attach(bindings)

        self.query_one(GlobalControls).show_topic(conversation.topic)
        self.sub_title = f"{starting.title} opens | {self._policy.value} turns | {self._transport.api_url}"
        debug_panel.info("TUI", f"Conversation ready (topic: {conversation.topic or 'none'})")
        self._refresh_views()

        if conversation.topic:
            self._autostart()

    def _refresh_views(self) -> None:
        conversation = self._conversation
        if conversation is None:
            return
        for panel in self.query(ChatPanel):
            panel.render_view(build_panel_view(conversation, panel.participant))
        self.query_one(GlobalControls).render_view(build_controls_view(conversation))

    def _show_notification(self, notification: Notification) -> None:
        timeout = ERROR_NOTIFY_TIMEOUT if notification.severity == "error" else NOTIFY_TIMEOUT
        self.notify(
            notification.message,
            title=notification.participant.title if notification.participant else "",
            severity=notification.severity,
            timeout=timeout,
            markup=False,
        )

    @work(group="turns")
    async def _autostart(self) -> None:
        if self._conversation is not None:
            await self._conversation.autostart()

    @work(group="turns")
    async def _run_turn(self, participant: ParticipantId) -> None:
        bindings = self._panel_bindings.get(participant)
        if bindings is not None:
            await bindings.on_send_message()

    def on_chat_panel_send_requested(self, event: ChatPanel.SendRequested) -> None:
        self._run_turn(event.participant)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "start-pause-btn":
            self.action_toggle_running()
        elif event.button.id == "reset-btn":
            self.action_reset()

    def action_toggle_running(self) -> None:
        """Start or pause the turn cycle."""
        if self._conversation is None or self._controls is None:
            return
        if self._conversation.turn.running:
            self._controls.on_pause()
        else:
            self._controls.on_start()

    def action_next_turn(self) -> None:
        """Ask the side whose turn it is (or the opening side) to respond."""
        if self._conversation is None:
            return
        participant = self._conversation.turn.current or self._conversation.starting
        self._run_turn(participant)

    def action_reset(self) -> None:
        if self._controls is None:
            return
        self._controls.on_reset()
        self.notify("Conversation reset", timeout=NOTIFY_TIMEOUT)

    def action_toggle_debug(self) -> None:
        """Toggle the log panel visibility."""
        debug_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = debug_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)

    def action_toggle_theme(self) -> None:
        self.theme = DUET_DAY.name if self.theme == DUET_NIGHT.name else DUET_NIGHT.name


async def run_duet_tui(transport: TransportAdapter, **options: Any) -> None:
    """Run the TUI and close the transport afterwards.

    Args:
        transport: Transport to the generation backend
        **options: DuetApp keyword arguments (topic, starting, policy, ...)
    """
    app = DuetApp(transport, **options)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        await transport.close()
