"""Textual TUI for duet.

Split-screen view of the two participants with global turn controls.
"""

from .app import DuetApp, run_duet_tui
from .config import LogLevel
from .screens import TopicChoice, TopicScreen
from .widgets import ChatPanel, DebugPanel, GlobalControls, MessageList

__all__ = [
    "DuetApp",
    "run_duet_tui",
    "LogLevel",
    "TopicChoice",
    "TopicScreen",
    "ChatPanel",
    "DebugPanel",
    "GlobalControls",
    "MessageList",
]
