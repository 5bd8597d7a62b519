"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic:
controls bar on top, two participant panels side by side, the debug log
below them.
"""

APP_CSS = """
Screen {
    layout: vertical;
    background: $background;
}

/* ============================================
   Global controls bar
   ============================================ */
#controls {
    height: 3;
    padding: 0 1;
    background: $surface;
    border-bottom: solid $border;

    .badge {
        width: auto;
        height: 1;
        margin: 1 1 0 0;
        padding: 0 1;
        background: $panel;
        color: $text-muted;
    }

    #turn-badge {
        color: $accent;
        text-style: bold;
    }

    #current-badge.-active {
        background: $accent 25%;
        color: $accent;
    }

    #controls-spacer {
        width: 1fr;
    }

    Button {
        min-width: 10;
        margin-left: 1;
    }
}

/* ============================================
   Participant panels
   ============================================ */
#panels {
    height: 1fr;
}

ChatPanel {
    width: 1fr;
    height: 100%;
    background: $panel;
    border: round $primary 50%;
    border-title-color: $primary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;

    &.llm2 {
        border: round $secondary 50%;
        border-title-color: $secondary;
    }

    &.-current {
        border: round $accent;
    }

    &.-generating {
        border: round $warning;
    }
}

MessageList {
    height: 1fr;
    scrollbar-gutter: stable;
}

MessageBubble {
    height: auto;
    margin: 0 0 1 0;
    padding: 0 1;
    border-left: outer $border;

    &.own {
        margin-left: 4;
        border-left: outer $primary;
    }

    &.peer {
        margin-right: 4;
        border-left: outer $secondary;
    }

    &.greeting {
        opacity: 70%;
    }

    .bubble-header {
        color: $text-muted;
        text-style: italic;
    }
}

TypingIndicator {
    height: 1;
    color: $text-muted;
    text-style: italic;
}

.settings-row {
    height: 3;

    Select {
        width: 2fr;
    }

    Input {
        width: 1fr;
    }
}

.system-prompt {
    height: 5;
    border: round $border;
}

.send-btn {
    width: 100%;
    margin-top: 1;
}

/* ============================================
   Debug log
   ============================================ */
#debug-panel {
    height: 12;
    background: $surface;
    border: round $border;
    border-title-color: $text-muted;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
}
"""
