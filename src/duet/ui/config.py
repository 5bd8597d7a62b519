"""UI configuration constants.

Centralizes display values for the split-screen UI.
"""


class LogLevel:
    """Log level thresholds for the debug panel.

    DEBUG < INFO < WARNING < ERROR; a lower threshold shows more.
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    _names = {
        DEBUG: "DEBUG",
        INFO: "INFO",
        WARNING: "WARN",
        ERROR: "ERROR",
    }

    _from_string = {
        "debug": DEBUG,
        "info": INFO,
        "warning": WARNING,
        "warn": WARNING,
        "error": ERROR,
    }

    _colors = {
        DEBUG: "dim white",
        INFO: "cyan",
        WARNING: "yellow",
        ERROR: "red",
    }

    @classmethod
    def name(cls, level: int) -> str:
        return cls._names.get(level, "UNKNOWN")

    @classmethod
    def color(cls, level: int) -> str:
        return cls._colors.get(level, "white")

    @classmethod
    def from_string(cls, level_str: str) -> int:
        """Convert a callback level name. Unknown names map to DEBUG."""
        return cls._from_string.get(level_str.lower(), cls.DEBUG)


# Component colors in the debug panel
COMPONENT_COLORS = {
    "TUI": "cyan",
    "Turn": "bright_yellow",
    "Transport": "magenta",
    "Service": "green",
}

# Models offered by each panel's selector
MODEL_CHOICES = (
    "gpt-4",
    "gpt-3.5-turbo",
    "deepseek-chat",
    "claude-3-opus",
    "claude-3-sonnet",
    "groq-llama-8b",
    "groq-llama-70b",
    "groq-mixtral",
)

# Toast durations (seconds)
NOTIFY_TIMEOUT = 3
ERROR_NOTIFY_TIMEOUT = 8

LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
