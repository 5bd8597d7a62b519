"""Factory functions for CLI.

Centralizes creation of the transport, registry and server settings from
environment variables. Hides configuration details from command
implementations.
"""

import os

import typer
from rich.console import Console

from ..conversation import PacedEmitter, Timing, TransportAdapter
from ..llm import ProviderRegistry

DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 3002

# Default console for output
_console = Console()


def server_host() -> str:
    """Backend bind host (DUET_SERVER_HOST, default 127.0.0.1)."""
    return os.getenv("DUET_SERVER_HOST", DEFAULT_SERVER_HOST)


def server_port(console: Console | None = None) -> int:
    """Backend port (DUET_SERVER_PORT, default 3002).

    Raises:
        typer.Exit: If the variable is not an integer
    """
    con = console or _console
    raw = os.getenv("DUET_SERVER_PORT", str(DEFAULT_SERVER_PORT))
    try:
        return int(raw)
    except ValueError:
        con.print(f"[red]Error: DUET_SERVER_PORT must be an integer, got {raw!r}[/red]")
        raise typer.Exit(code=1)


def get_api_url(console: Console | None = None) -> str:
    """Backend API root the TUI talks to.

    Environment variables:
        DUET_API_URL: Full API root (default: http://localhost:{DUET_SERVER_PORT}/api)
    """
    return os.getenv("DUET_API_URL") or f"http://localhost:{server_port(console)}/api"


def get_transport(
    api_url: str | None = None,
    timing: Timing | None = None,
    console: Console | None = None,
) -> TransportAdapter:
    """Create the transport to the generation backend."""
    timing = timing or Timing()
    return TransportAdapter(
        api_url or get_api_url(console),
        emitter=PacedEmitter(delay=timing.reveal_delay),
    )


def get_registry() -> ProviderRegistry:
    """Provider registry reading credentials from the environment.

    Environment variables:
        OPENAI_API_KEY, OPENAI_BASE_URL: OpenAI models (catch-all)
        DEEPSEEK_API_KEY, DEEPSEEK_BASE_URL: deepseek-* models
        GROQ_API_KEY, GROQ_BASE_URL: groq-*, llama, mixtral, gemma models
        ANTHROPIC_API_KEY, ANTHROPIC_BASE_URL: claude-* models
    """
    return ProviderRegistry()
