"""Main CLI application using Typer."""
import asyncio

import httpx
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..conversation import ParticipantId, TurnPolicy
from .providers import get_api_url, get_registry, get_transport, server_host, server_port

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="duet",
    help="Split-screen conversation between two language models",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()


def _debug_to_console(level: str, component: str, message: str) -> None:
    """Route component debug callbacks to the console."""
    colors = {"debug": "dim", "info": "cyan", "warning": "yellow", "error": "red"}
    color = colors.get(level, "white")
    console.print(f"[{color}]{level.upper():<7}[/{color}] [bold]{component}[/bold] {message}", highlight=False)


@app.command()
def serve(
    host: str | None = typer.Option(
        None,
        "--host",
        help="Bind host (default: DUET_SERVER_HOST or 127.0.0.1)"
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Bind port (default: DUET_SERVER_PORT or 3002)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Print generation service trace to the console"
    ),
):
    """Run the generation backend (POST /api/llm/generate, /api/llm/stream)."""
    import uvicorn

    from ..server import GenerationService, create_app

    bind_host = host or server_host()
    bind_port = port or server_port(console)

    registry = get_registry()
    service = GenerationService(registry)
    if verbose:
        service.set_debug_callback(_debug_to_console)

    configured = [route.name for route in registry.routes if registry.has_credentials(route)]
    if not configured:
        console.print(
            "[yellow]Warning: no provider API keys found. Set OPENAI_API_KEY, "
            "DEEPSEEK_API_KEY, GROQ_API_KEY or ANTHROPIC_API_KEY in your .env file.[/yellow]"
        )

    console.print(Panel(
        f"[bold]API:[/bold] http://{bind_host}:{bind_port}/api\n"
        f"[bold]Providers:[/bold] {', '.join(configured) or 'none'}",
        title="[bold cyan]Duet backend[/bold cyan]",
        border_style="cyan",
    ))
    uvicorn.run(create_app(service=service), host=bind_host, port=bind_port, log_level="info")


@app.command(name="tui")
def tui_command(
    topic: str | None = typer.Option(
        None,
        "--topic",
        "-t",
        help="Conversation topic (asked for on start when omitted)"
    ),
    first: str = typer.Option(
        "llm1",
        "--first",
        "-f",
        help="Side that opens the conversation: llm1 or llm2"
    ),
    api_url: str | None = typer.Option(
        None,
        "--api-url",
        help="Backend API root (default: DUET_API_URL)"
    ),
    lenient: bool = typer.Option(
        False,
        "--lenient",
        help="Let both sides generate at the same time"
    ),
    greetings: bool = typer.Option(
        False,
        "--greetings",
        help="Start each panel with a greeting message"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch the split-screen conversation TUI."""
    try:
        starting = ParticipantId.parse(first)
    except ValueError as e:
        console.print(f"[red]Error: {e}. Use llm1 or llm2.[/red]")
        raise typer.Exit(code=1)

    async def _tui():
        from ..ui import run_duet_tui

        transport = get_transport(api_url, console=console)
        await run_duet_tui(
            transport,
            topic=topic,
            starting=starting,
            policy=TurnPolicy.LENIENT if lenient else TurnPolicy.EXCLUSIVE,
            seed_greetings=greetings,
            log_level=log_level,
        )
        console.print("\n[dim]Goodbye![/dim]")

    try:
        asyncio.run(_tui())
    except KeyboardInterrupt:
        pass


@app.command()
def models():
    """List provider routes, their models and whether credentials are set."""
    registry = get_registry()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Provider", style="cyan")
    table.add_column("Models")
    table.add_column("Matches", style="dim")
    table.add_column("Credential", style="yellow")
    table.add_column("Set", width=5)

    for route in registry.routes:
        has_key = registry.has_credentials(route)
        table.add_row(
            route.name,
            ", ".join(route.example_models) or "-",
            route.pattern,
            route.api_key_env,
            "[green]yes[/green]" if has_key else "[red]no[/red]",
        )

    console.print(table)
    console.print("[dim]Routes are checked top to bottom; the first match wins.[/dim]")


@app.command()
def health(
    api_url: str | None = typer.Option(
        None,
        "--api-url",
        help="Backend API root (default: DUET_API_URL)"
    ),
):
    """Check that the generation backend is reachable."""
    url = (api_url or get_api_url(console)).rstrip("/")
    try:
        response = httpx.get(f"{url}/health", timeout=5.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        console.print(f"[red]Backend not reachable at {url}: {e}[/red]")
        raise typer.Exit(code=1)

    payload = response.json()
    console.print(
        f"[green]Backend OK[/green] at {url} "
        f"[dim](status: {payload.get('status')}, version: {payload.get('version', '?')})[/dim]"
    )


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
