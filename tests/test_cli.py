"""Tests for the Typer CLI."""
import pytest
from rich.console import Console
from typer.testing import CliRunner

from duet.cli import app as cli_app
from duet.cli.app import app
from duet.cli.providers import get_api_url, server_port

runner = CliRunner()


class TestCommands:
    """Tests for CLI commands that need no backend."""

    def test_models_lists_routes(self, monkeypatch):
        """Test that every route and its credential state is shown."""
        monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.setattr(cli_app, "console", Console(width=200))

        result = runner.invoke(app, ["models"])

        assert result.exit_code == 0
        for name in ("Groq", "DeepSeek", "Anthropic", "OpenAI"):
            assert name in result.output
        assert "GROQ_API_KEY" in result.output
        assert "groq-llama-8b" in result.output
        assert "claude-3-opus" in result.output

    def test_tui_rejects_unknown_side(self):
        """Test that --first only accepts llm1 or llm2."""
        result = runner.invoke(app, ["tui", "--topic", "tea", "--first", "llm3"])

        assert result.exit_code == 1
        assert "llm1 or llm2" in result.output


class TestSettings:
    """Tests for environment-driven settings."""

    def test_api_url_from_port(self, monkeypatch):
        monkeypatch.delenv("DUET_API_URL", raising=False)
        monkeypatch.setenv("DUET_SERVER_PORT", "4000")

        assert get_api_url() == "http://localhost:4000/api"

    def test_api_url_override(self, monkeypatch):
        monkeypatch.setenv("DUET_API_URL", "http://backend:9000/api")

        assert get_api_url() == "http://backend:9000/api"

    def test_bad_port_exits(self, monkeypatch):
        """Test that a non-numeric port is a clean exit."""
        import typer

        monkeypatch.setenv("DUET_SERVER_PORT", "abc")

        with pytest.raises(typer.Exit):
            server_port()
