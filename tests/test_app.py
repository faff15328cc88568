"""
Unit Tests for the CLI host
"""

import pytest
from unittest.mock import Mock, patch

from typer.testing import CliRunner

import app as cli
from core.messages import Message
from services.session_service import SessionNotFoundError, SessionSnapshot, SessionStore

runner = CliRunner()


@pytest.fixture
def store(tmp_path):
    """Fixture providing a store rooted in a temporary directory."""
    return SessionStore(tmp_path / "sessions")


def _save(store, run_id, created_at, messages=None):
    store.save(run_id, SessionSnapshot(
        run_id=run_id,
        created_at=created_at,
        working_dir="/work",
        model="gemini-test",
        conversation=messages or [Message.user("hi")],
    ))


class TestStartSession:
    """Test start_session."""

    def test_new_session_is_not_written_yet(self, store):
        """Test a new session only exists in memory until its first turn."""
        session = cli.start_session(store, working_dir="/work", model="gemini-test")

        assert session.working_dir == "/work"
        assert session.conversation == []
        assert store.list() == []

    def test_resume_by_id(self, store):
        """Test --resume loads the named run."""
        _save(store, "run-1", 1000)
        assert cli.start_session(store, resume="run-1").run_id == "run-1"

    def test_resume_latest(self, store):
        """Test --latest loads the newest run."""
        _save(store, "old", 1000)
        _save(store, "new", 2000)
        assert cli.start_session(store, latest=True).run_id == "new"

    def test_resume_missing(self, store):
        """Test a failed resume raises SessionNotFoundError."""
        with pytest.raises(SessionNotFoundError):
            cli.start_session(store, latest=True)


class TestHandleBuiltin:
    """Test handle_builtin."""

    def test_clear(self):
        """Test /clear clears the service."""
        service = Mock()
        assert cli.handle_builtin("/clear", service) is True
        service.clear.assert_called_once()

    def test_help(self):
        """Test /help is handled without touching the service."""
        service = Mock()
        assert cli.handle_builtin("/HELP ", service) is True
        service.clear.assert_not_called()

    def test_regular_text(self):
        """Test ordinary input is not a built-in."""
        assert cli.handle_builtin("fix the tests", Mock()) is False


class TestCommands:
    """Test the typer commands."""

    def test_sessions_empty(self, store):
        """Test listing with no saved sessions."""
        with patch("app.SessionStore", return_value=store):
            result = runner.invoke(cli.app, ["sessions"])

        assert result.exit_code == 0
        assert "No saved sessions" in result.output

    def test_sessions_lists_runs(self, store):
        """Test saved runs are listed."""
        _save(store, "run-a", 1000)
        _save(store, "run-b", 2000)

        with patch("app.SessionStore", return_value=store):
            result = runner.invoke(cli.app, ["sessions"])

        assert result.exit_code == 0
        assert "run-a" in result.output
        assert "run-b" in result.output

    def test_chat_resume_missing_exits_with_error(self, store):
        """Test an unsatisfiable resume exits non-zero before any model call."""
        with patch("app.SessionStore", return_value=store), \
                patch("app.GeminiProvider") as mock_provider:
            result = runner.invoke(cli.app, ["chat", "--resume", "ghost"])

        assert result.exit_code == 1
        assert "Failed to load session for run_id ghost." in result.output
        mock_provider.assert_not_called()

    def test_chat_without_api_key_exits_with_error(self, store):
        """Test a missing API key exits non-zero."""
        with patch("app.SessionStore", return_value=store), \
                patch("app.GeminiProvider", side_effect=ValueError("GOOGLE_API_KEY not found")):
            result = runner.invoke(cli.app, ["chat"])

        assert result.exit_code == 1
        assert "GOOGLE_API_KEY not found" in result.output

    @patch("app.GeminiProvider")
    @patch("app.Prompt.ask", side_effect=KeyboardInterrupt)
    def test_chat_ctrl_c_says_goodbye(self, mock_ask, mock_provider, store):
        """Test Ctrl-C at the prompt leaves the loop cleanly."""
        with patch("app.SessionStore", return_value=store):
            result = runner.invoke(cli.app, ["chat"])

        assert result.exit_code == 0
        assert "Goodbye!" in result.output
        mock_ask.assert_called_once()

    @patch("app.GeminiProvider")
    @patch("app.Prompt.ask", side_effect=["/help", "/exit"])
    def test_chat_exit_command(self, mock_ask, mock_provider, store):
        """Test built-ins run at the prompt and /exit ends the session."""
        with patch("app.SessionStore", return_value=store):
            result = runner.invoke(cli.app, ["chat"])

        assert result.exit_code == 0
        assert "Built-in commands" in result.output
        assert "Goodbye!" in result.output
        assert mock_ask.call_count == 2

    def test_format_created_at(self):
        """Test unusable timestamps render as unknown."""
        assert cli._format_created_at(None) == "unknown"
        assert cli._format_created_at("soon") == "unknown"
        assert cli._format_created_at(0) != "unknown"
