"""
Unit Tests for Chat Service

Tests the main chat coordinator: turns run through a real orchestrator
with a mocked provider, and the session is persisted to a temporary store.
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from core.messages import AgentResponse, Message, Role
from core.retry import RetryPolicy
from services.chat_service import ChatService, Presenter
from services.session_service import SessionStore, new_session
from tests import mock_provider, text_response, tool_use_response


@pytest.fixture
def store(tmp_path):
    """Fixture providing a store rooted in a temporary directory."""
    return SessionStore(tmp_path / "sessions")


def _service(provider, store, session=None, executor=None, presenter=None):
    session = session or new_session(working_dir="/work", model="gemini-test")
    return ChatService.create(
        provider=provider,
        tool_executor=executor or Mock(return_value="a.txt"),
        store=store,
        session=session,
        presenter=presenter,
        retry_policy=RetryPolicy(max_retries=1),
    )


class TestChatService:
    """Test ChatService class."""

    @pytest.mark.asyncio
    async def test_process_message_success(self, store):
        """Test successful message processing persists the turn."""
        service = _service(mock_provider(text_response("Hi! How can I help?")), store)

        response = await service.process_message("Hello")

        assert response.success is True
        assert response.text == "Hi! How can I help?"

        saved = store.load(service.session.run_id)
        assert saved is not None
        assert saved.conversation == [Message.user("Hello"), Message.assistant("Hi! How can I help?")]
        assert saved.model == "gemini-test"

    @pytest.mark.asyncio
    async def test_tool_calls_are_saved(self, store):
        """Test the turn's tool calls are stored with the session."""
        provider = mock_provider(
            tool_use_response(("toolu_1", "list_files", {"path": "."})),
            text_response("One file: a.txt"),
        )
        service = _service(provider, store)

        await service.process_message("What files are here?")

        saved = store.load(service.session.run_id)
        assert [c.name for c in saved.tool_calls] == ["list_files"]
        assert len(saved.conversation) == 4

    @pytest.mark.asyncio
    async def test_error_turn_is_still_saved(self, store):
        """Test a failed turn is persisted with the user message."""
        service = _service(mock_provider(ConnectionError("offline")), store)

        response = await service.process_message("Hello")

        assert response.success is False
        assert response.text == "An error occurred: offline"
        assert store.load(service.session.run_id).conversation == [Message.user("Hello")]

    @pytest.mark.asyncio
    async def test_presenter_receives_conversation(self, store):
        """Test the presenter is called after each turn."""
        presenter = Mock(spec=Presenter)
        service = _service(mock_provider(text_response("hello")), store, presenter=presenter)

        await service.process_message("hi")

        presenter.render.assert_called_once()
        conversation, tool_calls = presenter.render.call_args.args
        assert conversation[-1].role == Role.ASSISTANT
        assert tool_calls == []

    @pytest.mark.asyncio
    async def test_save_failure_does_not_break_turn(self, store):
        """Test a failed save is logged and the response still returned."""
        service = _service(mock_provider(text_response("hello")), store)

        with patch.object(store, "save", side_effect=OSError("read-only")):
            response = await service.process_message("hi")

        assert response.text == "hello"

    @pytest.mark.asyncio
    async def test_resumed_session_continues(self, store):
        """Test a resumed session's history is sent with the next request."""
        session = new_session(working_dir="/work", model="gemini-test")
        session.conversation = [Message.user("earlier"), Message.assistant("noted")]
        provider = mock_provider(text_response("continuing"))
        service = _service(provider, store, session=session)

        await service.process_message("go on")

        request = provider.create_message.await_args.args[0]
        assert [m.content for m in request.messages] == ["earlier", "noted", "go on"]
        assert request.model == "gemini-test"

    def test_clear(self, store):
        """Test clear empties the history and saves the session."""
        session = new_session(working_dir="/work", model="gemini-test")
        session.conversation = [Message.user("a"), Message.assistant("b")]
        service = _service(mock_provider(), store, session=session)

        service.clear()

        assert service.orchestrator.history_length() == 0
        assert store.load(session.run_id).conversation == []

    def test_session_without_model_takes_orchestrator_default(self, store):
        """Test an empty session model is filled in from configuration."""
        session = new_session(working_dir="/work", model="")
        service = _service(mock_provider(), store, session=session)

        assert session.model == service.orchestrator.model
        assert session.model


class TestChatServiceWithMockOrchestrator:
    """Test ChatService against a mocked orchestrator."""

    @pytest.mark.asyncio
    async def test_delegates_to_orchestrator(self, store):
        """Test process_message forwards the text unchanged."""
        orchestrator = Mock()
        orchestrator.chat = AsyncMock(return_value=AgentResponse(text="ok"))
        orchestrator.conversation.snapshot.return_value = [Message.user("ping"), Message.assistant("ok")]

        service = ChatService(orchestrator, store, new_session(working_dir="/work", model="m"))
        response = await service.process_message("ping")

        orchestrator.chat.assert_awaited_once_with("ping")
        assert response.text == "ok"
        assert len(service.session.conversation) == 2
