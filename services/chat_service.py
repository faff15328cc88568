"""
Chat Service - Main Coordinator

Orchestrates one user interaction for the hosting process:
1. Runs the user message through the agent orchestrator
2. Copies the resulting conversation into the active session snapshot
3. Persists the snapshot
4. Hands the conversation and tool calls to the presenter

The active session is passed in explicitly; there is no process-wide
"current session".
"""

import logging
from typing import List, Optional

from core import AgentOrchestrator, AgentResponse, ConversationManager, Message, ToolCallRecord
from core.dispatcher import ToolExecutor, ToolObserver
from core.provider import LLMProvider
from core.retry import RetryPolicy
from .session_service import SessionSnapshot, SessionStore

logger = logging.getLogger(__name__)


class Presenter:
    """
    Presentation capability: receives the conversation after every turn.

    The default implementation renders nothing.
    """

    def render(self, conversation: List[Message], tool_calls: List[ToolCallRecord]) -> None:
        pass


class ChatService:
    """
    Main chat service coordinator.

    Binds one agent orchestrator to one session snapshot and keeps the
    snapshot on disk in sync after every turn.
    """

    def __init__(
        self,
        orchestrator: AgentOrchestrator,
        store: SessionStore,
        session: SessionSnapshot,
        presenter: Optional[Presenter] = None,
    ):
        self.orchestrator = orchestrator
        self.store = store
        self.session = session
        self.presenter = presenter or Presenter()
        logger.info(f"✅ ChatService initialized for run {session.run_id}")

    @classmethod
    def create(
        cls,
        provider: LLMProvider,
        tool_executor: ToolExecutor,
        store: SessionStore,
        session: SessionSnapshot,
        presenter: Optional[Presenter] = None,
        observer: Optional[ToolObserver] = None,
        retry_policy: Optional[RetryPolicy] = None,
        parallel_tools: Optional[bool] = None,
    ) -> "ChatService":
        """
        Build a chat service whose orchestrator continues `session`.

        Args:
            provider: LLM backend
            tool_executor: Tool execution capability
            store: Where the session is persisted
            session: Snapshot to continue (fresh or resumed)
            presenter: Receives the conversation after each turn
            observer: Receives tool start/complete notifications
            retry_policy: Provider retry budget
            parallel_tools: Override the configured parallel tool setting
        """
        options = {}
        if parallel_tools is not None:
            options["parallel_tools"] = parallel_tools
        if session.model:
            options["model"] = session.model

        orchestrator = AgentOrchestrator(
            provider=provider,
            tool_executor=tool_executor,
            conversation=ConversationManager(session.conversation),
            observer=observer,
            retry_policy=retry_policy,
            working_dir=session.working_dir or None,
            **options,
        )
        if not session.model:
            session.model = orchestrator.model

        return cls(orchestrator, store, session, presenter)

    async def process_message(self, user_message: str) -> AgentResponse:
        """
        Run one turn and persist the result.

        Args:
            user_message: The user's input text

        Returns:
            The orchestrator's AgentResponse (never raises for agent failures)
        """
        logger.info(f"💬 Processing message (session: {self.session.run_id}): {user_message[:50]}...")

        response = await self.orchestrator.chat(user_message)

        if response.error:
            logger.error(f"❌ Agent error: {response.error}")

        self.session.conversation = self.orchestrator.conversation.snapshot()
        self.session.tool_calls = list(response.tool_calls)
        self.save()

        self.presenter.render(self.session.conversation, self.session.tool_calls)
        return response

    def clear(self) -> None:
        """Start the conversation over, keeping the same run."""
        self.orchestrator.clear_history()
        self.session.conversation = []
        self.session.tool_calls = []
        self.save()

    def save(self) -> bool:
        """
        Persist the session snapshot.

        Returns:
            True if saved; a failed save is logged and the turn's result kept
        """
        try:
            self.store.save(self.session.run_id, self.session)
            return True
        except (OSError, ValueError) as e:
            logger.error(f"❌ Failed to save session {self.session.run_id}: {e}", exc_info=True)
            return False
