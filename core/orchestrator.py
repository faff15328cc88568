"""
Agent Orchestrator - Main Agent Loop

Implements the per-turn tool-use loop:
1. Ask the provider for the next assistant turn (with retries)
2. If the model asked for tools: run them, record the tool-use/tool-result
   pair in the conversation, and ask again
3. Otherwise return the assistant's text to the caller

`chat()` never raises: provider failures, truncation and tool failures are
all reported through the returned AgentResponse.
"""

import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config import (
    ENABLE_PARALLEL_TOOLS,
    ERROR_MESSAGE_PREFIX,
    GEMINI_MODEL,
    MAX_TOKENS,
    TOOL_DEFINITIONS,
    TRUNCATION_MESSAGE,
    build_system_prompt,
)
from .conversation import ConversationManager
from .dispatcher import ToolDispatcher, ToolExecutor, ToolObserver
from .messages import (
    AgentResponse,
    Message,
    StopReason,
    TextBlock,
    TokenUsage,
    ToolCallRecord,
    ToolUseBlock,
)
from .provider import LLMProvider, ProviderRequest, ProviderResponse
from .retry import RetryController, RetryPolicy

logger = logging.getLogger(__name__)


class AgentOrchestrator:
    """
    Drives one conversation between the user, the model and the tools.

    All collaborators are injected; the orchestrator holds no global state,
    so each instance owns exactly one conversation.
    """

    def __init__(
        self,
        provider: LLMProvider,
        tool_executor: ToolExecutor,
        conversation: Optional[ConversationManager] = None,
        observer: Optional[ToolObserver] = None,
        retry_policy: Optional[RetryPolicy] = None,
        parallel_tools: bool = ENABLE_PARALLEL_TOOLS,
        model: str = GEMINI_MODEL,
        max_tokens: int = MAX_TOKENS,
        working_dir: Optional[str] = None,
        tool_declarations: Optional[List[Dict[str, Any]]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the orchestrator.

        Args:
            provider: LLM backend producing assistant turns
            tool_executor: Tool execution capability `(name, input) -> str`
            conversation: Conversation to continue (new and empty by default)
            observer: Notified before/after every tool invocation
            retry_policy: Retry budget for provider calls
            parallel_tools: Run multi-tool batches concurrently
            model: Model identifier sent with every request
            max_tokens: Output token limit per response
            working_dir: Directory described in the system prompt
            tool_declarations: Tools exposed to the model
            sleep: Backoff sleep, injectable for tests
        """
        self.provider = provider
        self.conversation = conversation if conversation is not None else ConversationManager()
        self.dispatcher = ToolDispatcher(tool_executor, observer=observer, parallel=parallel_tools)
        self.retry = RetryController(retry_policy, sleep=sleep)
        self.model = model
        self.max_tokens = max_tokens
        self.working_dir = working_dir or os.getcwd()
        self.tool_declarations = tool_declarations if tool_declarations is not None else TOOL_DEFINITIONS

    def clear_history(self) -> None:
        """Forget the whole conversation."""
        self.conversation.clear()

    def history_length(self) -> int:
        return self.conversation.length()

    async def chat(self, user_text: str) -> AgentResponse:
        """
        Run one user turn to completion.

        Args:
            user_text: The user's message

        Returns:
            AgentResponse with the final text, every tool call made during the
            turn, the latest token usage and an error description on failure
        """
        self.conversation.push(Message.user(user_text))

        tool_calls: List[ToolCallRecord] = []
        token_usage: Optional[TokenUsage] = None

        try:
            while True:
                response = await self._request_turn()
                if response.usage is not None:
                    token_usage = response.usage

                # Partial output is dropped on truncation, never appended
                if response.stop_reason == StopReason.MAX_TOKENS:
                    logger.warning("⚠️  Response truncated at the token limit")
                    return AgentResponse(
                        text=TRUNCATION_MESSAGE,
                        tool_calls=tool_calls,
                        token_usage=token_usage,
                        error=StopReason.MAX_TOKENS.value,
                    )

                tool_uses = [b for b in response.content if isinstance(b, ToolUseBlock)]
                if tool_uses:
                    logger.info(f"🔧 Model requested {len(tool_uses)} tool call(s)")
                    records = await self.dispatcher.dispatch(tool_uses)
                    tool_calls.extend(records)
                    self.conversation.extend([
                        Message.assistant(list(tool_uses)),
                        Message.user([record.to_result_block() for record in records]),
                    ])
                    continue

                texts = [b.text for b in response.content if isinstance(b, TextBlock)]
                if not texts:
                    logger.info("ℹ️  Model returned no text")
                    return AgentResponse(text="", tool_calls=tool_calls, token_usage=token_usage)

                text = "\n".join(texts)
                self.conversation.push(Message.assistant(text))
                logger.info(f"✅ Turn completed with {len(tool_calls)} tool calls")
                return AgentResponse(text=text, tool_calls=tool_calls, token_usage=token_usage)

        except Exception as e:
            logger.error(f"❌ Agent turn failed: {e}", exc_info=True)
            message = str(e) or type(e).__name__
            return AgentResponse(
                text=f"{ERROR_MESSAGE_PREFIX}{message}",
                tool_calls=tool_calls,
                token_usage=token_usage,
                error=message,
            )

    async def _request_turn(self) -> ProviderResponse:
        """Ask the provider for the next assistant turn, retrying transient failures."""
        request = ProviderRequest(
            model=self.model,
            max_tokens=self.max_tokens,
            system_prompt=build_system_prompt(self.working_dir),
            tool_declarations=self.tool_declarations,
            messages=self.conversation.snapshot(),
        )
        return await self.retry.run(lambda: self.provider.create_message(request))
