"""
Core Agent Logic Module

This module contains the brain of Codeloop's agentic system:
- Conversation data model (messages and content blocks)
- Conversation management (append-only history)
- Tool dispatch (parallel or sequential tool execution)
- Retry/backoff for provider calls
- Agent orchestration: the per-turn tool-use loop

The agent keeps asking the model for the next turn, running any requested
tools, until the model answers with plain text.
"""

from .messages import (
    Role,
    StopReason,
    TextBlock,
    ToolUseBlock,
    ToolResultBlock,
    ContentBlock,
    block_from_dict,
    Message,
    ToolCallRecord,
    TokenUsage,
    AgentResponse,
)

from .conversation import ConversationManager

from .dispatcher import (
    ToolDispatcher,
    ToolObserver,
    ToolExecutor,
)

from .provider import (
    LLMProvider,
    ProviderRequest,
    ProviderResponse,
)

from .retry import (
    ErrorClass,
    classify_error,
    is_retryable,
    RetryPhase,
    RetryPolicy,
    RetryState,
    next_state,
    RetryController,
)

from .orchestrator import AgentOrchestrator

__all__ = [
    # Data model
    "Role",
    "StopReason",
    "TextBlock",
    "ToolUseBlock",
    "ToolResultBlock",
    "ContentBlock",
    "block_from_dict",
    "Message",
    "ToolCallRecord",
    "TokenUsage",
    "AgentResponse",

    # Conversation
    "ConversationManager",

    # Dispatcher
    "ToolDispatcher",
    "ToolObserver",
    "ToolExecutor",

    # Provider contract
    "LLMProvider",
    "ProviderRequest",
    "ProviderResponse",

    # Retry
    "ErrorClass",
    "classify_error",
    "is_retryable",
    "RetryPhase",
    "RetryPolicy",
    "RetryState",
    "next_state",
    "RetryController",

    # Orchestrator
    "AgentOrchestrator",
]
