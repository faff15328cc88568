"""
Provider wire contract.

Provider-neutral request/response types exchanged between the agent loop
and an LLM backend. Backends (see ai/llm_service.py) translate these to and
from their own SDK types.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .messages import ContentBlock, Message, StopReason, TokenUsage


@dataclass
class ProviderRequest:
    """One request for the next assistant turn."""
    model: str
    max_tokens: int
    system_prompt: str
    tool_declarations: List[Dict[str, Any]]
    messages: List[Message] = field(default_factory=list)


@dataclass
class ProviderResponse:
    """The provider's answer for one turn."""
    content: List[ContentBlock]
    stop_reason: StopReason = StopReason.END_TURN
    usage: TokenUsage = field(default_factory=TokenUsage)


class LLMProvider(ABC):
    """Anything that can produce the next assistant turn."""

    @abstractmethod
    async def create_message(self, request: ProviderRequest) -> ProviderResponse:
        """Send one request; raise on failure (retries happen upstream)."""
