"""
Codeloop Test Suite

Unit and integration tests for all modules.
Run tests with: pytest tests/
Skip the live Gemini tests with: pytest tests/ -m "not integration"
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.messages import StopReason, TextBlock, TokenUsage, ToolUseBlock  # noqa: E402
from core.provider import ProviderResponse  # noqa: E402


def text_response(*texts, stop_reason=StopReason.END_TURN, usage=(10, 5)):
    """Provider response carrying only text blocks."""
    return ProviderResponse(
        content=[TextBlock(text) for text in texts],
        stop_reason=stop_reason,
        usage=TokenUsage(*usage),
    )


def tool_use_response(*tool_uses, usage=(20, 8)):
    """Provider response requesting tools; pass (id, name, input) tuples."""
    return ProviderResponse(
        content=[ToolUseBlock(id=i, name=n, input=inp) for i, n, inp in tool_uses],
        stop_reason=StopReason.TOOL_USE,
        usage=TokenUsage(*usage),
    )


def mock_provider(*responses):
    """Provider whose create_message yields `responses` (or raises them) in order."""
    provider = Mock()
    provider.create_message = AsyncMock(side_effect=list(responses))
    return provider


__all__ = [
    "text_response",
    "tool_use_response",
    "mock_provider",
]
