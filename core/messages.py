"""
Conversation Data Model

Typed representation of everything that flows through the agent loop:
- Content blocks (text, tool use, tool result) as a tagged union
- Messages exchanged between the user and the assistant
- Tool call records produced by the dispatcher
- The response returned by a single chat turn

Every type converts to and from the plain-dict wire form used for
provider requests and session files.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union


class Role(str, Enum):
    """Message author."""
    USER = "user"
    ASSISTANT = "assistant"


class StopReason(str, Enum):
    """Why the provider stopped generating."""
    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    STOP_SEQUENCE = "stop_sequence"
    MAX_TOKENS = "max_tokens"


# ============================================================================
# CONTENT BLOCKS
# ============================================================================

@dataclass
class TextBlock:
    """Plain assistant or user text."""
    text: str

    type: ClassVar[str] = "text"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TextBlock":
        return cls(text=data["text"])


@dataclass
class ToolUseBlock:
    """
    A request from the assistant to run a named tool.

    Attributes:
        id: Identifier the matching ToolResultBlock must reference
        name: Tool name (one of the declared tools)
        input: Structured tool arguments
    """
    id: str
    name: str
    input: Dict[str, Any] = field(default_factory=dict)

    type: ClassVar[str] = "tool_use"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "input": copy.deepcopy(self.input),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolUseBlock":
        return cls(id=data["id"], name=data["name"], input=dict(data.get("input") or {}))


@dataclass
class ToolResultBlock:
    """The outcome of one tool use, sent back to the model as user content."""
    tool_use_id: str
    content: str
    is_error: bool = False

    type: ClassVar[str] = "tool_result"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "tool_use_id": self.tool_use_id,
            "content": self.content,
            "is_error": self.is_error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolResultBlock":
        return cls(
            tool_use_id=data["tool_use_id"],
            content=data.get("content", ""),
            is_error=bool(data.get("is_error", False)),
        )


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]

_BLOCK_TYPES = {
    TextBlock.type: TextBlock,
    ToolUseBlock.type: ToolUseBlock,
    ToolResultBlock.type: ToolResultBlock,
}


def block_from_dict(data: Dict[str, Any]) -> ContentBlock:
    """
    Build a content block from its wire form.

    Raises:
        ValueError: If the block has no type tag or an unknown one
    """
    block_type = data.get("type") if isinstance(data, dict) else None
    block_cls = _BLOCK_TYPES.get(block_type)
    if block_cls is None:
        raise ValueError(f"Unknown content block type: {block_type!r}")
    return block_cls.from_dict(data)


# ============================================================================
# MESSAGES
# ============================================================================

@dataclass
class Message:
    """
    One conversation entry.

    `content` is either plain text or an ordered list of content blocks.
    """
    role: Role
    content: Union[str, List[ContentBlock]]

    def __post_init__(self):
        self.role = Role(self.role)

    @property
    def blocks(self) -> List[ContentBlock]:
        """Content as a block list (plain text becomes a single TextBlock)."""
        if isinstance(self.content, str):
            return [TextBlock(self.content)]
        return list(self.content)

    def tool_uses(self) -> List[ToolUseBlock]:
        return [b for b in self.blocks if isinstance(b, ToolUseBlock)]

    def tool_results(self) -> List[ToolResultBlock]:
        return [b for b in self.blocks if isinstance(b, ToolResultBlock)]

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.content, str):
            content: Any = self.content
        else:
            content = [block.to_dict() for block in self.content]
        return {"role": self.role.value, "content": content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        content = data["content"]
        if not isinstance(content, str):
            content = [block_from_dict(block) for block in content]
        return cls(role=Role(data["role"]), content=content)

    @classmethod
    def user(cls, content: Union[str, List[ContentBlock]]) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: Union[str, List[ContentBlock]]) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)


# ============================================================================
# TURN RESULTS
# ============================================================================

@dataclass
class ToolCallRecord:
    """
    Result of executing one tool use during a turn.

    Attributes:
        id: Id of the ToolUseBlock that requested the call
        name: Tool name
        input: Arguments the tool was called with
        result: Output string (error text when the call failed)
        error: Whether the call failed
    """
    id: str
    name: str
    input: Dict[str, Any]
    result: str
    error: bool = False

    def to_result_block(self) -> ToolResultBlock:
        return ToolResultBlock(tool_use_id=self.id, content=self.result, is_error=self.error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "input": copy.deepcopy(self.input),
            "result": self.result,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolCallRecord":
        return cls(
            id=data["id"],
            name=data["name"],
            input=dict(data.get("input") or {}),
            result=data.get("result", ""),
            error=bool(data.get("error", False)),
        )


@dataclass
class TokenUsage:
    """Token counts reported by the provider for one response."""
    input: int = 0
    output: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"input": self.input, "output": self.output}


@dataclass
class AgentResponse:
    """
    Outcome of one `chat()` call. Failures are values, never exceptions.

    Attributes:
        text: Final assistant text, or an explanatory message
        tool_calls: Every tool call executed during the turn, in order
        token_usage: Usage of the most recent provider response, if any
        error: Error description ("max_tokens" for truncation)
    """
    text: str
    tool_calls: List[ToolCallRecord] = field(default_factory=list)
    token_usage: Optional[TokenUsage] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None
