"""
Conversation Manager

Owns the ordered, append-only message sequence for one conversation.
The manager stores exactly what it is given, in order; keeping tool uses
paired with their results is the agent loop's job (it always appends the
assistant/user pair with a single `extend` call).
"""

import copy
import logging
from typing import Iterable, List, Optional

from .messages import Message

logger = logging.getLogger(__name__)


class ConversationManager:
    """Append-only message store for a single conversation."""

    def __init__(self, messages: Optional[Iterable[Message]] = None):
        self._messages: List[Message] = list(messages or [])

    def push(self, message: Message) -> None:
        """Append one message."""
        self._messages.append(message)

    def extend(self, messages: Iterable[Message]) -> None:
        """Append several messages together, preserving their order."""
        batch = list(messages)
        self._messages.extend(batch)
        logger.debug(f"📝 Appended {len(batch)} messages ({len(self._messages)} total)")

    def snapshot(self) -> List[Message]:
        """Deep copy of the current sequence; mutating it leaves the manager untouched."""
        return copy.deepcopy(self._messages)

    def clear(self) -> None:
        self._messages.clear()

    def length(self) -> int:
        return len(self._messages)

    def __len__(self) -> int:
        return self.length()
