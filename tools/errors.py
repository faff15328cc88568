"""
Tool error taxonomy.

Tools raise these; the registry turns them into "Error: ..." result
strings for the model. An ambiguous edit is a safety guard, kept apart from
filesystem failures.
"""

from enum import Enum
from typing import Optional


class ToolErrorKind(Enum):
    INVALID_INPUT = "invalid_input"
    UNKNOWN_TOOL = "unknown_tool"
    NOT_FOUND = "not_found"
    IO = "io"
    AMBIGUOUS_EDIT = "ambiguous_edit"
    COMMAND_FAILED = "command_failed"


class ToolError(Exception):
    """Base class for expected tool failures."""
    kind = ToolErrorKind.IO

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidToolInputError(ToolError):
    kind = ToolErrorKind.INVALID_INPUT


class UnknownToolError(ToolError):
    kind = ToolErrorKind.UNKNOWN_TOOL


class TargetNotFoundError(ToolError):
    """A file, directory or search string does not exist."""
    kind = ToolErrorKind.NOT_FOUND


class ToolIOError(ToolError):
    """Filesystem failure while reading, writing or listing."""
    kind = ToolErrorKind.IO


class AmbiguousEditError(ToolError):
    """The string to replace occurs more than once."""
    kind = ToolErrorKind.AMBIGUOUS_EDIT

    def __init__(self, occurrences: int):
        super().__init__(
            f"The string to replace appears {occurrences} times. Please be more specific."
        )
        self.occurrences = occurrences


class CommandFailedError(ToolError):
    """A shell command could not be run or exited non-zero."""
    kind = ToolErrorKind.COMMAND_FAILED

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code
