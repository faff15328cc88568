"""
Function Calling Tools Module

This module contains all tools (functions) that the LLM agent can invoke
through function calling. These are the "hands" of the agent - the actions
it can take on the user's project.

Each tool:
- Has a clear, single purpose
- Accepts structured parameters from the LLM
- Returns a result string
- Raises a ToolError subclass for expected failures

`execute_tool` is the tool execution capability handed to the agent: it
looks tools up in the registry and turns ToolErrors into "Error: ..."
results.
"""

import logging
from typing import Any, Callable, Dict

from config import get_tool_by_name

from .errors import (
    ToolErrorKind,
    ToolError,
    InvalidToolInputError,
    UnknownToolError,
    TargetNotFoundError,
    ToolIOError,
    AmbiguousEditError,
    CommandFailedError,
)

from .file_tools import (
    read_file,
    edit_file,
    list_files,
)

from .command_tools import run_command

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error:"


# Tool registry for agent orchestrator
def get_tool_registry() -> Dict[str, Callable[..., str]]:
    """
    Get the complete registry of available tools.

    Returns:
        Dictionary mapping tool names to callable functions
    """
    return {
        # File tools
        "read_file": read_file,
        "edit_file": edit_file,
        "list_files": list_files,

        # Command tools
        "run_command": run_command,
    }


def _validate_input(tool_name: str, tool_input: Dict[str, Any]) -> Dict[str, str]:
    if not isinstance(tool_input, dict):
        raise InvalidToolInputError(f"Invalid input for {tool_name}: expected an object")

    arguments = {}
    # Every declared tool argument is a required string
    for name in get_tool_by_name(tool_name)["parameters"].get("required", []):
        value = tool_input.get(name)
        if not isinstance(value, str):
            raise InvalidToolInputError(
                f'Invalid input for {tool_name}: "{name}" must be a string'
            )
        arguments[name] = value
    return arguments


def execute_tool(tool_name: str, tool_input: Dict[str, Any]) -> str:
    """
    Execute a registered tool.

    Args:
        tool_name: Name of the tool to execute
        tool_input: Arguments from the model

    Returns:
        The tool's result, or "Error: <message>" for expected failures.
        Unexpected exceptions propagate to the dispatcher.
    """
    registry = get_tool_registry()

    try:
        if tool_name not in registry:
            raise UnknownToolError(f'Unknown tool "{tool_name}"')
        arguments = _validate_input(tool_name, tool_input)
        return registry[tool_name](**arguments)
    except ToolError as e:
        logger.warning(f"⚠️  {tool_name} failed ({e.kind.value}): {e.message}")
        return f"{ERROR_PREFIX} {e.message}"


__all__ = [
    # Errors
    "ToolErrorKind",
    "ToolError",
    "InvalidToolInputError",
    "UnknownToolError",
    "TargetNotFoundError",
    "ToolIOError",
    "AmbiguousEditError",
    "CommandFailedError",

    # File tools
    "read_file",
    "edit_file",
    "list_files",

    # Command tools
    "run_command",

    # Registry
    "get_tool_registry",
    "execute_tool",
]
