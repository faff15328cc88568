"""
Prompt templates and tool definitions for Codeloop.

This module contains:
- The system prompt template for the coding assistant
- Function calling tool definitions exposed to the model
- Fixed user-facing messages produced by the agent loop

All prompts should be maintained here (not hardcoded in core/tools).
"""

from typing import Dict, List

# ============================================================================
# SYSTEM PROMPTS
# ============================================================================

SYSTEM_PROMPT = """You are a helpful coding assistant with access to tools for reading, editing, and creating files, listing directory contents, and running shell commands.

Current working directory: {working_dir}

All file paths should be relative to this directory unless the user specifies an absolute path. When the user mentions "this directory" or "current directory", they mean: {working_dir}

When the user asks you to perform a task:
1. Break it down into steps
2. Use the available tools to accomplish each step
3. Explain what you're doing as you go

Always prefer editing existing files over creating new ones when appropriate. Be concise but informative."""

# ============================================================================
# FIXED AGENT MESSAGES
# ============================================================================

TRUNCATION_MESSAGE = (
    "Response was truncated due to token limit. "
    "Please ask for a shorter response or break down your request."
)

ERROR_MESSAGE_PREFIX = "An error occurred: "

# ============================================================================
# TOOL DEFINITIONS (Function Calling)
# ============================================================================

TOOL_DEFINITIONS = [
    {
        "name": "read_file",
        "description": "Read the contents of a file",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "path": {
                    "type": "STRING",
                    "description": "Path to the file to read"
                }
            },
            "required": ["path"]
        }
    },
    {
        "name": "edit_file",
        "description": "Edit a file by replacing a string with another string, or create a new file if old_str is empty",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "path": {
                    "type": "STRING",
                    "description": "Path to the file to edit"
                },
                "old_str": {
                    "type": "STRING",
                    "description": "The string to replace. If empty, creates a new file with new_str as content"
                },
                "new_str": {
                    "type": "STRING",
                    "description": "The string to replace old_str with"
                }
            },
            "required": ["path", "old_str", "new_str"]
        }
    },
    {
        "name": "run_command",
        "description": "Run a shell command and return its output",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "command": {
                    "type": "STRING",
                    "description": "The shell command to run"
                }
            },
            "required": ["command"]
        }
    },
    {
        "name": "list_files",
        "description": "List files and directories in a given path",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "path": {
                    "type": "STRING",
                    "description": "Path to the directory to list"
                }
            },
            "required": ["path"]
        }
    },
]


# ============================================================================
# UTILITIES
# ============================================================================

def format_prompt(template: str, **kwargs) -> str:
    """
    Format a prompt template with provided variables.

    Args:
        template: Prompt template string with {placeholders}
        **kwargs: Variables to substitute into the template

    Returns:
        Formatted prompt string
    """
    try:
        return template.format(**kwargs)
    except KeyError as e:
        raise ValueError(f"Missing required prompt variable: {e}")


def build_system_prompt(working_dir: str) -> str:
    """Render the system prompt for a given working directory."""
    return format_prompt(SYSTEM_PROMPT, working_dir=working_dir)


def get_tool_by_name(tool_name: str) -> Dict:
    """
    Retrieve tool definition by name.

    Args:
        tool_name: Name of the tool to retrieve

    Returns:
        Tool definition dictionary

    Raises:
        ValueError: If no tool with that name is declared
    """
    tool = next((t for t in TOOL_DEFINITIONS if t["name"] == tool_name), None)
    if not tool:
        available = [t["name"] for t in TOOL_DEFINITIONS]
        raise ValueError(f"Tool '{tool_name}' not found. Available: {available}")
    return tool


def get_tool_names() -> List[str]:
    """Names of all declared tools, in declaration order."""
    return [t["name"] for t in TOOL_DEFINITIONS]
