"""
Configuration module for Codeloop.

This module provides centralized configuration management including:
- Application settings (models, API keys, paths, retry and tool settings)
- Prompt templates and fixed agent messages
- Tool declarations exposed to the model

All configurable values should be imported from this module to ensure
consistency across the application.
"""

from .settings import (
    # Paths
    SESSIONS_DIR,
    SESSION_FILE_NAME,

    # API Keys
    GOOGLE_API_KEY,

    # LLM Settings
    GEMINI_MODEL,
    TEMPERATURE,
    MAX_TOKENS,
    MAX_RETRIES,
    RETRY_DELAY,

    # Tool Settings
    ENABLE_PARALLEL_TOOLS,
    COMMAND_TIMEOUT,

    # Langfuse Settings
    LANGFUSE_PUBLIC_KEY,
    LANGFUSE_SECRET_KEY,
    LANGFUSE_HOST,
    LANGFUSE_ENABLED,

    # Debug
    DEBUG,
    LOG_LEVEL,
)

from .prompts import (
    # System Prompts
    SYSTEM_PROMPT,
    build_system_prompt,

    # Fixed messages
    TRUNCATION_MESSAGE,
    ERROR_MESSAGE_PREFIX,

    # Tool Definitions
    TOOL_DEFINITIONS,
    get_tool_by_name,
    get_tool_names,

    # Utilities
    format_prompt,
)

__all__ = [
    # Settings
    "SESSIONS_DIR",
    "SESSION_FILE_NAME",
    "GOOGLE_API_KEY",
    "GEMINI_MODEL",
    "TEMPERATURE",
    "MAX_TOKENS",
    "MAX_RETRIES",
    "RETRY_DELAY",
    "ENABLE_PARALLEL_TOOLS",
    "COMMAND_TIMEOUT",
    "LANGFUSE_PUBLIC_KEY",
    "LANGFUSE_SECRET_KEY",
    "LANGFUSE_HOST",
    "LANGFUSE_ENABLED",
    "DEBUG",
    "LOG_LEVEL",

    # Prompts
    "SYSTEM_PROMPT",
    "build_system_prompt",
    "TRUNCATION_MESSAGE",
    "ERROR_MESSAGE_PREFIX",
    "TOOL_DEFINITIONS",
    "get_tool_by_name",
    "get_tool_names",
    "format_prompt",
]
