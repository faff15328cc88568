"""
Application settings and configuration values.

This module centralizes all configuration values including:
- File paths (session storage)
- API keys and credentials
- Model parameters
- Retry, tool execution and logging settings

Environment variables are loaded via python-dotenv.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# ============================================================================
# PATHS
# ============================================================================

# Sessions live next to the project being worked on, not next to the package
SESSIONS_DIR = Path(
    os.getenv("CODELOOP_SESSIONS_DIR", str(Path.cwd() / ".codeloop" / "sessions"))
)
SESSION_FILE_NAME = "session.json"

# ============================================================================
# LLM CONFIGURATION
# ============================================================================

# Gemini API Settings
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")

# Model Parameters
TEMPERATURE = float(os.getenv("TEMPERATURE", "0.7"))
MAX_TOKENS = int(os.getenv("MAX_TOKENS", "8192"))

# Retry Settings
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
RETRY_DELAY = float(os.getenv("RETRY_DELAY", "1.0"))  # seconds, doubled per attempt

# ============================================================================
# TOOL EXECUTION
# ============================================================================

ENABLE_PARALLEL_TOOLS = os.getenv("ENABLE_PARALLEL_TOOLS", "true").lower() == "true"
COMMAND_TIMEOUT = int(os.getenv("COMMAND_TIMEOUT", "120"))  # seconds

# ============================================================================
# LANGFUSE OBSERVABILITY
# ============================================================================

LANGFUSE_PUBLIC_KEY = os.getenv("LANGFUSE_PUBLIC_KEY")
LANGFUSE_SECRET_KEY = os.getenv("LANGFUSE_SECRET_KEY")
LANGFUSE_HOST = os.getenv("LANGFUSE_HOST", "https://cloud.langfuse.com")

# Enable/disable Langfuse tracing
LANGFUSE_ENABLED = os.getenv("LANGFUSE_ENABLED", "false").lower() == "true"

if LANGFUSE_ENABLED and (not LANGFUSE_PUBLIC_KEY or not LANGFUSE_SECRET_KEY):
    print("⚠️  Warning: Langfuse is enabled but keys are missing. Tracing will be disabled.")
    LANGFUSE_ENABLED = False

# ============================================================================
# DEVELOPMENT / DEBUG SETTINGS
# ============================================================================

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Print configuration summary on import (only in debug mode)
if DEBUG:
    print("\n" + "="*60)
    print("🔧 Codeloop Configuration Loaded")
    print("="*60)
    print(f"Model: {GEMINI_MODEL}")
    print(f"Max Tokens: {MAX_TOKENS}")
    print(f"Retries: {MAX_RETRIES} (base delay {RETRY_DELAY}s)")
    print(f"Parallel tools: {ENABLE_PARALLEL_TOOLS}")
    print(f"Langfuse: {'✅ Enabled' if LANGFUSE_ENABLED else '❌ Disabled'}")
    print(f"Sessions Directory: {SESSIONS_DIR}")
    print("="*60 + "\n")
