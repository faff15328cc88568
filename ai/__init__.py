"""
AI Infrastructure Module

This module provides the LLM backend for Codeloop:
- Gemini provider implementing the provider contract in core.provider
- Conversion between conversation messages and Gemini contents
- Langfuse observability integration
- Token usage tracking

The agent loop talks to the model only through an LLMProvider, so this is
the single place that knows about the Gemini SDK.
"""

from .llm_service import (
    # Provider
    GeminiProvider,
    EmptyResponseError,

    # Conversion
    to_gemini_contents,
    from_gemini_response,

    # Observability
    init_tracing,
    trace_llm_call,
)

__all__ = [
    "GeminiProvider",
    "EmptyResponseError",
    "to_gemini_contents",
    "from_gemini_response",
    "init_tracing",
    "trace_llm_call",
]
