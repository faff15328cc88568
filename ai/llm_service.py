"""
LLM Service - Gemini API Provider with Langfuse Observability

Implements the provider contract (core.provider) on top of Google's Gemini
API:
- Converts conversation messages to Gemini contents (function calls and
  function responses for tool use)
- Converts Gemini candidates back to content blocks and a stop reason
- Token usage tracking
- Langfuse tracing of every provider call (when enabled)

Retries are not handled here; the agent loop wraps every call in the
retry controller.
"""

import logging
import time
import uuid
from functools import wraps
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from google.generativeai.types import GenerationConfig, HarmBlockThreshold, HarmCategory
from langfuse.decorators import langfuse_context, observe

from config import (
    GOOGLE_API_KEY,
    LANGFUSE_ENABLED,
    LANGFUSE_HOST,
    LANGFUSE_PUBLIC_KEY,
    LANGFUSE_SECRET_KEY,
    TEMPERATURE,
)
from core.messages import (
    ContentBlock,
    Message,
    Role,
    StopReason,
    TextBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
)
from core.provider import LLMProvider, ProviderRequest, ProviderResponse

logger = logging.getLogger(__name__)

GEMINI_USER_ROLE = "user"
GEMINI_MODEL_ROLE = "model"


class EmptyResponseError(RuntimeError):
    """Gemini returned no candidates (e.g. the prompt was blocked)."""


# ============================================================================
# OBSERVABILITY
# ============================================================================

_tracing_configured = False


def init_tracing() -> bool:
    """
    Configure Langfuse once, if enabled.

    Returns:
        True when tracing is active
    """
    global _tracing_configured

    if not LANGFUSE_ENABLED:
        return False
    if not _tracing_configured:
        langfuse_context.configure(
            public_key=LANGFUSE_PUBLIC_KEY,
            secret_key=LANGFUSE_SECRET_KEY,
            host=LANGFUSE_HOST,
        )
        _tracing_configured = True
        logger.info("✅ Langfuse observability initialized")
    return True


def trace_llm_call(trace_name: str):
    """
    Decorator adding Langfuse tracing to an LLM call.

    No-op when Langfuse is disabled.
    """
    def decorator(func):
        if not LANGFUSE_ENABLED:
            return func

        @observe(name=trace_name, as_type="generation")
        @wraps(func)
        async def wrapper(*args, **kwargs):
            return await func(*args, **kwargs)

        return wrapper
    return decorator


# ============================================================================
# SAFETY SETTINGS
# ============================================================================

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
}


def get_generation_config(max_tokens: int, temperature: Optional[float] = None) -> GenerationConfig:
    """
    Create a generation configuration for Gemini API calls.

    Args:
        max_tokens: Maximum tokens to generate
        temperature: Sampling temperature. Defaults to config value.

    Returns:
        GenerationConfig object
    """
    return GenerationConfig(
        temperature=TEMPERATURE if temperature is None else temperature,
        max_output_tokens=max_tokens,
    )


# ============================================================================
# REQUEST CONVERSION
# ============================================================================

def to_gemini_contents(messages: List[Message]) -> List[Any]:
    """
    Convert conversation messages to Gemini contents.

    Tool results only carry the tool-use id, while Gemini function responses
    need the function name, so names are resolved from earlier tool uses.
    """
    tool_names: Dict[str, str] = {}
    contents = []

    for message in messages:
        role = GEMINI_MODEL_ROLE if message.role is Role.ASSISTANT else GEMINI_USER_ROLE
        parts = []

        for block in message.blocks:
            if isinstance(block, TextBlock):
                if block.text:
                    parts.append(genai.protos.Part(text=block.text))
            elif isinstance(block, ToolUseBlock):
                tool_names[block.id] = block.name
                parts.append(genai.protos.Part(
                    function_call=genai.protos.FunctionCall(name=block.name, args=block.input),
                ))
            elif isinstance(block, ToolResultBlock):
                parts.append(genai.protos.Part(
                    function_response=genai.protos.FunctionResponse(
                        name=tool_names.get(block.tool_use_id, block.tool_use_id),
                        response={"result": block.content, "is_error": block.is_error},
                    ),
                ))

        if parts:
            contents.append(genai.protos.Content(role=role, parts=parts))

    return contents


# ============================================================================
# RESPONSE CONVERSION
# ============================================================================

def new_tool_use_id() -> str:
    """Gemini function calls carry no id; generate one per call."""
    return f"toolu_{uuid.uuid4().hex[:24]}"


def _to_plain(value: Any) -> Any:
    """Convert proto map/list wrappers in function-call args to plain Python."""
    if isinstance(value, (str, bytes)):
        return value
    if hasattr(value, "items"):
        return {k: _to_plain(v) for k, v in value.items()}
    if hasattr(value, "__iter__"):
        return [_to_plain(v) for v in value]
    return value


def _finish_reason_name(candidate: Any) -> str:
    reason = getattr(candidate, "finish_reason", None)
    return getattr(reason, "name", str(reason))


def from_gemini_response(response: Any) -> ProviderResponse:
    """
    Convert a Gemini response into a provider response.

    Raises:
        EmptyResponseError: If Gemini returned no candidates
    """
    if not response.candidates:
        raise EmptyResponseError("No response candidates returned from Gemini API")

    candidate = response.candidates[0]
    content: List[ContentBlock] = []

    if candidate.content and candidate.content.parts:
        for part in candidate.content.parts:
            if hasattr(part, "text") and part.text:
                content.append(TextBlock(text=part.text))

            if hasattr(part, "function_call") and part.function_call:
                func_call = part.function_call
                content.append(ToolUseBlock(
                    id=new_tool_use_id(),
                    name=func_call.name,
                    input=_to_plain(func_call.args) if func_call.args else {},
                ))

    if _finish_reason_name(candidate) == "MAX_TOKENS":
        stop_reason = StopReason.MAX_TOKENS
    elif any(isinstance(block, ToolUseBlock) for block in content):
        stop_reason = StopReason.TOOL_USE
    else:
        stop_reason = StopReason.END_TURN

    usage = TokenUsage()
    usage_metadata = getattr(response, "usage_metadata", None)
    if usage_metadata is not None:
        usage = TokenUsage(
            input=usage_metadata.prompt_token_count or 0,
            output=usage_metadata.candidates_token_count or 0,
        )

    return ProviderResponse(content=content, stop_reason=stop_reason, usage=usage)


# ============================================================================
# PROVIDER
# ============================================================================

class GeminiProvider(LLMProvider):
    """
    Gemini-backed LLM provider.

    Args:
        api_key: Google API key (defaults to GOOGLE_API_KEY)
        temperature: Sampling temperature (defaults to config)

    Raises:
        ValueError: If no API key is available
    """

    def __init__(self, api_key: Optional[str] = None, temperature: Optional[float] = None):
        api_key = api_key or GOOGLE_API_KEY
        if not api_key:
            raise ValueError(
                "GOOGLE_API_KEY not found in environment variables. "
                "Please set it in your .env file."
            )
        genai.configure(api_key=api_key)
        self.temperature = temperature
        init_tracing()

    @trace_llm_call("create_message")
    async def create_message(self, request: ProviderRequest) -> ProviderResponse:
        """
        Request the next assistant turn from Gemini.

        Args:
            request: Provider-neutral request

        Returns:
            ProviderResponse with content blocks, stop reason and usage
        """
        model = genai.GenerativeModel(
            model_name=request.model,
            generation_config=get_generation_config(request.max_tokens, self.temperature),
            safety_settings=SAFETY_SETTINGS,
            system_instruction=request.system_prompt,
            tools=request.tool_declarations or None,
        )

        start_time = time.time()
        raw_response = await model.generate_content_async(to_gemini_contents(request.messages))
        latency = time.time() - start_time

        result = from_gemini_response(raw_response)

        if LANGFUSE_ENABLED:
            langfuse_context.update_current_observation(
                model=request.model,
                usage={
                    "input": result.usage.input,
                    "output": result.usage.output,
                },
            )

        logger.debug(
            f"📊 Tokens: {result.usage.input} in, {result.usage.output} out, "
            f"stop={result.stop_reason.value}, ⏱️  {latency:.2f}s"
        )
        return result
