"""
Tool Dispatcher

Executes the tool uses requested in one assistant turn:
- Several invocations run concurrently when parallel mode is on
- A single invocation (or parallel mode off) runs sequentially
- Results come back positionally aligned with the requests
- A failing invocation becomes an error-tagged result, never an exception

An observer is notified before and after every invocation so a UI or
telemetry layer can follow progress.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from .messages import ToolCallRecord, ToolUseBlock

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error:"

# (tool_name, tool_input) -> result string, sync or async
ToolExecutor = Callable[[str, Dict[str, Any]], Union[str, Awaitable[str]]]


class ToolObserver:
    """
    Receives progress notifications from the dispatcher.

    The default implementation ignores everything; subclass and override
    what you need.
    """

    def on_tool_start(self, tool_id: str, name: str, tool_input: Dict[str, Any]) -> None:
        pass

    def on_tool_complete(
        self,
        tool_id: str,
        name: str,
        tool_input: Dict[str, Any],
        result: str,
        error: bool,
    ) -> None:
        pass


class ToolDispatcher:
    """
    Runs batches of tool uses against an injected executor.

    Args:
        executor: Tool execution capability `(name, input) -> str`
        observer: Progress observer (no-op by default)
        parallel: Run multi-invocation batches concurrently
    """

    def __init__(
        self,
        executor: ToolExecutor,
        observer: Optional[ToolObserver] = None,
        parallel: bool = True,
    ):
        self.executor = executor
        self.observer = observer or ToolObserver()
        self.parallel = parallel

    async def dispatch(self, tool_uses: Sequence[ToolUseBlock]) -> List[ToolCallRecord]:
        """
        Execute a batch of tool uses.

        Args:
            tool_uses: Requested invocations, in the order the model emitted them

        Returns:
            One ToolCallRecord per request, in request order
        """
        if not tool_uses:
            return []

        start_time = time.time()

        if self.parallel and len(tool_uses) > 1:
            records = await self._run_parallel(tool_uses)
        else:
            records = await self._run_sequential(tool_uses)

        failed = sum(1 for record in records if record.error)
        logger.info(
            f"✅ {len(records)} tool calls finished in {time.time() - start_time:.2f}s"
            + (f" ({failed} failed)" if failed else "")
        )
        return records

    async def _run_parallel(self, tool_uses: Sequence[ToolUseBlock]) -> List[ToolCallRecord]:
        """Start every invocation at once and wait for all of them."""
        logger.info(f"🔧 Running {len(tool_uses)} tools in parallel")
        # gather returns results in argument order, whatever finishes first
        records = await asyncio.gather(*(self._invoke(tool_use) for tool_use in tool_uses))
        return list(records)

    async def _run_sequential(self, tool_uses: Sequence[ToolUseBlock]) -> List[ToolCallRecord]:
        """Run invocations one after another."""
        records = []
        for tool_use in tool_uses:
            records.append(await self._invoke(tool_use))
        return records

    async def _invoke(self, tool_use: ToolUseBlock) -> ToolCallRecord:
        """Run one tool use; every failure is converted into an error record."""
        try:
            self.observer.on_tool_start(tool_use.id, tool_use.name, tool_use.input)
            result = await self._call_executor(tool_use.name, tool_use.input)
            if not isinstance(result, str):
                result = str(result)
            error = result.startswith(ERROR_PREFIX)
        except Exception as e:
            logger.error(f"❌ Tool {tool_use.name} execution failed: {e}", exc_info=True)
            result = f"{ERROR_PREFIX} Tool execution failed: {str(e) or type(e).__name__}"
            error = True

        self._notify_complete(tool_use, result, error)
        return ToolCallRecord(
            id=tool_use.id,
            name=tool_use.name,
            input=tool_use.input,
            result=result,
            error=error,
        )

    async def _call_executor(self, name: str, tool_input: Dict[str, Any]) -> Any:
        if inspect.iscoroutinefunction(self.executor):
            return await self.executor(name, tool_input)
        # Blocking tools run in a worker thread so siblings keep going
        result = await asyncio.to_thread(self.executor, name, tool_input)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _notify_complete(self, tool_use: ToolUseBlock, result: str, error: bool) -> None:
        try:
            self.observer.on_tool_complete(tool_use.id, tool_use.name, tool_use.input, result, error)
        except Exception as e:
            logger.warning(f"⚠️  Tool observer failed for {tool_use.name}: {e}")
