"""Tool Router for the MCP Server.

Executes registered tools: lookup, input validation, handler dispatch
and result normalisation.
"""

import asyncio
import time
from typing import Any

from shared.logging import bind_context, clear_context, get_logger
from shared.models import ToolCall, ToolDefinition, ToolResult, ToolResultStatus
from mcp_server.registry import ToolRegistry

logger = get_logger(__name__)


class ToolRouter:
    """
    Routes tool calls to the handlers registered by domains.

    Handlers receive the validated parameters as keyword arguments and may
    be sync or async. Exceptions are converted into error results; an
    exception's ``code`` attribute (if any) becomes the error code.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def execute(self, call: ToolCall) -> ToolResult:
        """
        Execute a tool call.

        Args:
            call: Tool call request

        Returns:
            Tool execution result
        """
        start_time = time.time()
        tool_name = call.tool_name
        bind_context(request_id=call.request_id)

        try:
            logger.debug("Executing tool", tool=tool_name)

            tool = self.registry.get(tool_name)
            if not tool:
                return ToolResult(
                    tool_name=tool_name,
                    status=ToolResultStatus.NOT_FOUND,
                    error=f"Tool '{tool_name}' not found",
                    error_code="TOOL_NOT_FOUND"
                )

            is_valid, errors = self.registry.validate_input(tool_name, call.parameters)
            if not is_valid:
                return ToolResult(
                    tool_name=tool_name,
                    status=ToolResultStatus.VALIDATION_ERROR,
                    error=f"Validation failed: {'; '.join(errors)}",
                    error_code="VALIDATION_ERROR"
                )

            try:
                data = await self._call_handler(tool, call.parameters)
                result = ToolResult(
                    tool_name=tool_name,
                    status=ToolResultStatus.SUCCESS,
                    data=data
                )
            except Exception as e:
                logger.error(
                    "Tool execution failed",
                    tool=tool_name,
                    domain=tool.domain,
                    error=str(e)
                )
                result = ToolResult(
                    tool_name=tool_name,
                    status=ToolResultStatus.ERROR,
                    error=str(e),
                    error_code=getattr(e, "code", None) or "EXECUTION_ERROR"
                )

            result.execution_time_ms = (time.time() - start_time) * 1000
            return result
        finally:
            clear_context()

    async def _call_handler(self, tool: ToolDefinition, parameters: dict[str, Any]) -> Any:
        if asyncio.iscoroutinefunction(tool.handler):
            return await tool.handler(**parameters)

        # Run sync handlers in the thread pool
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: tool.handler(**parameters))
