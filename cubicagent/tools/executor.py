"""Tool executor — routes one model tool call to an internal or external tool."""
import logging
import time
from typing import Optional

from ..errors import AgentError, NotFound, ToolExecutionFailed
from ..llm import ToolCallRequest
from .external import ExternalToolExecutor
from .registry import InternalToolAggregator, ToolExecutionResult

logger = logging.getLogger(__name__)


async def execute_tool_call(
    call: ToolCallRequest,
    aggregator: InternalToolAggregator,
    external: Optional[ExternalToolExecutor] = None,
    log: Optional[logging.Logger] = None,
) -> ToolExecutionResult:
    """Execute a tool call by name. Never raises for tool-level failures.

    Internal tools are asked first; anything they do not claim goes to the
    caller-supplied executor. Unclaimed everywhere is ``NotFound``.
    """
    log = log or logger
    try:
        arguments = call.parsed_arguments()
    except AgentError as e:
        log.warning(f"Tool {call.name}: {e.message}")
        return ToolExecutionResult.failure(e, toolCallId=call.id)

    arg_str = ", ".join(f"{k}={v!r}" for k, v in arguments.items())
    log.info(f"Executing tool: {call.name}({arg_str[:200]})")
    t0 = time.monotonic()

    if aggregator.can_handle(call.name):
        result = await aggregator.execute(call.name, arguments)
        route = "internal"
    elif external is not None:
        route = "external"
        try:
            value = await external.call_tool(call.name, arguments)
        except AgentError as e:
            log.warning(f"External tool {call.name} failed: {e.message}")
            value = ToolExecutionResult.failure(e)
        except Exception as e:
            log.error(f"External tool {call.name} failed: {e}", exc_info=True)
            value = ToolExecutionResult.failure(
                ToolExecutionFailed(f"Failed to execute {call.name}: {e}"), toolCallId=call.id,
            )
        if value is None:
            result = ToolExecutionResult.failure(NotFound(f"No tool found for function: {call.name}"),
                                                 functionName=call.name)
        else:
            result = ToolExecutionResult.from_value(value)
    else:
        route = "none"
        result = ToolExecutionResult.failure(NotFound(f"No tool found for function: {call.name}"),
                                             functionName=call.name)

    elapsed = time.monotonic() - t0
    log.info(f"Tool {call.name} [{route}]: {elapsed:.2f}s -> {'ok' if result.success else result.error}")
    return result
