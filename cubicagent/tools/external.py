"""External tools — tools the dispatcher supplies per call."""
import logging
from typing import Any, Dict, Optional, Protocol

from ..errors import InvalidArgument, NotFound
from .params import as_object
from .registry import InternalTool, ToolDefinition, ToolExecutionResult


class ExternalToolExecutor(Protocol):
    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Optional[Any]:
        """Run ``name``; ``None`` means the executor does not handle it."""
        ...


class ExternalTool(InternalTool):
    """Presents a dispatcher tool as an internal one so it can be decorated."""

    def __init__(self, spec: ToolDefinition, executor: ExternalToolExecutor,
                 logger: Optional[logging.Logger] = None):
        self.spec = spec
        self.executor = executor
        self.name = spec.name
        self.description = spec.description
        self.logger = logger or logging.getLogger(__name__)

    def definition(self) -> ToolDefinition:
        return self.spec

    async def execute(self, arguments: Any) -> ToolExecutionResult:
        try:
            arguments = as_object(arguments)
        except InvalidArgument as e:
            return ToolExecutionResult.failure(e)
        value = await self.executor.call_tool(self.name, arguments)
        if value is None:
            return ToolExecutionResult.failure(NotFound(f"Dispatcher does not provide tool: {self.name}"))
        return ToolExecutionResult.from_value(value)
