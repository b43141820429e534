"""Tool registry — internal tool capability and the aggregator that routes calls by name."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..errors import AgentError, NotFound, ToolExecutionFailed


@dataclass
class ToolParam:
    name: str
    type: str = "string"
    description: str = ""
    required: bool = True
    extra: Dict[str, Any] = field(default_factory=dict)  # items, enum, minimum, ...

    def to_schema(self) -> Dict[str, Any]:
        schema = {"type": self.type, "description": self.description}
        schema.update(self.extra)
        return schema


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str = ""
    parameters: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    @classmethod
    def from_params(cls, name: str, description: str, params: Sequence[ToolParam]) -> "ToolDefinition":
        return cls(
            name=name,
            description=description,
            parameters={
                "type": "object",
                "properties": {p.name: p.to_schema() for p in params},
                "required": [p.name for p in params if p.required],
            },
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolDefinition":
        """Build from a dispatcher tool entry ({name, description, parameters})."""
        return cls(
            name=data["name"],
            description=data.get("description") or "",
            parameters=data.get("parameters") or {"type": "object", "properties": {}},
        )

    def to_openai(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass
class ToolExecutionResult:
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None  # error kind code, e.g. "NotFound"
    message: Optional[str] = None

    @classmethod
    def ok(cls, **data) -> "ToolExecutionResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: AgentError, **context) -> "ToolExecutionResult":
        return cls(success=False, data=context, error=error.code, message=error.message)

    @classmethod
    def from_value(cls, value: Any) -> "ToolExecutionResult":
        """Normalize whatever an external executor returned."""
        if isinstance(value, ToolExecutionResult):
            return value
        if isinstance(value, dict):
            data = dict(value)
            success = data.pop("success", True)
            if not isinstance(success, bool):
                success = bool(success)
            error = data.pop("error", None)
            message = data.pop("message", None)
            if not success and error is None:
                error = ToolExecutionFailed.code
            return cls(success=success, data=data,
                       error=str(error) if error is not None else None, message=message)
        return cls(success=True, data={"result": value})

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
        if self.message is not None:
            result["message"] = self.message
        result.update(self.data)
        return result


class InternalTool:
    """In-process capability: a name, a definition and an async ``execute``."""

    name: str = ""
    description: str = ""
    params: Sequence[ToolParam] = ()

    def definition(self) -> ToolDefinition:
        return ToolDefinition.from_params(self.name, self.description, self.params)

    def can_handle(self, name: str) -> bool:
        return name == self.name

    async def execute(self, arguments: Any) -> ToolExecutionResult:
        raise NotImplementedError


class InternalToolAggregator:
    """Closed registry of internal tools keyed by name.

    Built once at composition time and only read afterwards, so one instance
    is shared by every concurrent session. Per-session additions go through
    :meth:`extended`, which returns a new aggregator.
    """

    def __init__(self, tools: Iterable[InternalTool] = (), logger: Optional[logging.Logger] = None):
        self._tools: Dict[str, InternalTool] = {}
        self._logger = logger or logging.getLogger(__name__)
        for tool in tools:
            self.register(tool)

    def register(self, tool: InternalTool) -> None:
        if tool.name in self._tools:
            self._logger.error(f"Duplicate internal tool name: {tool.name}")
            raise ValueError(f"Duplicate internal tool name: {tool.name}")
        self._tools[tool.name] = tool
        self._logger.info(f"Registered tool: {tool.name}")

    def extended(self, tools: Iterable[InternalTool]) -> "InternalToolAggregator":
        """Copy of this registry with ``tools`` appended; names already taken are skipped."""
        clone = InternalToolAggregator(logger=self._logger)
        clone._tools = dict(self._tools)
        for tool in tools:
            if tool.name in clone._tools:
                self._logger.warning(f"Skipping tool {tool.name}: name already registered")
                continue
            clone._tools[tool.name] = tool
        return clone

    def can_handle(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> Optional[InternalTool]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def list_definitions(self) -> List[ToolDefinition]:
        return [tool.definition() for tool in self._tools.values()]

    async def execute(self, name: str, arguments: Any) -> ToolExecutionResult:
        tool = self._tools.get(name)
        if tool is None:
            self._logger.warning(f"Unknown tool: {name}")
            return ToolExecutionResult.failure(
                NotFound(f"No tool found for function: {name}"), functionName=name,
            )

        try:
            return await tool.execute(arguments)
        except AgentError as e:
            self._logger.warning(f"Tool {name} rejected call: {e.message}")
            return ToolExecutionResult.failure(e, functionName=name)
        except Exception as e:
            self._logger.error(f"Tool {name} failed: {e}", exc_info=True)
            return ToolExecutionResult.failure(ToolExecutionFailed(str(e)), functionName=name)
