"""Tool system — registry, memory tools, summarizer, executor."""
from .registry import InternalTool, InternalToolAggregator, ToolDefinition, ToolExecutionResult, ToolParam
from .memory import memory_tools
from .summarizer import SummarizingTool
from .external import ExternalTool, ExternalToolExecutor
from .executor import execute_tool_call
