"""Summarizing decorator — runs a tool, then has the model compress its output."""
import json
import logging
from typing import Any, Optional

from ..errors import AgentError, BackendUnavailable, InvalidArgument, ToolExecutionFailed
from ..llm import ModelBackend
from .registry import InternalTool, ToolDefinition, ToolExecutionResult

PROMPT_PARAM = "_prompt"
NAME_PREFIX = "summarize_"
SUMMARY_TEMPERATURE = 0.3

SYSTEM_PROMPT = (
    "You are a helpful assistant that summarizes tool execution results based on user instructions. "
    "Provide clear, concise summaries that highlight the most relevant information."
)


def summarizer_name(tool_name: str) -> str:
    return f"{NAME_PREFIX}{tool_name}"


class SummarizingTool:
    """Wraps one tool; every call costs one extra backend request.

    The result always carries the wrapped tool's raw output. A failing
    wrapped tool is still summarized (``originalResult.success`` is false);
    a failing summarization is reported as ``BackendUnavailable``.
    """

    def __init__(
        self,
        tool: InternalTool,
        backend: ModelBackend,
        model: str,
        logger: Optional[logging.Logger] = None,
    ):
        self.tool = tool
        self.backend = backend
        self.model = model
        self.name = summarizer_name(tool.name)
        self.logger = logger or logging.getLogger(__name__)

    def definition(self) -> ToolDefinition:
        base = self.tool.definition()
        properties = {
            PROMPT_PARAM: {
                "type": "string",
                "description": "Instructions for how to summarize the tool results",
            },
        }
        properties.update(base.parameters.get("properties") or {})
        required = [PROMPT_PARAM] + [r for r in base.parameters.get("required") or [] if r != PROMPT_PARAM]
        return ToolDefinition(
            name=self.name,
            description=f"Execute {self.tool.name} and summarize the results. {base.description}".strip(),
            parameters={"type": "object", "properties": properties, "required": required},
        )

    def can_handle(self, name: str) -> bool:
        return name == self.name

    async def execute(self, arguments: Any) -> ToolExecutionResult:
        if not isinstance(arguments, dict):
            return ToolExecutionResult.failure(InvalidArgument("Invalid parameters for summarizer tool"))
        instructions = arguments.get(PROMPT_PARAM)
        if not isinstance(instructions, str) or not instructions.strip():
            return ToolExecutionResult.failure(InvalidArgument(f"Missing required {PROMPT_PARAM} parameter"))

        remainder = {k: v for k, v in arguments.items() if k != PROMPT_PARAM}

        self.logger.info(f"Executing {self.tool.name} for summarization")
        try:
            raw = await self.tool.execute(remainder)
        except AgentError as e:
            raw = ToolExecutionResult.failure(e)
        except Exception as e:
            self.logger.error(f"Wrapped tool {self.tool.name} failed: {e}", exc_info=True)
            raw = ToolExecutionResult.failure(ToolExecutionFailed(str(e)))
        original = raw.to_dict()

        self.logger.info(f"Summarizing {self.tool.name} results with {self.model}")
        try:
            reply = await self.backend.complete(
                [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": f"{instructions}\n\nTool Result:\n{json.dumps(original, indent=2, default=str)}",
                    },
                ],
                model=self.model,
                temperature=SUMMARY_TEMPERATURE,
            )
        except BackendUnavailable as e:
            self.logger.error(f"Summarization of {self.tool.name} failed: {e.message}")
            return ToolExecutionResult.failure(
                BackendUnavailable(f"Summarization failed: {e.message}", e.used_tokens),
                originalTool=self.tool.name,
                originalResult=original,
                tokensUsed=e.used_tokens,
            )

        return ToolExecutionResult.ok(
            message="Tool executed and summarized successfully",
            originalTool=self.tool.name,
            originalResult=original,
            summary=reply.text or "No summary generated",
            tokensUsed=reply.used_tokens,
        )
