"""Session orchestrator — the bounded model/tool loop for one dispatch call.

States::

    AWAITING_MODEL -> EXECUTING_TOOLS -> AWAITING_MODEL -> ... -> DONE | ABORTED
                  \\-> FAILED (backend unavailable)

A :class:`SessionState` belongs to exactly one ``run`` and is discarded once
the response is built. Tool failures never end a session; they are folded
into the conversation as tool-result messages so the model can react.
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .errors import BackendUnavailable, IterationLimitExceeded
from .llm import ModelBackend, ToolCallRequest
from .messages import build_system_message, clean_final_response
from .tools.executor import execute_tool_call
from .tools.external import ExternalTool, ExternalToolExecutor
from .tools.registry import InternalToolAggregator, ToolDefinition, ToolExecutionResult
from .tools.summarizer import SummarizingTool, summarizer_name

# Dispatcher tool whose result lists more tools for the rest of the session
FETCH_SERVER_TOOLS = "cubicler_fetch_server_tools"


class SessionStatus(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


TERMINAL_STATUSES = {SessionStatus.DONE, SessionStatus.ABORTED, SessionStatus.FAILED}


@dataclass
class SessionState:
    aggregator: InternalToolAggregator
    messages: List[Dict[str, Any]] = field(default_factory=list)
    tools: List[ToolDefinition] = field(default_factory=list)
    iteration: int = 0
    total_used_tokens: int = 0
    status: SessionStatus = SessionStatus.AWAITING_MODEL
    pending_calls: List[ToolCallRequest] = field(default_factory=list)
    last_assistant_text: Optional[str] = None
    content: Optional[str] = None

    @property
    def terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def append(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)

    def add_tokens(self, count: Any) -> None:
        if isinstance(count, int) and not isinstance(count, bool) and count > 0:
            self.total_used_tokens += count

    def tool_names(self) -> set:
        return {tool.name for tool in self.tools}


class SessionOrchestrator:
    def __init__(
        self,
        backend: ModelBackend,
        aggregator: Optional[InternalToolAggregator] = None,
        max_iterations: int = 10,
        summarizer_model: str = "",
        parallel_tool_calls: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.backend = backend
        self.aggregator = aggregator if aggregator is not None else InternalToolAggregator()
        self.max_iterations = max_iterations
        self.summarizer_model = summarizer_model
        self.parallel_tool_calls = parallel_tool_calls
        self.logger = logger or logging.getLogger(__name__)

    def start(
        self,
        messages: Iterable[Dict[str, Any]],
        caller_tools: Iterable[ToolDefinition] = (),
        aggregator: Optional[InternalToolAggregator] = None,
    ) -> SessionState:
        """Initial state: caller tools first, then internal tools; names stay unique."""
        aggregator = aggregator if aggregator is not None else self.aggregator
        catalog: List[ToolDefinition] = []
        seen = set()
        for spec in caller_tools:
            if aggregator.can_handle(spec.name) or spec.name in seen:
                self.logger.warning(f"Dropping duplicate tool definition: {spec.name}")
                continue
            catalog.append(spec)
            seen.add(spec.name)
        catalog.extend(aggregator.list_definitions())
        return SessionState(aggregator=aggregator, messages=list(messages), tools=catalog)

    async def run(
        self,
        state: SessionState,
        external: Optional[ExternalToolExecutor] = None,
        system_suffix: str = "",
    ) -> SessionState:
        while not state.terminal:
            if state.status is SessionStatus.AWAITING_MODEL:
                await self._await_model(state, system_suffix)
            else:
                await self._execute_tools(state, external)
        self.logger.info(
            f"Session {state.status.value} after {state.iteration} iterations, "
            f"{state.total_used_tokens} tokens"
        )
        return state

    def system_message(self, state: SessionState, suffix: str = "") -> str:
        text = build_system_message(
            state.iteration + 1, self.max_iterations, self.backend.max_tokens, bool(state.tools),
        )
        return text + suffix

    async def _await_model(self, state: SessionState, system_suffix: str) -> None:
        request = [{"role": "system", "content": self.system_message(state, system_suffix)}]
        request.extend(state.messages)
        tools = [tool.to_openai() for tool in state.tools]

        try:
            reply = await self.backend.complete(request, tools or None)
        except BackendUnavailable as e:
            self.logger.error(f"Backend unavailable at iteration {state.iteration}: {e.message}")
            state.add_tokens(e.used_tokens)
            state.status = SessionStatus.FAILED
            state.content = f"Error: {e.message}"
            return

        state.add_tokens(reply.used_tokens)
        if reply.text:
            state.last_assistant_text = reply.text

        if not reply.tool_calls:
            state.status = SessionStatus.DONE
            state.content = clean_final_response(reply.text)
            return

        state.append({
            "role": "assistant",
            "content": reply.text,
            "tool_calls": [call.to_message() for call in reply.tool_calls],
        })
        state.pending_calls = list(reply.tool_calls)
        state.status = SessionStatus.EXECUTING_TOOLS

    async def _execute_tools(self, state: SessionState, external: Optional[ExternalToolExecutor]) -> None:
        calls, state.pending_calls = state.pending_calls, []
        aggregator = state.aggregator

        if self.parallel_tool_calls and len(calls) > 1:
            results = await asyncio.gather(
                *(execute_tool_call(call, aggregator, external, self.logger) for call in calls)
            )
        else:
            results = []
            for call in calls:
                results.append(await execute_tool_call(call, aggregator, external, self.logger))

        # gather keeps argument order, so messages follow request order either way
        for call, result in zip(calls, results):
            payload = result.to_dict()
            if isinstance(aggregator.get(call.name), SummarizingTool):
                state.add_tokens(payload.get("tokensUsed"))
            state.append({
                "role": "tool",
                "tool_call_id": call.id,
                "content": json.dumps(payload, ensure_ascii=False, default=str),
            })
            if call.name == FETCH_SERVER_TOOLS and result.success:
                self._adopt_server_tools(state, result, external)

        state.iteration += 1
        if state.iteration >= self.max_iterations:
            limit = IterationLimitExceeded(
                f"Maximum iterations ({self.max_iterations}) reached without final response"
            )
            self.logger.warning(f"{limit.message}; {state.total_used_tokens} tokens spent")
            state.status = SessionStatus.ABORTED
            if state.last_assistant_text:
                state.content = clean_final_response(state.last_assistant_text)
            else:
                state.content = limit.message
        else:
            state.status = SessionStatus.AWAITING_MODEL

    def _adopt_server_tools(
        self,
        state: SessionState,
        result: ToolExecutionResult,
        external: Optional[ExternalToolExecutor],
    ) -> None:
        entries = result.data.get("tools")
        if not isinstance(entries, list):
            return

        known = state.tool_names()
        added: List[ToolDefinition] = []
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("name"):
                continue
            spec = ToolDefinition.from_dict(entry)
            if spec.name in known:
                continue
            state.tools.append(spec)
            known.add(spec.name)
            added.append(spec)

        if added and self.summarizer_model and external is not None:
            summarizers = [
                SummarizingTool(ExternalTool(spec, external), self.backend, self.summarizer_model)
                for spec in added
                if summarizer_name(spec.name) not in known
            ]
            state.aggregator = state.aggregator.extended(summarizers)
            state.tools.extend(
                tool.definition() for tool in summarizers if state.aggregator.get(tool.name) is tool
            )

        self.logger.info(f"Added {len(added)} server tools to session catalog")
