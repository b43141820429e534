"""Message and trigger handlers — translate dispatcher requests to sessions and back."""
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from .memory import MemoryRepository
from .messages import build_conversation, build_trigger_message, trigger_guide
from .orchestrator import SessionOrchestrator, SessionState
from .protocol import AgentRequest, AgentResponse, ToolSpec, TriggerRequest
from .tools.external import ExternalToolExecutor
from .tools.memory import memory_tools
from .tools.registry import InternalToolAggregator, ToolDefinition


class BaseHandler:
    """Runs one session per call; holds no state between calls."""

    def __init__(
        self,
        orchestrator: SessionOrchestrator,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.orchestrator = orchestrator
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def session_aggregator(self, memory: Optional[MemoryRepository]) -> InternalToolAggregator:
        """Shared aggregator, plus per-call memory tools it does not already provide."""
        aggregator = self.orchestrator.aggregator
        if memory is None:
            return aggregator
        extra = [tool for tool in memory_tools(memory, self.logger) if not aggregator.can_handle(tool.name)]
        return aggregator.extended(extra) if extra else aggregator

    async def dispatch(
        self,
        messages: List[Dict[str, Any]],
        tools: Iterable[ToolSpec],
        external: Optional[ExternalToolExecutor] = None,
        memory: Optional[MemoryRepository] = None,
        system_suffix: str = "",
    ) -> AgentResponse:
        state: Optional[SessionState] = None
        try:
            state = self.orchestrator.start(
                messages,
                [ToolDefinition.from_dict(tool.model_dump()) for tool in tools],
                aggregator=self.session_aggregator(memory),
            )
            run = self.orchestrator.run(state, external, system_suffix)
            if self.timeout:
                await asyncio.wait_for(run, timeout=self.timeout)
            else:
                await run
        except asyncio.TimeoutError:
            self.logger.error(f"Session timed out after {self.timeout}s")
            return AgentResponse(
                content=f"Error: Request timed out after {self.timeout}s",
                usedToken=state.total_used_tokens if state else 0,
            )
        except Exception as e:
            self.logger.error(f"Session failed: {e}", exc_info=True)
            return AgentResponse(content=f"Error: {e}", usedToken=state.total_used_tokens if state else 0)

        return AgentResponse(content=state.content or "", usedToken=state.total_used_tokens)


class MessageHandler(BaseHandler):
    async def handle(
        self,
        request: AgentRequest,
        external: Optional[ExternalToolExecutor] = None,
        memory: Optional[MemoryRepository] = None,
    ) -> AgentResponse:
        self.logger.info(
            f"Message request for {request.agent.identifier}: "
            f"{len(request.messages)} messages, {len(request.tools)} tools"
        )
        return await self.dispatch(build_conversation(request), request.tools, external, memory)


class TriggerHandler(BaseHandler):
    async def handle(
        self,
        request: TriggerRequest,
        external: Optional[ExternalToolExecutor] = None,
        memory: Optional[MemoryRepository] = None,
    ) -> AgentResponse:
        trigger = request.trigger
        self.logger.info(f"Trigger {trigger.identifier} ({trigger.name}) for {request.agent.identifier}")
        return await self.dispatch(
            [build_trigger_message(trigger)],
            request.tools,
            external,
            memory,
            system_suffix=trigger_guide(trigger),
        )
