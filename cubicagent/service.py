"""Service composition — wires backend, tools, orchestrator and handlers once at start-up."""
import importlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from .config import Settings, settings as default_settings
from .errors import InvalidArgument
from .handlers import MessageHandler, TriggerHandler
from .llm import ModelBackend
from .memory import MemoryRepository, prime_short_term_memory
from .orchestrator import SessionOrchestrator
from .protocol import AgentRequest, AgentResponse, TriggerRequest
from .tools.external import ExternalToolExecutor
from .tools.memory import MemoryGetShortTermTool, MemoryRecallTool, MemorySearchTool, memory_tools
from .tools.registry import InternalTool, InternalToolAggregator
from .tools.summarizer import SummarizingTool

logger = logging.getLogger(__name__)

# Memory tools whose output is long enough to be worth a summarized variant
SUMMARIZED_MEMORY_TOOLS = (MemoryRecallTool, MemorySearchTool, MemoryGetShortTermTool)


def build_internal_tools(
    backend: ModelBackend,
    summarizer_model: str = "",
    memory: Optional[MemoryRepository] = None,
    extra_tools: Iterable[InternalTool] = (),
) -> InternalToolAggregator:
    tools: List[Any] = list(extra_tools)
    if memory is not None:
        tools.extend(memory_tools(memory))
        if summarizer_model:
            tools.extend(
                SummarizingTool(cls(memory), backend, summarizer_model) for cls in SUMMARIZED_MEMORY_TOOLS
            )
    aggregator = InternalToolAggregator(tools)
    logger.info(f"Internal tools enabled: {len(aggregator)} ({', '.join(aggregator.names()) or 'none'})")
    return aggregator


@dataclass
class AgentService:
    settings: Settings
    backend: ModelBackend
    orchestrator: SessionOrchestrator
    message_handler: MessageHandler
    trigger_handler: TriggerHandler
    memory: Optional[MemoryRepository] = None

    async def dispatch(self, payload: Dict[str, Any], external: Optional[ExternalToolExecutor] = None) -> AgentResponse:
        """Route a raw dispatcher payload to the trigger or message handler."""
        try:
            if payload.get("trigger") is not None:
                request = TriggerRequest.model_validate(payload)
                return await self.trigger_handler.handle(request, external)
            request = AgentRequest.model_validate(payload)
        except ValidationError as e:
            err = InvalidArgument(f"Invalid dispatch request: {e.error_count()} validation errors")
            logger.warning(f"{err.message}: {e}")
            return AgentResponse(content=f"Error: {err.message}", usedToken=0)
        return await self.message_handler.handle(request, external)

    async def start(self) -> int:
        """Prime short-term memory when a memory store is attached."""
        if self.memory is None:
            return 0
        return await prime_short_term_memory(self.memory, self.settings.memory_max_tokens)


def load_memory(cfg: Settings) -> Optional[MemoryRepository]:
    """Build the configured memory store, or None when memory is disabled."""
    if not cfg.memory_enabled:
        return None
    if not cfg.memory_factory:
        raise ValueError("MEMORY_ENABLED is set but MEMORY_FACTORY is empty")

    module_name, _, attr = cfg.memory_factory.partition(":")
    if not module_name or not attr:
        raise ValueError(f"MEMORY_FACTORY must look like 'module:callable', got {cfg.memory_factory!r}")
    factory = getattr(importlib.import_module(module_name), attr)
    memory = factory(cfg)
    logger.info(f"Memory enabled via {cfg.memory_factory}")
    return memory


def build_service(
    cfg: Optional[Settings] = None,
    memory: Optional[MemoryRepository] = None,
    backend: Optional[ModelBackend] = None,
    extra_tools: Iterable[InternalTool] = (),
) -> AgentService:
    """Compose the service. Memory tools are registered only when ``memory`` is given."""
    cfg = cfg or default_settings
    backend = backend or ModelBackend.from_settings(cfg)
    aggregator = build_internal_tools(backend, cfg.summarizer_model, memory, extra_tools)
    orchestrator = SessionOrchestrator(
        backend,
        aggregator,
        max_iterations=cfg.session_max_iteration,
        summarizer_model=cfg.summarizer_model,
        parallel_tool_calls=cfg.parallel_tool_calls,
    )
    timeout = cfg.dispatch_timeout or None
    return AgentService(
        settings=cfg,
        backend=backend,
        orchestrator=orchestrator,
        message_handler=MessageHandler(orchestrator, timeout),
        trigger_handler=TriggerHandler(orchestrator, timeout),
        memory=memory,
    )
