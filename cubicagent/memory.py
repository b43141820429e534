"""Memory collaborator contract and short-term priming.

The memory store itself (storage, indexing, LRU) lives outside this package;
only the calls the memory tools make are described here.
"""
import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

AVERAGE_TOKENS_PER_MEMORY = 80


class MemoryRepository(Protocol):
    async def remember(self, sentence: str, importance: Optional[float], tags: List[str]) -> str: ...

    async def recall(self, memory_id: str) -> Optional[Dict[str, Any]]: ...

    async def search(self, options: Dict[str, Any]) -> List[Dict[str, Any]]: ...

    async def forget(self, memory_id: str) -> bool: ...

    def get_short_term_memories(self) -> List[Dict[str, Any]]: ...

    async def add_to_short_term_memory(self, memory_id: str) -> bool: ...

    async def edit_importance(self, memory_id: str, importance: float) -> bool: ...

    async def edit_content(self, memory_id: str, sentence: str) -> bool: ...

    async def add_tag(self, memory_id: str, tag: str) -> bool: ...

    async def remove_tag(self, memory_id: str, tag: str) -> bool: ...

    async def replace_tags(self, memory_id: str, tags: List[str]) -> bool: ...


def estimate_memory_tokens(memory: Dict[str, Any]) -> int:
    """Rough token estimate: ~4 characters per token plus metadata overhead."""
    content = memory.get("sentence") or memory.get("content") or ""
    tags = memory.get("tags")
    tag_text = ", ".join(tags) if isinstance(tags, list) else ""
    return math.ceil(len(content) / 4) + math.ceil(len(tag_text) / 4) + 10


def _timestamp(memory: Dict[str, Any]) -> float:
    raw = memory.get("updatedAt") or memory.get("createdAt")
    if not raw:
        return 0.0
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


async def prime_short_term_memory(memory: MemoryRepository, max_tokens: int = 2000) -> int:
    """Fill an empty short-term memory with recent important memories.

    Fetches about twice as many recent memories as the budget can hold,
    orders them by importance (recency breaks ties) and adds them until
    ``max_tokens`` would be exceeded. Returns how many were added. Failures
    are logged; priming never blocks start-up.
    """
    try:
        existing = memory.get_short_term_memories()
        if existing:
            logger.info(f"Short-term memory already holds {len(existing)} items, skipping priming")
            return 0

        wanted = math.ceil(max_tokens / AVERAGE_TOKENS_PER_MEMORY)
        limit = min(max(wanted * 2, 10), 100)
        recent = await memory.search({"sortBy": "timestamp", "sortOrder": "desc", "limit": limit})
        if not recent:
            logger.info("No memories found to prime short-term memory")
            return 0

        ranked = sorted(
            recent,
            key=lambda m: (m.get("importance") or 5, _timestamp(m)),
            reverse=True,
        )

        selected = []
        used = 0
        for item in ranked:
            cost = estimate_memory_tokens(item)
            if used + cost > max_tokens:
                break
            selected.append(item)
            used += cost

        added = 0
        for item in selected:
            try:
                await memory.add_to_short_term_memory(item["id"])
                added += 1
            except Exception as e:
                logger.warning(f"Failed to add memory {item.get('id')} to short-term: {e}")

        logger.info(f"Primed short-term memory with {added} memories (~{used}/{max_tokens} tokens, searched {len(recent)}/{limit})")
        return added
    except Exception as e:
        logger.error(f"Failed to prime short-term memory: {e}", exc_info=True)
        return 0
