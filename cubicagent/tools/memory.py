"""Memory tools — agentmemory_* capabilities backed by the memory collaborator."""
import logging
from typing import Any, List, Optional

from ..errors import AgentError, NotFound, ToolExecutionFailed
from ..memory import MemoryRepository
from .params import (
    as_object,
    optional_number,
    optional_str,
    optional_str_list,
    require_number,
    require_str,
    require_str_list,
)
from .registry import InternalTool, ToolExecutionResult, ToolParam

_TAGS = {"items": {"type": "string"}}


class MemoryTool(InternalTool):
    """Base for memory tools: holds the repository, converts failures to results."""

    def __init__(self, memory: MemoryRepository, logger: Optional[logging.Logger] = None):
        self.memory = memory
        self.logger = logger or logging.getLogger(__name__)

    async def execute(self, arguments: Any) -> ToolExecutionResult:
        try:
            return await self.run(arguments)
        except AgentError as e:
            return ToolExecutionResult.failure(e)
        except Exception as e:
            self.logger.error(f"Memory tool {self.name} failed: {e}", exc_info=True)
            return ToolExecutionResult.failure(ToolExecutionFailed(str(e)))

    async def run(self, arguments: Any) -> ToolExecutionResult:
        raise NotImplementedError

    def outcome(self, ok: bool, ok_message: str, failure_message: str, **data) -> ToolExecutionResult:
        """Map the collaborator's boolean flag onto a result; false means the record was not found."""
        if ok:
            return ToolExecutionResult.ok(message=ok_message, **data)
        return ToolExecutionResult.failure(NotFound(failure_message), **data)


class MemoryRememberTool(MemoryTool):
    name = "agentmemory_remember"
    description = "Store a new memory with optional importance and tags"
    params = [
        ToolParam("sentence", description="The memory content to store"),
        ToolParam("importance", type="number", description="Importance score between 0 and 1 (optional)",
                  required=False, extra={"minimum": 0, "maximum": 1}),
        ToolParam("tags", type="array", description="Tags for categorizing the memory (mandatory, cannot be empty)",
                  extra=_TAGS),
    ]

    async def run(self, arguments):
        sentence = require_str(arguments, "sentence")
        importance = optional_number(arguments, "importance")
        tags = require_str_list(arguments, "tags")

        memory_id = await self.memory.remember(sentence, importance, tags)
        self.logger.info(f"Stored memory {memory_id}: {sentence[:50]}")
        return ToolExecutionResult.ok(message="Memory stored successfully", memoryId=memory_id, sentence=sentence)


class MemoryRecallTool(MemoryTool):
    name = "agentmemory_recall"
    description = "Recall a specific memory by its ID"
    params = [ToolParam("id", description="The memory ID to recall")]

    async def run(self, arguments):
        memory_id = require_str(arguments, "id")
        item = await self.memory.recall(memory_id)
        self.logger.info(f"Recalled memory: {memory_id}")
        return ToolExecutionResult.ok(memory=item, found=item is not None)


class MemorySearchTool(MemoryTool):
    name = "agentmemory_search"
    description = (
        "Search memories with flexible filtering and sorting. All parameters are optional - "
        "provide at least one search criteria (content, contentRegex, tags, or tagsRegex) for meaningful results."
    )
    params = [
        ToolParam("content", description="Search query text to match against memory content", required=False),
        ToolParam("contentRegex", description="Regular expression pattern to match against memory content",
                  required=False),
        ToolParam("tags", type="array", description="Filter by specific tags", required=False, extra=_TAGS),
        ToolParam("tagsRegex", description="Regular expression pattern to match against memory tags",
                  required=False),
        ToolParam("sortBy", description="Sort results by importance, timestamp, or both", required=False,
                  extra={"enum": ["importance", "timestamp", "both"]}),
        ToolParam("sortOrder", description="Sort order - ascending or descending", required=False,
                  extra={"enum": ["asc", "desc"]}),
        ToolParam("limit", type="number", description="Maximum number of results (default: 10)", required=False,
                  extra={"minimum": 1, "maximum": 100}),
    ]

    async def run(self, arguments):
        options = {"limit": optional_number(arguments, "limit") or 10}
        for key in ("content", "contentRegex", "tagsRegex", "sortBy", "sortOrder"):
            value = optional_str(arguments, key)
            if value is not None:
                options[key] = value
        tags = optional_str_list(arguments, "tags")
        if tags is not None:
            options["tags"] = tags

        memories = await self.memory.search(options) or []
        self.logger.info(f"Searched memories with {options}: {len(memories)} results")
        return ToolExecutionResult.ok(memories=memories, count=len(memories), searchOptions=options)


class MemoryForgetTool(MemoryTool):
    name = "agentmemory_forget"
    description = "Remove a memory completely by ID"
    params = [ToolParam("id", description="The memory ID to forget/delete")]

    async def run(self, arguments):
        memory_id = require_str(arguments, "id")
        deleted = await self.memory.forget(memory_id)
        self.logger.info(f"Memory forget: {memory_id} - {'success' if deleted else 'not found'}")
        return self.outcome(deleted, "Memory deleted successfully", "Memory not found", deletedId=memory_id)


class MemoryGetShortTermTool(MemoryTool):
    name = "agentmemory_get_short_term"
    description = "Get short-term memories for prompt inclusion (within token capacity)"
    params = ()

    async def run(self, arguments):
        as_object(arguments)
        memories = self.memory.get_short_term_memories() or []
        self.logger.info(f"Short-term memories: {len(memories)} items")
        return ToolExecutionResult.ok(memories=memories, count=len(memories))


class MemoryAddToShortTermTool(MemoryTool):
    name = "agentmemory_add_to_short_term"
    description = "Add a memory to short-term storage (LRU management)"
    params = [ToolParam("id", description="Memory ID to add to short-term storage")]

    async def run(self, arguments):
        memory_id = require_str(arguments, "id")
        added = await self.memory.add_to_short_term_memory(memory_id)
        self.logger.info(f"Add to short-term: {memory_id} - {'success' if added else 'failed'}")
        return self.outcome(added, "Memory added to short-term storage",
                            "Memory not found or already in short-term", memoryId=memory_id)


class MemoryEditImportanceTool(MemoryTool):
    name = "agentmemory_edit_importance"
    description = "Edit the importance score of an existing memory"
    params = [
        ToolParam("id", description="Memory ID to edit"),
        ToolParam("importance", type="number", description="New importance score (0-1)",
                  extra={"minimum": 0, "maximum": 1}),
    ]

    async def run(self, arguments):
        memory_id = require_str(arguments, "id")
        importance = require_number(arguments, "importance")
        updated = await self.memory.edit_importance(memory_id, importance)
        self.logger.info(f"Edit importance: {memory_id} - {'success' if updated else 'failed'}")
        return self.outcome(updated, "Importance updated successfully", "Memory not found",
                            memoryId=memory_id, newImportance=importance)


class MemoryEditContentTool(MemoryTool):
    name = "agentmemory_edit_content"
    description = "Edit the content/sentence of an existing memory"
    params = [
        ToolParam("id", description="Memory ID to edit"),
        ToolParam("sentence", description="New memory sentence"),
    ]

    async def run(self, arguments):
        memory_id = require_str(arguments, "id")
        sentence = require_str(arguments, "sentence")
        updated = await self.memory.edit_content(memory_id, sentence)
        self.logger.info(f"Edit content: {memory_id} - {'success' if updated else 'failed'}")
        return self.outcome(updated, "Content updated successfully", "Memory not found",
                            memoryId=memory_id, newSentence=sentence)


class MemoryAddTagTool(MemoryTool):
    name = "agentmemory_add_tag"
    description = "Add a tag to an existing memory"
    params = [
        ToolParam("id", description="Memory ID to add tag to"),
        ToolParam("tag", description="Tag to add"),
    ]

    async def run(self, arguments):
        memory_id = require_str(arguments, "id")
        tag = require_str(arguments, "tag")
        added = await self.memory.add_tag(memory_id, tag)
        self.logger.info(f"Add tag: {memory_id} - {'success' if added else 'failed'}")
        return self.outcome(added, "Tag added successfully", "Memory not found or tag already exists",
                            memoryId=memory_id, tag=tag)


class MemoryRemoveTagTool(MemoryTool):
    name = "agentmemory_remove_tag"
    description = "Remove a tag from an existing memory (fails if it would leave the memory without tags)"
    params = [
        ToolParam("id", description="Memory ID to remove tag from"),
        ToolParam("tag", description="Tag to remove"),
    ]

    async def run(self, arguments):
        memory_id = require_str(arguments, "id")
        tag = require_str(arguments, "tag")
        removed = await self.memory.remove_tag(memory_id, tag)
        self.logger.info(f"Remove tag: {memory_id} - {'success' if removed else 'failed'}")
        return self.outcome(removed, "Tag removed successfully", "Memory not found or tag does not exist",
                            memoryId=memory_id, tag=tag)


class MemoryReplaceTagsTool(MemoryTool):
    name = "agentmemory_replace_tags"
    description = "Replace all tags for an existing memory with new tags"
    params = [
        ToolParam("id", description="Memory ID to update tags for"),
        ToolParam("tags", type="array", description="New tags array (cannot be empty)",
                  extra={"items": {"type": "string"}, "minItems": 1}),
    ]

    async def run(self, arguments):
        memory_id = require_str(arguments, "id")
        tags = require_str_list(arguments, "tags")
        replaced = await self.memory.replace_tags(memory_id, tags)
        self.logger.info(f"Replace tags: {memory_id} - {'success' if replaced else 'failed'}")
        return self.outcome(replaced, "Tags replaced successfully", "Memory not found", memoryId=memory_id, newTags=tags)


MEMORY_TOOL_CLASSES = [
    MemoryRememberTool,
    MemoryRecallTool,
    MemorySearchTool,
    MemoryForgetTool,
    MemoryGetShortTermTool,
    MemoryAddToShortTermTool,
    MemoryEditImportanceTool,
    MemoryEditContentTool,
    MemoryAddTagTool,
    MemoryRemoveTagTool,
    MemoryReplaceTagsTool,
]


def memory_tools(memory: MemoryRepository, logger: Optional[logging.Logger] = None) -> List[MemoryTool]:
    """One instance of every memory tool bound to ``memory``, in registration order."""
    return [cls(memory, logger) for cls in MEMORY_TOOL_CLASSES]
