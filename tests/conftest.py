"""Shared fixtures: a scripted model backend and an in-memory fake memory store."""
import os

os.environ.setdefault("OPENAI_API_KEY", "sk-test")

from unittest.mock import AsyncMock, MagicMock

import pytest

from cubicagent.llm import ModelReply, ToolCallRequest


def reply(text=None, tokens=0, calls=()):
    """Build a ModelReply; ``calls`` is a sequence of (id, name, arguments)."""
    return ModelReply(
        text=text,
        used_tokens=tokens,
        tool_calls=[ToolCallRequest(id=i, name=n, arguments=a) for i, n, a in calls],
    )


@pytest.fixture
def backend():
    b = MagicMock()
    b.max_tokens = 4096
    b.complete = AsyncMock()
    return b


def fake_memory(cfg=None):
    """Also usable as a MEMORY_FACTORY target: ``conftest:fake_memory``."""
    m = MagicMock()
    m.remember = AsyncMock(return_value="mem-1")
    m.recall = AsyncMock(return_value={"id": "mem-1", "sentence": "likes tea", "importance": 0.8, "tags": ["pref"]})
    m.search = AsyncMock(return_value=[])
    m.forget = AsyncMock(return_value=True)
    m.get_short_term_memories = MagicMock(return_value=[])
    m.add_to_short_term_memory = AsyncMock(return_value=True)
    m.edit_importance = AsyncMock(return_value=True)
    m.edit_content = AsyncMock(return_value=True)
    m.add_tag = AsyncMock(return_value=True)
    m.remove_tag = AsyncMock(return_value=True)
    m.replace_tags = AsyncMock(return_value=True)
    return m


@pytest.fixture
def memory():
    return fake_memory()
