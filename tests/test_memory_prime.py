"""Tests for memory.py — short-term priming."""
import pytest

from cubicagent.memory import estimate_memory_tokens, prime_short_term_memory


def item(memory_id, importance, updated, sentence="x" * 40):
    return {"id": memory_id, "sentence": sentence, "importance": importance, "tags": ["t"], "updatedAt": updated}


class TestEstimate:
    def test_estimate(self):
        assert estimate_memory_tokens({"sentence": "x" * 40, "tags": ["ab", "cd"]}) == 10 + 2 + 10


class TestPrime:
    @pytest.mark.asyncio
    async def test_skips_when_already_populated(self, memory):
        memory.get_short_term_memories.return_value = [{"id": "a"}]
        assert await prime_short_term_memory(memory) == 0
        memory.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_orders_by_importance_then_recency(self, memory):
        memory.search.return_value = [
            item("low", 0.1, "2025-01-03T00:00:00Z"),
            item("old-high", 0.9, "2025-01-01T00:00:00Z"),
            item("new-high", 0.9, "2025-01-02T00:00:00Z"),
        ]
        added = await prime_short_term_memory(memory, max_tokens=2000)
        assert added == 3
        order = [c.args[0] for c in memory.add_to_short_term_memory.await_args_list]
        assert order == ["new-high", "old-high", "low"]
        options = memory.search.await_args.args[0]
        assert options["limit"] == 50

    @pytest.mark.asyncio
    async def test_respects_token_budget(self, memory):
        memory.search.return_value = [item(str(i), 0.5, None) for i in range(5)]
        assert await prime_short_term_memory(memory, max_tokens=45) == 2

    @pytest.mark.asyncio
    async def test_limit_clamped(self, memory):
        await prime_short_term_memory(memory, max_tokens=100)
        assert memory.search.await_args.args[0]["limit"] == 10

    @pytest.mark.asyncio
    async def test_failures_never_raise(self, memory):
        memory.search.side_effect = RuntimeError("store offline")
        assert await prime_short_term_memory(memory) == 0
