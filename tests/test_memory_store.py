"""Unit tests for tasktrack.backend.memory — InMemoryTaskStore."""

import pytest

from tasktrack.backend.memory import InMemoryTaskStore
from tasktrack.backend.ports import TaskStore
from tasktrack.engine.errors import RecordError


@pytest.fixture
def mem():
    return InMemoryTaskStore()


class TestInMemoryTaskStore:
    def test_satisfies_port(self, mem):
        assert isinstance(mem, TaskStore)

    @pytest.mark.asyncio
    async def test_insert_assigns_columns(self, mem):
        [row] = await mem.insert([{"title": "t"}])
        assert row["id"]
        assert row["created_at"]
        assert "_seq" not in row
        assert len(mem) == 1

    @pytest.mark.asyncio
    async def test_rows_are_copied(self, mem):
        source = {"title": "t", "extras": {"tags": ["a"]}}
        [row] = await mem.insert([source])
        source["extras"]["tags"].append("b")
        row["title"] = "changed"
        [stored] = await mem.select({})
        assert stored["title"] == "t"
        assert stored["extras"]["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_select_order(self, mem):
        await mem.insert([{"n": 1}, {"n": 2}, {"n": 3}])
        assert [r["n"] for r in await mem.select({})] == [3, 2, 1]
        assert [r["n"] for r in await mem.select({}, descending=False)] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_update(self, mem):
        [row] = await mem.insert([{"title": "t", "status": "pending"}])
        updated = await mem.update(row["id"], {"status": "done"})
        assert updated["status"] == "done"
        assert updated["title"] == "t"

    @pytest.mark.asyncio
    async def test_update_unknown(self, mem):
        with pytest.raises(RecordError) as exc:
            await mem.update("nope", {"title": "x"})
        assert exc.value.message == "Task not found"

    @pytest.mark.asyncio
    async def test_delete(self, mem):
        [row] = await mem.insert([{"title": "t"}])
        await mem.delete(row["id"])
        assert len(mem) == 0
        with pytest.raises(RecordError):
            await mem.delete(row["id"])
