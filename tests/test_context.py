"""Unit tests for tasktrack.engine.context — SessionContext and the ContextVar helpers."""

import asyncio

import pytest

from tasktrack.engine.context import (
    STATUS_FILTER_ALL,
    SessionContext,
    clear_session,
    get_session,
    require_session,
    set_session,
)
from tasktrack.engine.errors import SessionError


class TestSessionContext:
    def test_defaults(self):
        ctx = SessionContext(user_id="u1")
        assert ctx.status_filter == STATUS_FILTER_ALL
        assert ctx.tasks == []

    def test_to_dict(self):
        d = SessionContext(user_id="u1", email="a@b.co").to_dict()
        assert d["user_id"] == "u1"
        assert d["task_count"] == 0
        # Emails stay out of the serialized form
        assert "email" not in d


class TestContextVar:
    def test_set_and_get(self):
        ctx = SessionContext(user_id="u1")
        set_session(ctx)
        assert get_session() is ctx
        assert require_session() is ctx

    def test_require_without_session(self):
        with pytest.raises(SessionError):
            require_session()

    def test_clear(self):
        set_session(SessionContext(user_id="u1"))
        clear_session()
        assert get_session() is None

    @pytest.mark.asyncio
    async def test_isolated_between_tasks(self):
        async def worker(user_id):
            set_session(SessionContext(user_id=user_id))
            await asyncio.sleep(0)
            return get_session().user_id

        results = await asyncio.gather(worker("a"), worker("b"))
        assert results == ["a", "b"]
        assert get_session() is None
