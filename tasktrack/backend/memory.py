"""In-process row store — same primitives as the PostgREST adapter, kept in a list."""

from __future__ import annotations

import copy
import itertools
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from tasktrack.engine.errors import RecordError


class InMemoryTaskStore:
    """
    Row store for local runs and tests.

    Assigns ``id`` and ``created_at`` on insert. Rows are copied on the way
    in and out so callers never share state with the store.
    """

    def __init__(self, table: str = "tasks"):
        self._table = table
        self._rows: List[Dict[str, Any]] = []
        self._sequence = itertools.count(1)

    async def insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        inserted = []
        for row in rows:
            stored = copy.deepcopy(row)
            stored.setdefault("id", str(uuid.uuid4()))
            stored["created_at"] = datetime.now(timezone.utc).isoformat()
            stored["_seq"] = next(self._sequence)
            self._rows.append(stored)
            inserted.append(self._public(stored))
        return inserted

    async def select(
        self,
        filters: Dict[str, Any],
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[Dict[str, Any]]:
        matches = [
            row for row in self._rows
            if all(row.get(column) == value for column, value in filters.items())
        ]
        # Insertion order breaks ties between identical timestamps
        matches.sort(key=lambda row: (row.get(order_by) or "", row["_seq"]), reverse=descending)
        return [self._public(row) for row in matches]

    async def update(self, row_id: Any, values: Dict[str, Any]) -> Dict[str, Any]:
        row = self._find(row_id, "update")
        row.update(copy.deepcopy(values))
        return self._public(row)

    async def delete(self, row_id: Any) -> None:
        row = self._find(row_id, "delete")
        self._rows.remove(row)

    def _find(self, row_id: Any, operation: str) -> Dict[str, Any]:
        for row in self._rows:
            if row.get("id") == row_id:
                return row
        raise RecordError(
            "Task not found", record_type=self._table, record_id=row_id, operation=operation,
        )

    @staticmethod
    def _public(row: Dict[str, Any]) -> Dict[str, Any]:
        return {k: copy.deepcopy(v) for k, v in row.items() if k != "_seq"}

    def __len__(self) -> int:
        return len(self._rows)
