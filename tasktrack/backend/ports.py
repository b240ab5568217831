"""
Backend ports — the narrow interfaces the flows depend on.

Adapters live beside this module (``supabase.py`` over HTTP, ``memory.py``
in-process). Failures are raised as ``BackendError`` / ``RecordError``;
the flows translate them into notifications.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from tasktrack.records.auth import AuthUser

DESTINATION_ENTRY = "entry"
DESTINATION_DASHBOARD = "dashboard"


@runtime_checkable
class AuthProvider(Protocol):
    async def sign_in_with_password(self, email: str, password: str) -> AuthUser: ...

    async def sign_up(self, email: str, password: str) -> Optional[AuthUser]: ...

    async def sign_out(self) -> None: ...

    async def get_user(self) -> AuthUser: ...


@runtime_checkable
class TaskStore(Protocol):
    """Generic row store over a single table."""

    async def insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]: ...

    async def select(
        self,
        filters: Dict[str, Any],
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[Dict[str, Any]]: ...

    async def update(self, row_id: Any, values: Dict[str, Any]) -> Dict[str, Any]: ...

    async def delete(self, row_id: Any) -> None: ...


class Navigator(Protocol):
    def navigate(self, destination: str) -> None: ...
