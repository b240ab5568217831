"""
TaskTrack Session Context — the signed-in user's state for one browser session.

Holds the current user, the active status filter and the task list last
fetched from the store. Created when authentication succeeds (sign-in or
session resume), discarded at sign-out.

Usage:
    from tasktrack.engine.context import (
        SessionContext,
        set_session,
        get_session,
        require_session,
        clear_session,
    )
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from tasktrack.engine.errors import SessionError

if TYPE_CHECKING:
    from tasktrack.records.task import Task

STATUS_FILTER_ALL = "all"

current_session: ContextVar[Optional["SessionContext"]] = ContextVar(
    "session_context", default=None
)


@dataclass
class SessionContext:
    """
    Per-session state shared by the credential flow and the task reconciler.

    ``tasks`` is only ever replaced wholesale by a store refetch.
    """

    user_id: str
    email: str = ""
    status_filter: str = STATUS_FILTER_ALL
    tasks: List["Task"] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging."""
        return {
            "user_id": self.user_id,
            "status_filter": self.status_filter,
            "task_count": len(self.tasks),
            "started_at": self.started_at.isoformat(),
        }


def set_session(ctx: SessionContext) -> None:
    """Set the session context for the current task."""
    current_session.set(ctx)


def get_session() -> Optional[SessionContext]:
    """Get the current session context. Returns None if not set."""
    return current_session.get()


def require_session() -> SessionContext:
    """Get the session context or raise if nobody is signed in."""
    ctx = get_session()
    if ctx is None:
        raise SessionError("No session context — user not authenticated")
    return ctx


def clear_session() -> None:
    """Clear the session context (sign-out)."""
    current_session.set(None)
