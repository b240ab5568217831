"""TaskTrack backend — ports the flows depend on, and their adapters."""

from __future__ import annotations

from typing import Optional, Tuple

from tasktrack.backend.memory import InMemoryTaskStore  # noqa: F401
from tasktrack.backend.ports import (  # noqa: F401
    DESTINATION_DASHBOARD,
    DESTINATION_ENTRY,
    AuthProvider,
    Navigator,
    TaskStore,
)
from tasktrack.backend.supabase import SupabaseAuth, SupabaseBackend, SupabaseTaskStore
from tasktrack.engine.config import BackendConfig, get_config


def create_supabase(
    config: Optional[BackendConfig] = None,
) -> Tuple[SupabaseBackend, SupabaseAuth, SupabaseTaskStore]:
    """Build the shared HTTP session plus the auth and task-store adapters."""
    config = config or get_config().backend
    backend = SupabaseBackend.from_config(config)
    return backend, SupabaseAuth(backend), SupabaseTaskStore(backend, table=config.tasks_table)
