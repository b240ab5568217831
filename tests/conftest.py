"""
TaskTrack Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from tasktrack.backend.memory import InMemoryTaskStore
from tasktrack.engine.context import SessionContext, clear_session
from tasktrack.engine.errors import BackendError
from tasktrack.flows.credentials import CredentialFlowController
from tasktrack.flows.notifications import NotificationChannel
from tasktrack.flows.tasks import TaskReconciler
from tasktrack.records.auth import AuthUser


# ---------------------------------------------------------------------------
# Isolation: reset global singletons between tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Reset the cached config, session context and log queue."""
    import tasktrack.engine.config as cfg_mod
    import tasktrack.engine.logging as log_mod

    for name in ("TASKTRACK_BACKEND_URL", "TASKTRACK_BACKEND_KEY", "TASKTRACK_ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)
    cfg_mod._config = None
    log_mod._global_queue = None
    clear_session()
    yield
    cfg_mod._config = None
    log_mod._global_queue = None
    clear_session()


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeClock:
    """Manually advanced clock for notification expiry."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAuth:
    """
    AuthProvider double. Set ``error`` to make every call raise it; calls are
    recorded as (method, email) tuples.
    """

    def __init__(self, user_id: str = "user-1"):
        self.user_id = user_id
        self.error: Optional[BaseException] = None
        self.calls: List[tuple] = []
        self.signed_in = False

    def _user(self, email: str) -> AuthUser:
        return AuthUser(id=self.user_id, email=email, confirmed=True)

    async def sign_in_with_password(self, email: str, password: str) -> AuthUser:
        self.calls.append(("sign_in", email))
        if self.error:
            raise self.error
        self.signed_in = True
        return self._user(email)

    async def sign_up(self, email: str, password: str) -> Optional[AuthUser]:
        self.calls.append(("sign_up", email))
        if self.error:
            raise self.error
        return self._user(email)

    async def sign_out(self) -> None:
        self.calls.append(("sign_out", None))
        if self.error:
            raise self.error
        self.signed_in = False

    async def get_user(self) -> AuthUser:
        self.calls.append(("get_user", None))
        if self.error:
            raise self.error
        if not self.signed_in:
            raise BackendError("Auth session missing!", service="auth")
        return self._user("alice@example.com")


class RecordingNavigator:
    def __init__(self):
        self.destinations: List[str] = []

    def navigate(self, destination: str) -> None:
        self.destinations.append(destination)


class FailingStore(InMemoryTaskStore):
    """In-memory store whose named operations raise BackendError."""

    def __init__(self, fail: tuple = ()):
        super().__init__()
        self.fail = set(fail)
        self.calls: List[tuple] = []

    async def insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self.calls.append(("insert", rows))
        if "insert" in self.fail:
            raise BackendError("insert refused", service="store", status_code=500)
        return await super().insert(rows)

    async def select(self, filters, order_by="created_at", descending=True):
        self.calls.append(("select", filters))
        if "select" in self.fail:
            raise BackendError("select refused", service="store", status_code=500)
        return await super().select(filters, order_by=order_by, descending=descending)

    async def update(self, row_id, values):
        self.calls.append(("update", row_id, values))
        if "update" in self.fail:
            raise BackendError("update refused", service="store", status_code=500)
        return await super().update(row_id, values)

    async def delete(self, row_id):
        self.calls.append(("delete", row_id))
        if "delete" in self.fail:
            raise BackendError("delete refused", service="store", status_code=500)
        return await super().delete(row_id)


async def _no_sleep(seconds: float) -> None:
    return None


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def channel(clock):
    return NotificationChannel(clock=clock)


@pytest.fixture
def auth():
    return FakeAuth()


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def controller(auth, channel, navigator):
    return CredentialFlowController(auth, channel, navigator=navigator, sleep=_no_sleep)


@pytest.fixture
def store():
    return FailingStore()


@pytest.fixture
def session():
    return SessionContext(user_id="user-1", email="alice@example.com")


@pytest.fixture
def reconciler(store, channel, session):
    return TaskReconciler(store, channel, session)


@pytest.fixture
def config_file(tmp_path):
    """Write a tasktrack.yaml and return its path."""
    def _write(text: str):
        path = tmp_path / "tasktrack.yaml"
        path.write_text(text, encoding="utf-8")
        return path
    return _write
