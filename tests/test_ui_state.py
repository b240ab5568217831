"""Unit tests for tasktrack.ui.state: view helpers and the state event handlers."""

from datetime import date, datetime, timezone

import httpx
import pytest

import tasktrack.ui.state as state_mod
from tasktrack.backend.ports import DESTINATION_DASHBOARD, DESTINATION_ENTRY
from tasktrack.backend.supabase import SupabaseBackend
from tasktrack.flows.credentials import PROVIDER_MESSAGES, SIGN_IN_SUCCESS_MESSAGE, AuthMode
from tasktrack.flows.tasks import DELETE_SUCCESS_MESSAGE, REQUIRED_FIELDS_MESSAGE
from tasktrack.records.task import Task, TaskExtras
from tasktrack.ui.state import (
    AuthState,
    DashboardState,
    SessionState,
    _route_for,
    _RouteRecorder,
    _task_view,
)


class TestTaskView:
    def test_flattens_extras(self):
        task = Task(
            id=12,
            user_id="u1",
            title="Write report",
            description="Quarterly numbers",
            status="done",
            extras=TaskExtras(tags=["work", "q3"], due_date=date(2026, 11, 1), priority="High"),
            created_at=datetime(2026, 10, 1, 9, 30, tzinfo=timezone.utc),
        )
        assert _task_view(task) == {
            "id": "12",
            "title": "Write report",
            "description": "Quarterly numbers",
            "status": "done",
            "tags": "work, q3",
            "due_date": "2026-11-01",
            "priority": "High",
            "created_at": "2026-10-01 09:30",
        }

    def test_empty_extras(self):
        view = _task_view(Task(id="a", user_id="u1", title="t"))
        assert view["tags"] == ""
        assert view["due_date"] == ""
        assert view["priority"] == ""
        assert view["created_at"] == ""


class TestRouting:
    def test_route_for(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert _route_for(DESTINATION_DASHBOARD) == "/dashboard"
        assert _route_for(DESTINATION_ENTRY) == "/"

    def test_recorder(self):
        recorder = _RouteRecorder()
        assert recorder.destination is None
        recorder.navigate(DESTINATION_DASHBOARD)
        assert recorder.destination == DESTINATION_DASHBOARD


# ---------------------------------------------------------------------------
# Event handlers, run on plain objects against a mocked Supabase
# ---------------------------------------------------------------------------

class _Supabase:
    """MockTransport handler keyed by (method, path); records every request."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes[(request.method, request.url.path)]
        return httpx.Response(status, json=body)


@pytest.fixture
def supabase(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    def _install(routes):
        handler = _Supabase(routes)
        backend = SupabaseBackend(
            "http://localhost:54321", "anon-key", transport=httpx.MockTransport(handler),
        )
        monkeypatch.setattr(state_mod, "_shared_backend", backend)
        return handler
    return _install


class _SessionFields:
    _backend = SessionState._backend
    _channel = SessionState._channel
    _show_banner = SessionState._show_banner
    _clear_banner = SessionState._clear_banner

    def __init__(self, **values):
        self._access_token = ""
        self._notification_expires_at = 0.0
        self.user_id = ""
        self.user_email = ""
        self.notification_message = ""
        self.notification_kind = ""
        self.__dict__.update(values)


class _AuthForm(_SessionFields):
    _controller = AuthState._controller

    def __init__(self, **values):
        fields = dict(
            mode=AuthMode.SIGN_IN.value, email="", password="",
            email_error="", password_error="", loading=False,
        )
        fields.update(values)
        super().__init__(**fields)


class _Dashboard(_SessionFields):
    _reconciler = DashboardState._reconciler
    _sync = DashboardState._sync
    _after = DashboardState._after
    _reset_draft = DashboardState._reset_draft

    def __init__(self, **values):
        fields = dict(
            _rows=[], tasks=[], status_filter="all", loading=False, creating=False,
            draft_title="", draft_description="", draft_status="pending",
            draft_tags="", draft_due_date="", draft_priority="",
            errors={}, editing_id="",
        )
        fields.update(values)
        super().__init__(**fields)


async def _drain(events):
    return [event async for event in events]


class TestAuthSubmit:
    @pytest.mark.asyncio
    async def test_sign_in_copies_session_back(self, supabase):
        handler = supabase({
            ("POST", "/auth/v1/token"): (200, {
                "access_token": "tok-1",
                "user": {"id": "user-9", "email": "alice@example.com"},
            }),
        })
        form = _AuthForm()
        events = await _drain(AuthState.submit.fn(
            form, {"email": "Alice@Example.com", "password": "secret1"},
        ))

        assert form._access_token == "tok-1"
        assert form.user_id == "user-9"
        assert form.user_email == "alice@example.com"
        assert form.loading is False
        assert form.notification_message == SIGN_IN_SUCCESS_MESSAGE
        assert form.notification_kind == "success"
        # Banner expiry, then the delayed redirect
        assert len([e for e in events if e is not None]) == 2
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_invalid_form_copies_errors_back(self, supabase):
        handler = supabase({})
        form = _AuthForm()
        events = await _drain(AuthState.submit.fn(form, {"email": "not-an-email", "password": ""}))

        assert form.email_error
        assert form.password_error
        assert form._access_token == ""
        assert handler.requests == []
        assert [e for e in events if e is not None] == []

    @pytest.mark.asyncio
    async def test_provider_rejection_shows_banner(self, supabase):
        supabase({
            ("POST", "/auth/v1/token"): (400, {
                "error": "invalid_grant", "error_description": "Invalid login credentials",
            }),
        })
        form = _AuthForm()
        events = await _drain(AuthState.submit.fn(
            form, {"email": "alice@example.com", "password": "wrong-password"},
        ))

        assert form.notification_kind == "error"
        assert form.notification_message == PROVIDER_MESSAGES["Invalid login credentials"]
        assert form.user_id == ""
        # Banner expiry only, no redirect
        assert len([e for e in events if e is not None]) == 1


class TestDashboardHandlers:
    @pytest.mark.asyncio
    async def test_delete_refetches_with_session_token(self, supabase):
        handler = supabase({
            ("DELETE", "/rest/v1/tasks"): (200, [{"id": 7}]),
            ("GET", "/rest/v1/tasks"): (200, []),
        })
        row = {"id": 7, "user_id": "user-1", "title": "t", "description": "d",
               "status": "pending", "extras": {}}
        dashboard = _Dashboard(_access_token="tok-1", user_id="user-1", _rows=[row])

        event = await DashboardState.delete_task.fn(dashboard, "7")

        assert [r.method for r in handler.requests] == ["DELETE", "GET"]
        assert handler.requests[0].url.params["id"] == "eq.7"
        assert handler.requests[0].headers["Authorization"] == "Bearer tok-1"
        assert dashboard.tasks == []
        assert dashboard._rows == []
        assert dashboard.notification_message == DELETE_SUCCESS_MESSAGE
        assert event is not None

    @pytest.mark.asyncio
    async def test_create_with_missing_fields_copies_errors(self, supabase):
        handler = supabase({})
        dashboard = _Dashboard(
            _access_token="tok-1", user_id="user-1", draft_title="Write report", draft_priority="High",
        )

        events = await _drain(DashboardState.create_task.fn(dashboard))

        assert handler.requests == []
        assert list(dashboard.errors) == ["description"]
        assert dashboard.creating is False
        assert dashboard.draft_title == "Write report"
        assert dashboard.notification_message == REQUIRED_FIELDS_MESSAGE
        assert events[-1] is not None
