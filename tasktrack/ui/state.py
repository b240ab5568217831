"""
TaskTrack UI — Reflex state for the auth screen and the dashboard.

Provides:
- SessionState: signed-in user, access token and the notification banner
- AuthState: sign-in / sign-up form over CredentialFlowController
- DashboardState: task list, create form and inline edit over TaskReconciler

Each event handler rebuilds the flow object from state, runs it, and copies
the result back. Banners expire through a background event that re-checks
the expiry time, so a newer banner is never cleared by an older timer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import reflex as rx

from tasktrack.backend.ports import DESTINATION_DASHBOARD
from tasktrack.backend.supabase import SupabaseAuth, SupabaseBackend, SupabaseTaskStore
from tasktrack.engine.config import get_config
from tasktrack.engine.context import STATUS_FILTER_ALL, SessionContext
from tasktrack.flows.credentials import AuthMode, CredentialFlowController
from tasktrack.flows.notifications import NotificationChannel
from tasktrack.flows.tasks import EditDraft, TaskDraft, TaskReconciler
from tasktrack.records.notification import Notification
from tasktrack.records.task import Task
from tasktrack.rules.validation import compute_strength, strength_checks

logger = logging.getLogger("tasktrack.ui.state")

# One connection pool per process; each browser session sends its own token
_shared_backend: Optional[SupabaseBackend] = None


def _get_backend() -> SupabaseBackend:
    global _shared_backend
    if _shared_backend is None:
        _shared_backend = SupabaseBackend.from_config(get_config().backend)
    return _shared_backend


def _route_for(destination: str) -> str:
    auth = get_config().auth
    if destination == DESTINATION_DASHBOARD:
        return auth.dashboard_route
    return auth.entry_route


class _RouteRecorder:
    """Navigator that remembers the destination; the redirect is issued by Reflex."""

    def __init__(self) -> None:
        self.destination: Optional[str] = None

    def navigate(self, destination: str) -> None:
        self.destination = destination


def _task_view(task: Task) -> Dict[str, Any]:
    """Flatten a Task into the strings the dashboard renders."""
    extras = task.extras
    return {
        "id": str(task.id),
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "tags": ", ".join(extras.tags),
        "due_date": extras.due_date.isoformat() if extras.due_date else "",
        "priority": extras.priority.value if extras.priority else "",
        "created_at": task.created_at.strftime("%Y-%m-%d %H:%M") if task.created_at else "",
    }


class SessionState(rx.State):
    """Shared by every page: who is signed in, and the current banner."""

    _access_token: str = ""
    _notification_expires_at: float = 0.0

    user_id: str = ""
    user_email: str = ""
    notification_message: str = ""
    notification_kind: str = ""

    def _backend(self) -> SupabaseBackend:
        return _get_backend().with_token(self._access_token)

    def _channel(self) -> NotificationChannel:
        # Wall clock: the expiry is compared again in a later event
        return NotificationChannel.from_config(
            get_config().notifications,
            clock=time.time,
            on_change=self._show_banner,
            auto_expire=False,
        )

    def _show_banner(self, notification: Optional[Notification]) -> None:
        if notification is None:
            self._clear_banner()
            return
        self.notification_message = notification.message
        self.notification_kind = notification.kind.value
        self._notification_expires_at = notification.expires_at

    def _clear_banner(self) -> None:
        self.notification_message = ""
        self.notification_kind = ""
        self._notification_expires_at = 0.0

    def _clear_user(self) -> None:
        self._access_token = ""
        self.user_id = ""
        self.user_email = ""

    def dismiss_notification(self) -> None:
        self._clear_banner()

    @rx.event(background=True)
    async def expire_notification(self):
        """Sleep until the banner's expiry, then clear it unless it was replaced."""
        async with self:
            delay = self._notification_expires_at - time.time()
        if delay > 0:
            await asyncio.sleep(delay)
        async with self:
            if self.notification_message and time.time() >= self._notification_expires_at:
                self._clear_banner()


class AuthState(SessionState):
    """Sign-in / sign-up form at the entry route."""

    mode: str = AuthMode.SIGN_IN.value
    email: str = ""
    password: str = ""
    email_error: str = ""
    password_error: str = ""
    loading: bool = False

    @rx.var
    def is_sign_up(self) -> bool:
        return self.mode == AuthMode.SIGN_UP.value

    @rx.var
    def strength(self) -> str:
        if not self.password:
            return ""
        return compute_strength(self.password).value

    @rx.var
    def password_checks(self) -> list[dict]:
        return [
            {"label": label, "passed": passed}
            for label, passed in strength_checks(self.password)
        ]

    def _controller(
        self,
        backend: Optional[SupabaseBackend] = None,
        navigator: Optional[_RouteRecorder] = None,
    ) -> CredentialFlowController:
        controller = CredentialFlowController(
            SupabaseAuth(backend or self._backend()),
            self._channel(),
            navigator=navigator,
            # The redirect delay runs in redirect_after_delay instead
            redirect_delay=0,
        )
        controller.mode = AuthMode(self.mode)
        controller.credential.email = self.email
        controller.credential.password = self.password
        return controller

    def set_email(self, value: str) -> None:
        self.email = value
        self.email_error = ""

    def set_password(self, value: str) -> None:
        self.password = value
        self.password_error = ""

    def toggle_mode(self) -> None:
        controller = self._controller()
        self.mode = controller.toggle_mode().value
        self.email_error = ""
        self.password_error = ""
        self._clear_banner()

    async def submit(self, form_data: dict):
        """Handle the auth form submission."""
        self._clear_banner()
        self.loading = True
        yield

        recorder = _RouteRecorder()
        backend = self._backend()
        controller = self._controller(backend, navigator=recorder)
        controller.set_email(form_data.get("email", self.email))
        controller.set_password(form_data.get("password", self.password))
        try:
            await controller.submit()
        finally:
            self.loading = False

        email_error = controller.errors.get("email")
        password_error = controller.errors.get("password")
        self.email_error = str(email_error) if email_error else ""
        self.password_error = str(password_error) if password_error else ""
        self.email = controller.credential.email
        self.password = controller.credential.password

        session = controller.session
        if session is not None:
            self._access_token = backend.access_token or ""
            self.user_id = session.user_id
            self.user_email = session.email

        if self.notification_message:
            yield SessionState.expire_notification
        if recorder.destination is not None:
            yield AuthState.redirect_after_delay(_route_for(recorder.destination))

    @rx.event(background=True)
    async def redirect_after_delay(self, route: str):
        await asyncio.sleep(get_config().auth.redirect_delay_seconds)
        return rx.redirect(route)


class DashboardState(SessionState):
    """Task list, create form, filter and inline edit at the dashboard route."""

    _rows: List[Dict[str, Any]] = []

    tasks: list[dict] = []
    status_filter: str = STATUS_FILTER_ALL
    loading: bool = False
    creating: bool = False

    draft_title: str = ""
    draft_description: str = ""
    draft_status: str = "pending"
    draft_tags: str = ""
    draft_due_date: str = ""
    draft_priority: str = ""
    errors: dict[str, str] = {}

    editing_id: str = ""
    edit_title: str = ""
    edit_description: str = ""
    edit_status: str = "pending"

    @rx.var
    def task_count(self) -> int:
        return len(self.tasks)

    # -- bridging --

    def _reconciler(self) -> TaskReconciler:
        session = SessionContext(
            user_id=self.user_id,
            email=self.user_email,
            status_filter=self.status_filter,
            tasks=[Task.from_row(row) for row in self._rows],
        )
        store = SupabaseTaskStore(self._backend(), table=get_config().backend.tasks_table)
        return TaskReconciler(store, self._channel(), session)

    def _sync(self, reconciler: TaskReconciler) -> None:
        self._rows = [task.model_dump(mode="json") for task in reconciler.tasks]
        self.tasks = [_task_view(task) for task in reconciler.tasks]
        self.status_filter = reconciler.session.status_filter
        self.errors = {name: str(error) for name, error in reconciler.errors.items() if error}

    def _after(self):
        return SessionState.expire_notification if self.notification_message else None

    def _pending_expiry(self) -> list:
        return [SessionState.expire_notification] if self.notification_message else []

    def _reset_dashboard(self) -> None:
        self._rows = []
        self.tasks = []
        self.status_filter = STATUS_FILTER_ALL
        self.errors = {}
        self.editing_id = ""
        self._reset_draft()

    def _reset_draft(self) -> None:
        self.draft_title = ""
        self.draft_description = ""
        self.draft_status = "pending"
        self.draft_tags = ""
        self.draft_due_date = ""
        self.draft_priority = ""

    # -- page load --

    async def load(self):
        """on_load: resume the provider session, then fetch tasks."""
        entry_route = get_config().auth.entry_route
        if not self._access_token:
            return rx.redirect(entry_route)

        controller = CredentialFlowController(SupabaseAuth(self._backend()), self._channel())
        session = await controller.resume_session()
        if session is None:
            self._clear_user()
            self._reset_dashboard()
            return [rx.redirect(entry_route), *self._pending_expiry()]

        self.user_id = session.user_id
        self.user_email = session.email
        self.loading = True
        reconciler = self._reconciler()
        await reconciler.refresh()
        self.loading = False
        self._sync(reconciler)
        return self._after()

    async def set_filter(self, value: str):
        reconciler = self._reconciler()
        self.loading = True
        await reconciler.set_filter(value)
        self.loading = False
        self._sync(reconciler)
        return self._after()

    # -- create --

    def set_draft_field(self, name: str, value: str) -> None:
        setattr(self, f"draft_{name}", value)
        if name in self.errors:
            self.errors = {k: v for k, v in self.errors.items() if k != name}

    async def create_task(self):
        self.creating = True
        yield

        reconciler = self._reconciler()
        reconciler.draft = TaskDraft(
            title=self.draft_title,
            description=self.draft_description,
            status=self.draft_status,
            tags=self.draft_tags,
            due_date=self.draft_due_date,
            priority=self.draft_priority,
        )
        created = await reconciler.create()
        self.creating = False
        self._sync(reconciler)
        if created:
            self._reset_draft()
        yield self._after()

    # -- edit --

    def start_editing(self, task_id: str) -> None:
        for task in self.tasks:
            if task["id"] == task_id:
                self.editing_id = task_id
                self.edit_title = task["title"]
                self.edit_description = task["description"]
                self.edit_status = task["status"]
                return
        logger.warning(f"Cannot edit task {task_id}: not in the current list")

    def set_edit_field(self, name: str, value: str) -> None:
        setattr(self, f"edit_{name}", value)

    def cancel_editing(self) -> None:
        self.editing_id = ""

    async def save_edit(self):
        if not self.editing_id:
            return None
        reconciler = self._reconciler()
        reconciler.editing = EditDraft(
            task_id=self.editing_id,
            title=self.edit_title,
            description=self.edit_description,
            status=self.edit_status,
        )
        if await reconciler.update():
            self.editing_id = ""
        self._sync(reconciler)
        return self._after()

    # -- delete --

    async def delete_task(self, task_id: str):
        reconciler = self._reconciler()
        if self.editing_id:
            reconciler.editing = EditDraft(task_id=self.editing_id)
        await reconciler.delete(task_id)
        if reconciler.editing is None:
            self.editing_id = ""
        self._sync(reconciler)
        return self._after()

    # -- sign-out --

    async def logout(self):
        recorder = _RouteRecorder()
        controller = CredentialFlowController(
            SupabaseAuth(self._backend()), self._channel(), navigator=recorder,
        )
        if await controller.sign_out():
            self._clear_user()
            self._reset_dashboard()
        events = self._pending_expiry()
        if recorder.destination is not None:
            events.insert(0, rx.redirect(_route_for(recorder.destination)))
        return events
