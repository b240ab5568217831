"""
Task reconciler — create / update / delete against the store, then refetch.

The local list is never patched optimistically: every successful mutation
is followed by a full ``refresh()`` with the session's current status
filter. Two mutations in flight at once each trigger their own refetch and
whichever resolves last decides what is displayed (last-refetch-wins).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from tasktrack.backend.ports import TaskStore
from tasktrack.engine.context import STATUS_FILTER_ALL, SessionContext
from tasktrack.engine.errors import BackendError, RecordError
from tasktrack.engine.logging import log, log_task_operation, log_validation_failure
from tasktrack.flows.notifications import NotificationChannel
from tasktrack.records.task import Task, TaskExtras, TaskStatus
from tasktrack.rules.sanitizer import sanitize
from tasktrack.rules.validation import (
    TASK_STATUSES,
    ValidationErrors,
    has_errors,
    parse_due_date,
    split_tags,
    validate_task_edit,
    validate_task_form,
)

logger = logging.getLogger("tasktrack.flows.tasks")

STORE_ERRORS = (BackendError, RecordError)
STATUS_FILTERS = (STATUS_FILTER_ALL,) + TASK_STATUSES
EDITABLE_FIELDS = ("title", "description", "status")

REQUIRED_FIELDS_MESSAGE = "Please fill all required fields"
FETCH_FAILED_MESSAGE = "Error fetching tasks"
CREATE_SUCCESS_MESSAGE = "Task created successfully!"
CREATE_FAILED_MESSAGE = "Failed to create task"
UPDATE_SUCCESS_MESSAGE = "Task updated successfully!"
UPDATE_FAILED_MESSAGE = "Failed to update task"
DELETE_SUCCESS_MESSAGE = "Task deleted successfully"
DELETE_FAILED_MESSAGE = "Failed to delete task"
UNEXPECTED_MESSAGE = "An unexpected error occurred. Please try again."


@dataclass
class TaskDraft:
    """Raw values of the create-task form."""

    title: str = ""
    description: str = ""
    status: str = TaskStatus.PENDING.value
    tags: str = ""
    due_date: str = ""
    priority: str = ""


@dataclass
class EditDraft:
    """Edit-in-progress for one task. Only the editable columns."""

    task_id: Any
    title: str = ""
    description: str = ""
    status: str = TaskStatus.PENDING.value

    def values(self) -> Dict[str, str]:
        return {
            "title": sanitize(self.title),
            "description": sanitize(self.description),
            "status": self.status,
        }


class TaskReconciler:
    """
    Keeps ``session.tasks`` consistent with the store.

    Every public coroutine catches its own failures and reports them through
    the notification channel; none of them raises.
    """

    def __init__(
        self,
        store: TaskStore,
        notifications: NotificationChannel,
        session: SessionContext,
    ):
        self._store = store
        self._notifications = notifications
        self.session = session

        self.draft = TaskDraft()
        self.errors: ValidationErrors = {}
        self.editing: Optional[EditDraft] = None
        self.loading = False
        self.creating = False

    @property
    def tasks(self) -> List[Task]:
        return self.session.tasks

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list(self, user_id: str, status_filter: str = STATUS_FILTER_ALL) -> List[Task]:
        """
        Fetch the user's tasks, newest first, optionally narrowed to one status.

        On failure the current list is kept and an error banner is shown.
        """
        filters: Dict[str, Any] = {"user_id": user_id}
        if status_filter != STATUS_FILTER_ALL:
            filters["status"] = status_filter

        start = time.monotonic()
        self.loading = True
        try:
            rows = await self._store.select(filters, order_by="created_at", descending=True)
        except STORE_ERRORS as e:
            logger.warning(f"Fetching tasks failed: {e.message}")
            log(log_task_operation("list", user_id, False, status_filter=status_filter,
                                   error=e.message))
            self._notifications.error(FETCH_FAILED_MESSAGE)
            return self.session.tasks
        except Exception:
            logger.exception("Unexpected error fetching tasks")
            self._notifications.error(FETCH_FAILED_MESSAGE)
            return self.session.tasks
        finally:
            self.loading = False

        try:
            tasks = self._read_rows(rows)
            self.session.tasks = tasks
            log(log_task_operation("list", user_id, True, status_filter=status_filter,
                                   row_count=len(tasks),
                                   duration_ms=(time.monotonic() - start) * 1000))
        except Exception:
            logger.exception("Unexpected error reading fetched tasks")
            self._notifications.error(FETCH_FAILED_MESSAGE)
            return self.session.tasks
        return tasks

    def _read_rows(self, rows: List[Dict[str, Any]]) -> List[Task]:
        """Parse store rows, skipping any row that cannot be read as a Task."""
        tasks = []
        for row in rows:
            try:
                tasks.append(Task.from_row(row))
            except ValidationError as e:
                row_id = row.get("id") if isinstance(row, dict) else None
                logger.warning(f"Skipping unreadable task row {row_id!r}: {e.error_count()} error(s)")
        return tasks

    async def refresh(self) -> List[Task]:
        return await self.list(self.session.user_id, self.session.status_filter)

    async def set_filter(self, status_filter: str) -> List[Task]:
        if status_filter not in STATUS_FILTERS:
            logger.warning(f"Ignoring unknown status filter: {status_filter!r}")
            return self.session.tasks
        self.session.status_filter = status_filter
        return await self.refresh()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def set_field(self, name: str, value: str) -> None:
        """Update one create-form field and clear its error."""
        if not hasattr(self.draft, name):
            raise AttributeError(f"Unknown task form field: {name}")
        setattr(self.draft, name, value if value is not None else "")
        if self.errors.get(name):
            self.errors[name] = None

    def reset_draft(self) -> None:
        self.draft = TaskDraft()
        self.errors = {}

    def validate_draft(self) -> bool:
        d = self.draft
        errors = validate_task_form(
            sanitize(d.title), sanitize(d.description), d.status, d.priority,
        )
        _, due_error = parse_due_date(d.due_date)
        errors["due_date"] = due_error
        self.errors = errors
        return not has_errors(errors)

    def build_task(self) -> Task:
        """Turn the (already validated) draft into a Task owned by the session user."""
        d = self.draft
        due_date, _ = parse_due_date(d.due_date)
        return Task(
            user_id=self.session.user_id,
            title=sanitize(d.title),
            description=sanitize(d.description),
            status=TaskStatus(d.status),
            extras=TaskExtras(
                tags=split_tags(sanitize(d.tags)),
                due_date=due_date,
                priority=d.priority,
            ),
        )

    async def create(self) -> bool:
        """Validate the draft and insert it. The draft survives a failed insert."""
        if not self.validate_draft():
            failed = [name for name, error in self.errors.items() if error]
            log(log_validation_failure("task.create", failed))
            self._notifications.error(REQUIRED_FIELDS_MESSAGE)
            return False

        task = self.build_task()
        self.creating = True
        try:
            rows = await self._store.insert([task.to_insert_row()])
        except STORE_ERRORS as e:
            logger.warning(f"Creating task failed: {e.message}")
            log(log_task_operation("create", self.session.user_id, False, error=e.message))
            self._notifications.error(CREATE_FAILED_MESSAGE)
            return False
        except Exception:
            logger.exception("Unexpected error creating task")
            self._notifications.error(UNEXPECTED_MESSAGE)
            return False
        finally:
            self.creating = False

        try:
            task_id = rows[0].get("id") if rows else None
            log(log_task_operation("create", self.session.user_id, True, task_id=task_id))
            self._notifications.success(CREATE_SUCCESS_MESSAGE)
            self.reset_draft()
            await self.refresh()
        except Exception:
            logger.exception("Unexpected error after creating task")
            self._notifications.error(UNEXPECTED_MESSAGE)
            return False
        return True

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def start_editing(self, task: Task) -> EditDraft:
        self.editing = EditDraft(
            task_id=task.id,
            title=task.title or "",
            description=task.description or "",
            status=task.status.value if task.status else TaskStatus.PENDING.value,
        )
        return self.editing

    def set_edit_field(self, name: str, value: str) -> None:
        if self.editing is None:
            raise RuntimeError("No task is being edited")
        if name not in EDITABLE_FIELDS:
            raise AttributeError(f"Field is not editable: {name}")
        setattr(self.editing, name, value if value is not None else "")

    def cancel_editing(self) -> None:
        self.editing = None

    async def update(self) -> bool:
        """
        Save the edit draft. Only title, description and status are sent;
        ``extras`` is never touched. The draft survives a failed save.
        """
        if self.editing is None:
            return False
        values = self.editing.values()
        if not validate_task_edit(values["title"], values["description"], values["status"]):
            log(log_validation_failure("task.update", [k for k, v in values.items() if not v]))
            self._notifications.error(REQUIRED_FIELDS_MESSAGE)
            return False

        task_id = self.editing.task_id
        try:
            await self._store.update(task_id, values)
        except STORE_ERRORS as e:
            logger.warning(f"Updating task {task_id} failed: {e.message}")
            log(log_task_operation("update", self.session.user_id, False, task_id=task_id,
                                   error=e.message))
            self._notifications.error(UPDATE_FAILED_MESSAGE)
            return False
        except Exception:
            logger.exception(f"Unexpected error updating task {task_id}")
            self._notifications.error(UNEXPECTED_MESSAGE)
            return False

        try:
            log(log_task_operation("update", self.session.user_id, True, task_id=task_id,
                                   fields_changed=list(EDITABLE_FIELDS)))
            self._notifications.success(UPDATE_SUCCESS_MESSAGE)
            self.editing = None
            await self.refresh()
        except Exception:
            logger.exception(f"Unexpected error after updating task {task_id}")
            self._notifications.error(UNEXPECTED_MESSAGE)
            return False
        return True

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete(self, task_id: Any) -> bool:
        """Delete unconditionally; the list is only refreshed when the store agreed."""
        try:
            await self._store.delete(task_id)
        except STORE_ERRORS as e:
            logger.warning(f"Deleting task {task_id} failed: {e.message}")
            log(log_task_operation("delete", self.session.user_id, False, task_id=task_id,
                                   error=e.message))
            self._notifications.error(DELETE_FAILED_MESSAGE)
            return False
        except Exception:
            logger.exception(f"Unexpected error deleting task {task_id}")
            self._notifications.error(UNEXPECTED_MESSAGE)
            return False

        try:
            log(log_task_operation("delete", self.session.user_id, True, task_id=task_id))
            self._notifications.success(DELETE_SUCCESS_MESSAGE)
            if self.editing is not None and self.editing.task_id == task_id:
                self.editing = None
            await self.refresh()
        except Exception:
            logger.exception(f"Unexpected error after deleting task {task_id}")
            self._notifications.error(UNEXPECTED_MESSAGE)
            return False
        return True
