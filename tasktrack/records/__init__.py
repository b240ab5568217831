"""TaskTrack records — Task rows, auth identities and notifications."""

from tasktrack.records.auth import AuthUser, Credential  # noqa: F401
from tasktrack.records.notification import Notification, NotificationKind  # noqa: F401
from tasktrack.records.task import Priority, Task, TaskExtras, TaskStatus  # noqa: F401

__all__ = [
    "AuthUser",
    "Credential",
    "Notification",
    "NotificationKind",
    "Priority",
    "Task",
    "TaskExtras",
    "TaskStatus",
]
