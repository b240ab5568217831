"""Notification record — a transient success/error/info banner."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Notification(BaseModel):
    message: str
    kind: NotificationKind = NotificationKind.SUCCESS
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
