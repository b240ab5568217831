"""
Ephemeral notification channel — one auto-dismissing success/error/info banner.

``show()`` replaces whatever is displayed and resets the single pending
expiry. Expiry is tracked two ways:

* ``current`` compares the injected clock against ``expires_at``, so callers
  that poll (or re-render) never see a stale banner;
* when an asyncio loop is running, one ``call_later`` handle clears the
  banner and fires ``on_change``. A new ``show()`` cancels the old handle.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Callable, Deque, List, Optional

from tasktrack.engine.config import NotificationConfig
from tasktrack.records.notification import Notification, NotificationKind

logger = logging.getLogger("tasktrack.flows.notifications")


class NotificationChannel:
    """Single-slot notification surface shared by the auth and task flows."""

    def __init__(
        self,
        success_seconds: float = 4.0,
        info_seconds: float = 4.0,
        error_seconds: float = 5.0,
        history_size: int = 20,
        clock: Callable[[], float] = time.monotonic,
        on_change: Optional[Callable[[Optional[Notification]], None]] = None,
        auto_expire: bool = True,
    ):
        self._delays = {
            NotificationKind.SUCCESS: success_seconds,
            NotificationKind.INFO: info_seconds,
            NotificationKind.ERROR: error_seconds,
        }
        self._clock = clock
        self._on_change = on_change
        self._auto_expire = auto_expire
        self._current: Optional[Notification] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._history: Deque[Notification] = deque(maxlen=history_size)

    @classmethod
    def from_config(cls, config: NotificationConfig, **kwargs) -> "NotificationChannel":
        return cls(
            success_seconds=config.success_seconds,
            info_seconds=config.info_seconds,
            error_seconds=config.error_seconds,
            history_size=config.history_size,
            **kwargs,
        )

    def delay_for(self, kind: NotificationKind) -> float:
        return self._delays[NotificationKind(kind)]

    def show(self, message: str, kind: NotificationKind = NotificationKind.SUCCESS) -> Notification:
        """Display ``message``, replacing the current banner and restarting the expiry."""
        kind = NotificationKind(kind)
        now = self._clock()
        delay = self._delays[kind]
        notification = Notification(
            message=message,
            kind=kind,
            created_at=now,
            expires_at=now + delay,
        )
        self._current = notification
        self._history.append(notification)
        self._reschedule(notification, delay)
        logger.debug(f"Notification ({kind.value}): {message}")
        self._notify()
        return notification

    def success(self, message: str) -> Notification:
        return self.show(message, NotificationKind.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.show(message, NotificationKind.ERROR)

    def info(self, message: str) -> Notification:
        return self.show(message, NotificationKind.INFO)

    def clear(self) -> None:
        self._cancel_handle()
        if self._current is not None:
            self._current = None
            self._notify()

    @property
    def current(self) -> Optional[Notification]:
        """The active notification, or None once it has expired."""
        if self._current is not None and self._current.is_expired(self._clock()):
            self._current = None
            self._cancel_handle()
        return self._current

    @property
    def has_pending_expiry(self) -> bool:
        return self._handle is not None and not self._handle.cancelled()

    @property
    def history(self) -> List[Notification]:
        """Most recent notifications, oldest first."""
        return list(self._history)

    # -- internals --

    def _reschedule(self, notification: Notification, delay: float) -> None:
        self._cancel_handle()
        if not self._auto_expire:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._handle = loop.call_later(delay, self._expire, notification)

    def _expire(self, notification: Notification) -> None:
        self._handle = None
        if self._current is notification:
            self._current = None
            self._notify()

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self._current)
        except Exception:
            logger.exception("Notification listener failed")
