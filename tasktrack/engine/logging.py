"""
TaskTrack structured event log — JSON lines per area and category, written off
the request path by a background thread.

Events are built with the ``log_*`` helpers and handed to ``log()``; until
``init_logging()`` has run they are discarded. Human-readable diagnostics keep
using the stdlib ``logging`` loggers named ``tasktrack.*``.

Layout: {log_dir}/{area}/{category}/{YYYY-MM-DD}.jsonl

Passwords never reach these builders; emails are masked before they are written.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, List, Optional

from tasktrack.engine.config import LoggingConfig

logger = logging.getLogger("tasktrack.engine.logging")

# Valid areas and their permitted categories
AREA_CATEGORIES = {
    "auth": ["execution", "security"],
    "tasks": ["execution", "performance"],
    "backend": ["execution", "performance"],
    "validation": ["execution"],
    "system": ["execution"],
}


@dataclass(frozen=True)
class LogEntry:
    """One structured record; ``area``/``category`` pick the file it lands in."""

    area: str
    category: str
    data: Dict[str, Any]

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    JSON-lines sink: {log_dir}/{area}/{category}/{YYYY-MM-DD}.jsonl

    Unknown areas go to ``system``; an unknown category falls back to the
    area's first one. A single lock serializes appends.
    """

    def __init__(self, log_dir: str = "logs"):
        self.log_dir = Path(log_dir)
        self._lock = threading.Lock()
        for area, categories in AREA_CATEGORIES.items():
            for category in categories:
                (self.log_dir / area / category).mkdir(parents=True, exist_ok=True)

    def path_for(self, entry: LogEntry, day: Optional[date] = None) -> Path:
        area = entry.area if entry.area in AREA_CATEGORIES else "system"
        allowed = AREA_CATEGORIES[area]
        category = entry.category if entry.category in allowed else allowed[0]
        return self.log_dir / area / category / f"{(day or date.today()).isoformat()}.jsonl"

    def write(self, entry: LogEntry) -> None:
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        lines: Dict[Path, List[str]] = defaultdict(list)
        for entry in entries:
            lines[self.path_for(entry)].append(entry.to_json())
        with self._lock:
            for path, chunk in lines.items():
                with path.open("a", encoding="utf-8") as fh:
                    fh.write("\n".join(chunk) + "\n")


class AsyncLogQueue:
    """
    Bounded buffer drained by one daemon writer thread.

    ``push`` never blocks: a full buffer drops the entry and counts it. The
    writer waits up to ``flush_interval_ms`` for the first entry, then takes
    whatever else is ready (at most ``flush_batch_size``) in one write.
    """

    def __init__(
        self,
        file_logger: FileLogger,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._sink = file_logger
        self._interval = flush_interval_ms / 1000.0
        self._batch_size = max(1, flush_batch_size)
        self._buffer: Queue[LogEntry] = Queue(maxsize=max_queue_size)
        self._stopping = threading.Event()
        self._writer: Optional[threading.Thread] = None
        self._dropped = 0

    def start(self) -> None:
        if self._writer is not None and self._writer.is_alive():
            return
        self._stopping.clear()
        self._writer = threading.Thread(target=self._run, name="tasktrack-log-writer", daemon=True)
        self._writer.start()
        logger.debug("Log writer started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the writer and flush everything still buffered."""
        self._stopping.set()
        if self._writer is not None:
            self._writer.join(timeout=timeout)
            self._writer = None
        self._flush(self._take_all())
        if self._dropped:
            logger.warning(f"Log writer stopped; {self._dropped} entries were dropped")

    def push(self, entry: LogEntry) -> bool:
        """Queue an entry. False when the buffer is full and the entry was dropped."""
        try:
            self._buffer.put_nowait(entry)
        except Full:
            self._dropped += 1
            return False
        return True

    def _run(self) -> None:
        while not self._stopping.is_set():
            self._flush(self._next_batch())

    def _next_batch(self) -> List[LogEntry]:
        try:
            batch = [self._buffer.get(timeout=self._interval)]
        except Empty:
            return []
        while len(batch) < self._batch_size:
            try:
                batch.append(self._buffer.get_nowait())
            except Empty:
                break
        return batch

    def _take_all(self) -> List[LogEntry]:
        batch: List[LogEntry] = []
        while True:
            try:
                batch.append(self._buffer.get_nowait())
            except Empty:
                return batch

    def _flush(self, batch: List[LogEntry]) -> None:
        if not batch:
            return
        try:
            self._sink.write_batch(batch)
        except OSError as e:
            logger.error(f"Could not write {len(batch)} log entries: {e}")

    @property
    def pending_count(self) -> int:
        return self._buffer.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped




# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def mask_email(email: Optional[str]) -> Optional[str]:
    """Mask the local part of an email: ``alice@example.com`` → ``a***@example.com``."""
    if not email or "@" not in email:
        return email
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


def _base_entry(
    event: str,
    level: str,
    user_id: Optional[Any] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a base log entry with common fields."""
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    if user_id is not None:
        entry["user_id"] = user_id
    entry.update(extra)
    return entry


def log_auth_event(
    event: str,
    mode: str,
    success: bool,
    email: Optional[str] = None,
    user_id: Optional[Any] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an auth log entry (sign_in / sign_up / sign_out / resume)."""
    data = _base_entry(
        event=event,
        level="INFO" if success else "WARNING",
        user_id=user_id,
        mode=mode,
        success=success,
    )
    if email:
        data["email"] = mask_email(email)
    if error:
        data["error"] = error
    return LogEntry("auth", "execution" if success else "security", data)


def log_task_operation(
    operation: str,
    user_id: Any,
    success: bool,
    task_id: Optional[Any] = None,
    fields_changed: Optional[List[str]] = None,
    status_filter: Optional[str] = None,
    row_count: Optional[int] = None,
    duration_ms: Optional[float] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Build a task CRUD log entry."""
    data = _base_entry(
        event=f"task_{operation}",
        level="INFO" if success else "ERROR",
        user_id=user_id,
        operation=operation,
        success=success,
    )
    if task_id is not None:
        data["task_id"] = task_id
    if fields_changed:
        data["fields_changed"] = fields_changed
    if status_filter is not None:
        data["status_filter"] = status_filter
    if row_count is not None:
        data["row_count"] = row_count
    if duration_ms is not None:
        data["duration_ms"] = duration_ms
    if error:
        data["error"] = error
    return LogEntry("tasks", "execution", data)


def log_backend_call(
    service: str,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
) -> LogEntry:
    """Build a backend HTTP call log entry."""
    data = _base_entry(
        event="backend_called",
        level="INFO" if status_code < 400 else "ERROR",
        service=service,
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
    )
    return LogEntry("backend", "execution", data)


def log_validation_failure(form: str, fields: List[str]) -> LogEntry:
    """Build a validation failure log entry (field names only, never values)."""
    data = _base_entry(
        event="validation_failed",
        level="INFO",
        form=form,
        fields=sorted(fields),
    )
    return LogEntry("validation", "execution", data)


def log_system_event(
    event: str,
    level: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Build a system event log entry (startup, shutdown, config changes)."""
    data = _base_entry(event=event, level=level)
    if details:
        data["details"] = details
    return LogEntry("system", "execution", data)


# ---------------------------------------------------------------------------
# Process-wide queue
# ---------------------------------------------------------------------------

_global_queue: Optional[AsyncLogQueue] = None


def init_logging(settings: Optional[LoggingConfig] = None, **overrides: Any) -> AsyncLogQueue:
    """
    Start the process-wide queue from ``settings`` (the ``logging:`` section
    of tasktrack.yaml); keyword overrides win. A running queue is replaced.
    """
    global _global_queue
    settings = (settings or LoggingConfig()).model_copy(update=overrides)
    if _global_queue is not None:
        _global_queue.stop()
    _global_queue = AsyncLogQueue(
        FileLogger(settings.directory),
        flush_interval_ms=settings.flush_interval_ms,
        flush_batch_size=settings.flush_batch_size,
        max_queue_size=settings.max_queue_size,
    )
    _global_queue.start()
    return _global_queue


def get_log_queue() -> Optional[AsyncLogQueue]:
    return _global_queue


def log(entry: LogEntry) -> bool:
    """Queue ``entry`` on the process-wide queue; False (and nothing written) before init."""
    queue = _global_queue
    return queue.push(entry) if queue is not None else False


def shutdown_logging() -> None:
    global _global_queue
    queue, _global_queue = _global_queue, None
    if queue is not None:
        queue.stop()
