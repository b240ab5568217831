"""
TaskTrack Error Hierarchy — Structured exceptions shared by every flow.

Every error carries a message, free-form context and a UTC timestamp and can
be serialized to a JSON-compatible dict for the structured log files.

Hierarchy:
    TaskTrackError
    ├── TaskTrackValidationError — Local input validation failed
    ├── BackendError             — Auth provider / row store call failed
    ├── RecordError              — Row operation failed (missing row, bad shape)
    ├── SessionError             — No authenticated session
    └── ConfigError              — Invalid tasktrack.yaml / environment
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class TaskTrackError(Exception):
    """
    Base error for all TaskTrack failures.
    All context is serializable to JSON for the structured log files.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.user_id: Optional[str] = context.get("user_id")
        self.operation: Optional[str] = context.get("operation")
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "user_id": self.user_id,
            "operation": self.operation,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("user_id", "operation")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.operation:
            parts.append(f"operation={self.operation}")
        if self.user_id:
            parts.append(f"user_id={self.user_id}")
        return " | ".join(parts)


class TaskTrackValidationError(TaskTrackError):
    """
    Local input validation failed. Never reaches the network.
    Includes field-level error details.
    """

    def __init__(self, message: str, **context: Any):
        self.validation_errors: Optional[Dict[str, str]] = context.get("validation_errors")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["validation_errors"] = self.validation_errors
        return d


class BackendError(TaskTrackError):
    """
    A call to the auth provider or the row store failed.

    ``message`` is the provider's own error text so callers can map it to a
    user-facing category.
    """

    def __init__(self, message: str, **context: Any):
        self.service: Optional[str] = context.get("service")
        self.status_code: Optional[int] = context.get("status_code")
        self.error_code: Optional[str] = context.get("error_code")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["service"] = self.service
        d["status_code"] = self.status_code
        d["error_code"] = self.error_code
        return d


class RecordError(TaskTrackError):
    """Row operation failed (insert, select, update, delete)."""

    def __init__(self, message: str, **context: Any):
        self.record_type: Optional[str] = context.get("record_type")
        self.record_id: Optional[Any] = context.get("record_id")
        super().__init__(message, **context)


class SessionError(TaskTrackError):
    """No authenticated session, or the session could not be resolved."""
    pass


class ConfigError(TaskTrackError):
    """Configuration error — invalid tasktrack.yaml or environment override."""

    def __init__(self, message: str, **context: Any):
        self.problems: List[str] = context.get("problems", [])
        super().__init__(message, **context)
