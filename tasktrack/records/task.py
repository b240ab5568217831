"""Task record — one row of the remote ``tasks`` table."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


_PRIORITY_BY_NAME = {p.value.lower(): p for p in Priority}


class TaskExtras(BaseModel):
    """
    Freeform metadata stored in the ``extras`` JSON column.
    Written once at creation; edits never touch it.
    """

    model_config = ConfigDict(populate_by_name=True)

    tags: List[str] = Field(default_factory=list)
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    priority: Optional[Priority] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_due_date(cls, v: Any) -> Any:
        # Rows written by older clients carry "" for "no due date"
        if v == "":
            return None
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def null_tags(cls, v: Any) -> Any:
        return v or []

    @field_validator("priority", mode="before")
    @classmethod
    def loose_priority(cls, v: Any) -> Any:
        # Matched case-insensitively; values outside the enum read as "no priority"
        if isinstance(v, Priority) or v is None:
            return v
        return _PRIORITY_BY_NAME.get(str(v).strip().lower())

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Task(BaseModel):
    """
    Individual work item owned by one user.

    ``id`` and ``created_at`` are assigned by the store.
    """

    id: Optional[Any] = None
    user_id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    extras: TaskExtras = Field(default_factory=TaskExtras)
    created_at: Optional[datetime] = None

    @field_validator("description", mode="before")
    @classmethod
    def null_description(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v: Any) -> Any:
        # Rows inserted with only a title carry NULL status
        if v is None or v == "":
            return TaskStatus.PENDING
        return v

    @field_validator("extras", mode="before")
    @classmethod
    def null_extras(cls, v: Any) -> Any:
        return v or {}

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Task":
        return cls.model_validate(row)

    def to_insert_row(self) -> Dict[str, Any]:
        """Columns sent on insert — the store fills in ``id`` and ``created_at``."""
        return {
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "extras": self.extras.to_row(),
        }
