"""
Validation rules — pure functions deciding whether form input is acceptable.

Each rule returns ``None`` when the value is acceptable or a ``FieldError``
carrying a machine-readable ``Reason`` plus the message shown under the field.

Strict password validation reports only the first missing character class,
checked in the order lowercase → uppercase → digit → special. The sign-up
checklist uses ``missing_character_classes()`` to show all of them at once.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

EMAIL_MAX_LENGTH = 254
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128
SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'

TASK_STATUSES = ("pending", "in-progress", "done")
TASK_PRIORITIES = ("High", "Medium", "Low")

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_LOWERCASE = re.compile(r"[a-z]")
_UPPERCASE = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"\d")
_SPECIAL = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")
_DUE_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Reason(str, Enum):
    REQUIRED = "required"
    INVALID_FORMAT = "invalid_format"
    INVALID_CHOICE = "invalid_choice"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    MISSING_LOWERCASE = "missing_lowercase"
    MISSING_UPPERCASE = "missing_uppercase"
    MISSING_DIGIT = "missing_digit"
    MISSING_SPECIAL = "missing_special"


class Strength(str, Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


@dataclass(frozen=True)
class FieldError:
    reason: Reason
    message: str

    def __str__(self) -> str:
        return self.message


ValidationErrors = Dict[str, Optional[FieldError]]

# (reason, pattern, message, checklist label), in reporting order
_CHARACTER_CLASSES: Tuple[Tuple[Reason, "re.Pattern[str]", str, str], ...] = (
    (Reason.MISSING_LOWERCASE, _LOWERCASE,
     "Password must contain at least one lowercase letter", "Lowercase letter"),
    (Reason.MISSING_UPPERCASE, _UPPERCASE,
     "Password must contain at least one uppercase letter", "Uppercase letter"),
    (Reason.MISSING_DIGIT, _DIGIT,
     "Password must contain at least one number", "Number"),
    (Reason.MISSING_SPECIAL, _SPECIAL,
     "Password must contain at least one special character", "Special character"),
)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

def validate_email(value: Optional[str]) -> Optional[FieldError]:
    """Required, ``local@domain.tld`` shaped, at most 254 characters."""
    if not value:
        return FieldError(Reason.REQUIRED, "Email is required")
    if not _EMAIL_PATTERN.match(value):
        return FieldError(Reason.INVALID_FORMAT, "Please enter a valid email address")
    if len(value) > EMAIL_MAX_LENGTH:
        return FieldError(Reason.TOO_LONG, "Email is too long")
    return None


def missing_character_classes(password: str) -> List[Reason]:
    """All character classes the password lacks, in reporting order."""
    return [
        reason for reason, pattern, _, _ in _CHARACTER_CLASSES
        if not pattern.search(password or "")
    ]


def validate_password(value: Optional[str], strict: bool = False) -> Optional[FieldError]:
    """
    Length rules always; character-class rules only when ``strict`` (sign-up).
    """
    if not value:
        return FieldError(Reason.REQUIRED, "Password is required")
    if len(value) < PASSWORD_MIN_LENGTH:
        return FieldError(
            Reason.TOO_SHORT,
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
        )
    if len(value) > PASSWORD_MAX_LENGTH:
        return FieldError(Reason.TOO_LONG, "Password is too long")

    if strict:
        for reason, pattern, message, _ in _CHARACTER_CLASSES:
            if not pattern.search(value):
                return FieldError(reason, message)
    return None


def strength_checks(password: Optional[str]) -> List[Tuple[str, bool]]:
    """Labelled checklist shown under the sign-up password field."""
    password = password or ""
    checks = [(f"At least {PASSWORD_MIN_LENGTH} characters", len(password) >= PASSWORD_MIN_LENGTH)]
    checks.extend(
        (label, bool(pattern.search(password)))
        for _, pattern, _, label in _CHARACTER_CLASSES
    )
    return checks


def compute_strength(password: Optional[str]) -> Strength:
    """0–2 passing checks → weak, 3–4 → medium, all 5 → strong."""
    passed = sum(1 for _, ok in strength_checks(password) if ok)
    if passed <= 2:
        return Strength.WEAK
    if passed <= 4:
        return Strength.MEDIUM
    return Strength.STRONG


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

def _required(value: Optional[str], label: str) -> Optional[FieldError]:
    if value is None or not str(value).strip():
        return FieldError(Reason.REQUIRED, f"{label} is required")
    return None


def _choice(value: Optional[str], label: str, choices: Tuple[str, ...]) -> Optional[FieldError]:
    error = _required(value, label)
    if error:
        return error
    if value not in choices:
        return FieldError(Reason.INVALID_CHOICE, f"Invalid {label.lower()}: {value}")
    return None


def validate_task_form(
    title: Optional[str],
    description: Optional[str],
    status: Optional[str],
    priority: Optional[str],
) -> ValidationErrors:
    """
    Validate the create-task form. Every field gets an entry; ``None`` means
    the field passed.
    """
    return {
        "title": _required(title, "Title"),
        "description": _required(description, "Description"),
        "status": _choice(status, "Status", TASK_STATUSES),
        "priority": _choice(priority, "Priority", TASK_PRIORITIES),
    }


def validate_task_edit(
    title: Optional[str],
    description: Optional[str],
    status: Optional[str],
) -> bool:
    """Requiredness of the three editable fields. Extras are not editable."""
    return (
        _required(title, "Title") is None
        and _required(description, "Description") is None
        and _choice(status, "Status", TASK_STATUSES) is None
    )


def has_errors(errors: ValidationErrors) -> bool:
    return any(error is not None for error in errors.values())


def split_tags(raw: Optional[str]) -> List[str]:
    """Comma-separated tags, each trimmed; blank entries dropped."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def parse_due_date(raw: Optional[str]) -> Tuple[Optional[date], Optional[FieldError]]:
    """Parse an optional ``YYYY-MM-DD`` due date. Blank means no due date."""
    if raw is None or not raw.strip():
        return None, None
    error = FieldError(Reason.INVALID_FORMAT, "Due date must be YYYY-MM-DD")
    raw = raw.strip()
    # strptime alone would accept unpadded months and days
    if not _DUE_DATE_PATTERN.match(raw):
        return None, error
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date(), None
    except ValueError:
        return None, error
