"""Input rules — sanitization and validation shared by the auth and task forms."""

from tasktrack.rules.sanitizer import sanitize  # noqa: F401
from tasktrack.rules.validation import (  # noqa: F401
    FieldError,
    Reason,
    Strength,
    ValidationErrors,
    compute_strength,
    has_errors,
    missing_character_classes,
    parse_due_date,
    split_tags,
    strength_checks,
    validate_email,
    validate_password,
    validate_task_edit,
    validate_task_form,
)
