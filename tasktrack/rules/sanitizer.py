"""Input sanitizer — normalizes raw user text before validation or transmission."""

from __future__ import annotations

import re
from typing import Optional

_MARKUP_CHARS = re.compile(r"[<>]")


def sanitize(raw: Optional[str]) -> str:
    """
    Trim surrounding whitespace and strip ``<`` / ``>``.

    Used for the email field and free-text task fields. Passwords must never
    pass through here: their special characters are significant.
    """
    if raw is None:
        return ""
    return _MARKUP_CHARS.sub("", raw.strip())
