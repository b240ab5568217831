"""Auth records — the identity returned by the provider and the transient credential."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AuthUser(BaseModel):
    """A user as reported by the auth provider."""

    id: str
    email: Optional[str] = None
    confirmed: bool = False

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "AuthUser":
        return cls(
            id=str(payload["id"]),
            email=payload.get("email"),
            confirmed=bool(payload.get("email_confirmed_at") or payload.get("confirmed_at")),
        )


class Credential(BaseModel):
    """Email/password pair held only while the auth form is open."""

    email: str = ""
    password: str = Field(default="", repr=False)
