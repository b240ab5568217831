"""
Credential flow — sign-in / sign-up form handling, sign-out and session resume.

Flow for ``submit()``:
    1. Sanitize + validate (strict password rules only when signing up).
       Invalid input never reaches the auth provider.
    2. Lowercase the email and call the provider.
    3. Provider errors are mapped through a closed lookup; unknown messages
       are shown verbatim.
    4. Sign-in: success banner, session established, redirect after a short delay.
    5. Sign-up: "confirm by email" banner, form cleared, no redirect.

No exception escapes a handler; ``loading`` is always reset.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

from tasktrack.backend.ports import (
    DESTINATION_DASHBOARD,
    DESTINATION_ENTRY,
    AuthProvider,
    Navigator,
)
from tasktrack.engine.config import AuthConfig
from tasktrack.engine.context import SessionContext, clear_session, set_session
from tasktrack.engine.errors import BackendError
from tasktrack.engine.logging import log, log_auth_event, log_validation_failure
from tasktrack.flows.notifications import NotificationChannel
from tasktrack.records.auth import AuthUser, Credential
from tasktrack.rules.sanitizer import sanitize
from tasktrack.rules.validation import ValidationErrors, validate_email, validate_password

logger = logging.getLogger("tasktrack.flows.credentials")


class AuthMode(str, Enum):
    SIGN_IN = "sign_in"
    SIGN_UP = "sign_up"


# Closed lookup: provider message → user-facing message
PROVIDER_MESSAGES: Dict[str, str] = {
    "Invalid login credentials": "Invalid email or password. Please check your credentials.",
    "User already registered": "An account with this email already exists. Please sign in instead.",
    "Email rate limit exceeded": "Too many requests. Please wait a moment before trying again.",
}

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."
SIGN_IN_SUCCESS_MESSAGE = "Login successful! Redirecting..."
SIGN_UP_SUCCESS_MESSAGE = "Check your email to confirm signup!"
SIGN_OUT_SUCCESS_MESSAGE = "Logged out successfully"
SIGN_OUT_FAILED_MESSAGE = "Logout failed. Please try again."
USER_FETCH_FAILED_MESSAGE = "Failed to fetch user data"


def map_provider_error(message: Optional[str]) -> str:
    """Translate a provider error message; unknown messages pass through unchanged."""
    if not message:
        return GENERIC_ERROR_MESSAGE
    return PROVIDER_MESSAGES.get(message, message)


class CredentialFlowController:
    """
    Holds the auth form (mode, credential, per-field errors, loading flag)
    and drives the provider calls.
    """

    def __init__(
        self,
        auth: AuthProvider,
        notifications: NotificationChannel,
        navigator: Optional[Navigator] = None,
        redirect_delay: float = 1.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._auth = auth
        self._notifications = notifications
        self._navigator = navigator
        self._redirect_delay = redirect_delay
        self._sleep = sleep

        self.mode = AuthMode.SIGN_IN
        self.credential = Credential()
        self.errors: ValidationErrors = {}
        self.loading = False
        self.session: Optional[SessionContext] = None

    @classmethod
    def from_config(
        cls,
        auth: AuthProvider,
        notifications: NotificationChannel,
        config: AuthConfig,
        navigator: Optional[Navigator] = None,
    ) -> "CredentialFlowController":
        return cls(
            auth=auth,
            notifications=notifications,
            navigator=navigator,
            redirect_delay=config.redirect_delay_seconds,
        )

    @property
    def strict(self) -> bool:
        return self.mode == AuthMode.SIGN_UP

    # ------------------------------------------------------------------
    # Form editing
    # ------------------------------------------------------------------

    def set_email(self, raw: str) -> None:
        self.credential.email = sanitize(raw)
        if self.errors.get("email"):
            self.errors["email"] = None

    def set_password(self, raw: str) -> None:
        # Never sanitized: special characters are part of the secret
        self.credential.password = raw or ""
        if self.errors.get("password"):
            self.errors["password"] = None

    def toggle_mode(self) -> AuthMode:
        self.mode = AuthMode.SIGN_UP if self.mode == AuthMode.SIGN_IN else AuthMode.SIGN_IN
        self.errors = {}
        self._notifications.clear()
        return self.mode

    def validate(self) -> bool:
        """Rebuild ``errors`` from the current form; True when nothing failed."""
        self.credential.email = sanitize(self.credential.email)
        errors: ValidationErrors = {}
        email_error = validate_email(self.credential.email)
        if email_error:
            errors["email"] = email_error
        password_error = validate_password(self.credential.password, strict=self.strict)
        if password_error:
            errors["password"] = password_error
        self.errors = errors
        return not errors

    # ------------------------------------------------------------------
    # Provider calls
    # ------------------------------------------------------------------

    async def submit(self) -> bool:
        """Validate, then sign in or sign up. Returns True on provider success."""
        self._notifications.clear()
        if not self.validate():
            log(log_validation_failure(f"auth.{self.mode.value}", list(self.errors)))
            return False

        email = self.credential.email.lower()
        mode = self.mode
        self.loading = True
        try:
            if mode == AuthMode.SIGN_IN:
                user = await self._auth.sign_in_with_password(email, self.credential.password)
            else:
                user = await self._auth.sign_up(email, self.credential.password)
        except BackendError as e:
            logger.info(f"{mode.value} rejected by provider: {e.message}")
            log(log_auth_event(mode.value, mode.value, False, email=email, error=e.message))
            self._notifications.error(map_provider_error(e.message))
            return False
        except Exception:
            logger.exception("Auth error")
            self._notifications.error(GENERIC_ERROR_MESSAGE)
            return False
        finally:
            self.loading = False

        try:
            log(log_auth_event(mode.value, mode.value, True, email=email,
                               user_id=user.id if user else None))
            if mode == AuthMode.SIGN_IN:
                self._establish_session(user, email)
                self._notifications.success(SIGN_IN_SUCCESS_MESSAGE)
                await self._redirect(DESTINATION_DASHBOARD, delay=self._redirect_delay)
            else:
                self._notifications.success(SIGN_UP_SUCCESS_MESSAGE)
                self.credential = Credential()
        except Exception:
            logger.exception(f"Error completing {mode.value}")
            self._notifications.error(GENERIC_ERROR_MESSAGE)
            return False
        return True

    async def sign_out(self) -> bool:
        """End the provider session and discard the local session context."""
        try:
            await self._auth.sign_out()
        except BackendError as e:
            logger.warning(f"Sign-out failed: {e.message}")
            log(log_auth_event("sign_out", self.mode.value, False, error=e.message))
            self._notifications.error(SIGN_OUT_FAILED_MESSAGE)
            return False
        except Exception:
            logger.exception("Sign-out error")
            self._notifications.error(SIGN_OUT_FAILED_MESSAGE)
            return False

        user_id = self.session.user_id if self.session else None
        self.session = None
        clear_session()
        try:
            log(log_auth_event("sign_out", self.mode.value, True, user_id=user_id))
            self._notifications.success(SIGN_OUT_SUCCESS_MESSAGE)
            await self._redirect(DESTINATION_ENTRY)
        except Exception:
            logger.exception("Error completing sign-out")
            self._notifications.error(GENERIC_ERROR_MESSAGE)
        return True

    async def resume_session(self) -> Optional[SessionContext]:
        """Rebuild the session context from the provider's current user."""
        try:
            user = await self._auth.get_user()
        except BackendError as e:
            logger.info(f"No resumable session: {e.message}")
            self._notifications.error(USER_FETCH_FAILED_MESSAGE)
            return None
        except Exception:
            logger.exception("Session resume error")
            self._notifications.error(USER_FETCH_FAILED_MESSAGE)
            return None
        try:
            log(log_auth_event("resume", self.mode.value, True, user_id=user.id))
            return self._establish_session(user, user.email or "")
        except Exception:
            logger.exception("Session resume error")
            self._notifications.error(USER_FETCH_FAILED_MESSAGE)
            return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _establish_session(self, user: Optional[AuthUser], email: str) -> Optional[SessionContext]:
        if user is None:
            return None
        self.session = SessionContext(user_id=user.id, email=user.email or email)
        set_session(self.session)
        return self.session

    async def _redirect(self, destination: str, delay: float = 0.0) -> None:
        if self._navigator is None:
            return
        if delay > 0:
            await self._sleep(delay)
        self._navigator.navigate(destination)
