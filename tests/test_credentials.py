"""Unit tests for tasktrack.flows.credentials — auth form, provider calls, error mapping."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tasktrack.backend.ports import DESTINATION_DASHBOARD, DESTINATION_ENTRY
from tasktrack.engine.context import get_session
from tasktrack.engine.errors import BackendError
from tasktrack.flows.credentials import (
    GENERIC_ERROR_MESSAGE,
    PROVIDER_MESSAGES,
    SIGN_IN_SUCCESS_MESSAGE,
    SIGN_UP_SUCCESS_MESSAGE,
    USER_FETCH_FAILED_MESSAGE,
    AuthMode,
    map_provider_error,
)
from tasktrack.records.notification import NotificationKind
from tasktrack.rules.validation import Reason


class TestMapProviderError:
    @pytest.mark.parametrize("raw", list(PROVIDER_MESSAGES))
    def test_known_messages(self, raw):
        assert map_provider_error(raw) == PROVIDER_MESSAGES[raw]

    def test_invalid_credentials_text(self):
        assert map_provider_error("Invalid login credentials") == (
            "Invalid email or password. Please check your credentials."
        )

    def test_unknown_passes_through(self):
        assert map_provider_error("Signups not allowed for this instance") == (
            "Signups not allowed for this instance"
        )

    def test_empty_is_generic(self):
        assert map_provider_error("") == GENERIC_ERROR_MESSAGE
        assert map_provider_error(None) == GENERIC_ERROR_MESSAGE


class TestFormEditing:
    def test_set_email_sanitizes(self, controller):
        controller.set_email("  <alice@example.com> ")
        assert controller.credential.email == "alice@example.com"

    def test_password_not_sanitized(self, controller):
        controller.set_password(" <Secret1!> ")
        assert controller.credential.password == " <Secret1!> "

    def test_editing_clears_field_error(self, controller):
        controller.validate()
        assert controller.errors["email"]
        controller.set_email("a")
        assert controller.errors["email"] is None

    def test_toggle_mode(self, controller, channel):
        channel.error("old")
        controller.validate()
        assert controller.toggle_mode() == AuthMode.SIGN_UP
        assert controller.strict is True
        assert controller.errors == {}
        assert channel.current is None
        assert controller.toggle_mode() == AuthMode.SIGN_IN

    def test_validate_only_failing_keys(self, controller):
        controller.set_email("alice@example.com")
        controller.set_password("abc")
        assert controller.validate() is False
        assert list(controller.errors) == ["password"]


class TestSubmitSignIn:
    @pytest.mark.asyncio
    async def test_invalid_form_never_calls_provider(self, controller, auth):
        controller.set_email("not-an-email")
        controller.set_password("secret1")
        assert await controller.submit() is False
        assert auth.calls == []
        assert controller.errors["email"].reason == Reason.INVALID_FORMAT

    @pytest.mark.asyncio
    async def test_success(self, controller, auth, channel, navigator):
        controller.set_email("Alice@Example.com")
        controller.set_password("secret1")
        assert await controller.submit() is True
        assert auth.calls == [("sign_in", "alice@example.com")]
        assert channel.current.message == SIGN_IN_SUCCESS_MESSAGE
        assert navigator.destinations == [DESTINATION_DASHBOARD]
        assert controller.session.user_id == "user-1"
        assert get_session() is controller.session
        assert controller.loading is False

    @pytest.mark.asyncio
    async def test_redirect_waits_for_delay(self, auth, channel, navigator):
        from tasktrack.flows.credentials import CredentialFlowController

        slept = []

        async def fake_sleep(seconds):
            slept.append(seconds)

        controller = CredentialFlowController(
            auth, channel, navigator=navigator, redirect_delay=1.5, sleep=fake_sleep,
        )
        controller.set_email("alice@example.com")
        controller.set_password("secret1")
        await controller.submit()
        assert slept == [1.5]

    @pytest.mark.asyncio
    async def test_provider_rejection_is_mapped(self, controller, auth, channel, navigator):
        auth.error = BackendError("Invalid login credentials", service="auth", status_code=400)
        controller.set_email("alice@example.com")
        controller.set_password("wrong-password")
        assert await controller.submit() is False
        assert channel.current.kind == NotificationKind.ERROR
        assert channel.current.message == PROVIDER_MESSAGES["Invalid login credentials"]
        assert navigator.destinations == []
        assert controller.session is None
        assert controller.loading is False

    @pytest.mark.asyncio
    async def test_unknown_provider_message_shown_raw(self, controller, auth, channel):
        auth.error = BackendError("Email not confirmed", service="auth")
        controller.set_email("alice@example.com")
        controller.set_password("secret1")
        await controller.submit()
        assert channel.current.message == "Email not confirmed"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_generic(self, controller, auth, channel):
        auth.error = RuntimeError("socket exploded")
        controller.set_email("alice@example.com")
        controller.set_password("secret1")
        assert await controller.submit() is False
        assert channel.current.message == GENERIC_ERROR_MESSAGE
        assert controller.loading is False

    @pytest.mark.asyncio
    async def test_failure_after_provider_success_is_generic(self, auth, channel):
        from tasktrack.flows.credentials import CredentialFlowController

        navigator = MagicMock()
        navigator.navigate.side_effect = RuntimeError("router gone")
        controller = CredentialFlowController(auth, channel, navigator=navigator, redirect_delay=0)
        controller.set_email("alice@example.com")
        controller.set_password("secret1")
        assert await controller.submit() is False
        assert channel.current.message == GENERIC_ERROR_MESSAGE
        assert controller.loading is False


class TestSubmitSignUp:
    @pytest.mark.asyncio
    async def test_strict_rules_block_weak_password(self, controller, auth):
        controller.toggle_mode()
        controller.set_email("alice@example.com")
        controller.set_password("abcdef")
        assert await controller.submit() is False
        assert controller.errors["password"].reason == Reason.MISSING_UPPERCASE
        assert auth.calls == []

    @pytest.mark.asyncio
    async def test_success_clears_form_without_redirect(self, controller, auth, channel, navigator, clock):
        controller.toggle_mode()
        controller.set_email("alice@example.com")
        controller.set_password("Secret1!")
        assert await controller.submit() is True
        assert auth.calls == [("sign_up", "alice@example.com")]
        assert controller.credential.email == ""
        assert controller.credential.password == ""
        assert navigator.destinations == []
        assert controller.session is None
        assert channel.current.message == SIGN_UP_SUCCESS_MESSAGE
        clock.advance(4.0)
        assert channel.current is None

    @pytest.mark.asyncio
    async def test_already_registered(self, controller, auth, channel):
        auth.error = BackendError("User already registered", service="auth", status_code=422)
        controller.toggle_mode()
        controller.set_email("alice@example.com")
        controller.set_password("Secret1!")
        await controller.submit()
        assert channel.current.message == (
            "An account with this email already exists. Please sign in instead."
        )


class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_sign_out(self, controller, auth, channel, navigator):
        controller.set_email("alice@example.com")
        controller.set_password("secret1")
        await controller.submit()
        assert await controller.sign_out() is True
        assert controller.session is None
        assert get_session() is None
        assert navigator.destinations[-1] == DESTINATION_ENTRY

    @pytest.mark.asyncio
    async def test_sign_out_redirect_failure_still_clears_session(self, controller, auth, channel, navigator):
        controller.set_email("alice@example.com")
        controller.set_password("secret1")
        await controller.submit()
        with patch.object(navigator, "navigate", side_effect=RuntimeError("router gone")):
            assert await controller.sign_out() is True
        assert controller.session is None
        assert get_session() is None
        assert channel.current.message == GENERIC_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_sign_out_failure_keeps_session(self, controller, auth, channel, navigator):
        controller.set_email("alice@example.com")
        controller.set_password("secret1")
        await controller.submit()
        auth.error = BackendError("network down", service="auth")
        assert await controller.sign_out() is False
        assert controller.session is not None
        assert channel.current.kind == NotificationKind.ERROR

    @pytest.mark.asyncio
    async def test_resume_session(self, controller, auth):
        auth.signed_in = True
        session = await controller.resume_session()
        assert session.user_id == "user-1"
        assert session.email == "alice@example.com"

    @pytest.mark.asyncio
    async def test_resume_without_session(self, controller, channel):
        assert await controller.resume_session() is None
        assert channel.current.message == USER_FETCH_FAILED_MESSAGE


class TestProviderCallShape:
    @pytest.mark.asyncio
    async def test_password_sent_verbatim_email_lowercased(self, channel):
        from tasktrack.flows.credentials import CredentialFlowController
        from tasktrack.records.auth import AuthUser

        provider = MagicMock()
        provider.sign_in_with_password = AsyncMock(return_value=AuthUser(id="u9", email="bob@example.com"))
        controller = CredentialFlowController(provider, channel)
        controller.set_email("  Bob@Example.COM ")
        controller.set_password(" <pa ss> ")
        assert await controller.submit() is True
        provider.sign_in_with_password.assert_awaited_once_with("bob@example.com", " <pa ss> ")

    @pytest.mark.asyncio
    async def test_failed_sign_in_logged_without_password(self, controller, auth):
        auth.error = BackendError("Invalid login credentials", service="auth")
        controller.set_email("alice@example.com")
        controller.set_password("secret-value")
        with patch("tasktrack.flows.credentials.log") as mock_log:
            await controller.submit()
        entry = mock_log.call_args.args[0]
        assert entry.area == "auth"
        assert entry.category == "security"
        assert "secret-value" not in entry.to_json()
        assert entry.data["email"] == "a***@example.com"
