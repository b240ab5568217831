"""
TaskTrack — Sign-in / Sign-up Page

Route: /
"""

import reflex as rx

from tasktrack.ui.components import page_shell
from tasktrack.ui.state import AuthState


def auth_page() -> rx.Component:
    """Entry page: one form toggling between sign-in and sign-up."""
    return page_shell(
        rx.center(
            rx.card(
                rx.vstack(
                    rx.heading(
                        rx.cond(AuthState.is_sign_up, "Create an account", "Welcome back"),
                        size="6",
                        text_align="center",
                    ),
                    rx.text(
                        rx.cond(
                            AuthState.is_sign_up,
                            "Sign up to start tracking your tasks",
                            "Sign in to your task dashboard",
                        ),
                        color="gray",
                        text_align="center",
                    ),
                    rx.divider(),
                    rx.form(
                        rx.vstack(
                            rx.text("Email", size="2", weight="bold"),
                            rx.input(
                                placeholder="you@example.com",
                                name="email",
                                type="email",
                                value=AuthState.email,
                                on_change=AuthState.set_email,
                                size="3",
                                width="100%",
                            ),
                            _field_error(AuthState.email_error),
                            rx.text("Password", size="2", weight="bold"),
                            rx.input(
                                placeholder="••••••••",
                                name="password",
                                type="password",
                                value=AuthState.password,
                                on_change=AuthState.set_password,
                                size="3",
                                width="100%",
                            ),
                            _field_error(AuthState.password_error),
                            rx.cond(
                                AuthState.is_sign_up & (AuthState.password != ""),
                                _strength_panel(),
                            ),
                            rx.button(
                                rx.cond(AuthState.is_sign_up, "Sign Up", "Sign In"),
                                type="submit",
                                size="3",
                                width="100%",
                                loading=AuthState.loading,
                            ),
                            spacing="3",
                            width="100%",
                        ),
                        on_submit=AuthState.submit,
                        width="100%",
                    ),
                    rx.hstack(
                        rx.text(
                            rx.cond(
                                AuthState.is_sign_up,
                                "Already have an account?",
                                "Don't have an account?",
                            ),
                            size="2",
                            color="gray",
                        ),
                        rx.link(
                            rx.cond(AuthState.is_sign_up, "Sign in", "Sign up"),
                            size="2",
                            on_click=AuthState.toggle_mode,
                            cursor="pointer",
                        ),
                        spacing="2",
                        justify="center",
                        width="100%",
                    ),
                    spacing="4",
                    width="100%",
                    padding="6",
                ),
                width="420px",
            ),
            min_height="100vh",
        ),
    )


def _field_error(message) -> rx.Component:
    return rx.cond(
        message != "",
        rx.text(message, size="1", color="red"),
    )


def _strength_panel() -> rx.Component:
    """Strength label plus the per-rule checklist."""
    return rx.vstack(
        rx.hstack(
            rx.text("Strength:", size="1", color="gray"),
            rx.badge(
                AuthState.strength,
                color_scheme=rx.match(
                    AuthState.strength,
                    ("strong", "green"),
                    ("medium", "amber"),
                    "red",
                ),
            ),
            spacing="2",
        ),
        rx.foreach(AuthState.password_checks, _check_row),
        spacing="1",
        width="100%",
    )


def _check_row(check) -> rx.Component:
    return rx.hstack(
        rx.cond(
            check["passed"],
            rx.icon("check", size=14, color="green"),
            rx.icon("x", size=14, color="gray"),
        ),
        rx.text(check["label"], size="1"),
        spacing="2",
    )
