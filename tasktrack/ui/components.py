"""
TaskTrack UI — shared components (notification banner, page shell).
"""

import reflex as rx

from tasktrack.ui.state import SessionState


def _banner(icon: str, color: str) -> rx.Component:
    return rx.callout.root(
        rx.callout.icon(rx.icon(icon, size=16)),
        rx.callout.text(SessionState.notification_message),
        rx.icon_button(
            rx.icon("x", size=14),
            size="1",
            variant="ghost",
            color_scheme=color,
            on_click=SessionState.dismiss_notification,
        ),
        color_scheme=color,
        size="1",
    )


def notification_banner() -> rx.Component:
    """The single auto-dismissing banner, pinned to the top right."""
    return rx.cond(
        SessionState.notification_message != "",
        rx.box(
            rx.match(
                SessionState.notification_kind,
                ("success", _banner("circle_check", "green")),
                ("error", _banner("triangle_alert", "red")),
                _banner("info", "blue"),
            ),
            position="fixed",
            top="16px",
            right="16px",
            z_index="1000",
            min_width="320px",
        ),
    )


def page_shell(*children: rx.Component, **props) -> rx.Component:
    """Wrap page content with the banner."""
    return rx.box(
        notification_banner(),
        *children,
        width="100%",
        min_height="100vh",
        **props,
    )
