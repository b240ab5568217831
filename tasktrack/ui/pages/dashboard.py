"""
TaskTrack — Dashboard Page

Route: /dashboard
"""

import reflex as rx

from tasktrack.rules.validation import TASK_PRIORITIES, TASK_STATUSES
from tasktrack.ui.components import page_shell
from tasktrack.ui.state import DashboardState

_FILTER_OPTIONS = ["all", *TASK_STATUSES]


def dashboard_page() -> rx.Component:
    """Task dashboard — create form, status filter and task list."""
    return page_shell(
        rx.vstack(
            _header(),
            rx.divider(),
            rx.grid(
                _create_form(),
                _task_list(),
                columns="2",
                spacing="6",
                width="100%",
            ),
            spacing="5",
            width="100%",
            max_width="1100px",
            margin_x="auto",
            padding="6",
        ),
    )


def _header() -> rx.Component:
    return rx.hstack(
        rx.vstack(
            rx.heading("My Tasks", size="6"),
            rx.text(DashboardState.user_email, color="gray", size="2"),
            spacing="1",
        ),
        rx.spacer(),
        rx.button(
            rx.icon("log-out", size=16),
            "Logout",
            variant="outline",
            on_click=DashboardState.logout,
        ),
        width="100%",
        align="center",
    )


def _labelled(label: str, control: rx.Component, field: str) -> rx.Component:
    return rx.vstack(
        rx.text(label, size="2", weight="bold"),
        control,
        rx.cond(
            DashboardState.errors.contains(field),
            rx.text(DashboardState.errors[field], size="1", color="red"),
        ),
        spacing="1",
        width="100%",
    )


def _create_form() -> rx.Component:
    return rx.card(
        rx.vstack(
            rx.heading("New task", size="4"),
            _labelled(
                "Title",
                rx.input(
                    value=DashboardState.draft_title,
                    on_change=lambda value: DashboardState.set_draft_field("title", value),
                    width="100%",
                ),
                "title",
            ),
            _labelled(
                "Description",
                rx.text_area(
                    value=DashboardState.draft_description,
                    on_change=lambda value: DashboardState.set_draft_field("description", value),
                    width="100%",
                ),
                "description",
            ),
            rx.hstack(
                _labelled(
                    "Status",
                    rx.select(
                        list(TASK_STATUSES),
                        value=DashboardState.draft_status,
                        on_change=lambda value: DashboardState.set_draft_field("status", value),
                        width="100%",
                    ),
                    "status",
                ),
                _labelled(
                    "Priority",
                    rx.select(
                        list(TASK_PRIORITIES),
                        placeholder="Select priority",
                        value=DashboardState.draft_priority,
                        on_change=lambda value: DashboardState.set_draft_field("priority", value),
                        width="100%",
                    ),
                    "priority",
                ),
                spacing="3",
                width="100%",
            ),
            _labelled(
                "Tags",
                rx.input(
                    placeholder="work, urgent",
                    value=DashboardState.draft_tags,
                    on_change=lambda value: DashboardState.set_draft_field("tags", value),
                    width="100%",
                ),
                "tags",
            ),
            _labelled(
                "Due date",
                rx.input(
                    type="date",
                    value=DashboardState.draft_due_date,
                    on_change=lambda value: DashboardState.set_draft_field("due_date", value),
                    width="100%",
                ),
                "due_date",
            ),
            rx.button(
                "Add Task",
                width="100%",
                loading=DashboardState.creating,
                on_click=DashboardState.create_task,
            ),
            spacing="3",
            width="100%",
        ),
    )


def _task_list() -> rx.Component:
    return rx.vstack(
        rx.hstack(
            rx.text(f"Tasks ({DashboardState.task_count})", weight="bold"),
            rx.spacer(),
            rx.select(
                _FILTER_OPTIONS,
                value=DashboardState.status_filter,
                on_change=DashboardState.set_filter,
            ),
            width="100%",
            align="center",
        ),
        rx.cond(
            DashboardState.loading,
            rx.center(rx.spinner(), width="100%", padding="4"),
            rx.cond(
                DashboardState.task_count > 0,
                rx.foreach(DashboardState.tasks, _task_card),
                rx.text("No tasks yet.", color="gray"),
            ),
        ),
        spacing="3",
        width="100%",
    )


def _task_card(task) -> rx.Component:
    return rx.card(
        rx.cond(
            DashboardState.editing_id == task["id"],
            _edit_form(),
            _task_summary(task),
        ),
        width="100%",
    )


def _task_summary(task) -> rx.Component:
    return rx.vstack(
        rx.hstack(
            rx.text(task["title"], weight="bold"),
            rx.spacer(),
            rx.badge(
                task["status"],
                color_scheme=rx.match(
                    task["status"],
                    ("done", "green"),
                    ("in-progress", "amber"),
                    "gray",
                ),
            ),
            width="100%",
        ),
        rx.text(task["description"], size="2"),
        rx.hstack(
            rx.cond(task["priority"] != "", rx.badge(task["priority"], variant="outline")),
            rx.cond(task["due_date"] != "", rx.text(f"Due {task['due_date']}", size="1", color="gray")),
            rx.cond(task["tags"] != "", rx.text(task["tags"], size="1", color="gray")),
            spacing="2",
            align="center",
        ),
        rx.hstack(
            rx.text(task["created_at"], size="1", color="gray"),
            rx.spacer(),
            rx.button(
                "Edit",
                size="1",
                variant="soft",
                on_click=DashboardState.start_editing(task["id"]),
            ),
            rx.button(
                "Delete",
                size="1",
                variant="soft",
                color_scheme="red",
                on_click=DashboardState.delete_task(task["id"]),
            ),
            width="100%",
            align="center",
        ),
        spacing="2",
        width="100%",
    )


def _edit_form() -> rx.Component:
    return rx.vstack(
        rx.input(
            value=DashboardState.edit_title,
            on_change=lambda value: DashboardState.set_edit_field("title", value),
            width="100%",
        ),
        rx.text_area(
            value=DashboardState.edit_description,
            on_change=lambda value: DashboardState.set_edit_field("description", value),
            width="100%",
        ),
        rx.select(
            list(TASK_STATUSES),
            value=DashboardState.edit_status,
            on_change=lambda value: DashboardState.set_edit_field("status", value),
        ),
        rx.hstack(
            rx.button("Save", size="1", on_click=DashboardState.save_edit),
            rx.button(
                "Cancel",
                size="1",
                variant="outline",
                on_click=DashboardState.cancel_editing,
            ),
            spacing="2",
        ),
        spacing="2",
        width="100%",
    )
