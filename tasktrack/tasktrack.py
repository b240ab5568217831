"""
TaskTrack — Main Reflex application entry point.

Boot sequence:
    1. _init_platform()  — config, stdlib log level, structured log queue
    2. Create rx.App() and register the entry and dashboard routes
"""

import logging

import reflex as rx

from tasktrack.engine.config import get_config
from tasktrack.engine.errors import ConfigError
from tasktrack.engine.logging import init_logging, log, log_system_event
from tasktrack.ui.pages.auth import auth_page
from tasktrack.ui.pages.dashboard import dashboard_page
from tasktrack.ui.state import DashboardState

logger = logging.getLogger("tasktrack.startup")

# Guard: only initialize once, even if the module is re-imported
_platform_initialized = False


def _init_platform() -> None:
    """Load config and start the structured log queue."""
    global _platform_initialized
    if _platform_initialized:
        return
    _platform_initialized = True

    try:
        config = get_config()
    except ConfigError as e:
        logger.error(f"Failed to load configuration: {e.message} {e.problems}")
        raise

    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_logging(config.logging)
    if not config.backend.anon_key:
        logger.warning("No backend key configured; set TASKTRACK_BACKEND_KEY")
    log(log_system_event("startup", details={"environment": config.environment, "app": config.name}))
    logger.info(f"{config.name} initialized ({config.environment})")


_init_platform()

app = rx.App()

_auth_routes = get_config().auth
app.add_page(auth_page, route=_auth_routes.entry_route, title="TaskTrack — Sign in")
app.add_page(
    dashboard_page,
    route=_auth_routes.dashboard_route,
    title="TaskTrack — Dashboard",
    on_load=DashboardState.load,
)
