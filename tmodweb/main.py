"""Web panel for starting, stopping and watching a screen-hosted game server.

This app provides:
- Start/stop controls and a one-line console input for the server session
- A background monitor that scrapes the player list from the session output
- Live status, player and event-log pushes to every browser over a WebSocket
"""

from pathlib import Path

from flask import Flask
from flask_sock import Sock

from tmodweb.core.config import apply_default_flask_config, load_settings
from tmodweb.core.logging_setup import build_loggers
from tmodweb.routes.panel_routes import register_routes
from tmodweb.services import app_lifecycle as app_lifecycle_service
from tmodweb.services import bootstrap as bootstrap_service
from tmodweb.services.broadcast_hub import BroadcastHub
from tmodweb.services.log_store import LogStore
from tmodweb.services.session_controller import SessionController
from tmodweb.services.status_monitor import StatusMonitor
from tmodweb.state import PanelState

APP_DIR = Path(__file__).resolve().parent.parent


def build_state(settings, runner=None):
    """Wire the panel services together for one process."""
    log_action, log_exception = build_loggers(settings)
    log_store = LogStore(capacity=settings.log_store_capacity, display_tz=settings.display_tz)
    hub = BroadcastHub(log_action, log_exception)
    controller = SessionController(
        screen_name=settings.screen_name,
        bootstrap_script=settings.bootstrap_script,
        hardcopy_path=settings.hardcopy_path,
        log_store=log_store,
        log_action=log_action,
        log_exception=log_exception,
        display_tz=settings.display_tz,
        command_timeout=settings.screen_command_timeout_seconds,
        runner=runner,
    )
    monitor = StatusMonitor(
        controller=controller,
        log_store=log_store,
        hub=hub,
        log_action=log_action,
        log_exception=log_exception,
        interval_seconds=settings.monitor_interval_seconds,
        roster_delay_seconds=settings.roster_response_delay_seconds,
        recent_log_limit=settings.log_recent_limit,
    )
    return PanelState(
        settings=settings,
        log_store=log_store,
        hub=hub,
        controller=controller,
        monitor=monitor,
        log_action=log_action,
        log_exception=log_exception,
    )


def build_panel(settings=None, runner=None, start_monitor_on_request=True):
    """Return ``(app, state)``; the monitor thread is not started here."""
    if settings is None:
        settings = load_settings(APP_DIR)
    state = build_state(settings, runner=runner)
    app = Flask(
        __name__,
        template_folder=str(APP_DIR / "templates"),
        static_folder=str(APP_DIR / "static"),
    )
    apply_default_flask_config(app, settings)
    sock = Sock(app)
    app_lifecycle_service.install_flask_hooks(
        app,
        ensure_monitor_started=state.monitor.start if start_monitor_on_request else None,
        log_exception=state.log_exception,
    )
    register_routes(app, sock, state)
    return app, state


def log_boot_diagnostics(state):
    """Log boot-time detection snapshot of the screen setup."""
    settings = state.settings
    details = (
        f"screen={settings.screen_name}; "
        f"bootstrap_script={settings.bootstrap_script}; "
        f"hardcopy={settings.hardcopy_path}; "
        f"session_live={state.controller.is_running()}; "
        f"monitor_interval={settings.monitor_interval_seconds:g}s"
    )
    state.log_action("boot", command=details)


def run_server():
    """Start the status monitor, then serve HTTP until interrupted."""
    app, state = build_panel(start_monitor_on_request=False)
    boot_steps = [
        ("log_boot_diagnostics", lambda: log_boot_diagnostics(state)),
        ("start_status_monitor", state.monitor.start),
    ]
    shutdown_steps = [
        ("stop_status_monitor", lambda: state.monitor.stop(timeout=5)),
    ]
    bootstrap_service.run_server(
        app,
        state.settings,
        state.log_action,
        state.log_exception,
        boot_steps,
        shutdown_steps,
    )


if __name__ == "__main__":
    run_server()
