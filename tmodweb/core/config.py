"""Runtime configuration helpers for tmodweb."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import os
import secrets

from tmodweb.core.web_config import WebConfig

CONFIG_FILE_NAME = "tmodweb.env"


@dataclass(frozen=True)
class PanelSettings:
    """Resolved settings for one panel process."""
    screen_name: str
    bootstrap_script: str
    hardcopy_path: Path
    screen_command_timeout_seconds: float
    monitor_interval_seconds: float
    roster_response_delay_seconds: float
    log_recent_limit: int
    log_store_capacity: int
    subscriber_queue_size: int
    web_host: str
    web_port: int
    display_tz: Any
    log_dir: Path
    action_log_file: Path
    secret_key: str


def resolve_secret_key(cfg_get_str, *env_names):
    """Resolve secret key from env/config with a random fallback."""
    for name in env_names:
        value = (os.environ.get(name) or "").strip()
        if value:
            return value
    configured = (cfg_get_str("TMODWEB_SECRET_KEY", "") or "").strip()
    if configured:
        return configured
    return secrets.token_hex(32)


def resolve_display_tz(name):
    """Return the named zone, or the host's local zone when unset/unknown."""
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return datetime.now().astimezone().tzinfo


def load_settings(app_dir, config_path=None):
    """Build ``PanelSettings`` from ``tmodweb.env`` under ``app_dir``."""
    app_dir = Path(app_dir)
    cfg = WebConfig(config_path or app_dir / CONFIG_FILE_NAME, app_dir)
    log_dir = cfg.get_path("TMODWEB_LOG_DIR", app_dir / "logs")
    return PanelSettings(
        screen_name=cfg.get_str("SCREEN_NAME", "tmod_session"),
        bootstrap_script=cfg.get_str("BOOTSTRAP_SCRIPT", "$HOME/Desktop/scripts/tmod_server.expect"),
        hardcopy_path=cfg.get_path("HARDCOPY_PATH", Path("/tmp/tmod_screen_out.txt")),
        screen_command_timeout_seconds=cfg.get_float("SCREEN_COMMAND_TIMEOUT_SECONDS", 5.0, minimum=0.5),
        monitor_interval_seconds=cfg.get_float("MONITOR_INTERVAL_SECONDS", 5.0, minimum=0.5),
        roster_response_delay_seconds=cfg.get_float("ROSTER_RESPONSE_DELAY_SECONDS", 2.0, minimum=0.0),
        log_recent_limit=cfg.get_int("LOG_RECENT_LIMIT", 10, minimum=1),
        log_store_capacity=cfg.get_int("LOG_STORE_CAPACITY", 200, minimum=1),
        subscriber_queue_size=cfg.get_int("SUBSCRIBER_QUEUE_SIZE", 16, minimum=1),
        web_host=cfg.get_str("WEB_HOST", "0.0.0.0"),
        web_port=cfg.get_int("WEB_PORT", 8080, minimum=1),
        display_tz=resolve_display_tz(cfg.get_str("DISPLAY_TZ", "")),
        log_dir=log_dir,
        action_log_file=log_dir / "tmodweb-actions.log",
        secret_key=resolve_secret_key(cfg.get_str, "TMODWEB_SECRET_KEY", "FLASK_SECRET_KEY"),
    )


def apply_default_flask_config(app, settings):
    """Apply baseline Flask runtime config values."""
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["SEND_FILE_MAX_AGE_DEFAULT"] = 3600
    app.config["SOCK_SERVER_OPTIONS"] = {"ping_interval": 25}
