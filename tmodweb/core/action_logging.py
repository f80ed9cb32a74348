"""Diagnostics log writers with request-aware client identification."""

from datetime import datetime
import os
import traceback
from flask import request, has_request_context

LOG_ROTATE_MAX_BYTES = 5 * 1024 * 1024
LOG_ROTATE_BACKUP_COUNT = 5
TRACEBACK_CHAR_LIMIT = 700


def sanitize_log_fragment(text):
    """Collapse text into one whitespace-normalized log fragment."""
    return " ".join(str(text or "").split())


def get_client_ip():
    """Best client address for the current request, ``tmodweb`` outside one."""
    if not has_request_context():
        return "tmodweb"
    forwarded = (request.headers.get("X-Forwarded-For") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    real_ip = (request.headers.get("X-Real-IP") or "").strip()
    if real_ip:
        return real_ip
    return (request.remote_addr or "").strip() or "tmodweb"


def _rotate_log_file(path, max_bytes=LOG_ROTATE_MAX_BYTES, backup_count=LOG_ROTATE_BACKUP_COUNT):
    """Shift ``path`` to ``path.1`` (and older copies up) once it is too big."""
    if max_bytes <= 0 or backup_count <= 0:
        return
    try:
        if not path.exists() or path.stat().st_size < max_bytes:
            return
        for idx in range(backup_count - 1, 0, -1):
            src = path.with_name(f"{path.name}.{idx}")
            if src.exists():
                os.replace(src, path.with_name(f"{path.name}.{idx + 1}"))
        os.replace(path, path.with_name(f"{path.name}.1"))
    except OSError:
        # Rotation failures must not break control endpoints.
        pass


def format_action_line(display_tz, action, command=None, rejection_message=None):
    """Render one diagnostics line, or an empty string when nothing to say."""
    timestamp = datetime.now(tz=display_tz).strftime("%b %d %H:%M:%S")
    client_ip = sanitize_log_fragment(get_client_ip()) or "unknown"
    safe_action = sanitize_log_fragment(action) or "unknown"
    parts = [f"{timestamp} <{client_ip}> [tmodweb/{safe_action}]"]
    safe_command = sanitize_log_fragment(command)
    if safe_command:
        parts.append(safe_command)
    safe_rejection = sanitize_log_fragment(rejection_message)
    if safe_rejection:
        parts.append(f"rejected: {safe_rejection}")
    return " ".join(parts)


def make_log_action(display_tz, log_dir, action_log_file):
    """Build the diagnostics action logger closure."""

    def log_action(action, command=None, rejection_message=None):
        line = format_action_line(display_tz, action, command, rejection_message)
        if not line:
            return
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            _rotate_log_file(action_log_file)
            with action_log_file.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            # Logging must not break control endpoints.
            pass

    return log_action


def make_log_exception(log_action):
    """Build an exception logger that emits through ``log_action``."""

    def log_exception(context, exc):
        """Log exception type, message and a truncated one-line traceback."""
        message = f"{context}: {type(exc).__name__}"
        exc_text = sanitize_log_fragment(exc)
        if exc_text:
            message += f": {exc_text}"
        tb = sanitize_log_fragment(
            " | ".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        )
        if tb:
            message += f" | traceback: {tb[:TRACEBACK_CHAR_LIMIT]}"
        log_action("error", rejection_message=message)

    return log_exception
