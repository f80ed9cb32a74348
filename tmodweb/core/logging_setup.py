"""Logging setup helpers."""

from tmodweb.core.action_logging import make_log_action, make_log_exception


def build_loggers(settings):
    """Create the diagnostics action writer and its exception logger."""
    log_action = make_log_action(settings.display_tz, settings.log_dir, settings.action_log_file)
    log_exception = make_log_exception(log_action)
    return log_action, log_exception
