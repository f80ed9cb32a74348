"""Flask lifecycle hook installation."""
from flask import has_request_context, request
from werkzeug.exceptions import HTTPException

from tmodweb.core.response_helpers import internal_error_response


def install_flask_hooks(app, *, ensure_monitor_started, log_exception):
    """Install request/error hooks using explicit runtime callbacks."""

    if ensure_monitor_started is not None:
        @app.before_request
        def _ensure_monitor_started_before_request():
            # Covers WSGI launches that never go through run_server().
            ensure_monitor_started()

    @app.errorhandler(Exception)
    def _unhandled_exception_handler(exc):
        if isinstance(exc, HTTPException):
            return exc
        path = request.path if has_request_context() else "unknown-path"
        log_exception(f"unhandled_exception path={path}", exc)
        return internal_error_response(request)
