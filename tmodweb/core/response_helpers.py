"""Shared Flask response helpers for ajax/non-ajax flows."""

from flask import jsonify, redirect


def is_ajax_request(request):
    """Return True when request expects a JSON/XHR style response."""
    if request.headers.get("X-Requested-With") == "XMLHttpRequest":
        return True
    accept = request.headers.get("Accept", "")
    return "application/json" in accept.lower()


def ok_response(request):
    """JSON ok for fetch callers, See Other back to the panel for forms."""
    if is_ajax_request(request):
        return jsonify({"ok": True})
    return redirect("/", code=303)


def error_response(request, error, message, status_code):
    """Return a rejection as JSON for fetch callers or a plain-text reason."""
    if is_ajax_request(request):
        return jsonify({"ok": False, "error": error, "message": message}), status_code
    return message, status_code, {"Content-Type": "text/plain; charset=utf-8"}


def session_error_response(request, exc):
    """Map a ``SessionError`` onto its HTTP status and error code."""
    return error_response(request, exc.error_code, str(exc), exc.http_status)


def internal_error_response(request):
    """Return generic internal-error response payload."""
    return error_response(request, "internal_error", "Internal server error.", 500)
