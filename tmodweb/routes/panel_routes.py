"""HTTP and WebSocket route registration for the server panel."""

from flask import jsonify, render_template, request
from simple_websocket import ConnectionClosed

from tmodweb.core.errors import SessionError
from tmodweb.core.response_helpers import error_response, ok_response, session_error_response
from tmodweb.services import control_plane
from tmodweb.services.broadcast_hub import Subscriber


def _request_command():
    payload = request.get_json(silent=True) if request.is_json else None
    if isinstance(payload, dict):
        return str(payload.get("command") or "")
    return request.form.get("command", "")


def serve_subscriber(state, connection):
    """Run one push connection until the peer goes away.

    Inbound frames are read and dropped; reading only notices disconnects.
    """
    subscriber = Subscriber(connection, queue_size=state.settings.subscriber_queue_size)
    state.hub.subscribe(subscriber)
    try:
        # New clients get the current status instead of waiting a tick.
        state.hub.push(subscriber, state.monitor.build_snapshot())
        while not subscriber.closed:
            connection.receive()
    except ConnectionClosed:
        pass
    finally:
        state.hub.unsubscribe(subscriber)


def register_routes(app, sock, state):
    """Register panel page, control actions, status and the push channel."""

    @app.route("/")
    def index():
        return render_template("index.html", screen_name=state.settings.screen_name)

    # Route: /start
    @app.route("/start", methods=["POST"])
    def start():
        try:
            control_plane.start_server(state)
        except SessionError as exc:
            state.log_action("start", rejection_message=str(exc))
            return session_error_response(request, exc)
        return ok_response(request)

    # Route: /stop
    @app.route("/stop", methods=["POST"])
    def stop():
        try:
            control_plane.stop_server(state)
        except SessionError as exc:
            state.log_action("stop", rejection_message=str(exc))
            return session_error_response(request, exc)
        return ok_response(request)

    # Route: /command
    @app.route("/command", methods=["POST"])
    def command():
        line = _request_command()
        try:
            control_plane.send_console_command(state, line)
        except ValueError as exc:
            state.log_action("command", command=line, rejection_message=str(exc))
            return error_response(request, "invalid_command", str(exc), 400)
        except SessionError as exc:
            state.log_action("command", command=line, rejection_message=str(exc))
            return session_error_response(request, exc)
        return ok_response(request)

    @app.route("/status")
    def status():
        return jsonify(control_plane.current_status(state))

    @sock.route("/ws")
    def ws(connection):
        serve_subscriber(state, connection)
