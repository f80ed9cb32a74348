"""Start/stop/console control flows shared by routes and tests."""


def start_server(ctx):
    """Launch the session, then push the new status to every client.

    ``SessionError`` from the controller propagates; nothing is broadcast
    for a rejected or failed start.
    """
    ctx.controller.start()
    ctx.monitor.reset_roster()
    return ctx.monitor.publish()


def stop_server(ctx):
    """Send the graceful exit line, then push the new status."""
    ctx.controller.stop()
    ctx.monitor.reset_roster()
    return ctx.monitor.publish()


def send_console_command(ctx, command):
    """Inject one console line and record it in the client-visible log."""
    line = (command or "").strip()
    ctx.controller.send_line(line)
    ctx.log_store.append(f"Sent command: {line}")
    ctx.log_action("command", command=line)
    return ctx.monitor.publish()


def current_status(ctx):
    """Return the current snapshot in its wire shape."""
    return ctx.monitor.build_snapshot().to_payload()
