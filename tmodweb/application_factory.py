"""App factory entrypoint for WSGI servers."""


def create_app(settings=None, runner=None, start_monitor_on_request=True):
    """Return a fully wired Flask app; the monitor starts on the first request."""
    from tmodweb.main import build_panel

    app, _ = build_panel(settings, runner=runner, start_monitor_on_request=start_monitor_on_request)
    return app
