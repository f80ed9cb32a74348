"""Application bootstrap/run helpers."""


def _run_steps(steps, log_action, log_exception, failure_action):
    for step_name, step_func in steps:
        try:
            step_func()
        except Exception as exc:
            log_exception(f"{failure_action}/{step_name}", exc)
            log_action(failure_action, command=step_name, rejection_message=str(exc)[:500] or "step failed")
            raise


def run_server(app, settings, log_action, log_exception, boot_steps, shutdown_steps=()):
    """Run startup steps, serve HTTP until interrupted, then run shutdown steps.

    A listener that cannot bind is logged as ``boot-failed`` and re-raised;
    it is the only condition that ends the process.
    """
    host = settings.web_host
    port = settings.web_port
    log_action("boot-start", command=f"host={host} port={port} screen={settings.screen_name}")

    _run_steps(boot_steps, log_action, log_exception, "boot-failed")

    log_action("boot-ready", command=f"host={host} port={port}")
    try:
        app.run(host=host, port=port, threaded=True)
    except Exception as exc:
        log_exception("boot_step/app.run", exc)
        log_action("boot-failed", command="app.run", rejection_message=str(exc)[:500] or "web server startup failed")
        raise
    finally:
        for step_name, step_func in shutdown_steps:
            try:
                step_func()
            except Exception as exc:
                log_exception(f"shutdown/{step_name}", exc)
        log_action("shutdown", command=f"host={host} port={port}")
