"""GNU screen session control for the game server process."""

from datetime import datetime
import subprocess
import threading

from tmodweb.core.errors import AlreadyRunning, CommandFailed, LaunchFailed, NotRunning

STOP_COMMAND = "exit"
DETAIL_CHAR_LIMIT = 400


def _result_detail(result):
    detail = ((result.stderr or "") + "\n" + (result.stdout or "")).strip()
    return detail[:DETAIL_CHAR_LIMIT] or f"exit status {result.returncode}"


def _session_names(listing):
    """Yield session names from ``screen -list`` output (``<pid>.<name>`` rows)."""
    for line in (listing or "").splitlines():
        fields = line.split()
        if not fields or "." not in fields[0]:
            continue
        pid, name = fields[0].split(".", 1)
        if pid.isdigit():
            yield name


class SessionController:
    """Start, stop and talk to the named screen session hosting the server.

    Liveness is never cached: every check runs ``screen -list`` again.
    Check-and-act sequences hold ``_op_lock`` so two requests in this
    process cannot both pass the liveness check and act on it.
    """

    def __init__(
        self,
        *,
        screen_name,
        bootstrap_script,
        hardcopy_path,
        log_store,
        log_action,
        log_exception,
        display_tz=None,
        command_timeout=5.0,
        runner=None,
    ):
        self.screen_name = screen_name
        self.bootstrap_script = bootstrap_script
        self.hardcopy_path = hardcopy_path
        self.log_store = log_store
        self.log_action = log_action
        self.log_exception = log_exception
        self.display_tz = display_tz
        self.command_timeout = command_timeout
        self._run = runner or subprocess.run
        self._op_lock = threading.RLock()

    def _screen(self, *args):
        return self._run(
            ["screen", *args],
            capture_output=True,
            text=True,
            timeout=self.command_timeout,
        )

    def _now_text(self):
        return datetime.now(tz=self.display_tz).strftime("%a, %d %b %Y %H:%M:%S %Z").strip()

    def is_running(self):
        """Return True iff ``screen -list`` shows a session with our name."""
        try:
            # screen -list exits non-zero even when sessions exist; only stdout matters.
            result = self._screen("-list")
        except subprocess.TimeoutExpired:
            self.log_action(
                "status-timeout",
                command="screen -list",
                rejection_message=f"Timed out after {self.command_timeout:.1f}s.",
            )
            return False
        except OSError as exc:
            self.log_exception("is_running", exc)
            return False
        return self.screen_name in set(_session_names(result.stdout))

    def start(self):
        """Launch the bootstrap script in a detached session and return."""
        with self._op_lock:
            if self.is_running():
                raise AlreadyRunning()
            try:
                result = self._screen("-S", self.screen_name, "-dm", "bash", "-c", self.bootstrap_script)
            except subprocess.TimeoutExpired:
                detail = f"timed out after {self.command_timeout:.1f}s"
            except OSError as exc:
                detail = str(exc) or type(exc).__name__
            else:
                detail = None if result.returncode == 0 else _result_detail(result)
            if detail is not None:
                self.log_store.append(f"Failed to start server: {detail}")
                raise LaunchFailed(f"Failed to start server: {detail}")
            self.log_store.append(f"Server started at {self._now_text()}")
            self.log_action("start", command=f"screen={self.screen_name}")

    def stop(self):
        """Ask the server to exit gracefully; termination is not awaited."""
        with self._op_lock:
            if not self.is_running():
                raise NotRunning()
            try:
                self._stuff(STOP_COMMAND)
            except CommandFailed as exc:
                self.log_store.append(f"Failed to stop server: {exc}")
                raise CommandFailed(f"Failed to stop server: {exc}") from exc
            self.log_store.append(f"Server stopped at {self._now_text()}")
            self.log_action("stop", command=f"screen={self.screen_name}")

    def send_line(self, text):
        """Inject one line of console input into the running session."""
        line = (text or "").rstrip("\r\n")
        if not line.strip():
            raise ValueError("Command is required.")
        if "\n" in line or "\r" in line:
            raise ValueError("Command must be a single line.")
        with self._op_lock:
            if not self.is_running():
                raise NotRunning()
            self._stuff(line)

    def _stuff(self, line):
        try:
            result = self._screen("-S", self.screen_name, "-X", "stuff", line + "\n")
        except subprocess.TimeoutExpired as exc:
            raise CommandFailed(f"timed out after {self.command_timeout:.1f}s") from exc
        except OSError as exc:
            raise CommandFailed(str(exc) or type(exc).__name__) from exc
        if result.returncode != 0:
            raise CommandFailed(_result_detail(result))

    def capture_snapshot(self):
        """Dump the visible buffer to ``hardcopy_path``; False on any failure."""
        with self._op_lock:
            try:
                result = self._screen("-S", self.screen_name, "-X", "hardcopy", str(self.hardcopy_path))
            except (OSError, subprocess.TimeoutExpired) as exc:
                self.log_exception("capture_snapshot", exc)
                return False
        if result.returncode != 0:
            self.log_action(
                "hardcopy",
                command=str(self.hardcopy_path),
                rejection_message=f"Could not save screen: {_result_detail(result)}",
            )
            return False
        return True
