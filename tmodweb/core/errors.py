"""Session control error taxonomy."""


class SessionError(Exception):
    """Base class for screen-session control failures."""

    error_code = "session_error"
    http_status = 500


class AlreadyRunning(SessionError):
    error_code = "already_running"
    http_status = 409

    def __init__(self, message="Server already running"):
        super().__init__(message)


class NotRunning(SessionError):
    error_code = "not_running"
    http_status = 409

    def __init__(self, message="Server not running"):
        super().__init__(message)


class LaunchFailed(SessionError):
    """The screen session could not be created."""

    error_code = "start_failed"


class CommandFailed(SessionError):
    """screen refused to inject input into the session."""

    error_code = "command_failed"
