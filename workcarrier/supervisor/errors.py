"""Exceptions raised by the supervisor."""


class SupervisorError(Exception):
    """Base class for every failure the supervisor reports explicitly."""


class ConfigurationError(SupervisorError):
    """The supervisor was configured with values it cannot run with."""


class ForkError(SupervisorError):
    """The OS refused to create a new process after all retry attempts."""


class PidFileError(SupervisorError):
    """The pid file could not be written."""


class AlreadyRunningError(SupervisorError):
    """The pid file names a daemon that is still alive."""

    def __init__(self, pid: int, pid_file) -> None:
        super().__init__(f"Daemon already running with PID {pid} (pid file: {pid_file}).")
        self.pid = pid
        self.pid_file = pid_file
