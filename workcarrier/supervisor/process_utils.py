import os
import sys
import time
import signal
import psutil
import logging
import setproctitle
from typing import Callable, Iterable, List, Optional, Tuple
from workcarrier.config import effective_settings as config
from workcarrier.supervisor.errors import ConfigurationError, ForkError

log = logging.getLogger(__name__)


#* --- Process Status ---
def pid_exists(pid: int) -> bool:
    """A wrapper for psutil.pid_exists for easy testing/mocking if needed."""
    return psutil.pid_exists(pid)

def is_alive(pid: int) -> bool:
    """True if the PID names a running process that is not a zombie."""
    try:
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.Error:
        # Exists but cannot be inspected (e.g. AccessDenied).
        return pid_exists(pid)

def current_pid() -> int:
    return os.getpid()

def describe_exit(exit_code: int) -> str:
    """Human readable form of a decoded wait status."""
    if exit_code < 0:
        try:
            return f"killed by {signal.Signals(-exit_code).name}"
        except ValueError:
            return f"killed by signal {-exit_code}"
    return f"exit code {exit_code}"


#* --- Process Creation ---
def ensure_fork_supported() -> None:
    """Raises ConfigurationError on platforms without os.fork (e.g. Windows)."""
    if not hasattr(os, "fork"):
        raise ConfigurationError(f"Process forking is not available on platform '{sys.platform}'.")

def fork_process() -> int:
    """
    Duplicates the calling process, retrying with exponential backoff when
    the OS is temporarily out of resources.

    :return: The child's PID in the parent, 0 in the child.
    :raises ForkError: If every attempt failed.
    """
    attempts = max(1, config.FORK_RETRY_ATTEMPTS)
    delay = config.FORK_RETRY_BACKOFF
    attempt = 1
    while True:
        # Flush buffered output so the child does not write it a second time.
        sys.stdout.flush()
        sys.stderr.flush()
        try:
            return os.fork()
        except OSError as e:
            if attempt >= attempts:
                raise ForkError(f"fork() failed after {attempts} attempts: {e}") from e
            log.warning(f"fork() failed (attempt {attempt}/{attempts}): {e}. Retrying in {delay:.2f}s.")
            time.sleep(delay)
            delay *= 2
            attempt += 1

def wait_for_child() -> Tuple[int, int]:
    """
    Blocks until any child exits.

    :return: (pid, exit_code) where a negative exit code is the killing signal.
    :raises ChildProcessError: If the process has no children left.
    """
    pid, status = os.wait()
    return pid, os.waitstatus_to_exitcode(status)

def detach_session() -> None:
    """Makes the calling process a session leader, away from the launching terminal."""
    try:
        os.setsid()
    except OSError as e:
        # Already a session/group leader.
        log.debug(f"setsid() skipped: {e}")


#* --- Process Termination ---
def kill_process(pid: int) -> Optional[psutil.Process]:
    """
    Sends SIGKILL to a process.

    :return: The psutil handle of the killed process, or None if it was already gone.
    """
    try:
        proc = psutil.Process(pid)
        proc.kill()
        return proc
    except psutil.NoSuchProcess:
        log.debug(f"Process {pid} no longer exists, skipping kill.")
        return None

def reap_processes(processes: Iterable[psutil.Process], timeout: float) -> List[psutil.Process]:
    """
    Waits for the given processes to exit.

    :return: The processes still alive after the timeout.
    """
    procs_list = list(processes)
    if not procs_list:
        return []
    try:
        _, alive = psutil.wait_procs(procs_list, timeout=timeout)
    except psutil.NoSuchProcess:
        alive = []
    return alive

def send_signal(pid: int, signum: int) -> bool:
    """Delivers a signal to a process. Returns False if it no longer exists."""
    try:
        psutil.Process(pid).send_signal(signum)
        return True
    except psutil.NoSuchProcess:
        return False

def wait_for_exit(pid: int, timeout: float) -> bool:
    """
    Waits until a process (not necessarily our child) is gone or a zombie.

    :return: True if it exited within the timeout.
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not is_alive(pid):
            return True
        time.sleep(0.1)
    return not is_alive(pid)

def terminate(exit_code: int = 0) -> None:
    """
    Ends the calling process immediately.

    os._exit is used so a forked child never unwinds into its parent's
    call stack (atexit hooks, test runners, the caller of run()).
    """
    for handler in logging.getLogger().handlers:
        try:
            handler.flush()
        except (OSError, ValueError):
            continue  # stream already closed
    sys.stdout.flush()
    sys.stderr.flush()
    os._exit(exit_code)


#* --- Signals & Titles ---
def install_signal_handler(signum: int, handler: Callable) -> None:
    signal.signal(signum, handler)

def reset_signal_handler(signum: int) -> None:
    """Restores the interpreter's startup disposition (KeyboardInterrupt for SIGINT)."""
    if signum == signal.SIGINT:
        signal.signal(signum, signal.default_int_handler)
    else:
        signal.signal(signum, signal.SIG_DFL)

def set_process_title(role_name: str) -> None:
    setproctitle.setproctitle(f"{config.PROCESS_TITLE_PREFIX} - {role_name}")
