import time
import signal
import psutil
import logging
from typing import List, Optional
from workcarrier.config import effective_settings as config
from workcarrier.supervisor import process_utils
from workcarrier.supervisor.persistence import PidFile

log = logging.getLogger(__name__)


def _pid_file_from_args(command: str, args: List[str]) -> Optional[PidFile]:
    if not args:
        print(f"Usage: {command} <pid_file>")
        return None
    return PidFile(args[0])


def display_status(args: List[str]) -> bool:
    """
    Shows whether the daemon recorded in a pid file is running, with its workers.

    :return: True if the daemon is running.
    """
    pid_file = _pid_file_from_args("status", args)
    if pid_file is None:
        return False

    pid = pid_file.read()
    if pid is None:
        print(f"\nDaemon is STOPPED (no PID in {pid_file.path}).\n")
        return False
    if not process_utils.is_alive(pid):
        print(f"\nDaemon is STOPPED (stale PID file {pid_file.path}, PID {pid}).\n")
        return False

    print("\n--- Daemon Status ---")
    try:
        daemon = psutil.Process(pid)
        uptime = time.strftime('%H:%M:%S', time.gmtime(time.time() - daemon.create_time()))
        print(f"  - {daemon.name():<32} : PID {pid:<8} | Status: {daemon.status().upper()} | Uptime: {uptime}")
        for child in daemon.children():
            print(f"    - {child.name():<30} : PID {child.pid:<8} | Status: {child.status().upper()}")
    except psutil.NoSuchProcess:
        print(f"  Daemon {pid} exited while being inspected.")
        return False
    except psutil.Error as e:
        print(f"  PID {pid} is running but cannot be inspected: {e}")
    print()
    return True


def stop_daemon(args: List[str]) -> bool:
    """
    Sends SIGTERM to the daemon recorded in a pid file and waits for it to exit.

    :return: True if the daemon is no longer running.
    """
    pid_file = _pid_file_from_args("stop", args)
    if pid_file is None:
        return False

    pid = pid_file.read()
    if pid is None or not process_utils.is_alive(pid):
        log.info(f"No running daemon found for {pid_file.path}.")
        return True

    log.info(f"Sending SIGTERM to daemon {pid}...")
    if not process_utils.send_signal(pid, signal.SIGTERM):
        log.info(f"Daemon {pid} already exited.")
        return True

    if not process_utils.wait_for_exit(pid, timeout=config.STOP_TIMEOUT):
        log.error(f"Daemon {pid} did not exit within {config.STOP_TIMEOUT} seconds.")
        return False

    log.info(f"Daemon {pid} stopped.")
    return True


def print_help(args: List[str]) -> bool:
    """Prints the help text for the console."""
    print("\nAvailable commands:")
    print("  status <pid_file>      - Show whether the daemon and its workers are running.")
    print("  stop <pid_file>        - Send SIGTERM to the daemon and wait for it to exit.")
    print("  help                   - Show this help message.")
    print()
    return True
