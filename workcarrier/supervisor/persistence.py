import time
import logging
from pathlib import Path
from typing import Optional, Union

from workcarrier.supervisor import process_utils
from workcarrier.supervisor.errors import AlreadyRunningError, PidFileError

log = logging.getLogger(__name__)


class PidFile:
    """The text file that records the daemon's PID for external stop scripts."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def persist(self, pid: int) -> None:
        """
        Atomically writes the PID to the pid file, replacing any previous content.

        :param pid: The daemon's process identifier.
        :raises PidFileError: If the file cannot be written.
        """
        temp_pid_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_pid_path.write_text(str(pid))
            temp_pid_path.replace(self.path)
        except OSError as e:
            raise PidFileError(f"Failed to write PID file '{self.path}': {e}") from e
        finally:
            temp_pid_path.unlink(missing_ok=True)
        log.debug(f"Wrote PID {pid} to {self.path}")

    def read(self) -> Optional[int]:
        """
        Reads the PID from disk.

        :return: The recorded PID, or None if the file is missing or unparsable.
        """
        try:
            return int(self.path.read_text().strip())
        except FileNotFoundError:
            return None
        except (ValueError, OSError) as e:
            log.warning(f"PID file '{self.path}' is unreadable: {e}")
            return None

    def remove(self) -> None:
        """Deletes the pid file if present. Failures are logged, not raised."""
        try:
            self.path.unlink(missing_ok=True)
            log.debug(f"Removed PID file {self.path}")
        except OSError as e:
            log.error(f"Failed to remove PID file '{self.path}': {e}")

    def exists(self) -> bool:
        return self.path.exists()

    def wait_for(self, pid: int, timeout: float) -> bool:
        """
        Polls until the pid file records the given PID.

        :return: True if it did within the timeout, False otherwise.
        """
        deadline = time.monotonic() + timeout
        while True:
            if self.exists() and self.read() == pid:
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)

    def __repr__(self) -> str:
        return f"PidFile('{self.path}')"


def check_if_already_running(pid_file: PidFile) -> None:
    """
    Refuses to start a second daemon over a live one.

    A pid file naming a dead process (or holding garbage) is stale and gets removed.

    :raises AlreadyRunningError: If the recorded PID belongs to a live process.
    """
    if not pid_file.exists():
        return

    pid = pid_file.read()
    if pid is not None and process_utils.is_alive(pid):
        raise AlreadyRunningError(pid, pid_file.path)

    log.warning(f"Removing stale PID file {pid_file.path} (PID: {pid}).")
    pid_file.remove()
