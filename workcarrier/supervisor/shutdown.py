import signal
import logging
from typing import TYPE_CHECKING, Tuple
from workcarrier.config import effective_settings as config
from workcarrier.supervisor import process_utils

if TYPE_CHECKING:
    from .persistence import PidFile
    from .registry import ProcessRegistry

log = logging.getLogger(__name__)


def kill_workers(registry: "ProcessRegistry") -> None:
    """
    Forcefully kills every worker listed in the registry and reaps them.

    Workers that already exited are skipped. Reaped workers are removed from
    the registry; any that survive the wait stay listed.

    :param registry: The pool parent's process registry.
    """
    pids = registry.pids()
    if not pids:
        return

    log.warning(f"Killing {len(pids)} worker processes...")
    killed = []
    for pid in pids:
        log.debug(f"Sending SIGKILL to worker {pid}")
        proc = process_utils.kill_process(pid)
        if proc is not None:
            killed.append(proc)

    alive = process_utils.reap_processes(killed, timeout=config.KILL_WAIT_TIMEOUT)
    alive_pids = {proc.pid for proc in alive}
    for proc in alive:
        log.error(f"Worker {proc.pid} is still alive {config.KILL_WAIT_TIMEOUT}s after SIGKILL.")

    for pid in pids:
        if pid not in alive_pids:
            registry.remove(pid)


class TerminationHandler:
    """
    Signal handler installed in the daemon process.

    Bound explicitly to the daemon's registry and pid file. On the
    termination signal it kills every registered worker, removes the pid
    file and exits the daemon, in that order.
    """

    def __init__(self, registry: "ProcessRegistry", pid_file: "PidFile") -> None:
        self.registry = registry
        self.pid_file = pid_file
        self.signums: Tuple[int, ...] = ()

    def install(self, *signums: int) -> None:
        """Registers this handler for the given signals (SIGTERM if none) in the current process."""
        signums = signums or (signal.SIGTERM,)
        for signum in signums:
            process_utils.install_signal_handler(signum, self)
            log.debug(f"Termination handler installed for {signal.Signals(signum).name}.")
        self.signums = signums

    def __call__(self, signum: int, frame) -> None:
        log.info(f"Daemon caught {signal.Signals(signum).name}. Shutting down worker pool.")
        kill_workers(self.registry)
        self.pid_file.remove()
        log.info(f"Daemon process {process_utils.current_pid()} exiting.")
        process_utils.terminate(0)
