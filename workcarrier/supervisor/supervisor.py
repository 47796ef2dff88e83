import time
import signal
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Union
from workcarrier.config import effective_settings as config
from workcarrier.supervisor import persistence, process_utils, shutdown
from workcarrier.supervisor.errors import ConfigurationError, PidFileError
from workcarrier.supervisor.persistence import PidFile
from workcarrier.supervisor.registry import ProcessRegistry
from workcarrier.supervisor.shutdown import TerminationHandler

log = logging.getLogger(__name__)


class Role(Enum):
    """Which side of the fork tree the current process is on."""
    ORIGINATOR = "Originator"
    DAEMON = "Daemon"
    POOL_PARENT = "Pool"
    WORKER = "Worker"


class State(Enum):
    START = "start"
    DAEMONIZE = "daemonize"
    POOL_ENTRY = "pool_entry"
    POOL_FILL = "pool_fill"
    POOL_DRAIN = "pool_drain"
    WORK = "work"
    INLINE = "inline"
    END = "end"


class Supervisor:
    """
    Fork based worker supervisor.

    Runs a callback in a pool of forked worker processes, optionally from a
    detached daemon that kills its workers when it receives SIGTERM.

    Usage::

        supervisor = Supervisor(callback)
        supervisor.daemonize("worker.pid")
        supervisor.fork(5, respawn=True)
        supervisor.run()

    Configuration is fixed once run() starts. Except for the zero-pool,
    non-daemonized case, run() does not return in supervisor processes:
    each of them ends with a process exit.
    """

    def __init__(self, callback: Callable[[], None]) -> None:
        if not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback).__name__}")

        self._callback = callback
        self.fork_count = 0
        self.respawn = False
        self.should_daemonize = False
        self.pid_file: Optional[PidFile] = None

        self.role = Role.ORIGINATOR
        self.registry = ProcessRegistry()
        self.termination_handler: Optional[TerminationHandler] = None
        self._exit_code = 0
        self._started = False

        self._handlers: Dict[State, Callable[[], Optional[State]]] = {
            State.START: self._start,
            State.DAEMONIZE: self._daemonize,
            State.POOL_ENTRY: self._pool_entry,
            State.POOL_FILL: self._pool_fill,
            State.POOL_DRAIN: self._pool_drain,
            State.WORK: self._work,
            State.INLINE: self._inline,
            State.END: self._end,
        }

    @property
    def callback(self) -> Callable[[], None]:
        return self._callback

    #* --- Configuration ---
    def fork(self, count: int, respawn: bool = False) -> None:
        """
        Requests a pool of worker processes.

        :param count: Number of concurrent workers. 0 disables the pool.
        :param respawn: If True, every exited worker is replaced until the supervisor is terminated.
        """
        self._ensure_configurable()
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ConfigurationError(f"Worker count must be a non-negative integer, got {count!r}.")
        self.fork_count = count
        self.respawn = bool(respawn)

    def daemonize(self, pid_file: Union[str, Path]) -> None:
        """
        Requests detaching into a background daemon.

        :param pid_file: Where the daemon's PID is recorded for stop scripts.
        """
        self._ensure_configurable()
        if not str(pid_file).strip():
            raise ConfigurationError("A pid file path is required to daemonize.")
        self.should_daemonize = True
        self.pid_file = PidFile(pid_file)

    def _ensure_configurable(self) -> None:
        if self._started:
            raise ConfigurationError("Supervisor configuration cannot change once run() has started.")

    #* --- State Machine ---
    def run(self) -> None:
        """
        Drives the supervisor state machine.

        Errors (and KeyboardInterrupt) propagate to the caller while no worker
        exists. In a forked process, or in a pool parent with live workers,
        they abort the pool and exit that process with code 1.
        """
        if self._started:
            raise ConfigurationError("run() can only be called once per Supervisor.")
        self._started = True

        if self.should_daemonize or self.fork_count > 0:
            process_utils.ensure_fork_supported()

        state: Optional[State] = State.START
        try:
            while state is not None:
                log.debug(f"[{self.role.value}] entering state {state.value}")
                state = self._handlers[state]()
        except (Exception, KeyboardInterrupt) as e:
            if not self._must_abort():
                raise
            self._abort(e)

    # Older callers start the pool with work().
    work = run

    def _start(self) -> State:
        if self.should_daemonize:
            return State.DAEMONIZE
        if self.fork_count == 0:
            return State.INLINE
        return State.POOL_ENTRY

    def _daemonize(self) -> Optional[State]:
        persistence.check_if_already_running(self.pid_file)

        pid = process_utils.fork_process()
        if pid > 0:
            try:
                self.pid_file.persist(pid)
            except PidFileError:
                log.critical(f"Could not record daemon PID {pid}. Killing the daemon.")
                proc = process_utils.kill_process(pid)
                if proc is not None:
                    process_utils.reap_processes([proc], timeout=config.KILL_WAIT_TIMEOUT)
                raise
            log.info(f"Successfully daemonized. PID {pid} written to {self.pid_file.path}")
            process_utils.terminate(0)
            return None

        self._assume_role(Role.DAEMON)
        if config.DAEMON_NEW_SESSION:
            process_utils.detach_session()
        self.termination_handler = TerminationHandler(self.registry, self.pid_file)
        self.termination_handler.install(signal.SIGTERM, signal.SIGINT)

        # Start working only once the originator has recorded this daemon.
        if not self.pid_file.wait_for(process_utils.current_pid(), config.PID_FILE_WAIT_TIMEOUT):
            log.warning(
                f"PID file {self.pid_file.path} does not name this daemon after "
                f"{config.PID_FILE_WAIT_TIMEOUT}s. Continuing."
            )

        return State.POOL_ENTRY if self.fork_count > 0 else State.INLINE

    def _pool_entry(self) -> State:
        self.registry.clear()
        if self.role is Role.ORIGINATOR:
            self._assume_role(Role.POOL_PARENT)
            log.warning(
                "Worker pool is not daemonized; workers will be orphaned if this process is terminated."
            )
        log.info(f"Starting pool of {self.fork_count} workers (respawn: {'on' if self.respawn else 'off'}).")
        return State.POOL_FILL

    def _pool_fill(self) -> State:
        while len(self.registry) < self.fork_count:
            pid = process_utils.fork_process()
            if pid == 0:
                self._assume_role(Role.WORKER)
                return State.WORK
            self.registry.add(pid)
            log.debug(f"Forked worker with PID {pid} ({len(self.registry)}/{self.fork_count}).")
        return State.POOL_DRAIN

    def _pool_drain(self) -> State:
        while len(self.registry):
            try:
                pid, exit_code = process_utils.wait_for_child()
            except ChildProcessError:
                log.error(f"No child processes left but {self.registry} is still registered. Clearing registry.")
                self.registry.clear()
                break

            spawned_at = self.registry.remove(pid)
            if spawned_at is None:
                log.debug(f"Reaped unregistered child process {pid}.")
                continue

            log.info(
                f"Worker {pid} exited ({process_utils.describe_exit(exit_code)}) "
                f"after {time.time() - spawned_at:.1f}s."
            )
            if self.respawn:
                if config.RESPAWN_DELAY > 0:
                    time.sleep(config.RESPAWN_DELAY)
                return State.POOL_FILL

        if self.respawn:
            return State.POOL_FILL
        log.info("All workers exited.")
        return State.END

    def _work(self) -> None:
        process_utils.terminate(self._invoke_callback())

    def _inline(self) -> Optional[State]:
        """Zero-pool policy: the callback runs once in the current process."""
        log.info(f"No worker pool requested; running callback in process {process_utils.current_pid()}.")
        if self.role is Role.ORIGINATOR:
            # Nothing was forked: failures belong to the caller.
            self._callback()
            return None
        self._exit_code = self._invoke_callback()
        return State.END

    def _end(self) -> None:
        if self.role is Role.DAEMON:
            self.pid_file.remove()
        log.info(f"{self.role.value} process {process_utils.current_pid()} exiting.")
        process_utils.terminate(self._exit_code)

    #* --- Helpers ---
    def _invoke_callback(self) -> int:
        """
        Runs the callback in a forked process.

        :return: The exit code the process should end with.
        """
        pid = process_utils.current_pid()
        log.debug(f"Process {pid} running callback.")
        try:
            self._callback()
        except SystemExit as e:
            if e.code is None or isinstance(e.code, int):
                return e.code or 0
            log.error(f"Process {pid} callback exited: {e.code}")
            return 1
        except BaseException:
            log.exception(f"Process {pid} callback failed.")
            return 1
        return 0

    def _assume_role(self, role: Role) -> None:
        self.role = role
        process_utils.set_process_title(role.value)
        if role is Role.WORKER:
            # Do not inherit the daemon's handler and its copy of the registry.
            process_utils.reset_signal_handler(signal.SIGTERM)
            process_utils.reset_signal_handler(signal.SIGINT)
            self.termination_handler = None
            self.registry.clear()
        log.debug(f"Process {process_utils.current_pid()} is now {role.value}.")

    def _must_abort(self) -> bool:
        """Whether a failure has to end this process instead of reaching the caller of run()."""
        if self.role in (Role.DAEMON, Role.WORKER):
            return True
        return self.role is Role.POOL_PARENT and len(self.registry) > 0

    def _abort(self, error: BaseException) -> None:
        """Explicitly fails a forked supervisor process."""
        log.critical(
            f"{self.role.value} process {process_utils.current_pid()} failed: {error!r}. Aborting worker pool.",
            exc_info=True,
        )
        shutdown.kill_workers(self.registry)
        if self.role is Role.DAEMON:
            self.pid_file.remove()
        process_utils.terminate(1)
