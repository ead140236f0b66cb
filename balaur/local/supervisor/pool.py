import os
import time
import signal
import psutil
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

import setproctitle

import balaur.settings as default_settings
from balaur.local.config import BalaurConfig
from balaur.local.supervisor import shutdown, worker
from balaur.local.supervisor.exit_codes import ExitCode
from balaur.local.supervisor.process_utils import get_process_from_pid

log = logging.getLogger(__name__)


@dataclass
class WorkerSlot:
    """One position in the pool, holding the handle of the worker occupying it."""
    slot_id: int
    process: psutil.Process
    exited_gracefully: bool = False

    @property
    def pid(self) -> int:
        return self.process.pid


@dataclass(frozen=True)
class ExitEvent:
    """A reaped worker. exit_code is None when the worker was killed by a signal."""
    slot_id: int
    pid: int
    exit_code: Optional[int]
    signal: Optional[str]
    graceful: bool


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


class WorkerPool:
    """
    The master role: forks a fixed-size pool of workers running the
    daemonized function, reaps their exits and applies the respawn policy.

    Exits and signals are handled one at a time from a single loop, so the
    retry counter and the slot table are never mutated concurrently.
    """

    def __init__(
        self,
        daemonized_function: Callable[[], Any],
        config: BalaurConfig,
        relaunch: Callable[[], Any],
        logger: Optional[logging.Logger] = None,
        max_respawn_attempts: int = default_settings.MAX_RESPAWN_ATTEMPTS,
        poll_interval: float = default_settings.WORKER_POLL_INTERVAL,
    ) -> None:
        self.daemonized_function = daemonized_function
        self.config = config
        self.relaunch = relaunch
        self.logger = logger or logging.getLogger("balaur.worker")
        self.max_respawn_attempts = max_respawn_attempts
        self.poll_interval = poll_interval

        self.slots: Dict[int, WorkerSlot] = {}  # keyed by worker pid
        self.retry_count = 0
        self.graceful_exit_count = 0
        self.all_exited_gracefully = False
        self.pending_signals: Deque[int] = deque()
        self.exit_code: Optional[int] = None
        self.router = shutdown.SignalRouter(self, relaunch)

    #* --- Forking ---
    def fork_worker(self, slot_id: int) -> WorkerSlot:
        """
        Forks a worker into the given slot. Only the master returns from this call.

        :param slot_id: The pool position the worker occupies.
        :return: The new WorkerSlot.
        """
        pid = os.fork()
        if pid == 0:
            worker.run_worker(self.daemonized_function, self.logger)

        slot = WorkerSlot(slot_id=slot_id, process=get_process_from_pid(pid))
        self.slots[pid] = slot
        log.debug(f"Worker {slot_id} forked with PID {pid}.")
        return slot

    def fork_all(self) -> None:
        for slot_id in range(self.config.workers):
            self.fork_worker(slot_id)

    #* --- Exit Handling ---
    def reap_workers(self) -> List[ExitEvent]:
        """
        Collects every child that has exited since the last call, without blocking.

        :return: The ExitEvents in the order the children were reaped.
        """
        events: List[ExitEvent] = []
        while True:
            try:
                pid, status = os.waitpid(-1, os.WNOHANG)
            except ChildProcessError:
                break
            if pid == 0:
                break

            slot = self.slots.get(pid)
            if slot is None:
                log.debug(f"Reaped unknown child process {pid}. Ignoring.")
                continue

            if os.WIFSIGNALED(status):
                exit_code, signal_name = None, _signal_name(os.WTERMSIG(status))
            else:
                exit_code, signal_name = os.waitstatus_to_exitcode(status), None
            events.append(ExitEvent(
                slot_id=slot.slot_id,
                pid=pid,
                exit_code=exit_code,
                signal=signal_name,
                graceful=slot.exited_gracefully,
            ))
        return events

    def handle_exit(self, event: ExitEvent) -> None:
        """
        Applies the respawn policy to one worker exit.

        Graceful exits are only counted. Crashes are respawned into the same
        slot unless the retry ceiling is exceeded or the exit code says the
        application itself is broken.

        Every signal that disconnects the workers also decides the master's
        exit code, and run() stops reaping as soon as that happens. The
        disconnected workers are therefore reparented before their exits
        reach this method, so inside a running master the graceful branch
        only sees workers that exited while already marked, and the
        all-graceful event is a pool state rather than a shutdown step.

        :param event: The ExitEvent of the reaped worker.
        """
        self.slots.pop(event.pid, None)
        log.info(f"Worker with PID {event.pid} exited with code {event.exit_code} and signal {event.signal}.")

        if event.graceful:
            log.info("Worker exited after disconnect.")
            self.graceful_exit_count += 1
            if self.graceful_exit_count == self.config.workers:
                log.info("All workers exited gracefully.")
                self.all_exited_gracefully = True
            return

        self.retry_count += 1
        if self.retry_count > self.max_respawn_attempts:
            log.error("Worker exited too many times, unable to fork any further.")
            return

        if event.exit_code == ExitCode.UNHANDLED_REJECTION:
            log.error(
                f"Worker exited with code {ExitCode.UNHANDLED_REJECTION.value} (unhandled rejection), "
                "unable to fork any further."
            )
            return

        if event.exit_code == ExitCode.UNHANDLED_EXCEPTION:
            log.error(
                f"Worker exited with code {ExitCode.UNHANDLED_EXCEPTION.value} (unhandled exception), "
                "unable to fork any further."
            )
            return

        self.fork_worker(event.slot_id)
        log.info("Worker forked again.")

    #* --- Signals ---
    def enqueue_signal(self, signum: int, frame: Any = None) -> None:
        """OS signal handler: defers the signal to the control loop."""
        self.pending_signals.append(signum)

    def dispatch_pending_signals(self) -> None:
        while self.pending_signals and self.exit_code is None:
            self.router.dispatch(self.pending_signals.popleft())

    #* --- Main Loop ---
    def run(self) -> int:
        """
        Runs the master sequence until a signal decides the master's exit code.

        :return: The exit code the master process should exit with.
        """
        setproctitle.setproctitle(default_settings.MASTER_PROCESS_TITLE)
        log.info("Master sequence starting.")

        self.fork_all()
        self.router.install()

        while self.exit_code is None:
            self.dispatch_pending_signals()
            if self.exit_code is not None:
                break

            for event in self.reap_workers():
                self.handle_exit(event)

            time.sleep(self.poll_interval)

        log.info(f"Master exiting with code {self.exit_code}.")
        return self.exit_code
