import signal
import psutil
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict

from balaur.local.supervisor.exit_codes import ExitCode

if TYPE_CHECKING:
    from .pool import WorkerPool

log = logging.getLogger(__name__)


def disconnect_workers(pool: "WorkerPool") -> None:
    """
    Asks every worker to finish by sending SIGTERM.
    Slots are marked first, so their exits count as graceful.

    :param pool: The WorkerPool owning the workers.
    """
    for slot in list(pool.slots.values()):
        slot.exited_gracefully = True
        try:
            log.debug(f"Sending SIGTERM to worker (PID {slot.pid})")
            slot.process.terminate()
        except psutil.NoSuchProcess:
            log.warning(f"Worker {slot.pid} no longer exists, skipping disconnect.")
            continue


def kill_workers(pool: "WorkerPool") -> None:
    """
    Forcefully kills every worker still in the slot table.

    :param pool: The WorkerPool owning the workers.
    """
    for slot in list(pool.slots.values()):
        try:
            slot.process.kill()
            log.info(f"Worker (PID {slot.pid}) killed with SIGKILL.")
        except psutil.NoSuchProcess:
            log.warning(f"Worker {slot.pid} no longer exists, skipping forceful kill.")
            continue


class SignalRouter:
    """
    Maps the signals received by the master to pool-wide actions:
    SIGHUP relaunches the daemon, SIGINT disconnects the workers and
    SIGTERM kills them.
    """

    def __init__(self, pool: "WorkerPool", relaunch: Callable[[], Any]) -> None:
        self.pool = pool
        self.relaunch = relaunch
        self.actions: Dict[int, Callable[[], None]] = {
            signal.SIGHUP: self.on_hangup,
            signal.SIGINT: self.on_interrupt,
            signal.SIGTERM: self.on_terminate,
        }

    def install(self) -> None:
        """Registers the pool's signal queue as handler for every routed signal."""
        for signum in self.actions:
            signal.signal(signum, self.pool.enqueue_signal)

    def dispatch(self, signum: int) -> None:
        action = self.actions.get(signum)
        if action is None:
            log.warning(f"No action registered for signal {signum}. Ignoring.")
            return
        action()

    def on_hangup(self) -> None:
        log.info("Process received SIGHUP, restarting workers.")
        disconnect_workers(self.pool)
        kill_workers(self.pool)
        self.relaunch()
        self.pool.exit_code = ExitCode.OK

    def on_interrupt(self) -> None:
        log.info("Process received SIGINT, disconnecting workers.")
        log.info("Active work may or may not be stopped. Use --force to ensure.")
        disconnect_workers(self.pool)
        self.pool.exit_code = ExitCode.OK

    def on_terminate(self) -> None:
        log.info("Process received SIGTERM, disconnecting workers.")
        disconnect_workers(self.pool)
        kill_workers(self.pool)
        log.info("Process terminated.")
        self.pool.exit_code = ExitCode.TERMINATED
