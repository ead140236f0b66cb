import time
import psutil
import logging
from typing import TYPE_CHECKING, Optional

from balaur.local.supervisor import process_utils
from balaur.local.supervisor.exit_codes import ExitCode

if TYPE_CHECKING:
    from balaur.local.supervisor import Supervisor

log = logging.getLogger(__name__)


def _describe(proc: psutil.Process, label: str) -> Optional[str]:
    """Formats one status line with CPU and memory usage, or None if the process vanished."""
    try:
        cpu = proc.cpu_percent(interval=0.1)
        mem = proc.memory_info().rss
        return (
            f"  - {label:<10} : PID {proc.pid:<8} | Status: {process_utils.get_proc_status_string(proc).upper()}"
            f" | CPU: {cpu:.1f}% | MEM: {mem / 1024 / 1024:.1f} MB"
        )
    except psutil.NoSuchProcess:
        return None
    except psutil.AccessDenied:
        return f"  - {label:<10} : PID {proc.pid:<8} | Status: RUNNING (Access Denied)"


def display_status(supervisor: "Supervisor") -> int:
    """
    Prints the daemon's master and workers, including resource usage.

    :param supervisor: The Supervisor holding the pidfile snapshot.
    :return: OK if the daemon is running, CANNOT_EXECUTE otherwise.
    """
    pid = supervisor.pid
    liveness = process_utils.probe(pid)
    if liveness is process_utils.Liveness.DEAD:
        if pid is None:
            print("\nDaemon is STOPPED (no PID recorded).\n")
        else:
            print(f"\nDaemon is STOPPED (stale PID {pid}).\n")
        return ExitCode.CANNOT_EXECUTE

    print("\n--- Daemon Status ---")
    if liveness is process_utils.Liveness.FOREIGN:
        print(f"  - {'master':<10} : PID {pid:<8} | Status: RUNNING (Owned by another user)")
        print("-" * 21 + "\n")
        return ExitCode.OK

    try:
        master = process_utils.get_process_from_pid(pid)
        children = master.children()
        started = master.create_time()
    except psutil.NoSuchProcess:
        print(f"  - {'master':<10} : PID {pid:<8} | Status: STOPPED (exited)")
        print("-" * 21 + "\n")
        return ExitCode.CANNOT_EXECUTE
    except psutil.AccessDenied:
        children, started = [], None
        master = None

    if master is not None:
        line = _describe(master, "master")
        if line:
            print(line)
    for child in children:
        line = _describe(child, "worker")
        if line:
            print(line)

    print(f"\nWorkers: {len(children)} of {supervisor.config.workers}")
    if started:
        print(f"Runtime: {time.strftime('%H:%M:%S', time.gmtime(time.time() - started))}")
    print("-" * 21 + "\n")
    return ExitCode.OK
