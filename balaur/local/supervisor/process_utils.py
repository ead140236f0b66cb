import os
import psutil
import logging
from enum import Enum
from typing import Optional

log = logging.getLogger(__name__)


class Liveness(Enum):
    ALIVE = "alive"
    DEAD = "dead"
    # The process exists but this user may not signal it.
    FOREIGN = "foreign"


#* --- Process Status & Probing ---
def probe(pid: Optional[int]) -> Liveness:
    """
    Checks whether a process exists by delivering signal 0 to it.

    :param pid: The process id to probe, or None.
    :return: ALIVE, DEAD or FOREIGN.
    """
    if pid is None or pid <= 0:
        return Liveness.DEAD
    try:
        os.kill(pid, 0)
    except (ProcessLookupError, OverflowError):
        return Liveness.DEAD
    except PermissionError:
        log.debug(f"Process {pid} exists but is owned by another user.")
        return Liveness.FOREIGN
    return Liveness.ALIVE


def is_running(liveness: Liveness) -> bool:
    """A FOREIGN process is treated as running: it cannot safely be assumed dead."""
    return liveness is not Liveness.DEAD


def send_signal(pid: int, signum: int) -> None:
    """A wrapper for os.kill for easy testing/mocking if needed."""
    os.kill(pid, signum)


def get_process_from_pid(pid: int) -> psutil.Process:
    """A wrapper for psutil.Process for easy testing/mocking if needed."""
    return psutil.Process(pid)


def get_proc_status_string(proc: psutil.Process) -> str:
    """Gets a string representation of a process status."""
    try:
        if proc.status() == psutil.STATUS_ZOMBIE:
            return "zombie"
        return "running"
    except psutil.NoSuchProcess:
        return "stopped"
    except psutil.Error:
        return "unknown"
