import time
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Optional, Union

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessRecord:
    """A snapshot of the pidfile. `pid` is None when nothing usable is recorded."""
    pid: Optional[int] = None


def load_pid(pidfile_path: Path) -> ProcessRecord:
    """
    Reads the pidfile from disk and returns its contents.
    A missing, unreadable, empty, non-numeric or non-positive value yields an empty record.

    :param pidfile_path: Path to the pidfile.
    :return: The ProcessRecord read from disk.
    """
    try:
        data = Path(pidfile_path).read_text(encoding="utf-8").strip()
    except (IOError, OSError, UnicodeDecodeError) as e:
        log.debug(f"Pidfile '{pidfile_path}' could not be read: {e}")
        return ProcessRecord()

    if not data:
        return ProcessRecord()
    try:
        pid = int(data)
    except ValueError:
        log.debug(f"Pidfile '{pidfile_path}' holds a non-numeric value: {data!r}")
        return ProcessRecord()

    # 0 and negative values address process groups when signalled
    if pid <= 0:
        log.debug(f"Pidfile '{pidfile_path}' holds an invalid pid: {pid}")
        return ProcessRecord()
    return ProcessRecord(pid=pid)


def write_pid(pidfile_path: Path, pid: Union[int, str]) -> None:
    """
    Overwrites the pidfile with the given pid.
    An empty string marks the pidfile as having no owner yet.

    :param pidfile_path: Path to the pidfile.
    :param pid: The process id to record, or "".
    """
    Path(pidfile_path).write_text(f"{pid}", encoding="utf-8")


def wait_for_pid(pidfile_path: Path, pid: int, timeout: float, interval: float = 0.05) -> bool:
    """
    Waits for the pidfile to record the given pid.

    :param pidfile_path: Path to the pidfile.
    :param pid: The process id expected in the file.
    :param timeout: Maximum number of seconds to wait.
    :param interval: Delay in seconds between reads.
    :return: True if the pid was recorded in time, False if it timed out.
    """
    deadline = time.monotonic() + timeout
    while True:
        if load_pid(pidfile_path).pid == pid:
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(interval)
