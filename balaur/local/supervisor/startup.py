import os
import sys
import logging
import subprocess
from pathlib import Path
from contextlib import ExitStack
from typing import IO, Any, List, Optional, Union

import balaur.settings as default_settings
from balaur.local.config import BalaurConfig
from balaur.local.supervisor import persistence

log = logging.getLogger(__name__)


def get_daemon_args(inspect: bool = False) -> List[str]:
    """
    Returns the command line that re-executes the current program.

    sys.orig_argv is used so 'python -m balaur', the console script and user
    scripts are all re-run the same way they were invoked.

    :param inspect: If True, adds the interpreter's debugging flags.
    :return: The argument list for the daemon process.
    """
    orig_argv = list(getattr(sys, "orig_argv", None) or [sys.executable, *sys.argv])
    args = [sys.executable, *orig_argv[1:]]
    if inspect:
        args[1:1] = default_settings.INSPECT_INTERPRETER_FLAGS
    return args


def _open_sink(stack: ExitStack, sink_path: Optional[Path]) -> Union[IO[Any], int]:
    """Opens a sink in append mode, or discards the stream when no sink is configured."""
    if sink_path is None:
        return subprocess.DEVNULL
    sink_path.parent.mkdir(parents=True, exist_ok=True)
    return stack.enter_context(open(sink_path, "a"))


def spawn_daemon(config: BalaurConfig, inspect: bool = False) -> int:
    """
    Starts the master as a detached process and records its pid.

    The child gets its own session, so signals sent to the caller's process
    group do not reach it. Its stdout/stderr are appended to the configured
    sinks.

    :param config: The BalaurConfig holding the pidfile and sink paths.
    :param inspect: Whether to start the interpreter in debugging mode.
    :return: The pid of the new master.
    """
    log.info("Daemon starting.")
    persistence.write_pid(config.pidfile_path, "")

    args = get_daemon_args(inspect)
    env = os.environ.copy()
    env[default_settings.DAEMON_MARKER_ENV] = "1"

    with ExitStack() as stack:
        stdout = _open_sink(stack, config.stdout_path)
        stderr = _open_sink(stack, config.stderr_path)
        try:
            p = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=stdout,
                stderr=stderr,
                cwd=os.getcwd(),
                env=env,
                start_new_session=True,
            )
        except OSError as e:
            log.critical(f"Failed to start daemon process: {e}", exc_info=True)
            raise

    persistence.write_pid(config.pidfile_path, p.pid)
    log.info(f"Daemon started with PID: {p.pid}")
    return p.pid
