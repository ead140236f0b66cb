import os
import sys
import signal
import logging
from enum import Enum
from typing import Any, Callable, List, Optional

import balaur.settings as default_settings
from balaur.local.config import BalaurConfig
from balaur.local.supervisor import persistence, process_utils, startup
from balaur.local.supervisor.exit_codes import ExitCode
from balaur.local.supervisor.pool import WorkerPool

log = logging.getLogger(__name__)


class Role(Enum):
    CLIENT = "client"
    MASTER = "master"


class Supervisor:
    """
    Turns a callable into a daemon controlled by start/stop/restart commands.

    The same program is both the command-line client and the daemon body:
    the launcher re-executes it, and the re-executed process recognises
    itself as the master by finding its own pid in the pidfile.
    """

    def __init__(self, daemonized_function: Optional[Callable[[], Any]], config: BalaurConfig) -> None:
        """
        Initializes the Supervisor and takes a snapshot of the pidfile.

        :param daemonized_function: The function each worker runs. Only 'start' needs it.
        :param config: The BalaurConfig to run with.
        """
        self.daemonized_function = daemonized_function
        self.config = config
        self.record = persistence.load_pid(config.pidfile_path)

    @property
    def pid(self) -> Optional[int]:
        return self.record.pid

    def resolve_role(self) -> Role:
        """
        Determines whether this process is the daemon's master.

        A process started by the launcher may read the pidfile before the
        launcher has written its pid, so it waits for the handoff.

        :return: Role.MASTER or Role.CLIENT.
        """
        own_pid = os.getpid()
        if self.record.pid == own_pid:
            return Role.MASTER

        if os.environ.get(default_settings.DAEMON_MARKER_ENV) == "1":
            if persistence.wait_for_pid(
                self.config.pidfile_path,
                own_pid,
                timeout=default_settings.DAEMON_HANDOFF_TIMEOUT,
                interval=default_settings.DAEMON_HANDOFF_INTERVAL,
            ):
                self.record = persistence.ProcessRecord(pid=own_pid)
                return Role.MASTER
            log.warning("Daemon handoff timed out, pidfile does not record this process.")

        return Role.CLIENT

    def is_running(self) -> bool:
        return process_utils.is_running(process_utils.probe(self.record.pid))

    #* --- Commands ---
    def start(self, inspect: bool = False) -> int:
        """
        Start command: launches the daemon, or runs the master when this
        process is the daemon.

        :param inspect: Whether to start the daemon's interpreter in debugging mode.
        :return: The exit code.
        """
        if self.resolve_role() is Role.MASTER:
            return self.run_master()

        if self.is_running():
            log.error("Daemon already started, unable to start. Please use stop & start or restart.")
            return ExitCode.CANNOT_EXECUTE

        startup.spawn_daemon(self.config, inspect)
        return ExitCode.OK

    def stop(self, force: bool = False) -> int:
        """
        Stop command: sends SIGINT, or SIGTERM when forced, to the master.

        :param force: If True, the master kills its workers.
        :return: The exit code.
        """
        if not self.is_running():
            log.error("Daemon not started, unable to stop.")
            return ExitCode.CANNOT_EXECUTE

        return self._signal_master(signal.SIGTERM if force else signal.SIGINT)

    def restart(self) -> int:
        """
        Restart command: sends SIGHUP to the master, which relaunches itself.

        :return: The exit code.
        """
        if not self.is_running():
            log.error("Daemon not started, unable to restart.")
            return ExitCode.CANNOT_EXECUTE

        if sys.platform == "win32":
            log.error("Windows does not support POSIX signals, unable to restart.")
            return ExitCode.CANNOT_EXECUTE

        return self._signal_master(signal.SIGHUP)

    def _signal_master(self, signum: int) -> int:
        persistence.write_pid(self.config.pidfile_path, self.record.pid)
        try:
            process_utils.send_signal(self.record.pid, signum)
        except ProcessLookupError:
            log.error(f"Daemon (PID {self.record.pid}) exited before it could be signalled.")
            return ExitCode.CANNOT_EXECUTE
        except PermissionError as e:
            log.error(f"Not permitted to signal daemon (PID {self.record.pid}): {e}")
            return ExitCode.CATCH_ALL

        log.info(f"Sent {signal.Signals(signum).name} to daemon (PID {self.record.pid}).")
        return ExitCode.OK

    #* --- Master Role ---
    def relaunch(self) -> int:
        """Starts a fresh master generation. Used by the SIGHUP handler."""
        return startup.spawn_daemon(self.config)

    def run_master(self) -> int:
        if self.daemonized_function is None:
            log.critical("No function to daemonize, master cannot start.")
            return ExitCode.CATCH_ALL

        pool = WorkerPool(
            self.daemonized_function,
            self.config,
            relaunch=self.relaunch,
            logger=logging.getLogger("balaur.worker"),
        )
        return pool.run()

    #* --- Command-Line Entry ---
    def process_args(self, argv: Optional[List[str]] = None) -> None:
        """
        Parses the command line, runs the requested command and exits with its code.

        :param argv: The arguments to parse. Defaults to sys.argv[1:].
        """
        from balaur.log import setup_logging, console_level_for
        from balaur.local.console import build_parser, execute_command

        args = build_parser().parse_args(argv)
        setup_logging(console_level_for(args.verbose))
        sys.exit(execute_command(self, args))
