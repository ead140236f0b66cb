import argparse
import logging
from typing import TYPE_CHECKING

import balaur.settings as default_settings
from balaur.local.console.handler import display_status
from balaur.local.supervisor.exit_codes import ExitCode

if TYPE_CHECKING:
    from balaur.local.supervisor import Supervisor

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """
    Builds the command-line parser for the daemon commands.

    :return: The configured ArgumentParser.
    """
    # -v is accepted before and after the command name
    verbose_parent = argparse.ArgumentParser(add_help=False)
    verbose_parent.add_argument(
        "-v", "--verbose", action="count", default=argparse.SUPPRESS,
        help="Increase console output (repeatable)."
    )

    parser = argparse.ArgumentParser(
        prog="balaur",
        description="Application daemon",
    )
    parser.add_argument("-V", "--version", action="version", version=default_settings.VERSION)
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase console output (repeatable)."
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True

    start_parser = subparsers.add_parser("start", parents=[verbose_parent], help="Start daemon")
    start_parser.add_argument(
        "-d", "--inspect", action="store_true", default=False,
        help="Start the interpreter in debugging mode"
    )

    stop_parser = subparsers.add_parser("stop", parents=[verbose_parent], help="Stop daemon")
    stop_parser.add_argument(
        "-f", "--force", action="store_true", default=False,
        help="Force stop"
    )

    subparsers.add_parser("restart", parents=[verbose_parent], help="Restart daemon")
    subparsers.add_parser("status", parents=[verbose_parent], help="Show daemon status")
    return parser


def execute_command(supervisor: "Supervisor", args: argparse.Namespace) -> int:
    """
    Executes a single parsed command.

    :param supervisor: The Supervisor to run the command on.
    :param args: The namespace produced by build_parser().
    :return: The exit code of the command.
    """
    log.debug(f"Executing command: {args.command}, args: {vars(args)}")
    command_map = {
        "start": lambda: supervisor.start(getattr(args, "inspect", False)),
        "stop": lambda: supervisor.stop(getattr(args, "force", False)),
        "restart": supervisor.restart,
        "status": lambda: display_status(supervisor),
    }

    if args.command not in command_map:
        log.error(f"Unknown command: '{args.command}'.")
        return ExitCode.CATCH_ALL
    return command_map[args.command]()
