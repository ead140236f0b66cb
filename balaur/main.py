import sys
import logging
from typing import List, Optional

from balaur.log import setup_logging, console_level_for
from balaur.local import load_config
from balaur.local.console import build_parser, execute_command
from balaur.local.entry import EntryPointError, resolve_entry
from balaur.local.supervisor import ExitCode, Supervisor

log = logging.getLogger("console")


def main(argv: Optional[List[str]] = None) -> None:
    """The main entry point for the console application."""
    args = build_parser().parse_args(argv)
    setup_logging(console_level_for(args.verbose))

    try:
        config = load_config()

        # Only the start command runs the daemonized function.
        daemonized_function = None
        if args.command == "start":
            daemonized_function = resolve_entry(config.main)

        supervisor = Supervisor(daemonized_function, config)
        code = execute_command(supervisor, args)
    except EntryPointError as e:
        log.error(f"{e}")
        code = ExitCode.CATCH_ALL
    except Exception as e:
        log.critical(f"An unexpected error occurred: {e}", exc_info=True)
        code = ExitCode.CATCH_ALL

    sys.exit(int(code))


if __name__ == "__main__":
    main()
