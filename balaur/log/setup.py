import sys
import logging
from typing import Optional, TextIO

LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'


class MaxLevelFilter(logging.Filter):
    """
    This filter passes only records below a given level, so the stdout
    handler leaves warnings and errors to the stderr handler.
    """
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


def console_level_for(verbosity: int) -> int:
    """
    Maps the number of -v flags to a console logging level.
    Without -v only warnings and errors are shown.

    :param verbosity: How many times -v was given.
    :return: The logging level for the console handlers.
    """
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    console_level: int = logging.INFO,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> None:
    """
    Configures the root logger for the application.
    Informational records go to stdout and warnings/errors to stderr,
    clearing any previously configured handlers to prevent duplication.

    Inside the daemon, stdout and stderr are the configured log sinks.

    :param console_level: The lowest level shown (e.g., logging.INFO).
    :param stdout: Stream for informational records. Defaults to sys.stdout.
    :param stderr: Stream for warnings and errors. Defaults to sys.stderr.
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    # --- Informational Handler ---
    stdout_handler = logging.StreamHandler(stdout or sys.stdout)
    stdout_handler.setLevel(console_level)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    # --- Warning/Error Handler ---
    stderr_handler = logging.StreamHandler(stderr or sys.stderr)
    stderr_handler.setLevel(max(console_level, logging.WARNING))
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)
