from enum import IntEnum


class ExitCode(IntEnum):
    """
    Process exit statuses used by the CLI, the master and its workers.

    These values are part of the external contract: service managers and
    the master's respawn policy both rely on them.
    """
    OK = 0
    CATCH_ALL = 1
    CANNOT_EXECUTE = 126
    CONTROL_C = 130
    UNHANDLED_REJECTION = 131
    UNHANDLED_EXCEPTION = 132
    TERMINATED = 255


# Worker exit statuses that indicate a deterministic application bug.
SENTINEL_EXIT_CODES = {ExitCode.UNHANDLED_REJECTION, ExitCode.UNHANDLED_EXCEPTION}
