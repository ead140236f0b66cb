"""
The worker body: runs the daemonized function inside a forked pool worker.

The master only ever learns the worker's exit status, so everything here
ends in a single exit code.
"""
import os
import sys
import signal
import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, NoReturn, Union

import setproctitle

import balaur.settings as default_settings
from balaur.log import WorkerLogAdapter
from balaur.local.supervisor.exit_codes import ExitCode

log = logging.getLogger(__name__)

WorkerLogger = Union[logging.Logger, logging.LoggerAdapter]


def _handle_disconnect(signum, frame) -> None:
    """Turns the master's disconnect (SIGTERM) into a clean SystemExit."""
    raise SystemExit(ExitCode.OK)


def install_worker_signals() -> None:
    """Replaces the handlers inherited from the master with the worker's own."""
    signal.signal(signal.SIGHUP, signal.SIG_DFL)
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    signal.signal(signal.SIGTERM, _handle_disconnect)


def _exit_code_from_system_exit(e: SystemExit) -> int:
    if e.code is None:
        return ExitCode.OK
    if isinstance(e.code, int):
        return e.code
    return ExitCode.CATCH_ALL


def await_result(result: Awaitable[Any], worker_log: WorkerLogger) -> int:
    """
    Runs an awaitable returned by the daemonized function to completion.

    Its success or failure is only logged. An exception that reaches the
    loop's exception handler (a task exception nobody retrieved) stops the
    loop and is reported as an unhandled rejection.

    :param result: The awaitable returned by the daemonized function.
    :param worker_log: The worker's pid-tagged logger.
    :return: The worker exit code.
    """
    pid = os.getpid()
    rejections: List[Dict[str, Any]] = []
    loop = asyncio.new_event_loop()

    def _on_unhandled(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        worker_log.error(
            f"Unhandled rejection: {context.get('message')}",
            exc_info=context.get("exception"),
        )
        rejections.append(context)
        loop.stop()

    async def _run() -> None:
        try:
            await result
            worker_log.info(f"Daemon started on worker (PID {pid}).")
        except Exception:
            worker_log.exception(f"Daemon start failed on worker (PID {pid}).")

    loop.set_exception_handler(_on_unhandled)
    asyncio.set_event_loop(loop)
    try:
        loop.run_until_complete(_run())
    except RuntimeError:
        # run_until_complete raises once the exception handler stopped the loop
        if not rejections:
            raise
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
        except RuntimeError:
            pass
        asyncio.set_event_loop(None)
        loop.close()

    if rejections:
        return ExitCode.UNHANDLED_REJECTION
    return ExitCode.OK


def execute(daemonized_function: Callable[[], Any], worker_log: WorkerLogger) -> int:
    """
    Calls the daemonized function exactly once and maps the outcome to an exit code.

    An exception escaping the function is an unhandled exception and exits
    with UNHANDLED_EXCEPTION, which the master never respawns. A worker that
    should be retried has to leave with an ordinary status instead, through
    sys.exit(n) or by dying from a signal. An awaitable's own failure is only
    logged, because the function has already returned; only an exception
    reaching the loop's exception handler changes the exit code.

    :param daemonized_function: The user's function.
    :param worker_log: The worker's pid-tagged logger.
    :return: The worker exit code.
    """
    worker_log.info("Worker sequence starting.")
    try:
        result = daemonized_function()
        if inspect.isawaitable(result):
            return await_result(result, worker_log)
        return ExitCode.OK
    except SystemExit as e:
        code = _exit_code_from_system_exit(e)
        worker_log.info(f"Worker exiting with code {code}.")
        return code
    except KeyboardInterrupt:
        worker_log.info("Worker interrupted.")
        return ExitCode.CONTROL_C
    except Exception:
        worker_log.exception("Unhandled exception in worker.")
        return ExitCode.UNHANDLED_EXCEPTION


def run_worker(daemonized_function: Callable[[], Any], logger: logging.Logger) -> NoReturn:
    """
    Entry point of a freshly forked worker. Never returns to the caller.

    :param daemonized_function: The user's function.
    :param logger: The logger handed down by the master.
    """
    code = ExitCode.CATCH_ALL
    try:
        install_worker_signals()
        setproctitle.setproctitle(default_settings.WORKER_PROCESS_TITLE)
        code = execute(daemonized_function, WorkerLogAdapter(logger, os.getpid()))
    finally:
        logging.shutdown()
        for stream in (sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (OSError, ValueError):
                pass
        os._exit(int(code))
