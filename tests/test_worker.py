import asyncio
import logging
import os
import sys
import time

import pytest

from balaur.log import WorkerLogAdapter
from balaur.local.supervisor import worker
from balaur.local.supervisor.exit_codes import ExitCode


@pytest.fixture
def worker_log(test_logger):
    return WorkerLogAdapter(test_logger, os.getpid())


class TestExecute:
    def test_returning_function_exits_ok(self, worker_log):
        calls = []
        assert worker.execute(lambda: calls.append(1), worker_log) == ExitCode.OK
        assert calls == [1]

    def test_uncaught_exception_uses_sentinel(self, worker_log):
        def broken():
            raise RuntimeError("boom")

        assert worker.execute(broken, worker_log) == ExitCode.UNHANDLED_EXCEPTION

    def test_system_exit_keeps_its_code(self, worker_log):
        assert worker.execute(lambda: sys.exit(7), worker_log) == 7
        assert worker.execute(lambda: sys.exit(), worker_log) == ExitCode.OK

    def test_keyboard_interrupt(self, worker_log):
        def interrupted():
            raise KeyboardInterrupt

        assert worker.execute(interrupted, worker_log) == ExitCode.CONTROL_C

    def test_coroutine_is_awaited(self, worker_log, caplog):
        caplog.set_level(logging.INFO)
        done = []

        async def serve():
            await asyncio.sleep(0)
            done.append(True)

        assert worker.execute(serve, worker_log) == ExitCode.OK
        assert done == [True]
        assert f"Daemon started on worker (PID {os.getpid()})." in caplog.text

    def test_failed_coroutine_is_logged_without_changing_exit(self, worker_log, caplog):
        async def serve():
            raise ValueError("cannot bind")

        assert worker.execute(serve, worker_log) == ExitCode.OK
        assert f"Daemon start failed on worker (PID {os.getpid()})." in caplog.text

    def test_unretrieved_task_exception_is_an_unhandled_rejection(self, worker_log):
        async def serve():
            loop = asyncio.get_running_loop()
            loop.call_exception_handler({"message": "Task exception was never retrieved"})
            await asyncio.sleep(1)

        assert worker.execute(serve, worker_log) == ExitCode.UNHANDLED_REJECTION


def test_log_lines_are_tagged_with_worker_pid(test_logger, caplog):
    caplog.set_level(logging.INFO)
    WorkerLogAdapter(test_logger, 1234).info("hello")
    assert "Worker 1234:\thello" in caplog.text


def _fork_and_wait(function):
    pid = os.fork()
    if pid == 0:
        worker.run_worker(function, logging.getLogger("test-balaur"))
    _, status = os.waitpid(pid, 0)
    return os.waitstatus_to_exitcode(status)


@pytest.mark.skipif(not hasattr(os, "fork"), reason="requires fork")
class TestRunWorker:
    def test_exit_status_reaches_parent(self):
        assert _fork_and_wait(lambda: None) == ExitCode.OK
        assert _fork_and_wait(lambda: sys.exit(5)) == 5

    def test_crash_reaches_parent_as_sentinel(self):
        def broken():
            raise RuntimeError("boom")

        assert _fork_and_wait(broken) == ExitCode.UNHANDLED_EXCEPTION

    def test_sigterm_is_a_clean_disconnect(self):
        def serve_forever():
            while True:
                time.sleep(0.05)

        pid = os.fork()
        if pid == 0:
            worker.run_worker(serve_forever, logging.getLogger("test-balaur"))
        time.sleep(0.3)
        os.kill(pid, 15)
        _, status = os.waitpid(pid, 0)
        assert os.waitstatus_to_exitcode(status) == ExitCode.OK
