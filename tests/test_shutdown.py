import signal
from unittest.mock import Mock, call, patch

import psutil
import pytest

from balaur.local.supervisor import shutdown
from balaur.local.supervisor.exit_codes import ExitCode
from balaur.local.supervisor.pool import WorkerPool, WorkerSlot


@pytest.fixture
def relaunch():
    return Mock(return_value=9999)


@pytest.fixture
def pool(config, test_logger, relaunch):
    pool = WorkerPool(lambda: None, config, relaunch=relaunch, logger=test_logger)
    for slot_id, pid in enumerate((2001, 2002)):
        pool.slots[pid] = WorkerSlot(slot_id=slot_id, process=Mock(pid=pid))
    return pool


def processes(pool):
    return [slot.process for slot in pool.slots.values()]


class TestWorkerHelpers:
    def test_disconnect_marks_slots_and_terminates(self, pool):
        shutdown.disconnect_workers(pool)

        for slot in pool.slots.values():
            assert slot.exited_gracefully is True
            slot.process.terminate.assert_called_once_with()
            slot.process.kill.assert_not_called()

    def test_disconnect_tolerates_vanished_worker(self, pool):
        first, second = processes(pool)
        first.terminate.side_effect = psutil.NoSuchProcess(first.pid)

        shutdown.disconnect_workers(pool)

        second.terminate.assert_called_once_with()

    def test_kill_tolerates_vanished_worker(self, pool):
        first, second = processes(pool)
        first.kill.side_effect = psutil.NoSuchProcess(first.pid)

        shutdown.kill_workers(pool)

        second.kill.assert_called_once_with()


class TestSignalRouter:
    def test_install_routes_three_signals_to_queue(self, pool):
        with patch("balaur.local.supervisor.shutdown.signal.signal") as mock_signal:
            pool.router.install()

        mock_signal.assert_has_calls([
            call(signal.SIGHUP, pool.enqueue_signal),
            call(signal.SIGINT, pool.enqueue_signal),
            call(signal.SIGTERM, pool.enqueue_signal),
        ], any_order=True)

    def test_hangup_kills_workers_and_relaunches(self, pool, relaunch):
        pool.router.dispatch(signal.SIGHUP)

        for process in processes(pool):
            process.terminate.assert_called_once_with()
            process.kill.assert_called_once_with()
        relaunch.assert_called_once_with()
        assert pool.exit_code == ExitCode.OK

    def test_interrupt_disconnects_without_killing(self, pool, relaunch):
        pool.router.dispatch(signal.SIGINT)

        for process in processes(pool):
            process.terminate.assert_called_once_with()
            process.kill.assert_not_called()
        relaunch.assert_not_called()
        assert pool.exit_code == ExitCode.OK

    def test_terminate_kills_workers(self, pool, relaunch):
        pool.router.dispatch(signal.SIGTERM)

        for process in processes(pool):
            process.terminate.assert_called_once_with()
            process.kill.assert_called_once_with()
        relaunch.assert_not_called()
        assert pool.exit_code == ExitCode.TERMINATED

    def test_unrouted_signal_is_ignored(self, pool):
        pool.router.dispatch(signal.SIGUSR1)
        assert pool.exit_code is None

    def test_queued_signal_after_exit_decision_is_dropped(self, pool, relaunch):
        pool.enqueue_signal(signal.SIGINT)
        pool.enqueue_signal(signal.SIGHUP)

        pool.dispatch_pending_signals()

        assert pool.exit_code == ExitCode.OK
        relaunch.assert_not_called()
