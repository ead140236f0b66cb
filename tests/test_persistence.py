import pytest

from balaur.local.supervisor import persistence
from balaur.local.supervisor.persistence import ProcessRecord


def test_write_then_load_returns_same_pid(tmp_path):
    pidfile = tmp_path / "pidfile.pid"
    persistence.write_pid(pidfile, 4321)

    assert pidfile.read_text() == "4321"
    assert persistence.load_pid(pidfile) == ProcessRecord(pid=4321)


def test_empty_string_marks_no_owner(tmp_path):
    pidfile = tmp_path / "pidfile.pid"
    persistence.write_pid(pidfile, 4321)
    persistence.write_pid(pidfile, "")

    assert pidfile.read_text() == ""
    assert persistence.load_pid(pidfile).pid is None


def test_missing_pidfile_yields_empty_record(tmp_path):
    assert persistence.load_pid(tmp_path / "missing.pid").pid is None


def test_non_numeric_pidfile_yields_empty_record(tmp_path):
    pidfile = tmp_path / "pidfile.pid"
    pidfile.write_text("not-a-pid")

    assert persistence.load_pid(pidfile).pid is None


def test_trailing_newline_is_tolerated(tmp_path):
    pidfile = tmp_path / "pidfile.pid"
    pidfile.write_text("99\n")

    assert persistence.load_pid(pidfile).pid == 99


def test_unreadable_path_yields_empty_record(tmp_path):
    # A directory cannot be read as a file.
    assert persistence.load_pid(tmp_path).pid is None


def test_write_overwrites_previous_value(tmp_path):
    pidfile = tmp_path / "pidfile.pid"
    persistence.write_pid(pidfile, 123456)
    persistence.write_pid(pidfile, 7)

    assert pidfile.read_text() == "7"


def test_wait_for_pid_returns_true_when_recorded(tmp_path):
    pidfile = tmp_path / "pidfile.pid"
    persistence.write_pid(pidfile, 55)

    assert persistence.wait_for_pid(pidfile, 55, timeout=0.1, interval=0.01) is True


def test_wait_for_pid_times_out(tmp_path):
    pidfile = tmp_path / "pidfile.pid"
    persistence.write_pid(pidfile, 55)

    assert persistence.wait_for_pid(pidfile, 56, timeout=0.05, interval=0.01) is False


@pytest.mark.parametrize("content", ["0", "-1", "-4321"])
def test_non_positive_pid_yields_empty_record(tmp_path, content):
    pidfile = tmp_path / "pidfile.pid"
    pidfile.write_text(content)

    assert persistence.load_pid(pidfile).pid is None
