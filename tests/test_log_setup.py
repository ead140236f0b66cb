import io
import logging

import pytest

from balaur.log import console_level_for, setup_logging


@pytest.fixture
def streams():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    stdout, stderr = io.StringIO(), io.StringIO()
    yield stdout, stderr
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.mark.parametrize("verbosity, level", [
    (0, logging.WARNING),
    (1, logging.INFO),
    (2, logging.DEBUG),
    (5, logging.DEBUG),
])
def test_console_level_for(verbosity, level):
    assert console_level_for(verbosity) == level


def test_records_are_split_between_streams(streams):
    stdout, stderr = streams
    setup_logging(logging.INFO, stdout=stdout, stderr=stderr)
    log = logging.getLogger("balaur.test")

    log.debug("hidden detail")
    log.info("daemon starting")
    log.error("daemon failed")

    assert "daemon starting" in stdout.getvalue()
    assert "daemon failed" not in stdout.getvalue()
    assert "daemon failed" in stderr.getvalue()
    assert "daemon starting" not in stderr.getvalue()
    assert "hidden detail" not in stdout.getvalue() + stderr.getvalue()


def test_quiet_console_shows_only_warnings(streams):
    stdout, stderr = streams
    setup_logging(console_level_for(0), stdout=stdout, stderr=stderr)

    logging.getLogger("balaur.test").info("progress")
    logging.getLogger("balaur.test").warning("careful")

    assert stdout.getvalue() == ""
    assert "careful" in stderr.getvalue()


def test_repeated_setup_does_not_duplicate(streams):
    stdout, stderr = streams
    setup_logging(logging.INFO, stdout=stdout, stderr=stderr)
    setup_logging(logging.INFO, stdout=stdout, stderr=stderr)

    logging.getLogger("balaur.test").info("once")

    assert stdout.getvalue().count("once") == 1
