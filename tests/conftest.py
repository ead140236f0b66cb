import logging

import pytest

from balaur.local.config import BalaurConfig


@pytest.fixture
def config(tmp_path):
    return BalaurConfig(
        main="app:main",
        workers=2,
        pidfile_path=tmp_path / "pidfile.pid",
        stdout_path=tmp_path / "out.log",
        stderr_path=tmp_path / "err.log",
    )


@pytest.fixture
def test_logger():
    return logging.getLogger("test-balaur")
