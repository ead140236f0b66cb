"""
Logging module for the application.
This module provides functionality to set up console logging and to tag
log output coming from pool workers.
"""

from .setup import setup_logging, console_level_for
from .adapter import WorkerLogAdapter

__all__ = ["setup_logging", "console_level_for", "WorkerLogAdapter"]
