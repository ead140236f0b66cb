"""
Local package for Balaur.

This package provides the configuration record, the entry-point resolver,
the console commands and the supervisor engine.
"""

from .config import BalaurConfig, load_config

__all__ = ["BalaurConfig", "load_config"]
