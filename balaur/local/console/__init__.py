"""
This module initializes the console package, exposing the command-line
parser, command execution and the status display.
"""

from .process import build_parser, execute_command
from .handler import display_status

__all__ = ["build_parser", "execute_command", "display_status"]
