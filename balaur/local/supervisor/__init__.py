"""
The Supervisor package.
Turns a callable into a pre-forking daemon.

This package contains the central Supervisor class and its helper modules,
which together handle the pidfile, launching the detached master, running
the worker pool and routing the master's signals.
"""
from .supervisor import Supervisor, Role
from .exit_codes import ExitCode

__all__ = ['Supervisor', 'Role', 'ExitCode']
