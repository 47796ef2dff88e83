"""
The Supervisor package.
Manages the lifecycle of forked worker processes.

This package contains the central Supervisor class and its helper modules,
which together handle daemonizing, forking and reaping workers, and tearing
the pool down when the daemon is terminated.
"""
from .errors import AlreadyRunningError, ConfigurationError, ForkError, PidFileError, SupervisorError
from .persistence import PidFile
from .registry import ProcessRegistry
from .supervisor import Role, State, Supervisor

__all__ = [
    'Supervisor',
    'Role',
    'State',
    'PidFile',
    'ProcessRegistry',
    'SupervisorError',
    'ConfigurationError',
    'ForkError',
    'PidFileError',
    'AlreadyRunningError',
]
