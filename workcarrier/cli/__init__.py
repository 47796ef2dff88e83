"""
Management console commands for WorkCarrier daemons.
"""

from .process import execute_command

__all__ = ["execute_command"]
