"""
WorkCarrier: run a callback in a pool of forked worker processes,
optionally from a background daemon.
"""

from .supervisor import Supervisor

__version__ = "1.0.0"

__all__ = ["Supervisor"]
