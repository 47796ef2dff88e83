"""
Logging module for WorkCarrier.
This module provides the root logger setup used by the entry points.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
