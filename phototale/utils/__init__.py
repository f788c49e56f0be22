"""Utility helpers for PhotoTale.

The ``logging_system`` module provides the logger factory used by every
other module.  Its behaviour is driven by the ``LOG_LEVEL`` and
``NO_COLOR`` environment variables.
"""

from .logging_system import setup_log_system, get_logger  # noqa: F401

__all__ = ["setup_log_system", "get_logger"]
