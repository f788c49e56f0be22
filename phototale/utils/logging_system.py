"""
Logging setup shared by every PhotoTale module.

Each module asks for its own named logger through :func:`setup_log_system`.
Console output goes through Rich when stdout is an interactive terminal and
``NO_COLOR`` is not set; otherwise a plain timestamped format is used so logs
stay readable when piped or captured by tests.  The level comes from the
``LOG_LEVEL`` environment variable unless passed explicitly.
"""
import logging
import os
import sys

from rich.logging import RichHandler

_PLAIN_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def setup_log_system(name: str, *, level: str | None = None) -> logging.Logger:
    """
    Create (or return) a configured logger.

    - Honours LOG_LEVEL env var (default INFO) unless a ``level`` is explicitly passed.
    - Uses RichHandler when stdout is a TTY and NO_COLOR is not set.
    - Avoids duplicate handlers if called multiple times for the same logger.
    """
    level_str = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_str, logging.INFO)

    logger = logging.getLogger(name)
    if logger.handlers:
        logger.setLevel(log_level)
        return logger

    no_colour = os.getenv("NO_COLOR") is not None
    is_tty = sys.stdout.isatty()

    handler: logging.Handler
    if not no_colour and is_tty:
        handler = RichHandler(
            rich_tracebacks=True,
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
        )
        # RichHandler renders time and level itself
        handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT, datefmt="%H:%M:%S"))

    logger.addHandler(handler)
    logger.setLevel(log_level)
    # Keep propagation on so pytest's caplog and any root handler still see records.
    logger.propagate = True
    return logger


# Convenience alias
get_logger = setup_log_system
