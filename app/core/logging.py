"""Logging configuration for the API process.

``setup_logging()`` installs a single stdout handler on the root logger with
a ``timestamp | LEVEL | module | message`` layout.  Services log snake_case
event names and pass context through ``extra``.
"""

import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Chatty client libraries used by supabase-py and uvicorn
_QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "postgrest", "uvicorn.access")


def setup_logging() -> None:
    """Configure the root logger from ``settings.LOG_LEVEL``.

    Safe to call more than once: existing root handlers are replaced.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(
        logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")
    )

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
