"""Process-wide logging setup for the Feldspar CLI."""

from __future__ import annotations

import logging
import sys

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | int = "WARNING", stream=None) -> int:
    """Configure the root logger with one stream handler; returns the numeric level.

    Existing root handlers are replaced. Unknown level names fall back to WARNING.
    """
    if isinstance(level, str):
        numeric_level = getattr(logging, level.strip().upper(), None)
        if not isinstance(numeric_level, int):
            print(f"Warning: Invalid log level '{level}'. Using WARNING.", file=sys.stderr)
            numeric_level = logging.WARNING
    else:
        numeric_level = int(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT, datefmt=DEFAULT_LOG_DATE_FORMAT))
    root_logger.addHandler(handler)

    # LiteLLM logs every request at INFO through its own loggers.
    for noisy in ("LiteLLM", "httpx"):
        logging.getLogger(noisy).setLevel(max(numeric_level, logging.WARNING))
    return numeric_level
