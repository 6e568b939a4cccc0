"""Structlog-based logging.

The validation engine itself never logs; the store, the service and the CLI do.
"""

from typing import Literal

import logging
import structlog

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(level: LogLevel | str = "INFO") -> None:
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    # Rendered JSON lines go through the root handler (stderr), keeping stdout for CLI output
    logging.basicConfig(format="%(message)s", level=numeric_level)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "famtree"):
    return structlog.get_logger(name)
