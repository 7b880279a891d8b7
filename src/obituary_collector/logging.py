"""Structlog-based logging for the obituary collector.

Library code logs through structlog (or stdlib logging for debug-level parser
noise); nothing outside the CLI prints.
"""
from __future__ import annotations

from typing import Literal

import logging
import structlog

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(level: LogLevel = "INFO") -> None:
    logging.basicConfig(format="%(message)s", level=getattr(logging, level))
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "obituary_collector"):
    return structlog.get_logger(name)
