#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cansat_logging.py

CanSat ground link logging infrastructure.
- "cansat" logger tree, one child per component (cansat.link, cansat.router, ...)
- console / file handlers for the headless runner
- SignalLogHandler: forwards records to an operator log line (pyqtSignal.emit)
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, List, Optional

LOGGER_NAME = "cansat"

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    *,
    log_file: Optional[str] = None,
    verbose: bool = False,
    console: bool = True,
    log_format: Optional[str] = None,
) -> logging.Logger:
    """Configure the "cansat" logger for a run

    Args:
        log_file: also append records to this file (None: console only)
        verbose: DEBUG level if True, INFO otherwise
        console: write records to stdout
        log_format: logging format string (None: DEFAULT_FORMAT)

    Returns:
        the "cansat" logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter(log_format or DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    # calling twice must not duplicate output
    logger.handlers.clear()
    logger.setLevel(level)

    handlers: List[logging.Handler] = []
    if console:
        handlers.append(_handler(logging.StreamHandler(sys.stdout), level, formatter))

    failed_file = None
    if log_file:
        try:
            handlers.append(_handler(logging.FileHandler(log_file, encoding="utf-8"), level, formatter))
        except OSError as e:
            failed_file = e

    for h in handlers:
        logger.addHandler(h)
    if failed_file is not None:
        logger.warning(f"Could not create log file: {log_file} ({failed_file})")

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the ground link logger, or one of its children

    Args:
        name: child name (e.g. "link" -> "cansat.link")
    """
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)


class SignalLogHandler(logging.Handler):
    """Log handler that hands formatted records to a callback

    Lines use the operator log layout, "[LEVEL]\\tmessage".

    Usage:
        handler = SignalLogHandler(panel.log_line.emit, logging.WARNING)
        get_logger().addHandler(handler)
    """

    def __init__(self, emit_callback: Callable[[str], None], level: int = logging.NOTSET):
        super().__init__(level)
        self._emit = emit_callback
        self._busy = False
        self.setFormatter(logging.Formatter("[%(levelname)s]\t%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        # a slot that logs from inside the callback must not loop back here
        if self._busy:
            return
        self._busy = True
        try:
            self._emit(self.format(record))
        except Exception:
            self.handleError(record)
        finally:
            self._busy = False
