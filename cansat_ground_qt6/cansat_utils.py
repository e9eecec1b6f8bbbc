#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cansat_utils.py

CanSat ground link shared helpers
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Optional

from cansat_constants import (
    APP_NAME,
    LOG_DIR_DATE_FORMAT,
    LOG_FILE_TIME_FORMAT,
)


def clock_time(now: Optional[datetime] = None) -> str:
    """Operator clock in hh:mm:ss:zzz format"""
    now = now or datetime.now()
    return now.strftime("%H:%M:%S:") + f"{now.microsecond // 1000:03d}"


def container_time(now: Optional[datetime] = None) -> str:
    """Container clock sync value in hh:mm:ss format"""
    now = now or datetime.now()
    return now.strftime("%H:%M:%S")


def default_log_root() -> str:
    """~/Documents/<app name>"""
    return os.path.join(os.path.expanduser("~"), "Documents", APP_NAME)


def day_directory(root: str, now: Optional[datetime] = None) -> str:
    """Per-day log directory, e.g. <root>/2026/Oct/18"""
    now = now or datetime.now()
    return os.path.join(root, *now.strftime(LOG_DIR_DATE_FORMAT).split("/"))


def log_filename(kind: str, now: Optional[datetime] = None) -> str:
    """Telemetry log file name, e.g. Container_14-03-59.csv

    Args:
        kind: "Container" or "Payload"
    """
    now = now or datetime.now()
    return f"{kind}_{now.strftime(LOG_FILE_TIME_FORMAT)}.csv"


def hexdump_line(data: bytes) -> str:
    """Single line hex dump: '7E 00 12 10 ...'"""
    return " ".join(f"{b:02X}" for b in data)
