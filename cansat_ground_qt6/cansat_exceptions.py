#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cansat_exceptions.py

CanSat ground link custom exceptions.
Exception hierarchy for structured error reporting.
"""

from __future__ import annotations

from typing import Optional


class CanSatError(Exception):
    """Base exception for the ground link

    `title` is the short heading shown to the operator, the message is the detail.
    """

    title = "CanSat error"

    def __init__(self, message: str, title: Optional[str] = None):
        super().__init__(message)
        if title is not None:
            self.title = title

    @property
    def detail(self) -> str:
        return str(self)


class LinkError(CanSatError):
    """TCP link error reported by the socket layer

    Never fatal, the connection is retried on the next tick.
    """

    title = "TCP socket error"

    def __init__(self, message: str, socket_error: Optional[int] = None):
        super().__init__(message)
        self.socket_error = socket_error


class FrameDecodeError(CanSatError):
    """XBee API frame could not be decoded"""

    title = "Frame decode error"

    def __init__(self, message: str, frame: bytes = b""):
        super().__init__(message)
        self.frame = bytes(frame)


class CsvLoadError(CanSatError):
    """Simulation CSV could not be opened or read"""

    title = "File open error"

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class MalformedRowError(CanSatError):
    """Simulation CSV row produced no command

    Reported to the operator, playback continues with the next row.
    """

    title = "Simulation CSV error"

    def __init__(self, row: int):
        super().__init__(f"Invalid column count at row {row}")
        self.row = row


class LogStreamError(CanSatError):
    """Telemetry CSV log file could not be created"""

    action = "creating"

    def __init__(self, kind: str, path: str, reason: str):
        super().__init__(f"{path}: {reason}", title=f"Error while {self.action} {kind.lower()} CSV")
        self.kind = kind
        self.path = path
        self.reason = reason


class LogWriteError(LogStreamError):
    """Telemetry CSV log file failed after it was opened (disk full, device gone)"""

    action = "writing"
