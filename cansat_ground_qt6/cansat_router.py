#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cansat_router.py

Inbound frame routing and telemetry CSV logging
- frames starting with the container ID (1026) -> Container_<HH-MM-SS>.csv
- frames starting with the payload ID (6026)   -> Payload_<HH-MM-SS>.csv
- anything else is only shown to the operator

Files live under <root>/<yyyy>/<Mon>/<dd>/ and are opened append-only on first use.
"""

from __future__ import annotations

import os
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Set, TextIO

from PyQt6.QtCore import QObject, pyqtSignal

from cansat_constants import (
    DEVICE_ID,
    PAYLOAD_ID,
    LOG_KIND_CONTAINER,
    LOG_KIND_PAYLOAD,
)
from cansat_exceptions import LogStreamError, LogWriteError
from cansat_logging import get_logger
from cansat_utils import day_directory, default_log_root, log_filename

logger = get_logger("router")


class LogStream(Enum):
    CONTAINER = LOG_KIND_CONTAINER
    PAYLOAD = LOG_KIND_PAYLOAD


class FrameRouter(QObject):
    frame_received = pyqtSignal(bytes)
    log_line = pyqtSignal(str)
    error = pyqtSignal(str, str)     # title, detail

    def __init__(
        self,
        *,
        log_root: Optional[str] = None,
        container_prefix: str = DEVICE_ID,
        payload_prefix: str = PAYLOAD_ID,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.log_root = log_root or default_log_root()
        self._prefixes = {
            LogStream.CONTAINER: container_prefix.encode("ascii"),
            LogStream.PAYLOAD: payload_prefix.encode("ascii"),
        }
        self._files: Dict[LogStream, TextIO] = {}
        self._paths: Dict[LogStream, str] = {}
        self._failed: Set[LogStream] = set()

    def classify(self, frame: bytes) -> Optional[LogStream]:
        for kind, prefix in self._prefixes.items():
            if frame.startswith(prefix):
                return kind
        return None

    def path(self, kind: LogStream) -> Optional[str]:
        return self._paths.get(kind)

    def is_disabled(self, kind: LogStream) -> bool:
        return kind in self._failed

    def route(self, frame: bytes) -> None:
        if not frame:
            return

        kind = self.classify(frame)
        if kind is not None and kind not in self._failed:
            try:
                self._write(kind, frame)
            except LogStreamError as e:
                self._failed.add(kind)
                self._close_one(kind)
                logger.error(f"{e.title}: {e.detail}")
                self.error.emit(e.title, e.reason)

        self.log_line.emit("  [RX]\t" + frame.decode("utf-8", errors="replace"))
        self.frame_received.emit(bytes(frame))

    def _write(self, kind: LogStream, frame: bytes) -> None:
        fp = self._files.get(kind)
        if fp is None:
            fp = self._create(kind)
        try:
            fp.write(frame.decode("utf-8", errors="replace"))
            fp.write("\n")
            fp.flush()
        except (OSError, ValueError) as e:
            # ValueError: handle already closed
            raise LogWriteError(kind.value, self._paths.get(kind, ""), str(e)) from e

    def _create(self, kind: LogStream, now: Optional[datetime] = None) -> TextIO:
        now = now or datetime.now()
        directory = day_directory(self.log_root, now)
        path = os.path.join(directory, log_filename(kind.value, now))
        self.log_line.emit("[INFO]\tCreating new CSV file at " + path)
        try:
            os.makedirs(directory, exist_ok=True)
            fp = open(path, "a", encoding="utf-8", newline="")
        except OSError as e:
            raise LogStreamError(kind.value, path, str(e)) from e

        self._files[kind] = fp
        self._paths[kind] = path
        logger.info(f"{kind.value} log: {path}")
        return fp

    def rotate(self, kind: LogStream) -> bool:
        """Close the current stream of `kind` and start a new file."""
        self._close_one(kind)
        self._failed.discard(kind)
        try:
            self._create(kind)
        except LogStreamError as e:
            self._failed.add(kind)
            logger.error(f"{e.title}: {e.detail}")
            self.error.emit(e.title, e.reason)
            return False
        return True

    def reset(self) -> None:
        """Close every stream and re-enable failed ones (next frame creates new files)."""
        self.close()
        self._failed.clear()

    def close(self) -> None:
        for kind in list(self._files):
            self._close_one(kind)

    def _close_one(self, kind: LogStream) -> None:
        fp = self._files.pop(kind, None)
        if fp is None:
            return
        try:
            fp.close()
        except OSError as e:
            logger.warning(f"closing {kind.value} log failed: {e}")
