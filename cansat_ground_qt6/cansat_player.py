#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cansat_player.py

Simulation mode: replay recorded pressure readings to the container

- load_simulation_csv(): CSV file -> SimulationTable
    * all whitespace removed, '#' comment lines and empty lines dropped
    * '$' replaced by the device ID
- SimulationPlayer: enable/activate state machine, one row per tick

Two playback strategies are provided, the composing application picks one:
- PACED   : self-rearming one-shot timer (5 s before the first row, then 1 s),
            starts at row 1, sends  CMD,<id>,SIMP,<first field>;
- CLOCKED : driven by the external 1 Hz tick, starts at row 0,
            sends every field joined with ','  then ';'
"""

from __future__ import annotations

import csv
import io
import os
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from cansat_constants import (
    DEVICE_ID,
    CMD_SEPARATOR,
    CMD_TERMINATOR,
    PACED_FIRST_DELAY_MS,
    PACED_INTERVAL_MS,
    NO_CSV_SELECTED,
    cmd,
)
from cansat_exceptions import CsvLoadError, MalformedRowError
from cansat_link import LinkState
from cansat_logging import get_logger

logger = get_logger("player")

_WHITESPACE = re.compile(r"\s+")


# -------------------- CSV --------------------
@dataclass(frozen=True)
class SimulationTable:
    path: str
    rows: Tuple[Tuple[str, ...], ...]

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def __len__(self) -> int:
        return len(self.rows)


def sanitize_lines(lines, device_id: str = DEVICE_ID):
    """Yield cleaned CSV lines (whitespace stripped, comments dropped, '$' substituted)."""
    for line in lines:
        line = _WHITESPACE.sub("", line)
        if not line or line.startswith("#"):
            continue
        yield line.replace("$", device_id)


def parse_simulation_csv(text: str, device_id: str = DEVICE_ID) -> Tuple[Tuple[str, ...], ...]:
    cleaned = "\n".join(sanitize_lines(text.splitlines(), device_id))
    return tuple(tuple(row) for row in csv.reader(io.StringIO(cleaned)) if row)


def load_simulation_csv(path: str, device_id: str = DEVICE_ID) -> SimulationTable:
    """Read a simulation CSV file (blocking, call from the UI action only)

    Raises:
        CsvLoadError: file cannot be opened or decoded
    """
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise CsvLoadError(path, str(e)) from e
    return SimulationTable(path=path, rows=parse_simulation_csv(text, device_id))


# -------------------- strategies --------------------
def paced_command(row: Sequence[str], device_id: str = DEVICE_ID) -> str:
    """CMD,<id>,SIMP,<pressure>;  ('' if the row has no value)"""
    if not row or not row[0]:
        return ""
    return cmd(device_id, "SIMP", row[0])


def clocked_command(row: Sequence[str], device_id: str = DEVICE_ID) -> str:
    """All fields joined with ',' and terminated with ';'  ('' if the row has no value)"""
    body = CMD_SEPARATOR.join(row)
    if not body.strip(CMD_SEPARATOR):
        return ""
    return body + CMD_TERMINATOR


@dataclass(frozen=True)
class PlaybackStrategy:
    name: str
    start_row: int
    self_paced: bool
    format_row: Callable[[Sequence[str], str], str]
    first_delay_ms: int = 0
    interval_ms: int = 0


PACED = PlaybackStrategy(
    name="paced",
    start_row=1,
    self_paced=True,
    format_row=paced_command,
    first_delay_ms=PACED_FIRST_DELAY_MS,
    interval_ms=PACED_INTERVAL_MS,
)

CLOCKED = PlaybackStrategy(
    name="clocked",
    start_row=0,
    self_paced=False,
    format_row=clocked_command,
)

STRATEGIES = {s.name: s for s in (PACED, CLOCKED)}


# -------------------- player --------------------
class SimulationPlayer(QObject):
    enabled_changed = pyqtSignal(bool)
    active_changed = pyqtSignal(bool)
    csv_loaded = pyqtSignal(str)
    finished = pyqtSignal(str, str)      # title, message
    error = pyqtSignal(str, str)         # title, detail
    log_line = pyqtSignal(str)

    def __init__(
        self,
        sender,
        *,
        strategy: PlaybackStrategy = CLOCKED,
        device_id: str = DEVICE_ID,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._sender = sender
        self.strategy = strategy
        self.device_id = device_id

        self._table: Optional[SimulationTable] = None
        self._row = strategy.start_row
        self._enabled = False
        self._active = False

        self._row_timer = QTimer(self)
        self._row_timer.setSingleShot(True)
        self._row_timer.timeout.connect(self.tick)

    # ---------- getters ----------
    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def active(self) -> bool:
        return self._enabled and self._active

    @property
    def row(self) -> int:
        return self._row

    @property
    def table(self) -> Optional[SimulationTable]:
        return self._table

    @property
    def is_loaded(self) -> bool:
        return self._table is not None

    @property
    def csv_file_name(self) -> str:
        return self._table.name if self._table is not None else NO_CSV_SELECTED

    def _connected(self) -> bool:
        return self._sender.link.is_connected()

    def _send(self, command: str) -> bool:
        return self._sender.send(command)

    # ---------- table ----------
    def load_table(self, table: SimulationTable) -> None:
        if self.active:
            self.set_active(False)
        self._table = table
        self._row = self.strategy.start_row
        self.log_line.emit(f"[INFO]\tLoaded simulation CSV file from {table.path} ({len(table)} rows)")
        self.csv_loaded.emit(table.name)

    def load_csv(self, path: str) -> bool:
        try:
            table = load_simulation_csv(path, self.device_id)
        except CsvLoadError as e:
            logger.error(str(e))
            self.error.emit(e.title, e.reason)
            return False
        self.load_table(table)
        return True

    # ---------- state machine ----------
    def set_enabled(self, enabled: bool) -> None:
        """SIM,ENABLE / SIM,DISABLE. Always re-sent, always stops playback."""
        if not self._connected():
            return

        self._active = False
        self._row_timer.stop()
        self._enabled = bool(enabled)
        self.enabled_changed.emit(self._enabled)
        self.active_changed.emit(False)

        self._send(cmd(self.device_id, "SIM", "ENABLE" if self._enabled else "DISABLE"))

    def set_active(self, activated: bool) -> None:
        """SIM,ACTIVATE and start sending rows; anything else disables simulation mode."""
        if not self._connected() or not self._enabled:
            return

        if activated and self._table is not None:
            self._active = True
            self.active_changed.emit(True)
            self._send(cmd(self.device_id, "SIM", "ACTIVATE"))
            if self.strategy.self_paced:
                self.log_line.emit(
                    f"[INFO]\tWaiting {self.strategy.first_delay_ms // 1000} seconds before sending data...")
                self._row_timer.start(self.strategy.first_delay_ms)
        else:
            self.set_enabled(False)

    def on_link_state_changed(self, state: LinkState) -> None:
        if state == LinkState.CONNECTED or not self._active:
            return
        self._active = False
        self._row_timer.stop()
        logger.info("link lost, simulation playback stopped")
        self.active_changed.emit(False)

    def tick(self) -> None:
        """Send the current row. Driven by the row timer or the external 1 Hz tick."""
        if not self.active or not self._connected():
            return

        rows = self._table.rows if self._table is not None else ()
        if 0 <= self._row < len(rows):
            command = self.strategy.format_row(rows[self._row], self.device_id)
            if command:
                self._send(command)
            else:
                err = MalformedRowError(self._row)
                logger.warning(str(err))
                self.error.emit(err.title, err.detail)

            self._row += 1
            if self.strategy.self_paced:
                self._row_timer.start(self.strategy.interval_ms)
        else:
            self.set_active(False)
            self.log_line.emit("[INFO]\tReached end of CSV file")
            self.finished.emit("Pressure simulation finished", "Reached end of CSV file")
