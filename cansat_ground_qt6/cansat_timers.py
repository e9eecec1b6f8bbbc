#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cansat_timers.py

Periodic ticks shared by the link engine
- timeout_1hz : connection retry, clocked simulation playback
- timeout_20hz: operator clock
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from cansat_constants import TIMER_1HZ_MS, TIMER_20HZ_MS


class TimerEvents(QObject):
    timeout_1hz = pyqtSignal()
    timeout_20hz = pyqtSignal()

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._timer_1hz = QTimer(self)
        self._timer_1hz.setInterval(TIMER_1HZ_MS)
        self._timer_1hz.timeout.connect(self.timeout_1hz)

        self._timer_20hz = QTimer(self)
        self._timer_20hz.setInterval(TIMER_20HZ_MS)
        self._timer_20hz.timeout.connect(self.timeout_20hz)

    @property
    def running(self) -> bool:
        return self._timer_1hz.isActive()

    def start_timers(self) -> None:
        self._timer_1hz.start()
        self._timer_20hz.start()

    def stop_timers(self) -> None:
        self._timer_1hz.stop()
        self._timer_20hz.stop()
