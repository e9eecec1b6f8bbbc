#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cansat_panel.py

CanSat ground station control panel (link engine facade)

Wiring:
  TimerEvents.1Hz  -> ConnectionManager.try_connection
                   -> SimulationPlayer.tick        (CLOCKED playback only)
  TimerEvents.20Hz -> current time
  ConnectionManager.data_received -> InboundExtractor -> FrameRouter
  UI / SimulationPlayer commands  -> CommandSender -> FrameCodec -> ConnectionManager

The UI only talks to this object: signals out, slots and getters in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from cansat_constants import (
    RELAY_HOST,
    RELAY_PORT,
    DEBOUNCE_MS,
    DEVICE_ID,
    PAYLOAD_ID,
    INBOUND_BUFFER_CAP,
    cmd,
)
from cansat_extractor import InboundExtractor
from cansat_link import INGRESS, CommandSender, ConnectionManager
from cansat_logging import SignalLogHandler, get_logger
from cansat_player import CLOCKED, PlaybackStrategy, SimulationPlayer
from cansat_protocol import CLEAN_PROFILE, CodecProfile, FrameCodec
from cansat_router import FrameRouter
from cansat_timers import TimerEvents
from cansat_utils import clock_time, container_time

logger = get_logger("panel")


@dataclass
class LinkSettings:
    host: str = RELAY_HOST
    port: int = RELAY_PORT
    ingress: str = "json"
    debounce_ms: int = DEBOUNCE_MS
    buffer_cap: int = INBOUND_BUFFER_CAP

    device_id: str = DEVICE_ID
    payload_id: str = PAYLOAD_ID
    codec_profile: CodecProfile = field(default=CLEAN_PROFILE)
    playback: PlaybackStrategy = field(default=CLOCKED)

    # None -> ~/Documents/<app name>
    log_root: Optional[str] = None


class ControlPanel(QObject):
    connected_changed = pyqtSignal(bool)
    frame_received = pyqtSignal(bytes)
    log_line = pyqtSignal(str)
    csv_loaded = pyqtSignal(str)
    enabled_changed = pyqtSignal(bool)
    active_changed = pyqtSignal(bool)
    container_telemetry_changed = pyqtSignal(bool)
    playback_finished = pyqtSignal(str, str)
    current_time_changed = pyqtSignal(str)
    error = pyqtSignal(str, str)

    def __init__(
        self,
        settings: Optional[LinkSettings] = None,
        *,
        timers: Optional[TimerEvents] = None,
        link: Optional[ConnectionManager] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.settings = settings or LinkSettings()
        s = self.settings

        self._current_time = ""
        self._container_telemetry = False
        self._log_handler: Optional[SignalLogHandler] = None

        self.timers = timers if timers is not None else TimerEvents(self)
        self.link = link if link is not None else ConnectionManager(
            host=s.host,
            port=s.port,
            ingress=INGRESS[s.ingress](),
            debounce_ms=s.debounce_ms,
            parent=self,
        )
        self.sender = CommandSender(self.link, FrameCodec(s.codec_profile), parent=self)
        self.router = FrameRouter(
            log_root=s.log_root,
            container_prefix=s.device_id,
            payload_prefix=s.payload_id,
            parent=self,
        )
        self.extractor = InboundExtractor(self.router.route, cap=s.buffer_cap)
        self.player = SimulationPlayer(
            self.sender,
            strategy=s.playback,
            device_id=s.device_id,
            parent=self,
        )

        # ticks
        self.timers.timeout_1hz.connect(self.link.try_connection)
        if not s.playback.self_paced:
            self.timers.timeout_1hz.connect(self.player.tick)
        self.timers.timeout_20hz.connect(self.update_current_time)

        # link
        self.link.connected_changed.connect(self.connected_changed)
        self.link.state_changed.connect(self.player.on_link_state_changed)
        self.link.data_received.connect(self.extractor.feed)
        self.link.error.connect(self.error)

        # router / sender / player
        self.router.frame_received.connect(self.frame_received)
        self.router.log_line.connect(self.log_line)
        self.router.error.connect(self.error)
        self.sender.log_line.connect(self.log_line)
        self.player.log_line.connect(self.log_line)
        self.player.enabled_changed.connect(self.enabled_changed)
        self.player.active_changed.connect(self.active_changed)
        self.player.csv_loaded.connect(self.csv_loaded)
        self.player.finished.connect(self.playback_finished)
        self.player.error.connect(self.error)

    # ---------- lifecycle ----------
    def start(self) -> None:
        logger.info(f"connecting to Serial Studio at {self.link.host}:{self.link.port} "
                    f"(playback={self.player.strategy.name})")
        self.timers.start_timers()
        self.link.try_connection()

    def close(self) -> None:
        self.timers.stop_timers()
        self.link.close()
        self.router.close()
        self.stop_log_forwarding()

    def forward_log(self, level: int = logging.WARNING) -> None:
        """Mirror "cansat" log records at `level` and above into log_line"""
        self.stop_log_forwarding()
        self._log_handler = SignalLogHandler(self.log_line.emit, level)
        get_logger().addHandler(self._log_handler)

    def stop_log_forwarding(self) -> None:
        if self._log_handler is not None:
            get_logger().removeHandler(self._log_handler)
            self._log_handler = None

    # ---------- getters ----------
    def is_connected(self) -> bool:
        return self.link.is_connected()

    @property
    def simulation_enabled(self) -> bool:
        return self.player.enabled

    @property
    def simulation_activated(self) -> bool:
        return self.player.active

    @property
    def simulation_csv_loaded(self) -> bool:
        return self.player.is_loaded

    @property
    def csv_file_name(self) -> str:
        return self.player.csv_file_name

    @property
    def container_telemetry_enabled(self) -> bool:
        return self._container_telemetry

    @property
    def current_time(self) -> str:
        return self._current_time

    # ---------- slots ----------
    def load_csv(self, path: str) -> bool:
        return self.player.load_csv(path)

    def set_simulation_mode(self, enabled: bool) -> None:
        self.player.set_enabled(enabled)

    def set_simulation_activated(self, activated: bool) -> None:
        self.player.set_active(activated)

    def set_container_telemetry_enabled(self, enabled: bool) -> None:
        if not self.is_connected():
            return
        self._container_telemetry = bool(enabled)
        self.container_telemetry_changed.emit(self._container_telemetry)
        self.sender.send(cmd(self.settings.device_id, "CX", "ON" if enabled else "OFF"))

    def update_container_time(self) -> None:
        """Set the container clock to the ground station time"""
        if self.is_connected():
            self.sender.send(cmd(self.settings.device_id, "ST", container_time()))

    def send_command(self, command: str) -> bool:
        """Hand-typed command"""
        return self.sender.send(command.strip())

    def update_current_time(self) -> None:
        self._current_time = clock_time()
        self.current_time_changed.emit(self._current_time)
