#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cansat_link.py

TCP link with the Serial Studio plugin server (local relay)
- ConnectionManager: QTcpSocket owner, reconnect on every 1 Hz tick,
  500 ms debounced connected/disconnected notification
- JsonIngress / RawIngress: turn a socket read into raw radio bytes
- CommandSender: command string -> XBee frame -> socket, with TX log line

Serial Studio forwards each radio read as one JSON object:
    {"data": "<base64 raw bytes>"}
"""

from __future__ import annotations

import base64
import binascii
import json
from enum import Enum
from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal
from PyQt6.QtNetwork import QAbstractSocket, QHostAddress, QTcpSocket

from cansat_constants import (
    RELAY_HOST,
    RELAY_PORT,
    DEBOUNCE_MS,
    JSON_DATA_FIELD,
)
from cansat_exceptions import LinkError
from cansat_logging import get_logger
from cansat_protocol import FrameCodec
from cansat_utils import hexdump_line

logger = get_logger("link")


class LinkState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


_SOCKET_STATES = {
    QAbstractSocket.SocketState.HostLookupState: LinkState.CONNECTING,
    QAbstractSocket.SocketState.ConnectingState: LinkState.CONNECTING,
    QAbstractSocket.SocketState.ConnectedState: LinkState.CONNECTED,
}


def link_state_from_socket(state: QAbstractSocket.SocketState) -> LinkState:
    return _SOCKET_STATES.get(state, LinkState.DISCONNECTED)


# -------------------- ingress --------------------
class RawIngress:
    """Socket bytes are already the radio stream."""

    name = "raw"

    def decode(self, payload: bytes) -> Optional[bytes]:
        return bytes(payload) if payload else None


class JsonIngress:
    """One JSON object per read, raw bytes base64 encoded in `field`."""

    name = "json"

    def __init__(self, field: str = JSON_DATA_FIELD):
        self.field = field

    def decode(self, payload: bytes) -> Optional[bytes]:
        try:
            doc = json.loads(bytes(payload).decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            logger.debug(f"dropping non-JSON read ({len(payload)} bytes)")
            return None
        if not isinstance(doc, dict):
            return None
        value = doc.get(self.field)
        if not isinstance(value, str):
            return None
        try:
            return base64.b64decode(value.encode("ascii"), validate=True)
        except (UnicodeEncodeError, binascii.Error):
            logger.debug(f"dropping invalid base64 '{self.field}' field")
            return None


INGRESS = {
    RawIngress.name: RawIngress,
    JsonIngress.name: JsonIngress,
}


# -------------------- connection --------------------
class ConnectionManager(QObject):
    state_changed = pyqtSignal(object)      # LinkState, immediate
    connected_changed = pyqtSignal(bool)    # debounced, for the UI
    data_received = pyqtSignal(bytes)       # decoded radio bytes
    error = pyqtSignal(str, str)            # title, detail

    def __init__(
        self,
        *,
        host: str = RELAY_HOST,
        port: int = RELAY_PORT,
        ingress=None,
        debounce_ms: int = DEBOUNCE_MS,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.host = host
        self.port = int(port)
        self.ingress = ingress if ingress is not None else JsonIngress()
        self._state = LinkState.DISCONNECTED
        self._last_error: Optional[str] = None

        self._socket = QTcpSocket(self)
        self._socket.readyRead.connect(self._on_ready_read)
        self._socket.disconnected.connect(self._socket.close)
        self._socket.connected.connect(self._on_connected_changed)
        self._socket.disconnected.connect(self._on_connected_changed)
        self._socket.stateChanged.connect(self._on_socket_state)
        self._socket.errorOccurred.connect(self._on_error)

        self._debounce = QTimer(self)
        self._debounce.setSingleShot(True)
        self._debounce.setInterval(int(debounce_ms))
        self._debounce.timeout.connect(self._notify_connected)

    # ---------- state ----------
    @property
    def state(self) -> LinkState:
        return self._state

    def is_connected(self) -> bool:
        return self._socket.state() == QAbstractSocket.SocketState.ConnectedState

    # ---------- public API ----------
    def try_connection(self) -> None:
        """1 Hz tick slot: restart a connection attempt unless connected."""
        if self.is_connected():
            return
        self._socket.abort()
        if self.host in ("127.0.0.1", "localhost"):
            address = QHostAddress(QHostAddress.SpecialAddress.LocalHost)
        else:
            address = QHostAddress(self.host)
        self._socket.connectToHost(address, self.port)

    def write(self, data: bytes) -> bool:
        """Send `data` if connected. False if not connected or partially written."""
        if not data or not self.is_connected():
            return False
        written = self._socket.write(bytes(data))
        if written != len(data):
            logger.warning(f"short write: {written}/{len(data)} bytes")
            return False
        return True

    def close(self) -> None:
        self._debounce.stop()
        self._socket.abort()

    # ---------- socket slots ----------
    def _on_socket_state(self, socket_state) -> None:
        new_state = link_state_from_socket(socket_state)
        if new_state == self._state:
            return
        logger.debug(f"link {self._state.value} -> {new_state.value}")
        self._state = new_state
        if new_state == LinkState.CONNECTED:
            self._last_error = None
        self.state_changed.emit(new_state)

    def _on_connected_changed(self) -> None:
        # (re)arm, a quick connect/disconnect pair only notifies once
        self._debounce.start()

    def _notify_connected(self) -> None:
        connected = self.is_connected()
        logger.info(f"Serial Studio link {'up' if connected else 'down'} ({self.host}:{self.port})")
        self.connected_changed.emit(connected)

    def _on_ready_read(self) -> None:
        payload = bytes(self._socket.readAll())
        if not payload:
            return
        data = self.ingress.decode(payload)
        if data:
            self.data_received.emit(data)

    def _on_error(self, socket_error) -> None:
        err = LinkError(self._socket.errorString(), getattr(socket_error, "value", None))
        if err.detail == self._last_error:
            logger.debug(f"socket error (repeat): {err.detail}")
            return
        self._last_error = err.detail
        logger.warning(f"socket error: {err.detail}")
        self.error.emit(err.title, err.detail)


# -------------------- outbound --------------------
class CommandSender(QObject):
    """Encodes command strings and writes them through the link."""

    log_line = pyqtSignal(str)

    def __init__(self, link, codec: Optional[FrameCodec] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.link = link
        self.codec = codec if codec is not None else FrameCodec()

    def send(self, command: str) -> bool:
        if not command:
            return False
        if not self.link.is_connected():
            return False

        frame = self.codec.encode(command)
        if not frame:
            return False

        self.log_line.emit("  [TX]\t" + command)
        logger.debug(f"TX {hexdump_line(frame)}")
        ok = self.link.write(frame)
        if not ok:
            logger.warning(f"TX failed: {command}")
        return ok
