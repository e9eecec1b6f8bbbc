#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cansat_constants.py

CanSat ground link global constants.
All magic numbers and defaults in one place.
"""

from __future__ import annotations

# ==============================================================================
# Application
# ==============================================================================
APP_NAME = "CanSat Ground Station"
DEVICE_ID = "1026"          # team / container identifier
PAYLOAD_ID = "6026"         # payload telemetry prefix


# ==============================================================================
# Serial Studio plugin server (TCP relay)
# ==============================================================================
RELAY_HOST = "127.0.0.1"
RELAY_PORT = 7777

# Connect/disconnect notification debounce (ms)
DEBOUNCE_MS = 500

# JSON envelope field holding base64 raw bytes
JSON_DATA_FIELD = "data"


# ==============================================================================
# XBee API transmit request
# ==============================================================================
XBEE_START = 0x7E
XBEE_TX_REQUEST = 0x10
XBEE_ACK_NONE = 0x00
XBEE_FRAME_ID = 0x00
XBEE_RADIUS = 0x00
XBEE_OPTIONS = 0x00

XBEE_DEST64 = bytes([0x00, 0x13, 0xA2, 0x00, 0x41, 0xB1, 0x8C, 0x8D])
XBEE_DEST16 = bytes([0xFF, 0xFE])

# Legacy radio: first two dest64 bytes as transmitted (escaped form, 0x7D 0x33)
XBEE_LEGACY_DEST64_MSB = bytes([0x7D, 0x33])


# ==============================================================================
# Inbound framing
# ==============================================================================
FRAME_START = b"/*"
FRAME_END = b"*/"
INBOUND_BUFFER_CAP = 1024 * 10


# ==============================================================================
# Commands
# ==============================================================================
CMD_TERMINATOR = ";"
CMD_SEPARATOR = ","


def cmd(device_id: str, *fields: str) -> str:
    """Build a 'CMD,<id>,<f1>,<f2>...;' command string"""
    return CMD_SEPARATOR.join(("CMD", device_id) + fields) + CMD_TERMINATOR


# ==============================================================================
# Timers (ms)
# ==============================================================================
TIMER_1HZ_MS = 1000
TIMER_20HZ_MS = 50

# Paced playback: wait before the first row, then one row per interval
PACED_FIRST_DELAY_MS = 5000
PACED_INTERVAL_MS = 1000


# ==============================================================================
# Log files
# ==============================================================================
LOG_KIND_CONTAINER = "Container"
LOG_KIND_PAYLOAD = "Payload"
LOG_DIR_DATE_FORMAT = "%Y/%b/%d"
LOG_FILE_TIME_FORMAT = "%H-%M-%S"

NO_CSV_SELECTED = "No CSV file selected"
