# cansat_protocol.py
# XBee API "Transmit Request" (0x10) encoder/decoder for ground -> container commands.
#
# Wire layout (all multi-byte fields Big Endian):
#   Start(1B, 0x7E)
#   Length(2B, BE)          // inner frame bytes, checksum excluded
#   FrameType(1B, 0x10)     // --- inner frame starts here
#   AckMode(1B)
#   FrameID(1B)
#   Dest64(8B)
#   Dest16(2B)
#   Radius(1B)
#   Options(1B)
#   Payload(N bytes, UTF-8 command string)
#   Checksum(1B)            // 0xFF - (sum(inner) & 0xFF)
#
# Note: the legacy radio profile reproduces the ground station firmware as flown:
#       checksum over Dest64 MSB 0x00 0x13, then those two bytes replaced by the
#       escaped form 0x7D 0x33 on the wire, and Length = len(inner) - 1.

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from cansat_constants import (
    XBEE_START,
    XBEE_TX_REQUEST,
    XBEE_ACK_NONE,
    XBEE_FRAME_ID,
    XBEE_RADIUS,
    XBEE_OPTIONS,
    XBEE_DEST64,
    XBEE_DEST16,
    XBEE_LEGACY_DEST64_MSB,
)
from cansat_exceptions import FrameDecodeError


HEADER_SIZE = 3          # start + length
INNER_HEADER_SIZE = 15   # frame type .. options
DEST64_OFFSET = 3        # within the inner frame


class FrameType(IntEnum):
    TX_REQUEST = XBEE_TX_REQUEST


def pack_u16(v: int) -> bytes:
    v &= 0xFFFF
    return v.to_bytes(2, "big", signed=False)


def unpack_u16(b: bytes) -> int:
    if len(b) < 2:
        raise ValueError("need 2 bytes")
    return int.from_bytes(b[:2], "big", signed=False)


def checksum(data: bytes) -> int:
    """XBee API checksum: 0xFF minus the low byte of the byte sum."""
    return 0xFF - (sum(data) & 0xFF)


@dataclass(frozen=True)
class CodecProfile:
    """Addressing and compatibility settings of a deployment."""
    dest64: bytes = XBEE_DEST64
    dest16: bytes = XBEE_DEST16
    frame_id: int = XBEE_FRAME_ID
    ack_mode: int = XBEE_ACK_NONE
    radius: int = XBEE_RADIUS
    options: int = XBEE_OPTIONS
    # Dest64 MSB pair substituted after the checksum (None = single pass)
    wire_dest64_msb: Optional[bytes] = None
    length_adjust: int = 0

    def __post_init__(self) -> None:
        if len(self.dest64) != 8:
            raise ValueError("dest64 must be 8 bytes")
        if len(self.dest16) != 2:
            raise ValueError("dest16 must be 2 bytes")
        if self.wire_dest64_msb is not None and len(self.wire_dest64_msb) != 2:
            raise ValueError("wire_dest64_msb must be 2 bytes")


CLEAN_PROFILE = CodecProfile()
LEGACY_RADIO_PROFILE = CodecProfile(wire_dest64_msb=XBEE_LEGACY_DEST64_MSB, length_adjust=-1)


@dataclass(frozen=True)
class OutboundFrame:
    payload: bytes
    profile: CodecProfile = CLEAN_PROFILE

    @property
    def inner(self) -> bytes:
        p = self.profile
        return (bytes([int(FrameType.TX_REQUEST), p.ack_mode & 0xFF, p.frame_id & 0xFF])
                + p.dest64
                + p.dest16
                + bytes([p.radius & 0xFF, p.options & 0xFF])
                + self.payload)

    @property
    def checksum(self) -> int:
        return checksum(self.inner)

    @property
    def length(self) -> int:
        return len(self.inner) + self.profile.length_adjust

    def to_bytes(self) -> bytes:
        inner = self.inner
        crc = checksum(inner)
        msb = self.profile.wire_dest64_msb
        if msb is not None:
            inner = inner[:DEST64_OFFSET] + msb + inner[DEST64_OFFSET + 2:]
        return bytes([XBEE_START]) + pack_u16(self.length) + inner + bytes([crc])


@dataclass(frozen=True)
class DecodedFrame:
    frame_type: int
    ack_mode: int
    frame_id: int
    dest64: bytes
    dest16: bytes
    radius: int
    options: int
    payload: str
    checksum: int


class FrameCodec:
    """Stateless command frame codec bound to one CodecProfile."""

    def __init__(self, profile: CodecProfile = CLEAN_PROFILE):
        self.profile = profile

    def build(self, payload: str) -> Optional[OutboundFrame]:
        if not payload:
            return None
        return OutboundFrame(payload=payload.encode("utf-8"), profile=self.profile)

    def encode(self, payload: str) -> bytes:
        """Encode one command. An empty payload encodes to b"" (nothing to send)."""
        frame = self.build(payload)
        if frame is None:
            return b""
        return frame.to_bytes()

    def decode(self, frame: bytes) -> DecodedFrame:
        if frame is None or len(frame) < HEADER_SIZE + INNER_HEADER_SIZE + 1:
            raise FrameDecodeError("frame too short", frame or b"")
        if frame[0] != XBEE_START:
            raise FrameDecodeError(f"bad start byte 0x{frame[0]:02X}", frame)

        inner_len = unpack_u16(frame[1:3]) - self.profile.length_adjust
        if len(frame) != HEADER_SIZE + inner_len + 1:
            raise FrameDecodeError(
                f"length mismatch: header={inner_len}, actual={len(frame) - HEADER_SIZE - 1}", frame)

        inner = bytes(frame[HEADER_SIZE:HEADER_SIZE + inner_len])
        if self.profile.wire_dest64_msb is not None:
            # checksum was taken before the MSB substitution
            inner = inner[:DEST64_OFFSET] + self.profile.dest64[:2] + inner[DEST64_OFFSET + 2:]

        crc = frame[-1]
        if checksum(inner) != crc:
            raise FrameDecodeError(f"checksum mismatch: got 0x{crc:02X}, expected 0x{checksum(inner):02X}", frame)

        try:
            payload = inner[INNER_HEADER_SIZE:].decode("utf-8")
        except UnicodeDecodeError as e:
            raise FrameDecodeError(f"payload is not UTF-8: {e}", frame) from e

        return DecodedFrame(
            frame_type=inner[0],
            ack_mode=inner[1],
            frame_id=inner[2],
            dest64=inner[3:11],
            dest16=inner[11:13],
            radius=inner[13],
            options=inner[14],
            payload=payload,
            checksum=crc,
        )
