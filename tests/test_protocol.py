import pytest

from cansat_constants import XBEE_DEST64, XBEE_DEST16
from cansat_exceptions import FrameDecodeError
from cansat_protocol import (
    CLEAN_PROFILE,
    LEGACY_RADIO_PROFILE,
    CodecProfile,
    FrameCodec,
    checksum,
)


# 'A' to the deployment address, computed by hand
FRAME_A = bytes.fromhex("7E 0010 10 00 00 0013A20041B18C8D FFFE 00 00 41 F1")
LEGACY_FRAME_A = bytes.fromhex("7E 000F 10 00 00 7D33A20041B18C8D FFFE 00 00 41 F1")


def test_encode_known_vector():
    assert FrameCodec().encode("A") == FRAME_A


def test_frame_layout():
    payload = "CMD,1026,SIM,ENABLE;"
    frame = FrameCodec().encode(payload)

    assert frame[0] == 0x7E
    assert int.from_bytes(frame[1:3], "big") == len(frame) - 4
    assert frame[3] == 0x10          # transmit request
    assert frame[4] == 0x00          # no ack
    assert frame[5] == 0x00          # frame id
    assert frame[6:14] == XBEE_DEST64
    assert frame[14:16] == XBEE_DEST16
    assert frame[16] == 0x00         # radius
    assert frame[17] == 0x00         # options
    assert frame[18:-1] == payload.encode("utf-8")


@pytest.mark.parametrize("payload", ["A", "CMD,1026,SIMP,101325;", "CMD,1026,ST,12:00:59;", "é€"])
def test_checksum_property(payload):
    frame = FrameCodec().encode(payload)
    inner = frame[3:-1]
    assert frame[-1] == 0xFF - (sum(inner) % 256)
    assert FrameCodec().decode(frame).checksum == frame[-1]


def test_checksum_helper():
    assert checksum(b"") == 0xFF
    assert checksum(b"\xff") == 0x00
    assert checksum(b"\x80\x80") == 0xFF


def test_empty_payload_encodes_nothing():
    codec = FrameCodec()
    assert codec.encode("") == b""
    assert codec.build("") is None


@pytest.mark.parametrize("payload", ["X", "CMD,1026,CX,ON;", "1026,12,0,F,N,101.3", "ünïcode ✓"])
def test_round_trip(payload):
    codec = FrameCodec()
    decoded = codec.decode(codec.encode(payload))
    assert decoded.payload == payload
    assert decoded.dest64 == XBEE_DEST64
    assert decoded.dest16 == XBEE_DEST16
    assert decoded.frame_type == 0x10


def test_legacy_radio_profile_matches_flown_firmware():
    codec = FrameCodec(LEGACY_RADIO_PROFILE)
    frame = codec.encode("A")
    assert frame == LEGACY_FRAME_A
    # checksum is the one computed over the unsubstituted address
    assert frame[-1] == FRAME_A[-1]
    assert codec.decode(frame).payload == "A"


def test_legacy_frame_rejected_by_clean_codec():
    frame = FrameCodec(LEGACY_RADIO_PROFILE).encode("CMD,1026,SIM,ACTIVATE;")
    with pytest.raises(FrameDecodeError):
        FrameCodec(CLEAN_PROFILE).decode(frame)


def test_custom_address():
    profile = CodecProfile(dest64=bytes(range(8)), dest16=b"\x12\x34")
    codec = FrameCodec(profile)
    decoded = codec.decode(codec.encode("hi"))
    assert decoded.dest64 == bytes(range(8))
    assert decoded.dest16 == b"\x12\x34"


def test_profile_validates_address_sizes():
    with pytest.raises(ValueError):
        CodecProfile(dest64=b"\x00" * 7)
    with pytest.raises(ValueError):
        CodecProfile(dest16=b"\x00")


def test_decode_errors():
    codec = FrameCodec()
    frame = codec.encode("CMD,1026,SIM,ENABLE;")

    with pytest.raises(FrameDecodeError):
        codec.decode(frame[:10])
    with pytest.raises(FrameDecodeError):
        codec.decode(b"\x00" + frame[1:])
    with pytest.raises(FrameDecodeError):
        codec.decode(frame[:-2] + frame[-1:])

    corrupted = bytearray(frame)
    corrupted[20] ^= 0x01
    with pytest.raises(FrameDecodeError) as exc:
        codec.decode(bytes(corrupted))
    assert "checksum" in str(exc.value)
    assert exc.value.frame == bytes(corrupted)
