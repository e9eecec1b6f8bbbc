import logging

import pytest

from cansat_cli import build_settings, main, parse_arguments
from cansat_logging import LOGGER_NAME
from cansat_panel import ControlPanel
from cansat_player import CLOCKED, PACED
from cansat_protocol import CLEAN_PROFILE, LEGACY_RADIO_PROFILE
from cansat_router import LogStream
from link_helpers import FakeLink


@pytest.fixture(autouse=True)
def _restore_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


def test_defaults():
    settings = build_settings(parse_arguments([]))
    assert settings.playback is CLOCKED
    assert settings.codec_profile is CLEAN_PROFILE
    assert settings.ingress == "json"
    assert settings.port == 7777
    assert settings.device_id == "1026"


def test_options():
    args = parse_arguments([
        "--playback", "paced",
        "--legacy-radio",
        "--ingress", "raw",
        "--device-id", "2042",
        "--log-dir", "/tmp/cansat",
    ])
    settings = build_settings(args)
    assert settings.playback is PACED
    assert settings.codec_profile is LEGACY_RADIO_PROFILE
    assert settings.ingress == "raw"
    assert settings.device_id == "2042"
    assert settings.log_root == "/tmp/cansat"


def test_simulate_needs_csv():
    assert main(["--simulate"]) == 2


def test_payload_id_reaches_router(qapp, tmp_path):
    args = parse_arguments(["--device-id", "2042", "--payload-id", "7042", "--log-dir", str(tmp_path)])
    settings = build_settings(args)
    assert settings.payload_id == "7042"
    assert parse_arguments([]).payload_id == "6026"

    panel = ControlPanel(settings, link=FakeLink())
    assert panel.router.classify(b"7042,x") == LogStream.PAYLOAD
    assert panel.router.classify(b"2042,x") == LogStream.CONTAINER
    assert panel.router.classify(b"6026,x") is None
    panel.close()
