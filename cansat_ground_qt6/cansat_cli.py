#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cansat_cli.py

Headless CanSat ground link (no window)
- connects to the Serial Studio plugin server on 127.0.0.1:7777 and keeps retrying
- logs RX frames to Container_*.csv / Payload_*.csv
- optionally replays a simulation CSV once the link is up

Usage:
  python cansat_cli.py --csv pressure.csv --playback paced --simulate --exit-on-finish
"""

from __future__ import annotations

import argparse
import signal
import sys
from typing import List, Optional

from PyQt6.QtCore import QCoreApplication

from cansat_constants import APP_NAME, DEVICE_ID, PAYLOAD_ID
from cansat_link import INGRESS
from cansat_logging import setup_logging, get_logger
from cansat_panel import ControlPanel, LinkSettings
from cansat_player import STRATEGIES
from cansat_protocol import CLEAN_PROFILE, LEGACY_RADIO_PROFILE


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description=f"{APP_NAME} - headless telemetry link")

    ap.add_argument("--csv", default=None, help="Simulation CSV file (pressure readings)")
    ap.add_argument("--playback", choices=sorted(STRATEGIES), default="clocked",
                    help="paced: 1 s one-shot from row 1 (SIMP) / clocked: 1 Hz tick from row 0 (default)")
    ap.add_argument("--simulate", action="store_true",
                    help="Enable + activate simulation mode as soon as the link is up (needs --csv)")
    ap.add_argument("--container-telemetry", choices=["on", "off"], default=None,
                    help="Send CX,ON / CX,OFF once connected")
    ap.add_argument("--sync-time", action="store_true", help="Send ST,<hh:mm:ss> once connected")
    ap.add_argument("--exit-on-finish", action="store_true", help="Quit when simulation playback ends")

    ap.add_argument("--device-id", default=DEVICE_ID,
                    help=f"Team / container ID: command ID, $ substitution, Container log prefix (default {DEVICE_ID})")
    ap.add_argument("--payload-id", default=PAYLOAD_ID, help=f"Payload log prefix (default {PAYLOAD_ID})")
    ap.add_argument("--ingress", choices=sorted(INGRESS), default="json",
                    help="json: Serial Studio base64 envelope (default) / raw: bytes as-is")
    ap.add_argument("--legacy-radio", action="store_true",
                    help="Encode frames for the legacy XBee firmware (post-checksum address substitution)")
    ap.add_argument("--log-dir", default=None, help="Telemetry CSV root (default ~/Documents/<app>)")

    ap.add_argument("--log-file", type=str, default=None, help="Log file path (optional)")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose (DEBUG) logging")

    return ap.parse_args(argv)


def build_settings(args: argparse.Namespace) -> LinkSettings:
    return LinkSettings(
        ingress=args.ingress,
        device_id=args.device_id,
        payload_id=args.payload_id,
        codec_profile=LEGACY_RADIO_PROFILE if args.legacy_radio else CLEAN_PROFILE,
        playback=STRATEGIES[args.playback],
        log_root=args.log_dir,
    )


class HeadlessSession:
    """Drives a ControlPanel from CLI options."""

    def __init__(self, app: QCoreApplication, panel: ControlPanel, args: argparse.Namespace):
        self.app = app
        self.panel = panel
        self.args = args
        self.logger = get_logger()

        panel.log_line.connect(self.logger.info)
        panel.error.connect(self.on_error)
        panel.connected_changed.connect(self.on_connected_changed)
        panel.playback_finished.connect(self.on_finished)

    def on_error(self, title: str, detail: str) -> None:
        self.logger.error(f"{title}: {detail}")

    def on_connected_changed(self, connected: bool) -> None:
        if not connected:
            self.logger.warning("Serial Studio link lost, retrying...")
            return

        if self.args.sync_time:
            self.panel.update_container_time()
        if self.args.container_telemetry is not None:
            self.panel.set_container_telemetry_enabled(self.args.container_telemetry == "on")
        if self.args.simulate and self.panel.simulation_csv_loaded and not self.panel.simulation_activated:
            self.panel.set_simulation_mode(True)
            self.panel.set_simulation_activated(True)

    def on_finished(self, title: str, message: str) -> None:
        self.logger.info(f"{title}: {message}")
        if self.args.exit_on_finish:
            self.app.quit()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)

    setup_logging(log_file=args.log_file, verbose=args.verbose)
    logger = get_logger()

    if args.simulate and not args.csv:
        logger.error("--simulate needs --csv")
        return 2

    app = QCoreApplication(sys.argv[:1])
    app.setApplicationName(APP_NAME)

    panel = ControlPanel(build_settings(args))
    session = HeadlessSession(app, panel, args)

    if args.csv and not panel.load_csv(args.csv):
        return 2

    # Ctrl+C
    signal.signal(signal.SIGINT, lambda *_: app.quit())

    panel.start()
    try:
        return app.exec()
    finally:
        logger.debug(f"exiting (playback row={session.panel.player.row})")
        panel.close()


if __name__ == "__main__":
    raise SystemExit(main())
