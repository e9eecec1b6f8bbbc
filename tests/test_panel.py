import re

import pytest

from cansat_panel import ControlPanel, LinkSettings
from cansat_player import PACED, SimulationTable
from cansat_timers import TimerEvents
from link_helpers import FakeLink


class Spy:
    def __init__(self, signal):
        self.calls = []
        signal.connect(lambda *args: self.calls.append(args))


@pytest.fixture
def panel(qapp, tmp_path):
    link = FakeLink()
    p = ControlPanel(LinkSettings(log_root=str(tmp_path)), link=link)
    yield p
    p.close()


def test_inbound_bytes_are_routed(panel):
    received = Spy(panel.frame_received)
    lines = Spy(panel.log_line)

    panel.link.data_received.emit(b"noise/*1026,00:00:01,1*/")
    panel.link.data_received.emit(b"/*6026,00:00:01")
    panel.link.data_received.emit(b",2*/")

    assert received.calls == [(b"1026,00:00:01,1",), (b"6026,00:00:01,2",)]
    assert ("  [RX]\t1026,00:00:01,1",) in lines.calls


def test_container_commands(panel):
    changed = Spy(panel.container_telemetry_changed)
    panel.set_container_telemetry_enabled(True)
    panel.set_container_telemetry_enabled(False)
    panel.update_container_time()
    panel.send_command("  CMD,1026,CAL;  ")

    payloads = panel.link.payloads()
    assert payloads[:2] == ["CMD,1026,CX,ON;", "CMD,1026,CX,OFF;"]
    assert re.fullmatch(r"CMD,1026,ST,\d\d:\d\d:\d\d;", payloads[2])
    assert payloads[3] == "CMD,1026,CAL;"
    assert changed.calls == [(True,), (False,)]
    assert panel.container_telemetry_enabled is False


def test_commands_need_link(panel):
    panel.link.connected = False
    panel.set_container_telemetry_enabled(True)
    panel.update_container_time()
    assert panel.send_command("CMD,1026,CX,ON;") is False
    assert panel.link.written == []
    assert panel.container_telemetry_enabled is False


def test_clocked_playback_follows_1hz_tick(panel):
    panel.player.load_table(SimulationTable(path="/tmp/sim.csv", rows=(("1",), ("2",))))
    finished = Spy(panel.playback_finished)
    panel.set_simulation_mode(True)
    panel.set_simulation_activated(True)
    assert panel.simulation_activated

    for _ in range(3):
        panel.timers.timeout_1hz.emit()

    assert panel.link.payloads()[2:4] == ["1;", "2;"]
    assert finished.calls == [("Pressure simulation finished", "Reached end of CSV file")]
    assert panel.simulation_enabled is False
    assert panel.link.attempts == 3


def test_paced_playback_ignores_1hz_tick(qapp, tmp_path):
    link = FakeLink()
    p = ControlPanel(LinkSettings(log_root=str(tmp_path), playback=PACED), link=link)
    p.player.load_table(SimulationTable(path="/tmp/sim.csv", rows=(("h",), ("1",))))
    p.set_simulation_mode(True)
    p.set_simulation_activated(True)
    p.timers.timeout_1hz.emit()
    assert link.payloads() == ["CMD,1026,SIM,ENABLE;", "CMD,1026,SIM,ACTIVATE;"]
    p.close()


def test_link_drop_stops_playback(panel):
    panel.player.load_table(SimulationTable(path="/tmp/sim.csv", rows=(("1",),)))
    panel.set_simulation_mode(True)
    panel.set_simulation_activated(True)
    panel.link.drop()
    assert panel.simulation_activated is False


def test_load_csv_and_getters(panel, tmp_path):
    path = tmp_path / "flight.csv"
    path.write_text("# header\n101325\n", encoding="utf-8")
    loaded = Spy(panel.csv_loaded)
    assert panel.csv_file_name == "No CSV file selected"
    assert panel.simulation_csv_loaded is False

    assert panel.load_csv(str(path))
    assert loaded.calls == [("flight.csv",)]
    assert panel.csv_file_name == "flight.csv"
    assert panel.simulation_csv_loaded is True


def test_errors_are_forwarded(panel):
    errors = Spy(panel.error)
    panel.link.error.emit("TCP socket error", "Connection refused")
    assert errors.calls == [("TCP socket error", "Connection refused")]


def test_current_time(panel):
    changed = Spy(panel.current_time_changed)
    panel.update_current_time()
    assert re.fullmatch(r"\d\d:\d\d:\d\d:\d\d\d", panel.current_time)
    assert changed.calls == [(panel.current_time,)]


def test_timer_events(qapp):
    timers = TimerEvents()
    assert not timers.running
    timers.start_timers()
    assert timers.running
    timers.stop_timers()
    assert not timers.running
