import json
import socket
import time

import pytest

from obdlogger.gps import GpsdClient, GpsFix, open_gps


@pytest.fixture
def gpsd():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    client = GpsdClient("127.0.0.1", server.getsockname()[1])
    peer, _ = server.accept()
    yield client, peer
    client.close()
    peer.close()
    server.close()


def _tpv(**fields):
    return json.dumps({"class": "TPV", **fields})


def test_watch_command_sent(gpsd):
    _, peer = gpsd
    data = peer.recv(4096)
    assert data.startswith(b"?WATCH=")
    assert json.loads(data[len(b"?WATCH="):])["enable"] is True


def test_no_fix_initially(gpsd):
    client, _ = gpsd
    assert client.position() is None


def test_mode_one_gives_no_position(gpsd):
    client, _ = gpsd
    assert client.handle_report(_tpv(mode=1, lat=1.0, lon=2.0)) is True
    assert client.position() is None


def test_three_dimensional_fix(gpsd):
    client, _ = gpsd
    client.handle_report(
        _tpv(mode=3, lat=51.5, lon=-0.12, alt=30.0, speed=12.5, track=90.0, time=1000.0)
    )
    assert client.position() == GpsFix(51.5, -0.12, 30.0, 12.5, 90.0, 1000.0)


def test_two_dimensional_fix_has_no_altitude(gpsd):
    client, _ = gpsd
    client.handle_report(_tpv(mode=2, lat=10.0, lon=20.0, alt=99.0, speed=1.0, track=2.0))
    fix = client.position()
    assert fix.altitude is None
    assert not fix.has_altitude
    assert (fix.latitude, fix.longitude) == (10.0, 20.0)


def test_iso_time_is_parsed(gpsd):
    client, _ = gpsd
    client.handle_report(_tpv(mode=2, lat=0.0, lon=0.0, time="1970-01-01T00:00:10Z"))
    assert client.position().gpstime == 10.0


def test_other_reports_ignored(gpsd):
    client, _ = gpsd
    assert client.handle_report(json.dumps({"class": "SKY"})) is False
    assert client.handle_report("not json") is False
    assert client.position() is None


def test_reports_streamed_over_socket(gpsd):
    client, peer = gpsd
    peer.sendall((_tpv(mode=3, lat=5.0, lon=6.0, alt=7.0) + "\n").encode())
    deadline = time.monotonic() + 2.0
    fix = client.position()
    while fix is None and time.monotonic() < deadline:
        time.sleep(0.01)
        fix = client.position()
    assert fix is not None
    assert (fix.latitude, fix.longitude, fix.altitude) == (5.0, 6.0, 7.0)


def test_open_gps_unreachable_returns_none():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    assert open_gps("127.0.0.1", port) is None


def test_open_gps_accepts_string_port():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    client = open_gps("127.0.0.1", str(server.getsockname()[1]))
    try:
        assert isinstance(client, GpsdClient)
        assert client.position() is None
    finally:
        client.close()
        server.close()