"""Reading position fixes from a gpsd daemon."""

from __future__ import annotations

import json
import logging
import select
import socket
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

__all__ = ["GpsFix", "GpsdClient", "open_gps"]

_log = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2947

_MODE_2D = 2
_MODE_3D = 3
_WATCH = b'?WATCH={"enable":true,"json":true}\n'


@dataclass(frozen=True)
class GpsFix:
    """A position; altitude is None for a two-dimensional fix."""

    latitude: Optional[float]
    longitude: Optional[float]
    altitude: Optional[float]
    speed: Optional[float]
    course: Optional[float]
    gpstime: Optional[float]

    @property
    def has_altitude(self) -> bool:
        """True for a three-dimensional fix."""
        return self.altitude is not None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return None


def _timestamp(value: Any) -> Optional[float]:
    number = _number(value)
    if number is not None:
        return number
    if isinstance(value, str):
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            return datetime.fromisoformat(text).timestamp()
        except ValueError:
            return None
    return None


class GpsdClient:
    """A streaming connection to gpsd that keeps the latest fix."""

    def __init__(self, host: str = DEFAULT_HOST, port: Union[int, str] = DEFAULT_PORT) -> None:
        self._sock = socket.create_connection((host, int(port)), timeout=5.0)
        self._sock.settimeout(None)
        self._buffer = b""
        self._mode = 0
        self._report: dict[str, Any] = {}
        self._sock.sendall(_WATCH)

    def __enter__(self) -> "GpsdClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def handle_report(self, line: Union[str, bytes]) -> bool:
        """Take one JSON report from gpsd; return True if it updated the fix."""
        try:
            report = json.loads(line)
        except (ValueError, UnicodeDecodeError) as error:
            _log.debug("Ignoring unreadable gpsd report %r: %s", line, error)
            return False
        if not isinstance(report, dict) or report.get("class") != "TPV":
            return False
        mode = report.get("mode")
        self._mode = mode if isinstance(mode, int) else 0
        self._report = report
        return True

    def _drain(self) -> None:
        while True:
            ready, _, _ = select.select([self._sock], [], [], 0)
            if not ready:
                return
            chunk = self._sock.recv(4096)
            if not chunk:
                return
            self._buffer += chunk
            *lines, self._buffer = self._buffer.split(b"\n")
            for line in lines:
                if line.strip():
                    self.handle_report(line)

    def position(self) -> Optional[GpsFix]:
        """Read whatever gpsd has sent and return the current fix, if any."""
        self._drain()
        if self._mode < _MODE_2D:
            return None
        report = self._report
        altitude = None
        if self._mode >= _MODE_3D:
            altitude = _number(report.get("alt", report.get("altHAE")))
        return GpsFix(
            latitude=_number(report.get("lat")),
            longitude=_number(report.get("lon")),
            altitude=altitude,
            speed=_number(report.get("speed")),
            course=_number(report.get("track")),
            gpstime=_timestamp(report.get("time")),
        )

    def close(self) -> None:
        """Close the connection to gpsd."""
        self._sock.close()


def open_gps(
    host: str = DEFAULT_HOST, port: Union[int, str] = DEFAULT_PORT
) -> Optional[GpsdClient]:
    """Connect to gpsd, or return None if it cannot be reached."""
    try:
        return GpsdClient(host, port)
    except OSError as error:
        _log.debug("Couldn't connect to gpsd at %s:%s: %s", host, port, error)
        return None