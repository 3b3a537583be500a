"""ELM327 request formatting, response parsing and serial traffic logging."""

from __future__ import annotations

import enum
import logging
import re
import time
from pathlib import Path
from typing import Optional, TextIO, Union

__all__ = [
    "NEWLINE",
    "TIMEOUT",
    "ObdStatus",
    "ObdError",
    "SerialLog",
    "format_request",
    "parse_line",
    "parse_response",
]

_log = logging.getLogger(__name__)

#: Line terminator for commands sent to the device.
NEWLINE = "\r"

#: Timeout for serial reads in general, in seconds.
TIMEOUT = 10.0

#: The most data bytes taken from one response line.
_MAX_LINE_BYTES = 20

_HEX_BYTE = re.compile(r"\s*([0-9A-Fa-f]{1,2})")
_LINE_SEPARATORS = re.compile(r"[\r\n>]")


class ObdStatus(enum.Enum):
    """Outcome of an OBD request."""

    SUCCESS = enum.auto()
    NO_DATA = enum.auto()
    UNPARSABLE = enum.auto()
    INVALID_RESPONSE = enum.auto()
    INVALID_MODE = enum.auto()
    UNABLE_TO_CONNECT = enum.auto()
    ERROR = enum.auto()


class ObdError(Exception):
    """An OBD request did not produce a usable answer."""

    def __init__(self, status: ObdStatus, message: str = "") -> None:
        super().__init__(message or status.name)
        self.status = status


class SerialLog:
    """Timestamped record of the text exchanged with the device."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._file: Optional[TextIO] = open(path, "w", encoding="utf-8", newline="")

    def append(self, line: str, outgoing: bool) -> None:
        """Record one chunk of traffic; does nothing once the log is closed."""
        if self._file is None:
            return
        stamp = time.strftime("%H:%M:%S", time.localtime())
        direction = "out" if outgoing else "in"
        self._file.write(f"{stamp}({direction}): '{line}'\n")
        self._file.flush()

    def close(self) -> None:
        """Flush and close the log."""
        if self._file is not None:
            self._file.flush()
            self._file.close()
            self._file = None

    def __enter__(self) -> "SerialLog":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _has_cmd(mode: int) -> bool:
    return mode not in (0x03, 0x04)


def format_request(mode: int, cmd: int, expected_bytes: int = 0) -> str:
    """Return the text to send for a request, newline included.

    Modes 03 and 04 take no PID. A nonzero expected_bytes is appended as a
    single hex digit so the device can answer without waiting.
    """
    if not _has_cmd(mode):
        return f"{mode:02X}{NEWLINE}"
    if expected_bytes == 0:
        return f"{mode:02X}{cmd:02X}{NEWLINE}"
    return f"{mode:02X}{cmd:02X}{expected_bytes:01X}{NEWLINE}"


def _scan_hex(line: str, limit: int) -> list[int]:
    values: list[int] = []
    pos = 0
    while len(values) < limit:
        match = _HEX_BYTE.match(line, pos)
        if match is None:
            break
        values.append(int(match.group(1), 16))
        pos = match.end()
    return values


def parse_line(line: str, mode: int, cmd: int) -> list[int]:
    """Parse one response line and return its data bytes.

    Raises ObdError with UNPARSABLE, INVALID_RESPONSE or INVALID_MODE.
    """
    header = 2 if _has_cmd(mode) else 1
    values = _scan_hex(line, header + _MAX_LINE_BYTES)
    if len(values) <= 2:
        raise ObdError(
            ObdStatus.UNPARSABLE,
            f"Couldn't parse line for {mode:02X} {cmd:02X}: {line}",
        )
    if values[0] != 0x40 + mode:
        raise ObdError(
            ObdStatus.INVALID_RESPONSE,
            f"Unsuccessful mode response for {mode:02X} {cmd:02X}: {line}",
        )
    if header == 2 and values[1] != cmd:
        raise ObdError(
            ObdStatus.INVALID_MODE,
            f"Unsuccessful cmd response for {mode:02X} {cmd:02X}: {line}",
        )
    return values[header:]


def parse_response(text: str, mode: int, cmd: int, quiet: bool = False) -> list[int]:
    """Extract the data bytes from everything the device sent up to its prompt.

    Lines carrying a colon are parts of a multi-line answer and are joined
    before parsing. Raises ObdError if no line yields data.
    """
    if "NO DATA" in text:
        raise ObdError(ObdStatus.NO_DATA, f"OBD reported NO DATA for {mode:02X} {cmd:02X}: {text}")
    if "?" in text:
        raise ObdError(ObdStatus.NO_DATA, f"OBD reported ? for {mode:02X} {cmd:02X}: {text}")
    if "UNABLE TO CONNECT" in text:
        raise ObdError(
            ObdStatus.UNABLE_TO_CONNECT,
            f"OBD reported UNABLE TO CONNECT for {mode:02X} {cmd:02X}: {text}",
        )

    lines = iter([part for part in _LINE_SEPARATORS.split(text) if part])
    line = next(lines, None)
    status = ObdStatus.ERROR
    while line is not None:
        if ":" in line:
            parts = []
            while line is not None and ":" in line:
                parts.append(line.split(":", 1)[1])
                line = next(lines, None)
            candidate = "".join(parts)
        else:
            candidate = line
            line = next(lines, None)

        if len(candidate) <= 3:
            continue
        try:
            return parse_line(candidate, mode, cmd)
        except ObdError as error:
            status = error.status
            if not quiet:
                _log.warning("%s", error)
    raise ObdError(status, f"No usable response for {mode:02X} {cmd:02X}: {text!r}")