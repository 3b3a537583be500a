"""Talking to an ELM327-style OBD-II adapter over a serial line."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Protocol, Union

from obdlogger.convert import Conversion
from obdlogger.protocol import (
    NEWLINE,
    TIMEOUT,
    ObdError,
    ObdStatus,
    SerialLog,
    format_request,
    parse_response,
)

__all__ = ["ElmConnection", "open_connection"]

_log = logging.getLogger(__name__)

#: Rates the serial line can be switched to.
_BAUDRATES = frozenset(
    {
        4000000, 3500000, 3000000, 2500000, 2000000, 1500000, 1152000,
        1000000, 9210600, 576000, 500000, 460800, 230400, 115200, 76800,
        57600, 38400, 28800, 19200, 14400, 9600, 7200, 4800, 2400, 1200,
        600, 300, 150, 134, 110, 75, 50,
    }
)

#: Rates tried, in order, when the adapter's rate is unknown.
_GUESSES = (9600, 38400, 115200, 57600, 2400, 1200)

#: Rates tried, in order, when upgrading without a specific target.
_UPGRADE_SPEEDS = (38400, 57600, 115200, 230400, 460800, 500000, 576000)

_GUESS_COMMAND = "0100\r\n"

#: How long the adapter waits for confirmation of a new rate, in ms.
_UPGRADE_TIMEOUT_MS = 500

#: Reference clock the adapter divides to get its baud rate.
_BRD_CLOCK = 4000000

_UNSET = object()


class _Transport(Protocol):
    baudrate: int

    def write(self, data: bytes) -> Optional[int]: ...

    def read(self, size: int = 1) -> bytes: ...

    def close(self) -> None: ...


class ElmConnection:
    """A serial connection to an ELM327 adapter."""

    #: Seconds to wait after a blind command before reading the reply.
    settle_delay = 1.0
    #: Seconds to wait for the prompt before giving up.
    timeout = TIMEOUT

    def __init__(self, transport: _Transport, log: Optional[SerialLog] = None) -> None:
        self._transport = transport
        self._log = log

    def __enter__(self) -> "ElmConnection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _record(self, text: str, outgoing: bool) -> None:
        if self._log is not None:
            self._log.append(text, outgoing)

    def _read_available(self) -> str:
        size = getattr(self._transport, "in_waiting", 0) or 1
        return self._transport.read(size).decode("ascii", errors="replace")

    def _write(self, text: str) -> None:
        data = text.encode("ascii")
        written = self._transport.write(data)
        if written is not None and written < len(data):
            raise ObdError(ObdStatus.ERROR, f"Short write sending {text!r}")

    def read_until_prompt(self) -> str:
        """Read everything up to and including the next '>' prompt.

        Raises ObdError with status ERROR on timeout.
        """
        deadline = time.monotonic() + self.timeout
        data = ""
        while True:
            data += self._read_available()
            if data.endswith(">"):
                break
            if time.monotonic() > deadline:
                raise ObdError(ObdStatus.ERROR, "Timeout!")
        self._record(data, False)
        return data

    def blind_command(self, command: str, read_response: bool = True) -> None:
        """Send a command and, if asked, throw away the reply up to the prompt."""
        text = f"{command}{NEWLINE}"
        self._record(text, True)
        self._transport.write(text.encode("ascii"))
        if read_response:
            time.sleep(self.settle_delay)
            try:
                self.read_until_prompt()
            except ObdError as error:
                _log.debug("No prompt after %s: %s", command, error)

    def initialise(self, baudrate: int = -1, baudrate_target: int = -1) -> None:
        """Set the line rate, reset the adapter and configure it for logging.

        baudrate and baudrate_target take -1 for "leave alone", 0 for
        "guess", or a specific rate.
        """
        current = 9600
        try:
            self.modify_baud(baudrate)
        except (ValueError, ObdError) as error:
            _log.warning(
                "Error modifying baudrate. Continuing, but may suffer issues: %s", error
            )
        else:
            if baudrate != 0:
                current = baudrate

        self.blind_command("ATZ")

        try:
            self.upgrade_baudrate(baudrate_target, current)
        except ObdError as error:
            _log.warning(
                "Error upgrading baudrate. Continuing, but may suffer issues: %s", error
            )

        # A command every device knows, echo off, linefeeds off, spaces off,
        # then the first command again to be sure the settings took.
        for command in ("0100", "ATE0", "ATL0", "ATS0", "0100"):
            self.blind_command(command)

    def modify_baud(self, baudrate: int) -> None:
        """Switch the line to baudrate; -1 changes nothing, 0 guesses.

        Raises ValueError for a rate the line cannot use.
        """
        if baudrate == -1:
            return
        if baudrate == 0:
            self.guess_baudrate()
            return
        if baudrate not in _BAUDRATES:
            raise ValueError(f"Unknown baudrate: {baudrate}")
        self._transport.baudrate = baudrate

    def guess_baudrate(self) -> int:
        """Find the rate the adapter answers at and leave the line there.

        Raises ObdError if none of the candidate rates works.
        """
        for guess in _GUESSES:
            _log.info("Baudrate guessing: %d", guess)
            self.modify_baud(guess)
            self._write(_GUESS_COMMAND)
            time.sleep(self.settle_delay)
            if ">" in self._read_available():
                _log.info("success at %d", guess)
                return guess
        raise ObdError(ObdStatus.ERROR, "Couldn't guess baudrate")

    def _restore_baud(self, previous: int) -> None:
        try:
            self.modify_baud(previous)
        except (ValueError, ObdError) as error:
            _log.warning("Couldn't restore baudrate %d: %s", previous, error)

    def _attempt_upgrade(self, rate: int, previous: int) -> bool:
        self.blind_command(f"ATBRT{_UPGRADE_TIMEOUT_MS // 5:02X}", True)

        divisor = _BRD_CLOCK // rate
        _log.info("%d [%02X]", rate, divisor)
        self._write(f"ATBRD{divisor:02X}{NEWLINE}")

        response = ""
        deadline = time.monotonic() + self.timeout
        while "?" not in response and "OK" not in response:
            chunk = self._read_available()
            response += chunk
            if not chunk and time.monotonic() > deadline:
                break

        if "OK" not in response:
            _log.info("fail [no OK]")
            self._restore_baud(previous)
            return False

        try:
            self.modify_baud(rate)
        except ValueError as error:
            _log.warning("Error modifying baudrate to %d: %s", rate, error)
            return False

        confirmation = response.split("OK", 1)[1]
        deadline = time.monotonic() + 2 * _UPGRADE_TIMEOUT_MS / 1000
        while len(confirmation) < 5 and ">" not in confirmation:
            confirmation += self._read_available()
            if time.monotonic() > deadline:
                _log.info("timed out")
                break

        if "ELM" in confirmation:
            self._transport.write(NEWLINE.encode("ascii"))
            _log.info("success")
            return True
        _log.info("fail [no ELM]")
        self._restore_baud(previous)
        return False

    def upgrade_baudrate(self, baudrate_target: int, current_baudrate: int) -> Optional[int]:
        """Ask the adapter to move to a faster rate.

        A target of -1 does nothing and returns None; a positive target is
        tried alone; anything else tries a list of rates and keeps the
        fastest that works. Returns the new rate, or raises ObdError if no
        attempt succeeded.
        """
        if baudrate_target == -1:
            return None

        old_timeout = getattr(self._transport, "timeout", _UNSET)
        if old_timeout is not _UNSET:
            self._transport.timeout = 0  # type: ignore[attr-defined]
        try:
            if baudrate_target > 0:
                if self._attempt_upgrade(baudrate_target, current_baudrate):
                    return baudrate_target
                raise ObdError(
                    ObdStatus.ERROR, f"Couldn't upgrade baudrate to {baudrate_target}"
                )
            best: Optional[int] = None
            for speed in _UPGRADE_SPEEDS:
                if self._attempt_upgrade(speed, -1 if best is None else best):
                    best = speed
            if best is None:
                raise ObdError(ObdStatus.ERROR, "Couldn't upgrade baudrate")
            return best
        finally:
            if old_timeout is not _UNSET:
                self._transport.timeout = old_timeout  # type: ignore[attr-defined]

    def get_bytes(
        self, mode: int, cmd: int, expected_bytes: int = 0, quiet: bool = False
    ) -> list[int]:
        """Send one request and return the data bytes of the answer.

        Raises ObdError describing why no data came back.
        """
        request = format_request(mode, cmd, expected_bytes)
        self._record(request, True)
        self._write(request)
        text = self.read_until_prompt()
        return parse_response(text, mode, cmd, quiet)

    def get_value(
        self, cmd: int, expected_bytes: int = 0, conversion: Optional[Conversion] = None
    ) -> float:
        """Read a mode 01 PID and convert it to a value.

        Without a conversion the bytes are read as one big-endian number.
        """
        data = self.get_bytes(0x01, cmd, expected_bytes)
        if conversion is None:
            value = 0.0
            for byte in data:
                value = value * 256 + byte
            return value
        a, b, c, d = (data + [0, 0, 0, 0])[:4]
        return conversion.to_value(a, b, c, d)

    def get_error_codes(self) -> list[int]:
        """Return the raw bytes of the stored trouble codes (mode 03).

        Returns an empty list when the vehicle reports no trouble codes.
        """
        status = self.get_bytes(0x01, 0x01)
        troubles = status[0] & 0x7F
        _log.info(
            "%d trouble codes set [MIL is %s]",
            troubles,
            "on" if status[0] & 0x80 else "off",
        )
        if troubles == 0:
            return []
        return self.get_bytes(0x03, 0x00)

    def count_errors(self) -> int:
        """Return how many trouble codes the vehicle claims; 0 if unknown."""
        try:
            status = self.get_bytes(0x01, 0x01)
        except ObdError:
            return 0
        if not status or status[0] <= 0:
            return 0
        return status[0] & 0x7F

    def close(self) -> None:
        """Reset the adapter and close the line."""
        self.blind_command("ATZ", False)
        self._transport.close()


def open_connection(
    port: Union[str, Path],
    baudrate: int = -1,
    baudrate_target: int = -1,
    log: Optional[SerialLog] = None,
) -> ElmConnection:
    """Open the serial port, initialise the adapter and return the connection.

    Raises serial.SerialException (an OSError) if the port cannot be opened.
    """
    import serial

    _log.warning("Opening serial port %s, this can take a while", port)
    transport = serial.Serial(str(port), baudrate=9600, timeout=0.1)
    connection = ElmConnection(transport, log)
    connection.initialise(baudrate, baudrate_target)
    return connection