"""Finding out which mode 01 PIDs a vehicle supports."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional, Protocol, Union

from obdlogger.protocol import ObdError
from obdlogger.servicecommands import ServiceCommand, command_for_pid

__all__ = [
    "Capabilities",
    "query_capabilities",
    "guess_capabilities",
    "describe_capabilities",
    "print_capabilities",
]

_log = logging.getLogger(__name__)

#: PIDs probed one by one when the vehicle reports none supported.
_GUESS_RANGE = range(0x01, 0x52)

_Wish = Union[int, ServiceCommand]


class _Connection(Protocol):
    def get_bytes(
        self, mode: int, cmd: int, expected_bytes: int = 0, quiet: bool = False
    ) -> list[int]: ...


class Capabilities:
    """The ordered set of PIDs a vehicle supports; PID 00 is always in it."""

    def __init__(self, pids: Iterable[int] = ()) -> None:
        self._pids = tuple(sorted(set(pids) | {0x00}))

    def supports(self, pid: int) -> bool:
        """Return True if the vehicle supports this PID."""
        return pid in self._pids

    def __contains__(self, pid: object) -> bool:
        return pid in self._pids

    def __iter__(self) -> Iterator[int]:
        return iter(self._pids)

    def __len__(self) -> int:
        return len(self._pids)

    def __repr__(self) -> str:
        return f"Capabilities({[f'{pid:02X}' for pid in self._pids]})"


def _wanted(wishlist: Optional[Iterable[_Wish]]) -> Optional[frozenset[int]]:
    if wishlist is None:
        return None
    return frozenset(item if isinstance(item, int) else item.pid for item in wishlist)


def query_capabilities(
    connection: _Connection, wishlist: Optional[Iterable[_Wish]] = None
) -> Capabilities:
    """Ask the vehicle which PIDs it supports.

    If a wishlist of PIDs or commands is given, only those are kept. When
    the vehicle claims to support nothing, each PID is probed instead.
    """
    wanted = _wanted(wishlist)
    found: list[int] = []
    current = 0x00
    while True:
        try:
            data = connection.get_bytes(0x01, current, 0, True)
        except ObdError:
            data = []
        if len(data) != 4:
            _log.warning("Couldn't get obd bytes for cmd %02X", current)
            return Capabilities(found)

        bits = int.from_bytes(bytes(data), "big")
        if current == 0x00 and bits == 0:
            _log.warning(
                "Car reported no PIDs supported. Experimentally guessing instead"
            )
            return guess_capabilities(connection, wanted)

        for offset in range(32):
            pid = current + 1 + offset
            if bits & (1 << (31 - offset)) and (wanted is None or pid in wanted):
                found.append(pid)

        if not data[3] & 0x01:
            return Capabilities(found)
        current += 0x20


def guess_capabilities(
    connection: _Connection, wishlist: Optional[Iterable[_Wish]] = None
) -> Capabilities:
    """Probe each PID in turn and keep those that answer with data."""
    wanted = _wanted(wishlist)
    found = []
    for pid in _GUESS_RANGE:
        try:
            data = connection.get_bytes(0x01, pid, 0, True)
        except ObdError:
            continue
        if data and (wanted is None or pid in wanted):
            found.append(pid)
    return Capabilities(found)


def describe_capabilities(capabilities: Iterable[int]) -> list[str]:
    """Return one line per supported PID: 'PID: [column] human_name'."""
    lines = []
    for pid in capabilities:
        command = command_for_pid(pid)
        if command is None:
            lines.append(f"{pid:02X}: unknown")
        else:
            column = command.db_column or "unknown"
            lines.append(f"{pid:02X}: [{column}] {command.human_name}")
    return lines


def print_capabilities(connection: Optional[_Connection]) -> None:
    """Print the PIDs the vehicle claims to support.

    Raises ValueError when there is no connection to ask.
    """
    if connection is None:
        raise ValueError("No capabilities when we can't open serial port")
    print("Your OBD Device claims to support PIDs:")
    print("PID: [column] human_name")
    for line in describe_capabilities(query_capabilities(connection)):
        print(line)