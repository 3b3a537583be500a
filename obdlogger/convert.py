"""Conversions between raw OBD-II mode 01 response bytes and physical values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

__all__ = ["Conversion", "conversion_for"]


def _check_bytes(values: tuple[int, ...]) -> tuple[int, ...]:
    for value in values:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"value does not fit the response bytes: {values!r}")
    return values


def _one(value: float) -> tuple[int, ...]:
    return _check_bytes((int(value),))


def _two(value: float) -> tuple[int, ...]:
    word = int(value)
    if word < 0:
        raise ValueError(f"value does not fit the response bytes: {word}")
    return _check_bytes((word // 256, word % 256))


def _word(a: int, b: int) -> float:
    return float(a) * 256.0 + float(b)


@dataclass(frozen=True)
class Conversion:
    """A pair of functions mapping response bytes A..D to a value and back."""

    forward: Callable[[int, int], float]
    reverse: Callable[[float], tuple[int, ...]]

    def to_value(self, a: int, b: int = 0, c: int = 0, d: int = 0) -> float:
        """Convert the response bytes A, B, C, D to a physical value."""
        return self.forward(a, b)

    def to_bytes(self, value: float) -> tuple[int, ...]:
        """Convert a physical value back to the response bytes it came from.

        Returns one or two bytes, as many as the command carries. Raises
        ValueError if the value cannot be represented.
        """
        return self.reverse(value)


_PERCENT = Conversion(
    lambda a, b: float(a) * 100.0 / 255.0,
    lambda v: _one(255.0 * v / 100.0),
)
_TEMPERATURE = Conversion(
    lambda a, b: float(a) - 40.0,
    lambda v: _one(v + 40),
)
_FUEL_TRIM = Conversion(
    lambda a, b: (float(a) - 128.0) * 100.0 / 128.0,
    lambda v: _check_bytes((int(128.0 * v / 100.0) + 128,)),
)
_SINGLE = Conversion(
    lambda a, b: float(a),
    lambda v: _one(v),
)
_WORD = Conversion(
    lambda a, b: _word(a, b),
    lambda v: _two(v),
)
_O2_VOLTAGE = Conversion(
    lambda a, b: float(a) * 0.005,
    lambda v: _one(v / 0.005),
)
_LAMBDA = Conversion(
    lambda a, b: _word(a, b) * 0.0000305,
    lambda v: _two(v / 0.0000305),
)
_CATALYST_TEMPERATURE = Conversion(
    lambda a, b: _word(a, b) / 10.0 - 40.0,
    lambda v: _two((v + 40.0) * 10.0),
)

_SPECIFIC: dict[int, Conversion] = {
    0x04: _PERCENT,
    0x05: _TEMPERATURE,
    0x0A: Conversion(lambda a, b: float(a) * 3, lambda v: _one(v / 3.0)),
    0x0B: _SINGLE,
    0x0C: Conversion(lambda a, b: _word(a, b) / 4.0, lambda v: _two(v * 4)),
    0x0D: _SINGLE,
    0x0E: Conversion(
        lambda a, b: float(a) / 2.0 - 64.0,
        lambda v: _one((v + 64.0) * 2.0),
    ),
    0x0F: _TEMPERATURE,
    0x10: Conversion(lambda a, b: _word(a, b) / 100, lambda v: _two(v * 100)),
    0x11: _PERCENT,
    0x1F: _WORD,
    0x21: _WORD,
    0x22: Conversion(lambda a, b: _word(a, b) * 0.079, lambda v: _two(v / 0.079)),
    0x23: Conversion(lambda a, b: _word(a, b) * 10.0, lambda v: _two(v / 10.0)),
    0x2C: _PERCENT,
    0x2D: Conversion(
        lambda a, b: float(a) * 0.78125 - 100.0,
        lambda v: _one((v + 100.0) / 0.78125),
    ),
    0x2E: _PERCENT,
    0x2F: _PERCENT,
    0x30: _SINGLE,
    0x31: _WORD,
    0x32: Conversion(
        lambda a, b: _word(a, b) / 4.0 - 8192.0,
        lambda v: _two((v + 8192.0) * 4.0),
    ),
    0x33: _SINGLE,
    0x42: Conversion(lambda a, b: _word(a, b) / 1000.0, lambda v: _two(v * 1000.0)),
    0x43: Conversion(
        lambda a, b: _word(a, b) * 100.0 / 255.0,
        lambda v: _two(v * 255.0 / 100.0),
    ),
    0x44: _LAMBDA,
    0x45: _PERCENT,
    0x46: _TEMPERATURE,
    0x4C: _PERCENT,
    0x4D: _WORD,
    0x4E: _WORD,
    0x52: _PERCENT,
}

_RANGES: list[tuple[range, Conversion]] = [
    (range(0x06, 0x0A), _FUEL_TRIM),
    (range(0x14, 0x1C), _O2_VOLTAGE),
    (range(0x24, 0x2C), _LAMBDA),
    (range(0x34, 0x3C), _LAMBDA),
    (range(0x3C, 0x40), _CATALYST_TEMPERATURE),
    (range(0x47, 0x4C), _PERCENT),
]

_CONVERSIONS: dict[int, Conversion] = dict(_SPECIFIC)
for _pids, _conversion in _RANGES:
    _CONVERSIONS.update(dict.fromkeys(_pids, _conversion))


def conversion_for(pid: int) -> Optional[Conversion]:
    """Return the conversion for a mode 01 PID, or None if it has none."""
    return _CONVERSIONS.get(pid)