"""Diagnostic trouble codes: validation and conversion to and from bytes."""

from __future__ import annotations

__all__ = ["is_valid", "to_bytes", "from_bytes"]

_SYSTEMS = "PCBU"
_HEX_DIGITS = frozenset("0123456789ABCDEF")


def is_valid(code: str) -> bool:
    """Return True if the string looks like a trouble code such as 'P0133'."""
    return (
        len(code) == 5
        and code[0] in _SYSTEMS
        and all(ch in _HEX_DIGITS for ch in code[1:])
    )


def to_bytes(code: str) -> tuple[int, int]:
    """Convert a trouble code to its two-byte representation (A, B).

    Raises ValueError if the code is not a valid trouble code.
    """
    if not is_valid(code):
        raise ValueError(f"not a valid trouble code: {code!r}")
    if code[1] not in "0123":
        raise ValueError(f"trouble code digit out of range: {code!r}")
    system = _SYSTEMS.index(code[0]) * 4 + int(code[1])
    return int(code[2], 16) + (system << 4), int(code[3:5], 16)


def from_bytes(a: int, b: int) -> str:
    """Convert the two bytes of a trouble code to its string form."""
    if not (0 <= a <= 0xFF and 0 <= b <= 0xFF):
        raise ValueError(f"trouble code bytes out of range: {a!r}, {b!r}")
    part = (a >> 4) & 0x0F
    return f"{_SYSTEMS[part // 4]}{part % 4}{a & 0x0F:01X}{b:02X}"