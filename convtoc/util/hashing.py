"""Utilities for hashing turn identifiers."""
from __future__ import annotations

import struct

_DJB2_SEED = 5381
_MASK_32 = 0xFFFFFFFF
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _utf16_units(text: str) -> tuple[int, ...]:
    data = text.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(data) // 2}H", data)


def to_base36(value: int) -> str:
    """Return the lowercase base-36 representation of non-negative *value*."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def djb2_hash(text: str) -> str:
    """Return a short, deterministic base-36 hash of *text*.

    The XOR variant of djb2 is folded to 32 bits after every UTF-16 code
    unit, so identifiers match the ones produced by browser-side tooling
    that hashes the same strings. Collisions are possible but rare.
    """
    value = _DJB2_SEED
    for unit in _utf16_units(text):
        value = ((value * 33) ^ unit) & _MASK_32
    return to_base36(value)


__all__ = ["djb2_hash", "to_base36"]
