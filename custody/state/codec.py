"""
custody.state.codec — the 8-byte custody counter stored in account data.

Layout
------
    offset 0 .. 8 : u64 little-endian, cumulative net-deposited lamports

Freshly allocated storage is zero-filled, so a new custody account reads as 0.
Bytes past offset 8 (if a foreign account happens to carry them) are ignored and
preserved.
"""

from __future__ import annotations

import struct

from custody.errors import InvalidAccountData

from .accounts import ensure_u64

COUNTER_SIZE: int = 8

_COUNTER = struct.Struct("<Q")


def read_counter(data: bytes | bytearray | memoryview, *, address: str | None = None) -> int:
    """Decode the counter at offset 0; raises InvalidAccountData if fewer than 8 bytes."""
    if len(data) < COUNTER_SIZE:
        raise InvalidAccountData(
            "account data too small for counter", address=address, length=len(data)
        )
    (value,) = _COUNTER.unpack_from(data, 0)
    return value


def write_counter(data: bytearray, value: int, *, address: str | None = None) -> None:
    """Encode `value` in place at offset 0 of `data`."""
    if len(data) < COUNTER_SIZE:
        raise InvalidAccountData(
            "account data too small for counter", address=address, length=len(data)
        )
    _COUNTER.pack_into(data, 0, ensure_u64("counter", value))


def encode_counter(value: int) -> bytes:
    """Standalone 8-byte encoding (fixtures, CLI)."""
    return _COUNTER.pack(ensure_u64("counter", value))


__all__ = ["COUNTER_SIZE", "read_counter", "write_counter", "encode_counter"]
