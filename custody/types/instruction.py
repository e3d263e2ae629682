"""
custody.types.instruction — the two-variant custody instruction and its wire codec.

Wire format (tagged union, little-endian)
-----------------------------------------
    Deposit  : 0x00 || amount:u64le      (9 bytes)
    Withdraw : 0x01                      (1 byte)

Decoding is strict: empty input, an unknown tag, a truncated payload or any
trailing byte is a DecodeError. No partial instruction is ever returned.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Union

from custody.errors import DecodeError
from custody.state.accounts import ensure_u64

_U64 = struct.Struct("<Q")


class InstructionTag(IntEnum):
    DEPOSIT = 0
    WITHDRAW = 1


@dataclass(frozen=True)
class Deposit:
    """Credit `amount` lamports from the payer and add it to the counter."""
    amount: int

    def __post_init__(self) -> None:
        ensure_u64("amount", self.amount)

    tag = InstructionTag.DEPOSIT

    def to_bytes(self) -> bytes:
        return bytes([self.tag]) + _U64.pack(self.amount)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "deposit", "amount": self.amount}


@dataclass(frozen=True)
class Withdraw:
    """Release one tenth of the counter (clamped to the held balance) to the recipient."""

    tag = InstructionTag.WITHDRAW

    def to_bytes(self) -> bytes:
        return bytes([self.tag])

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "withdraw"}


Instruction = Union[Deposit, Withdraw]


def decode_instruction(data: bytes | bytearray | memoryview) -> Instruction:
    """Parse raw instruction bytes into Deposit / Withdraw."""
    raw = bytes(data)
    if not raw:
        raise DecodeError("empty instruction data", length=0)

    tag = raw[0]
    body = raw[1:]
    if tag == InstructionTag.DEPOSIT:
        if len(body) < _U64.size:
            raise DecodeError("truncated deposit amount", tag=tag, length=len(raw))
        if len(body) > _U64.size:
            raise DecodeError("trailing bytes after deposit", tag=tag, length=len(raw))
        (amount,) = _U64.unpack(body)
        return Deposit(amount=amount)
    if tag == InstructionTag.WITHDRAW:
        if body:
            raise DecodeError("trailing bytes after withdraw", tag=tag, length=len(raw))
        return Withdraw()
    raise DecodeError(f"unknown instruction tag {tag}", tag=tag, length=len(raw))


__all__ = [
    "InstructionTag",
    "Deposit",
    "Withdraw",
    "Instruction",
    "decode_instruction",
]
