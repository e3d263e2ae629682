"""
custody.state.accounts — Account records and u64 arithmetic helpers.

An Account holds the fields the host ledger tracks for every address:

- lamports:    u64 native balance ("held balance")
- data:        mutable byte region owned by `owner` (the custody counter lives here)
- owner:       32-byte id of the program allowed to mutate `data` and debit lamports
- executable:  True for program accounts (never set by this package's programs)

This module avoids any storage concerns; the Ledger and Journal wrap these records
to persist/rollback. All arithmetic is u64-bounded.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from custody.errors import ArithmeticOverflow

# --------------------------------------------------------------------------- #
# Constants & helpers
# --------------------------------------------------------------------------- #

ADDRESS_SIZE: int = 32
ZERO_ADDRESS: bytes = b"\x00" * ADDRESS_SIZE

U64_MAX: int = (1 << 64) - 1


def ensure_u64(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    if value > U64_MAX:
        raise OverflowError(f"{name} exceeds u64")
    return value


def checked_add(a: int, b: int) -> int:
    """u64 addition; raises ArithmeticOverflow instead of wrapping."""
    out = a + b
    if out > U64_MAX:
        raise ArithmeticOverflow(data={"lhs": a, "rhs": b})
    return out


def checked_sub(a: int, b: int) -> int:
    """u64 subtraction; raises ArithmeticOverflow on underflow."""
    if b > a:
        raise ArithmeticOverflow("arithmetic underflow", data={"lhs": a, "rhs": b})
    return a - b


# --------------------------------------------------------------------------- #
# Account
# --------------------------------------------------------------------------- #

@dataclass(slots=True)
class Account:
    """
    A single ledger record.

    Invariants:
    - lamports is u64
    - owner is exactly 32 bytes
    - data is a bytearray (mutated in place by the owning program)
    """
    lamports: int = 0
    data: bytearray = field(default_factory=bytearray)
    owner: bytes = ZERO_ADDRESS
    executable: bool = False

    def __post_init__(self) -> None:
        self.lamports = ensure_u64("lamports", int(self.lamports))
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            raise TypeError("data must be bytes-like")
        self.data = bytearray(self.data)
        if not isinstance(self.owner, (bytes, bytearray, memoryview)):
            raise TypeError("owner must be bytes-like")
        ow = bytes(self.owner)
        if len(ow) != ADDRESS_SIZE:
            raise ValueError(f"owner must be {ADDRESS_SIZE} bytes")
        self.owner = ow

    @property
    def is_empty(self) -> bool:
        """True for a record the ledger would not keep (no lamports, no data)."""
        return self.lamports == 0 and len(self.data) == 0

    def copy(self) -> "Account":
        return Account(
            lamports=self.lamports,
            data=bytearray(self.data),
            owner=self.owner,
            executable=self.executable,
        )

    # ----------------------- (de)serialization ----------------------------- #

    def to_dict(self) -> dict:
        return {
            "lamports": self.lamports,
            "data": "0x" + bytes(self.data).hex(),
            "owner": "0x" + self.owner.hex(),
            "executable": self.executable,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        try:
            lamports = int(data.get("lamports", 0))
            raw = data.get("data", "")
            payload = _hex_or_bytes(raw)
            owner = _hex_or_bytes(data.get("owner", ZERO_ADDRESS))
            executable = bool(data.get("executable", False))
        except (TypeError, ValueError, AttributeError) as e:
            raise ValueError(f"bad account dict: {e}") from e
        return cls(lamports=lamports, data=bytearray(payload), owner=owner, executable=executable)


def _hex_or_bytes(v: object) -> bytes:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v)
    if not isinstance(v, str):
        # An unquoted 0x… scalar arrives from YAML as an int.
        raise ValueError(f"expected a hex string, got {type(v).__name__}")
    s = v.strip()
    if s.startswith(("0x", "0X")):
        s = s[2:]
    return bytes.fromhex(s)


__all__ = [
    "ADDRESS_SIZE",
    "ZERO_ADDRESS",
    "U64_MAX",
    "Account",
    "ensure_u64",
    "checked_add",
    "checked_sub",
]
