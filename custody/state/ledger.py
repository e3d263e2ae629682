"""
custody.state.ledger — in-memory account ledger with YAML persistence.

The Ledger is the "base state" the invocation harness journals over: a plain
address → Account mapping plus a few read helpers. It stands in for the host
ledger; nothing in the custody program itself depends on how it is stored.

File format (YAML, also valid as JSON)
--------------------------------------
    accounts:
      "0x<64 hex chars>":
        lamports: 1000000
        owner: "0x<64 hex chars>"
        data: "0x0a00000000000000"
        executable: false

Addresses absent from the file read as empty, system-owned, zero-lamport accounts.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import yaml

from .accounts import ADDRESS_SIZE, Account
from .codec import read_counter


class LedgerFileError(ValueError):
    """Raised when a ledger file cannot be parsed into accounts."""


def _addr(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        b = bytes(value)
    elif isinstance(value, str):
        s = value.strip()
        if s.startswith(("0x", "0X")):
            s = s[2:]
        try:
            b = bytes.fromhex(s)
        except ValueError as e:
            raise LedgerFileError(f"invalid hex address: {value!r}") from e
    else:
        # Unquoted 0x… YAML scalars load as int.
        raise LedgerFileError(f"address must be a quoted hex string, got {type(value).__name__}")
    if len(b) != ADDRESS_SIZE:
        raise LedgerFileError(f"address must be {ADDRESS_SIZE} bytes, got {len(b)}")
    return b


@dataclass
class Ledger:
    accounts: Dict[bytes, Account] = field(default_factory=dict)

    # ------------------------------ reads ------------------------------------

    def get(self, address: bytes) -> Optional[Account]:
        return self.accounts.get(bytes(address))

    def lamports_of(self, address: bytes) -> int:
        acc = self.get(address)
        return acc.lamports if acc is not None else 0

    def counter_of(self, address: bytes) -> Optional[int]:
        """The custody counter at `address`, or None for an uninitialized account."""
        acc = self.get(address)
        if acc is None or not acc.data:
            return None
        return read_counter(acc.data, address="0x" + bytes(address).hex())

    def total_lamports(self) -> int:
        return sum(acc.lamports for acc in self.accounts.values())

    def items(self) -> Iterator[Tuple[bytes, Account]]:
        """Accounts in stable (address) order."""
        for addr in sorted(self.accounts):
            yield addr, self.accounts[addr]

    # ------------------------------ writes -----------------------------------

    def put(self, address: bytes, account: Account) -> None:
        self.accounts[_addr(address)] = account

    # --------------------------- (de)serialization ---------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {"accounts": {"0x" + addr.hex(): acc.to_dict() for addr, acc in self.items()}}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Ledger":
        raw = data.get("accounts") or {}
        if not isinstance(raw, Mapping):
            raise LedgerFileError("'accounts' must be a mapping of address -> account")
        accounts: Dict[bytes, Account] = {}
        for k, v in raw.items():
            if not isinstance(v, Mapping):
                raise LedgerFileError(f"account {k!r} must be a mapping")
            try:
                accounts[_addr(k)] = Account.from_dict(dict(v))
            except ValueError as e:
                raise LedgerFileError(f"account {k!r}: {e}") from e
        return cls(accounts=accounts)

    @classmethod
    def load(cls, path: os.PathLike | str) -> "Ledger":
        p = Path(path)
        if not p.exists():
            return cls()
        try:
            with p.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except OSError as e:
            raise LedgerFileError(f"cannot read ledger file {p}: {e}") from e
        except yaml.YAMLError as e:
            raise LedgerFileError(f"invalid YAML in {p}: {e}") from e
        if not isinstance(data, Mapping):
            raise LedgerFileError(f"{p}: top-level document must be a mapping")
        return cls.from_dict(data)

    def save(self, path: os.PathLike | str) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(p.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            yaml.safe_dump(self.to_dict(), fh, sort_keys=True)
        os.replace(tmp, p)


__all__ = ["Ledger", "LedgerFileError"]
