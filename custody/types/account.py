"""
custody.types.account — account metas and the mutable views handed to handlers.

`AccountMeta` is what a caller puts in an instruction's positional account list
(address + signer/writable flags). `AccountInfo` is what a handler receives: the
same flags plus direct, exclusive access to the underlying Account record for the
duration of one call. Two metas naming the same address share one record.
"""

from __future__ import annotations

from dataclasses import dataclass

from custody.state.accounts import ADDRESS_SIZE, Account


@dataclass(frozen=True)
class AccountMeta:
    pubkey: bytes
    is_signer: bool = False
    is_writable: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.pubkey, (bytes, bytearray)):
            raise TypeError("pubkey must be bytes")
        if len(self.pubkey) != ADDRESS_SIZE:
            raise ValueError(f"pubkey must be {ADDRESS_SIZE} bytes")
        object.__setattr__(self, "pubkey", bytes(self.pubkey))


class AccountInfo:
    """
    Handler-facing view over one Account.

    Reads and writes go straight to the record; the harness journals the record
    so a failed invocation never leaks these writes.
    """

    __slots__ = ("key", "is_signer", "is_writable", "_account")

    def __init__(self, key: bytes, account: Account, *, is_signer: bool = False, is_writable: bool = True) -> None:
        self.key = bytes(key)
        self.is_signer = bool(is_signer)
        self.is_writable = bool(is_writable)
        self._account = account

    @property
    def lamports(self) -> int:
        return self._account.lamports

    @lamports.setter
    def lamports(self, value: int) -> None:
        self._account.lamports = value

    @property
    def data(self) -> bytearray:
        return self._account.data

    @data.setter
    def data(self, value: bytes | bytearray) -> None:
        self._account.data = bytearray(value)

    @property
    def owner(self) -> bytes:
        return self._account.owner

    @owner.setter
    def owner(self, value: bytes) -> None:
        self._account.owner = bytes(value)

    def data_is_empty(self) -> bool:
        return len(self._account.data) == 0

    @property
    def key_hex(self) -> str:
        return "0x" + self.key.hex()

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return (
            f"AccountInfo(key={self.key_hex[:12]}…, lamports={self.lamports}, "
            f"data_len={len(self.data)}, signer={self.is_signer}, writable={self.is_writable})"
        )


__all__ = ["AccountMeta", "AccountInfo"]
