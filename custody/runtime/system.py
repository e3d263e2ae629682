"""
custody.runtime.system — system program id, address helpers, and the allocation /
transfer services the custody handlers call out to.

Provides:
- The canonical address size and the all-zero system program id.
- Helpers to parse/validate addresses and render them for logs.
- `AllocationService` / `TransferService`: the narrow capability interfaces the
  deposit handler depends on (inject fakes in tests).
- `SystemProgram`: the in-memory implementation of both, enforcing the host's
  account-creation and transfer rules against AccountInfo views.

Notes
-----
* Addresses are raw 32-byte values; hex is only for UX (CLI, YAML, logs).
* Services raise AllocationError / TransferError and never partially apply:
  every check runs before the first write.
"""

from __future__ import annotations

from typing import Protocol, Union, runtime_checkable

from custody.errors import AllocationError, TransferError
from custody.state.accounts import ADDRESS_SIZE, U64_MAX, ZERO_ADDRESS
from custody.types.account import AccountInfo

# --------------------------------------------------------------------------------------
# Address model
# --------------------------------------------------------------------------------------

SYSTEM_PROGRAM_ID: bytes = ZERO_ADDRESS


def ensure_address(addr: bytes, *, name: str = "address") -> bytes:
    """Validate that `addr` is the canonical ADDRESS_SIZE in length."""
    if not isinstance(addr, (bytes, bytearray)):
        raise TypeError(f"{name} must be bytes, got {type(addr).__name__}")
    b = bytes(addr)
    if len(b) != ADDRESS_SIZE:
        raise ValueError(f"{name} must be {ADDRESS_SIZE} bytes, got {len(b)}")
    return b


def parse_hex_address(value: Union[str, bytes, bytearray], *, name: str = "address") -> bytes:
    """Parse an address from hex (with or without '0x' prefix) or pass-through bytes."""
    if isinstance(value, (bytes, bytearray)):
        return ensure_address(value, name=name)
    if not isinstance(value, str):
        raise TypeError(f"{name} must be hex str or bytes, got {type(value).__name__}")
    s = value.lower().strip()
    if s.startswith("0x"):
        s = s[2:]
    try:
        b = bytes.fromhex(s)
    except ValueError as e:
        raise ValueError(f"{name}: invalid hex string") from e
    return ensure_address(b, name=name)


# --------------------------------------------------------------------------------------
# Capability interfaces
# --------------------------------------------------------------------------------------


@runtime_checkable
class AllocationService(Protocol):
    program_id: bytes

    def create_account(
        self,
        payer: AccountInfo,
        new_account: AccountInfo,
        lamports: int,
        space: int,
        owner: bytes,
    ) -> None:
        """Fund `new_account` with `lamports`, size its data to `space` zero bytes, assign `owner`."""
        ...


@runtime_checkable
class TransferService(Protocol):
    program_id: bytes

    def transfer(self, source: AccountInfo, destination: AccountInfo, lamports: int) -> None:
        """Move `lamports` from `source` to `destination`."""
        ...


# --------------------------------------------------------------------------------------
# System program
# --------------------------------------------------------------------------------------


class SystemProgram:
    """
    In-memory system program: account creation and lamport transfers.

    create_account
        - payer and new account must both be signers
        - new account must be unused: no lamports, no data, system-owned
        - payer must hold `lamports`
    transfer
        - source must be a signer, system-owned and carry no data
        - source must hold `lamports`; destination must not overflow u64
    """

    program_id: bytes = SYSTEM_PROGRAM_ID

    def create_account(
        self,
        payer: AccountInfo,
        new_account: AccountInfo,
        lamports: int,
        space: int,
        owner: bytes,
    ) -> None:
        addr = new_account.key_hex
        if not payer.is_signer:
            raise AllocationError("payer must sign account creation", address=payer.key_hex)
        if not new_account.is_signer:
            raise AllocationError("new account must sign its creation", address=addr)
        if new_account.lamports > 0 or not new_account.data_is_empty():
            raise AllocationError("account already in use", address=addr)
        if new_account.owner != self.program_id:
            raise AllocationError(
                "account already assigned to another owner",
                address=addr,
                data={"owner": "0x" + new_account.owner.hex()},
            )
        if space < 0:
            raise AllocationError("negative space", address=addr)
        if payer.lamports < lamports:
            raise AllocationError(
                "payer cannot fund account creation",
                address=addr,
                data={"required": lamports, "available": payer.lamports},
            )

        payer.lamports = payer.lamports - lamports
        new_account.lamports = new_account.lamports + lamports
        new_account.data = bytes(space)
        new_account.owner = owner

    def transfer(self, source: AccountInfo, destination: AccountInfo, lamports: int) -> None:
        src, dst = source.key_hex, destination.key_hex
        if not source.is_signer:
            raise TransferError("source must sign the transfer", source=src, destination=dst, lamports=lamports)
        if source.owner != self.program_id:
            raise TransferError("source is not system-owned", source=src, destination=dst, lamports=lamports)
        if not source.data_is_empty():
            raise TransferError("source carries data", source=src, destination=dst, lamports=lamports)
        if source.lamports < lamports:
            raise TransferError(
                "insufficient lamports",
                source=src,
                destination=dst,
                lamports=lamports,
                data={"available": source.lamports},
            )
        if destination.lamports + lamports > U64_MAX:
            raise TransferError("destination balance overflow", source=src, destination=dst, lamports=lamports)

        source.lamports = source.lamports - lamports
        destination.lamports = destination.lamports + lamports


__all__ = [
    "SYSTEM_PROGRAM_ID",
    "ensure_address",
    "parse_hex_address",
    "AllocationService",
    "TransferService",
    "SystemProgram",
]
