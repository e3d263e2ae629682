"""
custody.errors — typed failures for the custody program and its invocation harness.

Handlers communicate failure by *raising*; the harness (custody.runtime.executor)
catches these, reverts every staged mutation and surfaces the error payload in the
InvocationResult. Nothing here is retried or recovered internally.

Hierarchy
---------
CustodyError (base)
 ├─ DecodeError           : Malformed or unknown instruction bytes
 ├─ AllocationError       : Account creation / rent funding failed
 ├─ TransferError         : Native lamport transfer failed
 ├─ OwnershipError        : Custody account not owned by the program (withdraw)
 ├─ InsufficientFunds     : Computed withdrawal share is zero
 ├─ NotEnoughAccountKeys  : Positional account list is too short
 ├─ InvalidAccountData    : Account data region cannot hold the 8-byte counter
 ├─ ArithmeticOverflow    : u64 overflow on a counter or balance
 ├─ IncorrectProgramId    : An account expected to be a given program is not
 └─ RuntimeViolation      : Post-invocation checks performed by the harness
     ├─ ReadonlyAccountModified
     ├─ ExternalAccountDataModified
     └─ UnbalancedInstruction

These classes import nothing from the rest of the package so they can be used
from low-level modules (codec, accounts, services) without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class CustodyError(Exception):
    """
    Base custody error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'DECODE_ERROR').
        data:    Optional structured details (kept JSON/CBOR-serializable).
    """
    message: str = "custody error"
    code: str = "CUSTODY_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for results/receipts/logs."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


def _details(data: Optional[Dict[str, Any]], **extra: Any) -> Optional[Dict[str, Any]]:
    d: Dict[str, Any] = {}
    if data:
        d.update(data)
    for k, v in extra.items():
        if v is not None:
            d.setdefault(k, v)
    return d or None


class DecodeError(CustodyError):
    """Instruction bytes are empty, truncated, carry trailing bytes or an unknown tag."""
    def __init__(
        self,
        message: str = "invalid instruction data",
        *,
        tag: Optional[int] = None,
        length: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="DECODE_ERROR", data=_details(data, tag=tag, length=length))


class AllocationError(CustodyError):
    """
    The allocation service could not create the custody account.

    Typical triggers:
      - payer cannot fund the rent-exempt minimum
      - the target address is already in use (lamports, data or a foreign owner)
      - a required signature is missing
    """
    def __init__(
        self,
        message: str = "account allocation failed",
        *,
        address: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="ALLOCATION_ERROR", data=_details(data, address=address))


class TransferError(CustodyError):
    """The transfer service could not move lamports (e.g. payer underfunded)."""
    def __init__(
        self,
        message: str = "transfer failed",
        *,
        source: Optional[str] = None,
        destination: Optional[str] = None,
        lamports: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="TRANSFER_ERROR",
            data=_details(data, source=source, destination=destination, lamports=lamports),
        )


class OwnershipError(CustodyError):
    """The custody account presented for withdrawal is owned by another program."""
    def __init__(
        self,
        message: str = "account not owned by program",
        *,
        address: Optional[str] = None,
        owner: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="OWNERSHIP_ERROR", data=_details(data, address=address, owner=owner))


class InsufficientFunds(CustodyError):
    """The withdrawal share of the counter rounds down to zero."""
    def __init__(
        self,
        message: str = "insufficient funds",
        *,
        counter: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="INSUFFICIENT_FUNDS", data=_details(data, counter=counter))


class NotEnoughAccountKeys(CustodyError):
    def __init__(
        self,
        message: str = "not enough account keys",
        *,
        expected: Optional[int] = None,
        got: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message, code="NOT_ENOUGH_ACCOUNT_KEYS", data=_details(data, expected=expected, got=got)
        )


class InvalidAccountData(CustodyError):
    def __init__(
        self,
        message: str = "invalid account data",
        *,
        address: Optional[str] = None,
        length: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message, code="INVALID_ACCOUNT_DATA", data=_details(data, address=address, length=length)
        )


class ArithmeticOverflow(CustodyError):
    def __init__(self, message: str = "arithmetic overflow", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="ARITHMETIC_OVERFLOW", data=data)


class IncorrectProgramId(CustodyError):
    def __init__(
        self,
        message: str = "incorrect program id",
        *,
        expected: Optional[str] = None,
        got: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message, code="INCORRECT_PROGRAM_ID", data=_details(data, expected=expected, got=got)
        )


# -------- harness post-checks ------------------------------------------------


class RuntimeViolation(CustodyError):
    """
    Raised by the invocation harness (not by handlers) when the account set left by
    a handler breaks a host rule. Like every other error it aborts the invocation.
    """
    def __init__(
        self,
        message: str = "runtime violation",
        *,
        code: str = "RUNTIME_VIOLATION",
        address: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, data=_details(data, address=address))


class ReadonlyAccountModified(RuntimeViolation):
    def __init__(self, message: str = "read-only account modified", *, address: Optional[str] = None):
        super().__init__(message, code="READONLY_ACCOUNT_MODIFIED", address=address)


class ExternalAccountDataModified(RuntimeViolation):
    def __init__(self, message: str = "data of an account not owned by the program was modified", *,
                 address: Optional[str] = None):
        super().__init__(message, code="EXTERNAL_ACCOUNT_DATA_MODIFIED", address=address)


class UnbalancedInstruction(RuntimeViolation):
    def __init__(self, message: str = "sum of account balances changed", *,
                 before: Optional[int] = None, after: Optional[int] = None):
        super().__init__(message, code="UNBALANCED_INSTRUCTION", data=_details(None, before=before, after=after))


__all__ = [
    "CustodyError",
    "DecodeError",
    "AllocationError",
    "TransferError",
    "OwnershipError",
    "InsufficientFunds",
    "NotEnoughAccountKeys",
    "InvalidAccountData",
    "ArithmeticOverflow",
    "IncorrectProgramId",
    "RuntimeViolation",
    "ReadonlyAccountModified",
    "ExternalAccountDataModified",
    "UnbalancedInstruction",
]
