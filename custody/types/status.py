"""
custody.types.status — invocation outcome enum.

  - SUCCESS : every mutation of the invocation was committed
  - FAILED  : the invocation raised; nothing was committed

String forms:
  - str(InvocationStatus.SUCCESS)    -> "success"
  - InvocationStatus.SUCCESS.code    -> "SUCCESS"
  - int(InvocationStatus.SUCCESS)    -> 0 (wire form in CBOR receipts)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

_WIRE = {"success": 0, "failed": 1}


class InvocationStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def code(self) -> str:
        return self.value.upper()

    @property
    def is_success(self) -> bool:
        return self is InvocationStatus.SUCCESS

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    def __int__(self) -> int:
        return _WIRE[self.value]

    @classmethod
    def from_int(cls, n: int) -> "InvocationStatus":
        for name, v in _WIRE.items():
            if v == n:
                return cls(name)
        raise ValueError(f"unknown status code: {n!r}")

    @classmethod
    def from_str(cls, s: str, *, default: Optional["InvocationStatus"] = None) -> "InvocationStatus":
        """Lenient parse: accepts 'success'/'ok' and 'failed'/'fail'/'error'."""
        norm = (s or "").strip().lower()
        if norm in {"success", "ok"}:
            return cls.SUCCESS
        if norm in {"failed", "fail", "error"}:
            return cls.FAILED
        if default is not None:
            return default
        raise ValueError(f"unknown InvocationStatus: {s!r}")


__all__ = ["InvocationStatus"]
