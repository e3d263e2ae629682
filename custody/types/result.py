"""
custody.types.result — InvocationResult container.

`InvocationResult` is what the harness returns for every invocation, successful
or not. It never carries partial state: either the listed accounts were written
and committed, or the status is FAILED and `written` is empty.

Fields
------
* status      : InvocationStatus — SUCCESS / FAILED
* error       : Optional[dict]   — CustodyError.to_dict() payload when FAILED
* instruction : Optional[dict]   — decoded instruction (None if decoding failed)
* written     : tuple[bytes, ...] — addresses whose record changed, sorted
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .status import InvocationStatus


def _hex_to_bytes(v: Any) -> bytes:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v)
    s = str(v).strip()
    if s.startswith(("0x", "0X")):
        s = s[2:]
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise ValueError(f"invalid hex string: {v!r}") from e


@dataclass(frozen=True)
class InvocationResult:
    status: InvocationStatus
    error: Optional[Dict[str, Any]] = None
    instruction: Optional[Dict[str, Any]] = None
    written: Tuple[bytes, ...] = field(default_factory=tuple)

    @property
    def is_success(self) -> bool:
        return self.status.is_success

    @property
    def error_code(self) -> Optional[str]:
        return None if self.error is None else self.error.get("code")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": str(self.status),
            "error": self.error,
            "instruction": self.instruction,
            "written": ["0x" + a.hex() for a in self.written],
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "InvocationResult":
        return cls(
            status=InvocationStatus.from_str(str(d.get("status", ""))),
            error=d.get("error"),
            instruction=d.get("instruction"),
            written=tuple(_hex_to_bytes(a) for a in d.get("written") or ()),
        )

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return (
            f"InvocationResult(status={self.status.code}, error={self.error_code}, "
            f"written={len(self.written)})"
        )


__all__ = ["InvocationResult"]
