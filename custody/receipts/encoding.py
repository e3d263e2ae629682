"""
custody.receipts.encoding — deterministic CBOR encoding/decoding of invocation results.

Wire schema
-----------
  Receipt = {
    status:      uint,                 ; 0=SUCCESS, 1=FAILED (see custody/types/status.py)
    error:       null / { code: tstr, message: tstr, ? data: { * tstr => any } },
    instruction: null / { kind: tstr, ? amount: uint },
    written:     [ * bytes .size 32 ]  ; sorted addresses
  }

Maps are encoded canonically (cbor2 `canonical=True`) so equal results always
produce equal bytes.

Public API
----------
- result_to_cbor(result) -> bytes
- result_from_cbor(data: bytes) -> InvocationResult
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

import cbor2

from custody.types.result import InvocationResult
from custody.types.status import InvocationStatus


def _result_to_obj(result: InvocationResult) -> Dict[str, Any]:
    if not isinstance(result, InvocationResult):
        raise TypeError(f"InvocationResult expected, got {type(result)!r}")
    return {
        "status": int(result.status),
        "error": result.error,
        "instruction": result.instruction,
        "written": [bytes(a) for a in result.written],
    }


def _obj_to_result(obj: Mapping[str, Any]) -> InvocationResult:
    try:
        status = InvocationStatus.from_int(int(obj["status"]))
        written = tuple(bytes(a) for a in obj.get("written") or ())
    except (KeyError, TypeError) as e:
        raise ValueError(f"malformed receipt: {e}") from None
    return InvocationResult(
        status=status,
        error=obj.get("error"),
        instruction=obj.get("instruction"),
        written=written,
    )


def result_to_cbor(result: InvocationResult) -> bytes:
    return cbor2.dumps(_result_to_obj(result), canonical=True)


def result_from_cbor(data: bytes) -> InvocationResult:
    obj = cbor2.loads(data)
    if not isinstance(obj, Mapping):
        raise ValueError("receipt must decode to a map")
    return _obj_to_result(obj)


__all__ = ["result_to_cbor", "result_from_cbor"]
