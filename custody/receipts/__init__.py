"""
custody.receipts — canonical CBOR receipts for invocation results.

    from custody.receipts import result_to_cbor, result_from_cbor
"""

from __future__ import annotations

from .encoding import result_from_cbor, result_to_cbor

__all__ = ["result_to_cbor", "result_from_cbor"]
