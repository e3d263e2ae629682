"""
custody.runtime — the custody program and the harness that runs it.

Submodules (thin overview)
--------------------------
- rent        : rent-exempt minimum balance
- system      : system program id, address helpers, allocation/transfer services
- processor   : deposit / withdraw handlers
- dispatcher  : decode instruction bytes and route to a handler
- executor    : atomic invoke / invoke_many over a Ledger

Re-exports
----------
    from custody.runtime import invoke, invoke_many, process_instruction

These are lazily loaded on first attribute access.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Tuple

__all__ = (
    "rent",
    "system",
    "processor",
    "dispatcher",
    "executor",
)

_EXPORTS: Dict[str, Tuple[str, str]] = {
    "invoke": ("executor", "invoke"),
    "invoke_many": ("executor", "invoke_many"),
    "Invocation": ("executor", "Invocation"),
    "process_instruction": ("dispatcher", "process_instruction"),
    "SystemProgram": ("system", "SystemProgram"),
    "Rent": ("rent", "Rent"),
}


def __getattr__(name: str) -> Any:  # PEP 562 lazy attribute access
    if name in __all__:
        return import_module(f".{name}", __name__)
    target = _EXPORTS.get(name)
    if target:
        mod, attr = target
        return getattr(import_module(f".{mod}", __name__), attr)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(list(__all__) + list(_EXPORTS))
