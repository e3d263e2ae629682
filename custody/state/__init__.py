"""
custody.state — account records, the counter codec, the write journal and the ledger.

Submodules:
- accounts: Account records (lamports, data, owner) and u64 helpers
- codec:    8-byte little-endian custody counter
- journal:  Journaling writes, checkpoints, revert/commit
- ledger:   In-memory ledger with YAML load/save
"""

from __future__ import annotations

from importlib import import_module as _imp
from typing import Any, Dict, Tuple

# Map of public attributes → (submodule, symbol)
_exports: Dict[str, Tuple[str, str]] = {
    "Account": ("accounts", "Account"),
    "Journal": ("journal", "Journal"),
    "Ledger": ("ledger", "Ledger"),
    "read_counter": ("codec", "read_counter"),
    "write_counter": ("codec", "write_counter"),
}

__all__ = tuple(_exports.keys())


def __getattr__(name: str) -> Any:
    """Lazy attribute loader to avoid import-time dependency tangles."""
    if name in _exports:
        submod, symbol = _exports[name]
        mod = _imp(f"{__name__}.{submod}")
        return getattr(mod, symbol)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
