"""
custody.state.journal — journaling writes, checkpoints, revert/commit.

This module provides a deterministic, in-memory write journal layered over an
address → Account mapping. It supports nested checkpoints via a stack of
overlays. Writes go to the top overlay; reads consult overlays from top → base.
`commit()` merges the top overlay into the next layer (or the base mapping if it
is the last layer). `revert()` discards the top overlay.

Key properties
--------------
- Pure Python, no I/O.
- Copy-on-write: Account objects are copied into the top overlay before they are
  handed out for mutation, so a revert leaves the base byte-for-byte untouched.
- Accounts that reach the base with zero lamports and no data are pruned, the
  way the host ledger garbage-collects them.

Intended usage
--------------
    j = Journal(ledger.accounts)
    j.begin()
    acc = j.ensure_account_for_write(addr)
    acc.lamports += 10
    j.commit()                      # apply to base
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, MutableMapping, Optional

from .accounts import Account


def _b(x: bytes | bytearray | memoryview, *, name: str) -> bytes:
    if not isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes-like")
    return bytes(x)


# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    """A single journal layer: copies of accounts modified/created in this layer."""

    accounts: Dict[bytes, Account] = field(default_factory=dict)

    def put_account_copy(self, addr: bytes, acc: Account) -> Account:
        # Store a *copy* to avoid aliasing with lower layers.
        acc_copy = acc.copy()
        self.accounts[addr] = acc_copy
        return acc_copy


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    A copy-on-write write journal with nested checkpoints.

    Parameters
    ----------
    accounts : MutableMapping[bytes, Account]
        The base (persisted) account mapping.
    """

    def __init__(self, accounts: MutableMapping[bytes, Account]) -> None:
        self._base_accounts = accounts
        # Start with a single empty overlay for convenience.
        self._layers: List[_Overlay] = [_Overlay()]

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker (int)."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def commit(self) -> None:
        """
        Commit the top overlay into its parent, or into the base mapping when it
        is the root layer.
        """
        top = self._layers.pop()
        if self._layers:
            self._merge_layers(self._layers[-1], top)
        else:
            self._apply_to_base(top)
            self._layers.append(_Overlay())

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Overlay()

    def revert_to(self, marker: int) -> None:
        """Discard the checkpoint that returned `marker` and everything above it."""
        if marker < 2:
            raise ValueError("marker must be a value returned by begin()")
        while len(self._layers) >= marker:
            self.revert()

    def flush(self) -> None:
        """Commit every open layer down to the base mapping."""
        while len(self._layers) > 1:
            self.commit()
        self.commit()

    # --------------------------------------------------------------------- #
    # Account API
    # --------------------------------------------------------------------- #

    def _lookup_account_any(self, addr: bytes) -> Optional[Account]:
        for layer in reversed(self._layers):
            local = layer.accounts.get(addr)
            if local is not None:
                return local
        return self._base_accounts.get(addr)

    def get_account_for_write(self, address: bytes | bytearray | memoryview) -> Optional[Account]:
        """
        Fetch an Account suitable for **mutation** in the top layer. A copy of the
        visible record is promoted to the top; returns None when absent everywhere.
        """
        addr = _b(address, name="address")
        top = self._layers[-1]
        if addr in top.accounts:
            return top.accounts[addr]
        acc = self._lookup_account_any(addr)
        if acc is None:
            return None
        return top.put_account_copy(addr, acc)

    def ensure_account_for_write(self, address: bytes | bytearray | memoryview) -> Account:
        """
        Like get_account_for_write, but an absent address materializes as an empty,
        system-owned, zero-lamport account in the top layer.
        """
        addr = _b(address, name="address")
        acc = self.get_account_for_write(addr)
        if acc is not None:
            return acc
        acc = Account()
        self._layers[-1].accounts[addr] = acc
        return acc

    # --------------------------------------------------------------------- #
    # Internal merge/apply
    # --------------------------------------------------------------------- #

    @staticmethod
    def _merge_layers(dst: _Overlay, src: _Overlay) -> None:
        for addr, acc in src.accounts.items():
            dst.accounts[addr] = acc.copy()

    def _apply_to_base(self, layer: _Overlay) -> None:
        for addr, acc in layer.accounts.items():
            if acc.is_empty:
                self._base_accounts.pop(addr, None)
            else:
                self._base_accounts[addr] = acc.copy()


__all__ = ["Journal"]
