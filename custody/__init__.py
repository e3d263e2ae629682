"""
custody — a percentage-capped deposit ledger program and its invocation harness.

A custody account keeps an 8-byte little-endian counter of cumulative deposits next
to its native lamport balance. Deposits lazily allocate the account and credit the
counter; withdrawals release one tenth of the counter (clamped to the balance) to an
arbitrary recipient.

This package exposes only lightweight metadata at import time. Import the runtime,
state and CLI pieces explicitly from their subpackages.
"""

from .version import __version__

__all__ = ["__version__"]
