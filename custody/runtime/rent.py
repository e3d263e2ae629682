"""
custody.runtime.rent — rent-exemption arithmetic.

An account is rent-exempt when it holds at least

    (ACCOUNT_STORAGE_OVERHEAD + data_len) * lamports_per_byte_year * exemption_threshold

lamports. With the defaults an 8-byte custody account needs 946 560 lamports.
"""

from __future__ import annotations

from dataclasses import dataclass

# Fixed per-account bookkeeping bytes charged on top of the data length.
ACCOUNT_STORAGE_OVERHEAD: int = 128

DEFAULT_LAMPORTS_PER_BYTE_YEAR: int = 3480
DEFAULT_EXEMPTION_THRESHOLD: float = 2.0


@dataclass(frozen=True)
class Rent:
    lamports_per_byte_year: int = DEFAULT_LAMPORTS_PER_BYTE_YEAR
    exemption_threshold: float = DEFAULT_EXEMPTION_THRESHOLD

    def minimum_balance(self, data_len: int) -> int:
        """Lamports required for an account of `data_len` bytes to be rent-exempt."""
        if data_len < 0:
            raise ValueError("data_len must be non-negative")
        bytes_total = ACCOUNT_STORAGE_OVERHEAD + int(data_len)
        return int(bytes_total * self.lamports_per_byte_year * self.exemption_threshold)


__all__ = [
    "ACCOUNT_STORAGE_OVERHEAD",
    "DEFAULT_LAMPORTS_PER_BYTE_YEAR",
    "DEFAULT_EXEMPTION_THRESHOLD",
    "Rent",
]
