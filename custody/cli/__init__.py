"""
custody.cli — command-line entrypoints.

  • custody.cli.run_ix — apply one custody instruction to a YAML ledger file and print the result

Usage:
    python -m custody.cli.run_ix --help
"""

from __future__ import annotations

from ..version import __version__

__all__ = ["__version__"]
