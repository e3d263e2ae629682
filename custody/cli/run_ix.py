#!/usr/bin/env python3
"""
custody.cli.run_ix — apply one custody instruction to a YAML ledger and print the result.

This CLI:
  1) Loads the ledger file (missing file → empty ledger)
  2) Builds the instruction from --ix/--amount or raw --data hex
  3) Applies it via custody.runtime.executor.invoke (all-or-nothing)
  4) Prints the InvocationResult; optionally writes the CBOR receipt and saves the ledger

Usage:
    python -m custody.cli.run_ix --ledger ledger.yaml --ix deposit --amount 100 \
        --account 0xPAYER:s --account 0xCUSTODY:s --account system:r --write

    python -m custody.cli.run_ix --ledger ledger.yaml --ix withdraw \
        --account 0xCUSTODY --account 0xRECIPIENT --json

Account specs:
    <address>[:flags]   flags: 's' signer, 'r' read-only (default writable)
    'system' is an alias for the system program id.

Exit codes: 0 success, 1 invocation failed, 2 usage / input error.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from custody.config import ConfigError, load_config
from custody.receipts.encoding import result_to_cbor
from custody.runtime.executor import invoke
from custody.runtime.system import SYSTEM_PROGRAM_ID, parse_hex_address
from custody.state.ledger import Ledger, LedgerFileError
from custody.types.account import AccountMeta
from custody.types.instruction import Deposit, Withdraw
from custody.version import __version__

log = logging.getLogger("custody.cli.run_ix")


# --- Helpers -------------------------------------------------------------------------------------
def parse_account_spec(spec: str) -> AccountMeta:
    """'0x…:sr' → AccountMeta(pubkey, is_signer=True, is_writable=False)."""
    addr_part, _, flags = spec.partition(":")
    flags = flags.lower()
    unknown = set(flags) - {"s", "r"}
    if unknown:
        raise ValueError(f"unknown account flag(s) {''.join(sorted(unknown))!r} in {spec!r}")
    if addr_part.strip().lower() == "system":
        pubkey = SYSTEM_PROGRAM_ID
    else:
        pubkey = parse_hex_address(addr_part, name="account")
    return AccountMeta(pubkey=pubkey, is_signer="s" in flags, is_writable="r" not in flags)


def _instruction_bytes(ns: argparse.Namespace) -> bytes:
    if ns.data is not None:
        s = ns.data.strip()
        if s.startswith(("0x", "0X")):
            s = s[2:]
        return bytes.fromhex(s)
    if ns.ix == "deposit":
        if ns.amount is None:
            raise ValueError("--amount is required for --ix deposit")
        return Deposit(amount=ns.amount).to_bytes()
    if ns.ix == "withdraw":
        return Withdraw().to_bytes()
    raise ValueError("one of --ix or --data is required")


def _parse_args(argv: List[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Apply one custody instruction to a ledger file.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--ledger", required=True, type=Path, help="YAML ledger file")
    p.add_argument("--ix", choices=("deposit", "withdraw"), help="Instruction kind")
    p.add_argument("--amount", type=int, default=None, help="Deposit amount (lamports)")
    p.add_argument("--data", default=None, help="Raw instruction bytes as hex (overrides --ix)")
    p.add_argument(
        "--account",
        action="append",
        default=[],
        metavar="ADDR[:FLAGS]",
        help="Positional account (repeat in order); flags: s=signer, r=read-only",
    )
    p.add_argument("--program-id", default=None, help="Custody program id (hex); default from config")
    p.add_argument("--config", type=Path, default=None, help="YAML config file")
    p.add_argument("--write", action="store_true", help="Save the ledger back on success")
    p.add_argument("--receipt", type=Path, default=None, help="Write the CBOR receipt to this path")
    p.add_argument("--json", action="store_true", help="Print the full JSON result")
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (stderr)",
    )
    return p.parse_args(argv)


# --- Main ----------------------------------------------------------------------------------------
def main(argv: Optional[List[str]] = None) -> int:
    ns = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=getattr(logging, ns.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        cfg = load_config(ns.config) if ns.config else load_config()
        program_id = parse_hex_address(ns.program_id, name="program_id") if ns.program_id else cfg.program_id
        metas = [parse_account_spec(s) for s in ns.account]
        data = _instruction_bytes(ns)
        ledger = Ledger.load(ns.ledger)
    except (ConfigError, LedgerFileError, ValueError, TypeError, OverflowError) as e:
        log.error("%s", e)
        return 2

    result = invoke(ledger, data, metas, program_id=program_id, rent=cfg.rent.to_rent())

    try:
        if ns.receipt is not None:
            ns.receipt.parent.mkdir(parents=True, exist_ok=True)
            ns.receipt.write_bytes(result_to_cbor(result))
            log.info("receipt written to %s", ns.receipt)

        if result.is_success and ns.write:
            ledger.save(ns.ledger)
            log.info("ledger saved to %s", ns.ledger)
    except OSError as e:
        log.error("%s", e)
        return 2

    if ns.json:
        print(json.dumps(result.to_dict(), indent=2, sort_keys=True))
    else:
        print(
            f"INVOKE_RESULT STATUS={result.status.code} ERROR={result.error_code or '-'} "
            f"WRITTEN={len(result.written)}"
        )
    return 0 if result.is_success else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
