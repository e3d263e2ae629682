"""
custody.runtime.executor — all-or-nothing invocation harness.

Responsibilities
- invoke: run one instruction against a Ledger. Opens a journal checkpoint,
  materializes AccountInfo views for the positional account metas, decodes and
  dispatches, applies the host's post-invocation checks, then commits. Any
  CustodyError reverts the checkpoint and is reported in the InvocationResult;
  the ledger is left byte-for-byte unchanged.
- invoke_many: apply a sequence of invocations in order, each atomically.

Post-invocation checks (host rules the handlers do not enforce themselves)
- an account listed only as read-only must not change (lamports, data, owner)
- an account whose data changed must be owned by the program afterwards
- the lamport total across the referenced accounts must be unchanged

Design notes
- Exceptions other than CustodyError are bugs: the checkpoint is still reverted,
  then the exception propagates.
- Callers guarantee exclusive access to the ledger for the duration of a call;
  there is no locking here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from custody.config import get_config
from custody.errors import (CustodyError, ExternalAccountDataModified,
                            ReadonlyAccountModified, RuntimeViolation,
                            UnbalancedInstruction)
from custody.state.accounts import Account
from custody.state.journal import Journal
from custody.state.ledger import Ledger
from custody.types.account import AccountInfo, AccountMeta
from custody.types.instruction import Instruction, decode_instruction
from custody.types.result import InvocationResult
from custody.types.status import InvocationStatus

from .dispatcher import dispatch
from .rent import Rent
from .system import AllocationService, TransferService

log = logging.getLogger(__name__)

# (lamports, data, owner) as seen before the handler ran.
_Fingerprint = Tuple[int, bytes, bytes]


@dataclass(frozen=True)
class Invocation:
    """One instruction plus its positional account list."""
    data: bytes
    accounts: Tuple[AccountMeta, ...]

    @classmethod
    def of(cls, instruction: Instruction, accounts: Iterable[AccountMeta]) -> "Invocation":
        return cls(data=instruction.to_bytes(), accounts=tuple(accounts))


# --------------------------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------------------------


def _fingerprint(acc: Account) -> _Fingerprint:
    return acc.lamports, bytes(acc.data), acc.owner


def _materialize(
    journal: Journal, metas: Sequence[AccountMeta]
) -> Tuple[List[AccountInfo], Dict[bytes, Account], Dict[bytes, bool]]:
    """
    Build handler views. Repeated addresses share a single record; an address is
    writable if any of its metas says so.
    """
    infos: List[AccountInfo] = []
    records: Dict[bytes, Account] = {}
    writable: Dict[bytes, bool] = {}
    for meta in metas:
        acc = records.get(meta.pubkey)
        if acc is None:
            acc = journal.ensure_account_for_write(meta.pubkey)
            records[meta.pubkey] = acc
        writable[meta.pubkey] = writable.get(meta.pubkey, False) or meta.is_writable
        infos.append(AccountInfo(meta.pubkey, acc, is_signer=meta.is_signer, is_writable=meta.is_writable))
    return infos, records, writable


def _post_check(
    program_id: bytes,
    records: Dict[bytes, Account],
    writable: Dict[bytes, bool],
    before: Dict[bytes, _Fingerprint],
) -> List[bytes]:
    """Apply host rules to the post-handler state; returns the changed addresses."""
    changed: List[bytes] = []
    for addr, acc in records.items():
        prev = before[addr]
        now = _fingerprint(acc)
        if now == prev:
            continue
        hexaddr = "0x" + addr.hex()
        if not writable[addr]:
            raise ReadonlyAccountModified(address=hexaddr)
        if now[1] != prev[1] and acc.owner != program_id:
            raise ExternalAccountDataModified(address=hexaddr)
        changed.append(addr)

    total_before = sum(f[0] for f in before.values())
    total_after = sum(acc.lamports for acc in records.values())
    if total_before != total_after:
        raise UnbalancedInstruction(before=total_before, after=total_after)
    return sorted(changed)


# --------------------------------------------------------------------------------------
# Public API
# --------------------------------------------------------------------------------------


def invoke(
    ledger: Ledger,
    data: bytes | bytearray | memoryview,
    accounts: Sequence[AccountMeta],
    *,
    program_id: Optional[bytes] = None,
    allocation: Optional[AllocationService] = None,
    transfer: Optional[TransferService] = None,
    rent: Optional[Rent] = None,
) -> InvocationResult:
    """
    Apply one instruction to `ledger` atomically.

    Args:
        ledger: Base state; only modified if the invocation succeeds.
        data: Raw instruction bytes.
        accounts: Positional account metas (see custody.runtime.processor).
        program_id: The custody program's id (default: config).
        allocation, transfer: Service overrides (default: SystemProgram).
        rent: Rent calculator (default: config).

    Returns:
        InvocationResult; FAILED results carry the error payload.
    """
    if program_id is None or rent is None:
        cfg = get_config()
        program_id = cfg.program_id if program_id is None else program_id
        rent = cfg.rent.to_rent() if rent is None else rent

    journal = Journal(ledger.accounts)
    marker = journal.begin()
    infos, records, writable = _materialize(journal, accounts)
    before = {addr: _fingerprint(acc) for addr, acc in records.items()}

    instruction: Optional[Instruction] = None
    try:
        instruction = decode_instruction(data)
        dispatch(program_id, infos, instruction, allocation=allocation, transfer=transfer, rent=rent)
        written = _post_check(program_id, records, writable, before)
    except CustodyError as err:
        journal.revert_to(marker)
        if isinstance(err, RuntimeViolation):
            log.warning("invoke: runtime check failed code=%s data=%s", err.code, err.data)
        else:
            log.debug("invoke: reverted code=%s msg=%s", err.code, err.message)
        return InvocationResult(
            status=InvocationStatus.FAILED,
            error=err.to_dict(),
            instruction=None if instruction is None else instruction.to_dict(),
        )
    except Exception:
        journal.revert_to(marker)
        raise

    journal.flush()
    log.debug("invoke: committed %s written=%d", instruction.to_dict(), len(written))
    return InvocationResult(
        status=InvocationStatus.SUCCESS,
        instruction=instruction.to_dict(),
        written=tuple(written),
    )


def invoke_many(
    ledger: Ledger,
    invocations: Iterable[Invocation],
    *,
    program_id: Optional[bytes] = None,
    allocation: Optional[AllocationService] = None,
    transfer: Optional[TransferService] = None,
    rent: Optional[Rent] = None,
) -> List[InvocationResult]:
    """Apply invocations in order; a failed one is reverted and the next still runs."""
    results: List[InvocationResult] = []
    for inv in invocations:
        results.append(
            invoke(
                ledger,
                inv.data,
                inv.accounts,
                program_id=program_id,
                allocation=allocation,
                transfer=transfer,
                rent=rent,
            )
        )
    return results


__all__ = ["Invocation", "invoke", "invoke_many"]
