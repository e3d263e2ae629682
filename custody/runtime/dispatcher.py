"""
custody.runtime.dispatcher — decode instruction bytes and route to a handler.

  - Deposit(amount) → custody.runtime.processor.deposit
  - Withdraw        → custody.runtime.processor.withdraw

Decoding happens before any account is touched, so a DecodeError never leaves a
mutation behind. The handler receives the exact account list and program id the
dispatcher was given.
"""

from __future__ import annotations

from typing import Optional, Sequence

from custody.types.account import AccountInfo
from custody.types.instruction import (Deposit, Instruction, Withdraw,
                                       decode_instruction)

from . import processor
from .rent import Rent
from .system import AllocationService, SystemProgram, TransferService


def dispatch(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    instruction: Instruction,
    *,
    allocation: Optional[AllocationService] = None,
    transfer: Optional[TransferService] = None,
    rent: Optional[Rent] = None,
) -> None:
    """Run an already-decoded instruction. Services default to a fresh SystemProgram."""
    if isinstance(instruction, Deposit):
        system = SystemProgram()
        processor.deposit(
            program_id,
            accounts,
            instruction.amount,
            allocation=allocation or system,
            transfer=transfer or system,
            rent=rent,
        )
        return
    if isinstance(instruction, Withdraw):
        processor.withdraw(program_id, accounts)
        return
    raise TypeError(f"not a custody instruction: {type(instruction).__name__}")


def process_instruction(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    data: bytes | bytearray | memoryview,
    *,
    allocation: Optional[AllocationService] = None,
    transfer: Optional[TransferService] = None,
    rent: Optional[Rent] = None,
) -> Instruction:
    """
    Program entrypoint: decode `data` and dispatch. Returns the decoded instruction.

    Raises
    ------
    DecodeError
        Malformed or unknown instruction bytes (no handler runs).
    CustodyError
        Whatever the selected handler raises.
    """
    instruction = decode_instruction(data)
    dispatch(program_id, accounts, instruction, allocation=allocation, transfer=transfer, rent=rent)
    return instruction


__all__ = ["dispatch", "process_instruction"]
