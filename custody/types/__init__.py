"""
custody.types — small dataclasses and enums shared by the runtime, harness and CLI.

Public surface (re-exported):
    Deposit, Withdraw, Instruction : the two instruction variants
    decode_instruction             : strict wire decoder
    AccountMeta, AccountInfo       : positional account list entries / handler views
    InvocationStatus               : SUCCESS / FAILED
    InvocationResult               : result of one invocation
"""

from __future__ import annotations

from .account import AccountInfo, AccountMeta
from .instruction import (Deposit, Instruction, InstructionTag, Withdraw,
                          decode_instruction)
from .result import InvocationResult
from .status import InvocationStatus

__all__ = [
    "AccountInfo",
    "AccountMeta",
    "Deposit",
    "Withdraw",
    "Instruction",
    "InstructionTag",
    "decode_instruction",
    "InvocationResult",
    "InvocationStatus",
]
