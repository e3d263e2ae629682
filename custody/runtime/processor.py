"""
custody.runtime.processor — the deposit and withdrawal handlers.

Both handlers take the positional account list they were invoked with and mutate
the AccountInfo views in place. They raise on the first failure and never undo
their own writes: the invocation harness discards everything for a failed call.
Handlers do not log.

Deposit  accounts: [payer, custody_account, system_program]
Withdraw accounts: [custody_account, recipient]
"""

from __future__ import annotations

from typing import Iterator, Optional, Sequence

from custody.errors import (IncorrectProgramId, InsufficientFunds,
                            NotEnoughAccountKeys, OwnershipError)
from custody.state.accounts import checked_add, checked_sub
from custody.state.codec import COUNTER_SIZE, read_counter, write_counter
from custody.types.account import AccountInfo

from .rent import Rent
from .system import AllocationService, TransferService

# Size of the custody account's data region.
DEPOSIT_ACCOUNT_SIZE: int = COUNTER_SIZE

# Withdrawals release counter // WITHDRAWAL_DIVISOR.
WITHDRAWAL_DIVISOR: int = 10


def next_account_info(it: Iterator[AccountInfo], *, expected: int, got: int) -> AccountInfo:
    try:
        return next(it)
    except StopIteration:
        raise NotEnoughAccountKeys(expected=expected, got=got) from None


def deposit(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    amount: int,
    *,
    allocation: AllocationService,
    transfer: TransferService,
    rent: Optional[Rent] = None,
) -> None:
    """
    Credit `amount` lamports from the payer into the custody account and add it to
    the counter, allocating the account first if its data region is empty.

    `amount` may be zero; a zero deposit into a fresh address still allocates it.
    """
    it = iter(accounts)
    payer = next_account_info(it, expected=3, got=len(accounts))
    custody_account = next_account_info(it, expected=3, got=len(accounts))
    system_program = next_account_info(it, expected=3, got=len(accounts))

    if system_program.key != allocation.program_id:
        raise IncorrectProgramId(
            "third account must be the system program",
            expected="0x" + allocation.program_id.hex(),
            got=system_program.key_hex,
        )

    if custody_account.data_is_empty():
        rent = rent or Rent()
        allocation.create_account(
            payer,
            custody_account,
            rent.minimum_balance(DEPOSIT_ACCOUNT_SIZE),
            DEPOSIT_ACCOUNT_SIZE,
            program_id,
        )

    transfer.transfer(payer, custody_account, amount)

    total = read_counter(custody_account.data, address=custody_account.key_hex)
    total = checked_add(total, amount)
    write_counter(custody_account.data, total, address=custody_account.key_hex)


def withdraw(program_id: bytes, accounts: Sequence[AccountInfo]) -> int:
    """
    Move one tenth of the counter (clamped to the custody account's lamports) to the
    recipient and decrement the counter by the amount actually moved.

    There is no signer check and no link between recipient and the
    original payer. Returns the lamports moved.
    """
    it = iter(accounts)
    custody_account = next_account_info(it, expected=2, got=len(accounts))
    recipient = next_account_info(it, expected=2, got=len(accounts))

    if custody_account.owner != program_id:
        raise OwnershipError(address=custody_account.key_hex, owner="0x" + custody_account.owner.hex())

    total = read_counter(custody_account.data, address=custody_account.key_hex)
    amount = total // WITHDRAWAL_DIVISOR
    if amount == 0:
        raise InsufficientFunds("withdrawal share is zero", counter=total)

    # Balance may have drifted below the counter's share through external means.
    amount = min(amount, custody_account.lamports)

    checked_add(recipient.lamports, amount)
    custody_account.lamports = custody_account.lamports - amount
    recipient.lamports = recipient.lamports + amount

    write_counter(custody_account.data, checked_sub(total, amount), address=custody_account.key_hex)
    return amount


__all__ = [
    "DEPOSIT_ACCOUNT_SIZE",
    "WITHDRAWAL_DIVISOR",
    "next_account_info",
    "deposit",
    "withdraw",
]
