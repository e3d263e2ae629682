"""
Deposit handler: lazy allocation, transfer, counter accounting, and the
all-or-nothing behavior of the harness around it.
"""
from typing import List, Tuple

import pytest

from custody.errors import NotEnoughAccountKeys, TransferError
from custody.runtime.executor import invoke
from custody.runtime.processor import DEPOSIT_ACCOUNT_SIZE, deposit
from custody.runtime.rent import Rent
from custody.runtime.system import SYSTEM_PROGRAM_ID, SystemProgram
from custody.state.accounts import U64_MAX, Account
from custody.state.codec import encode_counter, read_counter
from custody.state.ledger import Ledger
from custody.types.account import AccountInfo, AccountMeta
from custody.types.instruction import Deposit

PROGRAM_ID = b"\x11" * 32
PAYER = b"\xaa" * 32
CUSTODY = b"\xcc" * 32
OTHER = b"\xdd" * 32
FOREIGN_PROGRAM = b"\x22" * 32

PAYER_START = 10_000_000
RENT_MIN = 946_560  # (128 + 8) * 3480 * 2


def metas(*, custody_signer: bool = True, third: bytes = SYSTEM_PROGRAM_ID) -> List[AccountMeta]:
    return [
        AccountMeta(PAYER, is_signer=True, is_writable=True),
        AccountMeta(CUSTODY, is_signer=custody_signer, is_writable=True),
        AccountMeta(third, is_signer=False, is_writable=False),
    ]


def run_deposit(ledger: Ledger, amount: int, **kw):
    return invoke(ledger, Deposit(amount=amount).to_bytes(), metas(**kw), program_id=PROGRAM_ID, rent=Rent())


# --------------------------------------------------------------------------
# Happy paths
# --------------------------------------------------------------------------


def test_rent_minimum_for_custody_account() -> None:
    assert Rent().minimum_balance(DEPOSIT_ACCOUNT_SIZE) == RENT_MIN


def test_first_deposit_allocates_and_credits(ledger: Ledger) -> None:
    res = run_deposit(ledger, 1_000)
    assert res.is_success, res.error

    acc = ledger.get(CUSTODY)
    assert acc is not None
    assert acc.owner == PROGRAM_ID
    assert len(acc.data) == 8
    assert ledger.counter_of(CUSTODY) == 1_000
    assert acc.lamports == RENT_MIN + 1_000
    assert ledger.lamports_of(PAYER) == PAYER_START - RENT_MIN - 1_000
    assert res.written == tuple(sorted([PAYER, CUSTODY]))


def test_sequential_deposits_accumulate(ledger: Ledger) -> None:
    assert run_deposit(ledger, 400).is_success
    # The custody account no longer needs to sign once it exists.
    assert run_deposit(ledger, 250, custody_signer=False).is_success

    assert ledger.counter_of(CUSTODY) == 650
    assert ledger.lamports_of(CUSTODY) == RENT_MIN + 650
    assert ledger.lamports_of(PAYER) == PAYER_START - RENT_MIN - 650


def test_zero_deposit_still_allocates(ledger: Ledger) -> None:
    res = run_deposit(ledger, 0)
    assert res.is_success
    assert ledger.counter_of(CUSTODY) == 0
    assert ledger.lamports_of(CUSTODY) == RENT_MIN


def test_zero_deposit_into_existing_account_is_noop(ledger: Ledger) -> None:
    assert run_deposit(ledger, 5).is_success
    before = ledger.to_dict()
    res = run_deposit(ledger, 0, custody_signer=False)
    assert res.is_success
    assert res.written == ()
    assert ledger.to_dict() == before


# --------------------------------------------------------------------------
# Failures leave the ledger untouched
# --------------------------------------------------------------------------


def test_payer_cannot_fund_rent(ledger: Ledger) -> None:
    ledger.put(PAYER, Account(lamports=RENT_MIN - 1))
    before = ledger.to_dict()

    res = run_deposit(ledger, 1)
    assert not res.is_success
    assert res.error_code == "ALLOCATION_ERROR"
    assert ledger.to_dict() == before
    assert ledger.get(CUSTODY) is None


def test_unsigned_fresh_account_cannot_be_allocated(ledger: Ledger) -> None:
    res = run_deposit(ledger, 1, custody_signer=False)
    assert res.error_code == "ALLOCATION_ERROR"
    assert ledger.get(CUSTODY) is None


def test_prefunded_address_collides(ledger: Ledger) -> None:
    ledger.put(CUSTODY, Account(lamports=1))
    res = run_deposit(ledger, 1)
    assert res.error_code == "ALLOCATION_ERROR"
    assert ledger.lamports_of(CUSTODY) == 1


def test_transfer_failure_rolls_back_allocation(ledger: Ledger) -> None:
    # Enough for rent, not for rent + amount.
    ledger.put(PAYER, Account(lamports=RENT_MIN + 5))
    before = ledger.to_dict()

    res = run_deposit(ledger, 10)
    assert res.error_code == "TRANSFER_ERROR"
    assert res.instruction == {"kind": "deposit", "amount": 10}
    assert ledger.to_dict() == before


def test_wrong_system_program_account(ledger: Ledger) -> None:
    res = run_deposit(ledger, 1, third=OTHER)
    assert res.error_code == "INCORRECT_PROGRAM_ID"
    assert ledger.get(CUSTODY) is None


def test_missing_accounts(ledger: Ledger) -> None:
    res = invoke(ledger, Deposit(amount=1).to_bytes(), metas()[:2], program_id=PROGRAM_ID, rent=Rent())
    assert res.error_code == "NOT_ENOUGH_ACCOUNT_KEYS"


def test_counter_overflow_is_an_error(ledger: Ledger) -> None:
    ledger.put(CUSTODY, Account(lamports=RENT_MIN, data=encode_counter(U64_MAX - 5), owner=PROGRAM_ID))
    before = ledger.to_dict()
    res = run_deposit(ledger, 10, custody_signer=False)
    assert res.error_code == "ARITHMETIC_OVERFLOW"
    assert ledger.to_dict() == before


def test_short_data_region_is_invalid(ledger: Ledger) -> None:
    ledger.put(CUSTODY, Account(lamports=RENT_MIN, data=b"\x01\x02\x03\x04", owner=PROGRAM_ID))
    res = run_deposit(ledger, 10, custody_signer=False)
    assert res.error_code == "INVALID_ACCOUNT_DATA"


def test_deposit_into_foreign_owned_account_is_rejected_by_host(ledger: Ledger) -> None:
    ledger.put(CUSTODY, Account(lamports=RENT_MIN, data=encode_counter(0), owner=FOREIGN_PROGRAM))
    before = ledger.to_dict()
    res = run_deposit(ledger, 10, custody_signer=False)
    assert res.error_code == "EXTERNAL_ACCOUNT_DATA_MODIFIED"
    assert ledger.to_dict() == before


# --------------------------------------------------------------------------
# Handler-level behavior with injected services
# --------------------------------------------------------------------------


class RecordingSystem(SystemProgram):
    def __init__(self) -> None:
        self.calls: List[Tuple] = []

    def create_account(self, payer, new_account, lamports, space, owner) -> None:
        self.calls.append(("create", lamports, space, owner))
        super().create_account(payer, new_account, lamports, space, owner)

    def transfer(self, source, destination, lamports) -> None:
        self.calls.append(("transfer", lamports))
        super().transfer(source, destination, lamports)


class FailingTransfer:
    program_id = SYSTEM_PROGRAM_ID

    def transfer(self, source, destination, lamports) -> None:
        raise TransferError("boom", lamports=lamports)


def _infos(custody: Account) -> List[AccountInfo]:
    return [
        AccountInfo(PAYER, Account(lamports=PAYER_START), is_signer=True),
        AccountInfo(CUSTODY, custody, is_signer=True),
        AccountInfo(SYSTEM_PROGRAM_ID, Account(), is_writable=False),
    ]


def test_handler_allocates_exactly_once() -> None:
    custody = Account()
    infos = _infos(custody)
    system = RecordingSystem()

    deposit(PROGRAM_ID, infos, 7, allocation=system, transfer=system, rent=Rent())
    deposit(PROGRAM_ID, infos, 3, allocation=system, transfer=system, rent=Rent())

    assert system.calls == [
        ("create", RENT_MIN, 8, PROGRAM_ID),
        ("transfer", 7),
        ("transfer", 3),
    ]
    assert read_counter(custody.data) == 10


def test_handler_leaves_counter_alone_when_transfer_fails() -> None:
    custody = Account()
    infos = _infos(custody)

    with pytest.raises(TransferError):
        deposit(PROGRAM_ID, infos, 7, allocation=SystemProgram(), transfer=FailingTransfer(), rent=Rent())

    # Allocation already happened inside this call; undoing it is the harness's job.
    assert custody.owner == PROGRAM_ID
    assert read_counter(custody.data) == 0


def test_handler_requires_three_accounts() -> None:
    infos = _infos(Account())[:1]
    with pytest.raises(NotEnoughAccountKeys) as ei:
        deposit(PROGRAM_ID, infos, 1, allocation=SystemProgram(), transfer=SystemProgram())
    assert ei.value.data == {"expected": 3, "got": 1}
