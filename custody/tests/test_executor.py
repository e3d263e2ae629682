"""
Invocation harness: decode-before-touch, host post-checks, atomic commit/revert,
sequential invocations and config defaults.
"""
import logging

import pytest

from custody.config import DEFAULT_PROGRAM_ID
from custody.runtime.executor import Invocation, invoke, invoke_many
from custody.runtime.rent import Rent
from custody.runtime.system import SYSTEM_PROGRAM_ID
from custody.state.accounts import Account
from custody.state.codec import encode_counter
from custody.state.ledger import Ledger
from custody.types.account import AccountMeta
from custody.types.instruction import Deposit, Withdraw
from custody.types.status import InvocationStatus

PROGRAM_ID = b"\x11" * 32
PAYER = b"\xaa" * 32
CUSTODY = b"\xcc" * 32
RECIPIENT = b"\xbb" * 32

RENT_MIN = 946_560

DEPOSIT_ACCOUNTS = (
    AccountMeta(PAYER, is_signer=True),
    AccountMeta(CUSTODY, is_signer=True),
    AccountMeta(SYSTEM_PROGRAM_ID, is_writable=False),
)
WITHDRAW_ACCOUNTS = (AccountMeta(CUSTODY), AccountMeta(RECIPIENT))


class MintingTransfer:
    """A broken transfer service that credits without debiting."""
    program_id = SYSTEM_PROGRAM_ID

    def transfer(self, source, destination, lamports) -> None:
        destination.lamports = destination.lamports + lamports


class ExplodingTransfer:
    program_id = SYSTEM_PROGRAM_ID

    def transfer(self, source, destination, lamports) -> None:
        source.lamports = 0
        raise RuntimeError("bug in service")


@pytest.mark.parametrize("raw", [b"", b"\x05", b"\x00\x01"])
def test_decode_error_touches_nothing(ledger: Ledger, raw: bytes) -> None:
    before = ledger.to_dict()
    res = invoke(ledger, raw, DEPOSIT_ACCOUNTS, program_id=PROGRAM_ID, rent=Rent())
    assert res.status is InvocationStatus.FAILED
    assert res.error_code == "DECODE_ERROR"
    assert res.instruction is None
    assert res.written == ()
    assert ledger.to_dict() == before


def test_unbalanced_service_is_caught(ledger: Ledger) -> None:
    before = ledger.to_dict()
    res = invoke(
        ledger,
        Deposit(amount=50).to_bytes(),
        DEPOSIT_ACCOUNTS,
        program_id=PROGRAM_ID,
        rent=Rent(),
        transfer=MintingTransfer(),
    )
    assert res.error_code == "UNBALANCED_INSTRUCTION"
    assert res.error["data"] == {"before": 10_000_000, "after": 10_000_050}
    assert ledger.to_dict() == before


def test_unexpected_exceptions_propagate_after_revert(ledger: Ledger) -> None:
    before = ledger.to_dict()
    with pytest.raises(RuntimeError, match="bug in service"):
        invoke(
            ledger,
            Deposit(amount=1).to_bytes(),
            DEPOSIT_ACCOUNTS,
            program_id=PROGRAM_ID,
            rent=Rent(),
            transfer=ExplodingTransfer(),
        )
    assert ledger.to_dict() == before


def test_invoke_many_is_atomic_per_invocation(ledger: Ledger) -> None:
    results = invoke_many(
        ledger,
        [
            Invocation.of(Deposit(amount=100), DEPOSIT_ACCOUNTS),
            Invocation.of(Withdraw(), WITHDRAW_ACCOUNTS),
            Invocation(data=b"\x09", accounts=WITHDRAW_ACCOUNTS),
            Invocation.of(Deposit(amount=10**12), DEPOSIT_ACCOUNTS),  # payer can't cover
            Invocation.of(Withdraw(), WITHDRAW_ACCOUNTS),
        ],
        program_id=PROGRAM_ID,
        rent=Rent(),
    )
    assert [r.error_code for r in results] == [None, None, "DECODE_ERROR", "TRANSFER_ERROR", None]
    # 100 -> 90 -> 81
    assert ledger.counter_of(CUSTODY) == 81
    assert ledger.lamports_of(RECIPIENT) == 19
    assert ledger.lamports_of(CUSTODY) == RENT_MIN + 81
    assert ledger.total_lamports() == 10_000_000


def test_repeated_account_shares_one_record(ledger: Ledger) -> None:
    ledger.put(CUSTODY, Account(lamports=RENT_MIN + 100, data=encode_counter(100), owner=PROGRAM_ID))
    res = invoke(
        ledger, Withdraw().to_bytes(), [AccountMeta(CUSTODY), AccountMeta(CUSTODY)], program_id=PROGRAM_ID, rent=Rent()
    )
    assert res.is_success
    # Paying itself: balance unchanged, counter still decremented.
    assert ledger.lamports_of(CUSTODY) == RENT_MIN + 100
    assert ledger.counter_of(CUSTODY) == 90


def test_untouched_absent_accounts_are_not_persisted(ledger: Ledger) -> None:
    ledger.put(CUSTODY, Account(lamports=RENT_MIN + 5, data=encode_counter(5), owner=PROGRAM_ID))
    res = invoke(ledger, Withdraw().to_bytes(), WITHDRAW_ACCOUNTS, program_id=PROGRAM_ID, rent=Rent())
    assert res.error_code == "INSUFFICIENT_FUNDS"
    assert ledger.get(RECIPIENT) is None
    assert ledger.get(SYSTEM_PROGRAM_ID) is None


def test_defaults_come_from_config(ledger: Ledger) -> None:
    res = invoke(ledger, Deposit(amount=1).to_bytes(), DEPOSIT_ACCOUNTS)
    assert res.is_success
    assert ledger.get(CUSTODY).owner == DEFAULT_PROGRAM_ID


def test_config_rent_is_used(ledger: Ledger, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CUSTODY_RENT_LAMPORTS_PER_BYTE_YEAR", "1")
    monkeypatch.setenv("CUSTODY_RENT_EXEMPTION_THRESHOLD", "1.0")
    res = invoke(ledger, Deposit(amount=1).to_bytes(), DEPOSIT_ACCOUNTS, program_id=PROGRAM_ID)
    assert res.is_success
    assert ledger.lamports_of(CUSTODY) == 136 + 1


def test_failures_are_logged_at_debug(ledger: Ledger, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="custody.runtime.executor"):
        invoke(ledger, b"\x07", DEPOSIT_ACCOUNTS, program_id=PROGRAM_ID, rent=Rent())
    assert any("DECODE_ERROR" in r.getMessage() for r in caplog.records)
