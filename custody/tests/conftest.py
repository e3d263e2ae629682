"""
Shared pytest fixtures for the custody tests:
- fixed program id and rent so results never depend on the caller's environment
- a ledger with a funded payer
- a scrubbed CUSTODY_* environment and a fresh get_config() cache
"""
from __future__ import annotations

import pytest

from custody.config import get_config
from custody.runtime.rent import Rent
from custody.state.accounts import Account
from custody.state.ledger import Ledger

PROGRAM_ID = b"\x11" * 32
PAYER = b"\xaa" * 32
CUSTODY = b"\xcc" * 32
RECIPIENT = b"\xbb" * 32

PAYER_START = 10_000_000


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for key in (
        "CUSTODY_CONFIG",
        "CUSTODY_PROGRAM_ID",
        "CUSTODY_RENT_LAMPORTS_PER_BYTE_YEAR",
        "CUSTODY_RENT_EXEMPTION_THRESHOLD",
    ):
        monkeypatch.delenv(key, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def program_id() -> bytes:
    return PROGRAM_ID


@pytest.fixture
def rent() -> Rent:
    return Rent()


@pytest.fixture
def ledger() -> Ledger:
    lg = Ledger()
    lg.put(PAYER, Account(lamports=PAYER_START))
    return lg
