"""
Pytest fixtures for the SEI Market SDK tests.
"""
import time

import pytest

from sei_market_sdk._rate_limited_log import reset_rate_limits
from sei_market_sdk.directory import StaticDirectory
from sei_market_sdk.models import Listing
from sei_market_sdk.orchestrator import PurchaseOrchestrator
from sei_market_sdk.session import WalletSession
from sei_market_sdk.settlement import ListingSettlement
from tests.test_helpers import BUYER, MAINNET, SELLER, FakeLedger, FakeWallet


# Make time.sleep instantaneous so polling loops don't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(autouse=True)
def _clean_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def listing():
    return Listing(
        id="listing-1",
        research_id="research-1",
        user_id="seller-1",
        price_sei="2.5",
        title="Protein folding dataset",
    )


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def directory():
    return StaticDirectory({"seller-1": SELLER})


@pytest.fixture
def events():
    """Collects listener calls as (name, value) tuples."""
    return []


@pytest.fixture
def make_purchase(wallet, ledger, directory, listing, events):
    """Factory for a listing purchase wired to the fakes."""

    def _make(session=None, listing=listing, wallet=wallet, **kwargs):
        settlement = ListingSettlement(ledger, listing, session or WalletSession(BUYER), directory)
        kwargs.setdefault("on_success", lambda tx: events.append(("success", tx)))
        kwargs.setdefault("on_failure", lambda msg: events.append(("failure", msg)))
        return PurchaseOrchestrator(wallet, settlement, listing.price, MAINNET, **kwargs)

    return _make
