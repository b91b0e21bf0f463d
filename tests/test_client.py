"""
Tests for the MarketClient facade.
"""
import pytest

from sei_market_sdk.client import MarketClient
from sei_market_sdk.config import MarketSettings
from sei_market_sdk.credits import credit_packages
from sei_market_sdk.directory import StaticDirectory, SupabaseDirectory
from sei_market_sdk.exceptions import FailureKind, InvalidAmountError
from sei_market_sdk.ledger import LedgerClient
from sei_market_sdk.orchestrator import PurchasePhase
from sei_market_sdk.session import DemoSession, WalletSession
from sei_market_sdk.wallet import Web3WalletClient
from tests.test_helpers import (
    BUYER, MAINNET, ONE_SEI, PLATFORM, SELLER, TEST_LEDGER_URL, TEST_PRIV_KEY, TESTNET, TX_HASH,
    FakeLedger, FakeWallet
)


def _settings(network=MAINNET, **kwargs):
    return MarketSettings(network=network, ledger_url=TEST_LEDGER_URL, recipient_address=PLATFORM, **kwargs)


@pytest.fixture
def client(wallet, ledger):
    return MarketClient(
        _settings(confirmation_timeout=5.0),
        wallet=wallet,
        ledger=ledger,
        directory=StaticDirectory({"seller-1": SELLER}),
    )


def test_default_collaborators():
    settings = _settings(supabase_url="https://project.supabase.co", supabase_key="sb_publishable_abc")
    with MarketClient(settings, priv_key=TEST_PRIV_KEY) as client:
        assert isinstance(client.wallet, Web3WalletClient)
        assert client.wallet.rpc_url == MAINNET.rpc_url
        assert isinstance(client.ledger, LedgerClient)
        assert isinstance(client.directory, SupabaseDirectory)
        assert client.wallet.address is not None


def test_no_directory_without_supabase():
    client = MarketClient(_settings(), wallet=FakeWallet(), ledger=FakeLedger())
    assert client.directory is None


def test_from_env(monkeypatch):
    monkeypatch.setenv("SEI_MARKET_LEDGER_URL", TEST_LEDGER_URL)
    monkeypatch.setenv("SEI_MARKET_USE_TESTNET", "true")
    client = MarketClient.from_env(wallet=FakeWallet(), ledger=FakeLedger())
    assert client.network.chain_id == TESTNET.chain_id


def test_purchase_listing(client, listing, wallet, ledger):
    purchase = client.purchase(listing, WalletSession(BUYER))
    assert purchase.confirmation_timeout == 5.0

    attempt = purchase.confirm()

    assert attempt.phase == PurchasePhase.SUCCESS
    assert wallet.sent[0]["value"] == 5 * ONE_SEI // 2
    assert ledger.purchases[0].listing_id == "listing-1"


def test_purchase_requires_directory(listing):
    client = MarketClient(_settings(), wallet=FakeWallet(), ledger=FakeLedger())
    with pytest.raises(ValueError, match="directory"):
        client.purchase(listing, WalletSession(BUYER))


def test_buy_credit_package(client, wallet, ledger):
    package = client.credit_packages()[2]
    attempt = client.buy_credits(WalletSession(BUYER), package=package).confirm()

    assert attempt.phase == PurchasePhase.SUCCESS
    assert wallet.sent[0]["to"] == PLATFORM
    assert wallet.sent[0]["value"] == 25 * ONE_SEI

    payload = ledger.credit_purchases[0].to_payload()
    assert payload == {
        "transactionHash": TX_HASH,
        "amountSei": "25",
        "creditsAmount": 275,
        "userWalletAddress": BUYER,
        "blockNumber": 1234,
    }


def test_buy_custom_credits_on_testnet(ledger):
    wallet = FakeWallet(chain_id=TESTNET.chain_id)
    client = MarketClient(_settings(network=TESTNET), wallet=wallet, ledger=ledger)

    attempt = client.buy_credits(DemoSession("10.0.0.1"), credits=120).confirm()

    assert attempt.phase == PurchasePhase.SUCCESS
    assert attempt.amount == "0.120000"
    assert wallet.sent[0]["value"] == 12 * ONE_SEI // 100
    assert ledger.credit_purchases[0].wallet_address == BUYER


def test_buy_credits_without_recipient(wallet, ledger):
    settings = MarketSettings(network=MAINNET, ledger_url=TEST_LEDGER_URL)
    client = MarketClient(settings, wallet=wallet, ledger=ledger)

    attempt = client.buy_credits(WalletSession(BUYER), package=credit_packages()[0]).confirm()

    assert attempt.phase == PurchasePhase.FAILED
    assert attempt.failure_kind == FailureKind.RETRYABLE
    assert "recipient address not configured" in attempt.error
    assert wallet.sent == []


def test_buy_credits_arguments(client):
    with pytest.raises(ValueError, match="exactly one"):
        client.buy_credits(WalletSession(BUYER))
    with pytest.raises(ValueError, match="exactly one"):
        client.buy_credits(WalletSession(BUYER), package=credit_packages()[0], credits=10)
    with pytest.raises(InvalidAmountError):
        client.buy_credits(WalletSession(BUYER), credits=0)


def test_get_balance(client, wallet):
    wallet.balance = 3 * ONE_SEI // 2
    assert client.get_balance() == "1.500000"
    assert wallet.balance_calls == [BUYER]


def test_get_balance_without_wallet(ledger):
    client = MarketClient(_settings(), wallet=FakeWallet(address=None), ledger=ledger)
    with pytest.raises(ValueError):
        client.get_balance()


def test_explorer_url(client):
    assert client.explorer_tx_url(TX_HASH) == f"https://seitrace.com/tx/{TX_HASH}"
