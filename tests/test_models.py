"""
Tests for data models and the local signer.
"""
import pytest
from pydantic import ValidationError

from sei_market_sdk.models import CreditPurchaseRequest, LedgerAck, Listing, TxReceipt
from sei_market_sdk.signer import Signer
from sei_market_sdk.signer.local import LocalSigner
from tests.test_helpers import BUYER, TEST_PRIV_KEY, TX_HASH


def test_listing_from_api_row():
    listing = Listing.model_validate({
        "id": "l1",
        "research_id": "r1",
        "user_id": "u1",
        "price_sei": " 12.75 ",
        "is_active": True,
        "created_at": "2024-01-01T00:00:00Z",
    })
    assert listing.seller_id == "u1"
    assert listing.price == "12.75"


@pytest.mark.parametrize("price", ["0", "-1", "abc", 12.75, None, "\u0661\u0660", "\uff15"])
def test_listing_rejects_bad_price(price):
    with pytest.raises(ValidationError):
        Listing(id="l1", research_id="r1", user_id="u1", price_sei=price)


def test_receipt_reverted():
    receipt = TxReceipt.model_validate({"transactionHash": TX_HASH, "blockNumber": 5, "status": 0})
    assert receipt.reverted is True
    assert receipt.gas_used == 0
    assert receipt.logs == []


def test_credit_request_requires_positive_credits():
    with pytest.raises(ValidationError):
        CreditPurchaseRequest(transaction_hash=TX_HASH, amount="1", credits_amount=0, wallet_address=BUYER)


def test_credit_request_omits_missing_block():
    request = CreditPurchaseRequest(transaction_hash=TX_HASH, amount="1", credits_amount=10, wallet_address=BUYER)
    assert "blockNumber" not in request.to_payload()


def test_ack_keeps_unknown_fields():
    ack = LedgerAck.model_validate({"success": True, "purchase_id": "p1"})
    assert ack.model_extra == {"purchase_id": "p1"}


def test_local_signer():
    signer = LocalSigner(TEST_PRIV_KEY)
    assert isinstance(signer, Signer)
    assert signer.address.startswith("0x")
    assert signer.address in repr(signer)
    assert TEST_PRIV_KEY[2:] not in repr(signer)

    signed = signer.sign_transaction({
        "to": BUYER,
        "value": 1,
        "gas": 21000,
        "gasPrice": 1_000_000_000,
        "nonce": 0,
        "chainId": 1329,
    })
    assert len(signed.raw_transaction) > 0


def test_local_signer_invalid_key():
    with pytest.raises(ValueError) as exc_info:
        LocalSigner("0xdeadbeef")
    assert "deadbeef" not in str(exc_info.value)
