"""
Settlement strategies for the purchase orchestrator.

A settlement knows who gets paid and how a confirmed payment is recorded.
The orchestrator drives the transfer itself and stays the same for every
kind of purchase.
"""
import logging
from typing import Optional, Protocol, TYPE_CHECKING

from .directory import SellerDirectory
from .exceptions import DirectoryError, ListingInactiveError, RecipientUnresolvedError
from .ledger import LedgerClient
from .models import CreditPurchaseRequest, LedgerAck, Listing, LedgerPurchaseRequest, TxReceipt
from .session import SessionContext, WalletSession

if TYPE_CHECKING:
    from .orchestrator import PurchaseAttempt

logger = logging.getLogger(__name__)


class Settlement(Protocol):
    """What is being bought, from whom, and how it is recorded."""

    reference: str
    session: SessionContext

    def check(self) -> None:
        """Raise a PreconditionError if the purchase cannot start."""
        ...

    def resolve_recipient(self) -> Optional[str]:
        ...

    def settle(self, attempt: "PurchaseAttempt", receipt: TxReceipt) -> LedgerAck:
        ...


class ListingSettlement:
    """Buying access to a marketplace listing."""

    def __init__(
        self,
        ledger: LedgerClient,
        listing: Listing,
        session: SessionContext,
        directory: SellerDirectory
    ):
        self.ledger = ledger
        self.listing = listing
        self.session = session
        self.directory = directory
        self.reference = listing.id

    def check(self) -> None:
        if not self.listing.is_active:
            raise ListingInactiveError("This listing is not active and cannot be purchased")

    def resolve_recipient(self) -> Optional[str]:
        try:
            return self.directory.resolve_wallet(self.listing.seller_id)
        except DirectoryError as e:
            raise RecipientUnresolvedError(f"Recipient not resolved: {e}")

    def settle(self, attempt: "PurchaseAttempt", receipt: TxReceipt) -> LedgerAck:
        request = LedgerPurchaseRequest(
            listing_id=self.listing.id,
            buyer_wallet=attempt.buyer_address,
            seller_wallet=attempt.recipient_address,
            amount=self.listing.price,
            transaction_hash=attempt.transaction_hash,
            is_demo=self.session.is_demo,
            demo_identifier=self.session.demo_identifier,
        )
        logger.debug(f"Recording purchase of listing {self.listing.id} ({attempt.transaction_hash})")
        return self.ledger.record_purchase(request)


class CreditSettlement:
    """Buying platform credits."""

    def __init__(
        self,
        ledger: LedgerClient,
        credits: int,
        session: SessionContext,
        recipient_address: Optional[str]
    ):
        self.ledger = ledger
        self.credits = credits
        self.session = session
        self.recipient_address = recipient_address
        self.reference = f"credits:{credits}"

    def check(self) -> None:
        pass

    def resolve_recipient(self) -> Optional[str]:
        if not self.recipient_address:
            raise RecipientUnresolvedError("Recipient not resolved: recipient address not configured")
        return self.recipient_address

    def settle(self, attempt: "PurchaseAttempt", receipt: TxReceipt) -> LedgerAck:
        # Credits belong to the session's wallet, which may differ from the payer
        owner = self.session.address if isinstance(self.session, WalletSession) else attempt.buyer_address
        request = CreditPurchaseRequest(
            transaction_hash=attempt.transaction_hash,
            amount=attempt.amount,
            credits_amount=self.credits,
            wallet_address=owner,
            block_number=receipt.block_number,
        )
        logger.debug(f"Recording purchase of {self.credits} credits ({attempt.transaction_hash})")
        return self.ledger.record_credit_purchase(request)
