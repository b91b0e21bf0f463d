"""
Exceptions for the SEI Market SDK.

Every purchase failure maps to one of these classes. The ``kind`` attribute
tells the caller what the user can do about it:

- ``user_action``: the user can fix it (connect wallet, switch network, top up)
- ``retryable``: a transient network or infrastructure problem
- ``support``: funds moved on-chain but the ledger did not confirm access
"""
from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """How a purchase failure should be presented to the user."""
    USER_ACTION = "user_action"
    RETRYABLE = "retryable"
    SUPPORT = "support"


class MarketError(Exception):
    """Base exception for SDK errors."""
    kind: FailureKind = FailureKind.RETRYABLE


# Precondition failures

class PreconditionError(MarketError):
    """Raised when a purchase cannot start."""
    kind = FailureKind.USER_ACTION


class WalletNotConnectedError(PreconditionError):
    """Raised when no buyer wallet is available."""
    pass


class WrongNetworkError(PreconditionError):
    """Raised when the wallet is connected to a different chain."""

    def __init__(self, message: str, expected_chain_id: int, actual_chain_id: Optional[int] = None):
        self.expected_chain_id = expected_chain_id
        self.actual_chain_id = actual_chain_id
        super().__init__(message)


class ListingInactiveError(PreconditionError):
    """Raised when the listing is no longer for sale."""
    pass


class InvalidAmountError(PreconditionError, ValueError):
    """Raised when a price is not a positive decimal amount."""
    pass


class RecipientUnresolvedError(PreconditionError):
    """Raised when the seller's receiving address cannot be found."""
    kind = FailureKind.RETRYABLE


class InsufficientBalanceError(PreconditionError):
    """Raised when the buyer's balance is below the price."""

    def __init__(self, message: str, required: str, available: str):
        self.required = required
        self.available = available
        super().__init__(message)


# Wallet and chain failures

class WalletError(MarketError):
    """Raised when the wallet node cannot answer a query."""
    pass


class TransactionError(MarketError):
    """Raised when a transfer cannot be submitted."""
    pass


class SigningRejectedError(TransactionError):
    """Raised when signing is refused by the user or signer."""
    kind = FailureKind.USER_ACTION


class NoTransactionReferenceError(TransactionError):
    """Raised when submission returns no transaction hash."""
    pass


class ConfirmationError(MarketError):
    """Raised when a submitted transfer does not confirm successfully."""

    def __init__(self, message: str, transaction_hash: Optional[str] = None):
        self.transaction_hash = transaction_hash
        super().__init__(message)


class ConfirmationTimeoutError(ConfirmationError):
    """Raised when confirmation takes longer than the configured timeout."""
    pass


class TransactionRevertedError(ConfirmationError):
    """Raised when the confirmed receipt reports a revert."""
    pass


# Ledger failures

class LedgerError(MarketError):
    """
    Raised when the ledger does not acknowledge a confirmed payment.

    The on-chain transfer already happened when this is raised, so it is
    never a plain "payment failed".
    """
    kind = FailureKind.SUPPORT

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        transaction_hash: Optional[str] = None
    ):
        self.status_code = status_code
        self.transaction_hash = transaction_hash
        super().__init__(message)


class LedgerConnectionError(LedgerError):
    """Raised when the ledger endpoint cannot be reached."""
    pass


class LedgerResponseError(LedgerError):
    """Raised when the ledger answers with an error status or payload."""
    pass


# Lookup failures

class DirectoryError(MarketError):
    """Raised when the user directory lookup fails."""
    pass
