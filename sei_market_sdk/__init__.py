"""
SEI Market SDK - pay for marketplace listings and credits with native SEI.
"""
from .client import MarketClient
from .config import MarketSettings, Network, NetworkConfig
from .credits import CreditPackage, credit_packages, quote_custom_credits
from .directory import SellerDirectory, StaticDirectory, SupabaseDirectory
from .exceptions import (
    ConfirmationError, ConfirmationTimeoutError, DirectoryError, FailureKind,
    InsufficientBalanceError, InvalidAmountError, LedgerError, ListingInactiveError,
    MarketError, PreconditionError, RecipientUnresolvedError, SigningRejectedError,
    TransactionError, TransactionRevertedError, WalletError, WalletNotConnectedError,
    WrongNetworkError
)
from .ledger import LedgerClient
from .models import CreditPurchaseRequest, LedgerAck, LedgerPurchaseRequest, Listing, TxReceipt
from .orchestrator import PurchaseAttempt, PurchaseOrchestrator, PurchasePhase
from .session import DemoSession, WalletSession, session_from_address
from .settlement import CreditSettlement, ListingSettlement
from .signer import Signer
from .signer.local import LocalSigner
from .units import format_amount, from_base_units, to_base_units
from .version import __version__
from .wallet import WalletClient, Web3WalletClient

__all__ = [
    "MarketClient",
    "MarketSettings",
    "Network",
    "NetworkConfig",
    "CreditPackage",
    "credit_packages",
    "quote_custom_credits",
    "SellerDirectory",
    "StaticDirectory",
    "SupabaseDirectory",
    "LedgerClient",
    "Listing",
    "TxReceipt",
    "LedgerAck",
    "LedgerPurchaseRequest",
    "CreditPurchaseRequest",
    "PurchaseOrchestrator",
    "PurchaseAttempt",
    "PurchasePhase",
    "ListingSettlement",
    "CreditSettlement",
    "WalletSession",
    "DemoSession",
    "session_from_address",
    "Signer",
    "LocalSigner",
    "WalletClient",
    "Web3WalletClient",
    "to_base_units",
    "from_base_units",
    "format_amount",
    "FailureKind",
    "MarketError",
    "PreconditionError",
    "WalletNotConnectedError",
    "WrongNetworkError",
    "ListingInactiveError",
    "InvalidAmountError",
    "RecipientUnresolvedError",
    "InsufficientBalanceError",
    "WalletError",
    "TransactionError",
    "SigningRejectedError",
    "ConfirmationError",
    "ConfirmationTimeoutError",
    "TransactionRevertedError",
    "LedgerError",
    "DirectoryError",
    "__version__",
]
