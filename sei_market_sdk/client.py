"""
MarketClient - entry point tying wallet, ledger and directory together.
"""
import logging
from typing import Any, Callable, List, Optional

from .config import MarketSettings, Network
from .credits import CreditPackage, credit_packages, quote_custom_credits
from .directory import SellerDirectory, SupabaseDirectory
from .ledger import LedgerClient
from .models import Listing
from .orchestrator import PurchaseAttempt, PurchaseOrchestrator
from .session import SessionContext
from .settlement import CreditSettlement, ListingSettlement
from .signer import Signer
from .units import format_amount
from .wallet import WalletClient, Web3WalletClient


class MarketClient:
    """
    Builds purchase orchestrators for marketplace listings and credits.

    Example::

        client = MarketClient.from_env(priv_key=os.environ["BUYER_KEY"])
        purchase = client.purchase(listing, WalletSession(client.wallet.address))
        attempt = purchase.confirm()
    """

    def __init__(
        self,
        settings: MarketSettings,
        wallet: Optional[WalletClient] = None,
        signer: Optional[Signer] = None,
        priv_key: Optional[str] = None,
        ledger: Optional[LedgerClient] = None,
        directory: Optional[SellerDirectory] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the client

        Args:
            settings: Network and endpoint settings
            wallet: Wallet client (defaults to a Web3WalletClient on the settings' RPC)
            signer: Signer for the default wallet client
            priv_key: Private key for the default wallet client
            ledger: Ledger client (defaults to one on settings.ledger_url)
            directory: Seller directory (defaults to Supabase when configured)
            logger: Optional logger instance
        """
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)

        self.wallet = wallet or Web3WalletClient(
            settings.effective_rpc_url,
            signer=signer,
            priv_key=priv_key,
            timeout=settings.http_timeout,
            logger=self.logger
        )
        self.ledger = ledger or LedgerClient(
            settings.ledger_url,
            timeout=settings.http_timeout,
            logger=self.logger
        )
        if directory is None and settings.supabase_url and settings.supabase_key:
            directory = SupabaseDirectory(
                settings.supabase_url,
                settings.supabase_key,
                timeout=settings.http_timeout,
                logger=self.logger
            )
        self.directory = directory

    @classmethod
    def from_env(cls, **kwargs: Any) -> "MarketClient":
        """Create a client from SEI_MARKET_* environment variables."""
        return cls(MarketSettings.from_env(), **kwargs)

    @property
    def network(self) -> Network:
        return self.settings.network

    def purchase(
        self,
        listing: Listing,
        session: SessionContext,
        on_success: Optional[Callable[[str], Any]] = None,
        on_failure: Optional[Callable[[str], Any]] = None,
        on_change: Optional[Callable[[PurchaseAttempt], Any]] = None
    ) -> PurchaseOrchestrator:
        """
        Prepare the purchase of a listing.

        Nothing is sent until :meth:`PurchaseOrchestrator.confirm` is called.

        Raises:
            ValueError: If no seller directory is configured
        """
        if self.directory is None:
            raise ValueError("A seller directory is required for listing purchases")
        settlement = ListingSettlement(self.ledger, listing, session, self.directory)
        return self._orchestrator(settlement, listing.price, on_success, on_failure, on_change)

    def buy_credits(
        self,
        session: SessionContext,
        package: Optional[CreditPackage] = None,
        credits: Optional[int] = None,
        on_success: Optional[Callable[[str], Any]] = None,
        on_failure: Optional[Callable[[str], Any]] = None,
        on_change: Optional[Callable[[PurchaseAttempt], Any]] = None
    ) -> PurchaseOrchestrator:
        """
        Prepare a credit purchase, either a package or a custom amount.

        Raises:
            ValueError: If neither or both of package and credits are given
            InvalidAmountError: If credits is not a positive integer
        """
        if (package is None) == (credits is None):
            raise ValueError("Provide exactly one of package or credits")

        testnet = self.network.testnet
        if package is not None:
            amount = package.price_str
            total = package.total_credits
        else:
            amount = quote_custom_credits(credits, testnet=testnet)
            total = credits

        settlement = CreditSettlement(self.ledger, total, session, self.settings.recipient_address)
        return self._orchestrator(settlement, amount, on_success, on_failure, on_change)

    def credit_packages(self) -> List[CreditPackage]:
        return credit_packages(testnet=self.network.testnet)

    def get_balance(self, address: Optional[str] = None) -> str:
        """Formatted native balance of an address (defaults to the wallet's)."""
        address = address or self.wallet.address
        if not address:
            raise ValueError("No address given and no wallet connected")
        return format_amount(self.wallet.get_balance(address), self.network.decimals)

    def explorer_tx_url(self, tx_hash: str) -> str:
        return self.network.explorer_tx_url(tx_hash)

    def _orchestrator(self, settlement, amount, on_success, on_failure, on_change) -> PurchaseOrchestrator:
        return PurchaseOrchestrator(
            self.wallet,
            settlement,
            amount,
            self.network,
            confirmation_timeout=self.settings.confirmation_timeout,
            on_success=on_success,
            on_failure=on_failure,
            on_change=on_change,
            logger=self.logger
        )

    def close(self) -> None:
        self.ledger.close()
        if isinstance(self.directory, SupabaseDirectory):
            self.directory.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
