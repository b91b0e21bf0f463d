"""
PurchaseOrchestrator - drives one purchase from confirmation to a final state.

A purchase goes through four phases::

    confirm -> processing -> success
                          -> failed -> (retry) -> confirm

Preconditions are checked before anything is sent. Once processing, the steps
run strictly in order: gas estimate, transfer, on-chain confirmation, ledger
settlement. The ledger is only called for a confirmed, non-reverted transfer.
Every failure ends the attempt in ``failed`` with a message; no exception
escapes :meth:`PurchaseOrchestrator.confirm`.
"""
import dataclasses
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from web3 import Web3

from .config import Network
from .exceptions import (
    ConfirmationError, ConfirmationTimeoutError, FailureKind, InsufficientBalanceError,
    LedgerError, MarketError, NoTransactionReferenceError, RecipientUnresolvedError,
    TransactionError, TransactionRevertedError, WalletError, WalletNotConnectedError,
    WrongNetworkError
)
from .models import LedgerAck, TxReceipt
from .settlement import Settlement
from .units import format_amount, parse_positive_amount
from .wallet import WalletClient

# Gas for a plain value transfer
DEFAULT_TRANSFER_GAS = 21000
GAS_BUFFER_PERCENT = 20
DEFAULT_CONFIRMATION_TIMEOUT = 60.0


class PurchasePhase(str, Enum):
    CONFIRM = "confirm"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class PurchaseAttempt:
    """State of one purchase. Never persisted."""
    reference: str
    amount: str
    amount_wei: Optional[int] = None
    buyer_address: Optional[str] = None
    recipient_address: Optional[str] = None
    phase: PurchasePhase = PurchasePhase.CONFIRM
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    explorer_url: Optional[str] = None
    confirmed: bool = False
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    ack: Optional[LedgerAck] = None

    @property
    def is_terminal(self) -> bool:
        return self.phase in (PurchasePhase.SUCCESS, PurchasePhase.FAILED)


class PurchaseOrchestrator:
    """
    Runs a single purchase attempt against a wallet and a ledger.

    The orchestrator is not re-entrant: while one confirmation is running,
    further :meth:`confirm` calls are ignored and return the current state.
    """

    def __init__(
        self,
        wallet: WalletClient,
        settlement: Settlement,
        amount: str,
        network: Network,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        confirmations: int = 1,
        default_gas: int = DEFAULT_TRANSFER_GAS,
        gas_buffer_percent: int = GAS_BUFFER_PERCENT,
        on_success: Optional[Callable[[str], Any]] = None,
        on_failure: Optional[Callable[[str], Any]] = None,
        on_change: Optional[Callable[[PurchaseAttempt], Any]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            wallet: Buyer's wallet client
            settlement: What is bought and how it is recorded
            amount: Price as a decimal string in the native token
            network: Chain the payment must be made on
            confirmation_timeout: Seconds to wait for on-chain confirmation
            confirmations: Blocks required before the transfer counts
            default_gas: Gas limit used when estimation fails
            gas_buffer_percent: Headroom added to the gas estimate
            on_success: Called with the transaction hash on success
            on_failure: Called with the error message on failure
            on_change: Called with a snapshot on every state change
            logger: Optional logger instance
        """
        if confirmation_timeout <= 0:
            raise ValueError("confirmation_timeout must be positive")
        if confirmations < 1:
            raise ValueError("confirmations must be at least 1")

        self.wallet = wallet
        self.settlement = settlement
        self.network = network
        self.confirmation_timeout = confirmation_timeout
        self.confirmations = confirmations
        self.default_gas = default_gas
        self.gas_buffer_percent = gas_buffer_percent
        self.on_success = on_success
        self.on_failure = on_failure
        self.on_change = on_change
        self.logger = logger or logging.getLogger(__name__)

        self._attempt = PurchaseAttempt(reference=settlement.reference, amount=amount)
        self._receipt: Optional[TxReceipt] = None
        self._dismissed = False
        # Held for the whole of confirm/retry; never waited on
        self._run_lock = threading.Lock()
        self._state_lock = threading.RLock()

    @property
    def attempt(self) -> PurchaseAttempt:
        return self.snapshot()

    @property
    def phase(self) -> PurchasePhase:
        with self._state_lock:
            return self._attempt.phase

    @property
    def dismissed(self) -> bool:
        return self._dismissed

    def snapshot(self) -> PurchaseAttempt:
        """Return a copy of the current attempt."""
        with self._state_lock:
            return dataclasses.replace(self._attempt)

    def confirm(self) -> PurchaseAttempt:
        """
        Start the purchase.

        Returns:
            Snapshot of the attempt once it reached ``success`` or ``failed``,
            or the current snapshot if the call was ignored
        """
        if not self._run_lock.acquire(blocking=False):
            self.logger.warning(f"Purchase {self._attempt.reference} already in progress, ignoring confirm")
            return self.snapshot()
        try:
            if self._dismissed:
                self.logger.warning(f"Purchase {self._attempt.reference} was dismissed, ignoring confirm")
                return self.snapshot()
            if self.phase != PurchasePhase.CONFIRM:
                self.logger.warning(f"Cannot confirm purchase in phase {self.phase.value}")
                return self.snapshot()

            try:
                self._check_preconditions()
            except Exception as e:
                self._fail(e)
                return self.snapshot()

            self._update(phase=PurchasePhase.PROCESSING)
            try:
                receipt = self._submit()
                ack = self._settle(receipt)
            except Exception as e:
                self._fail(e)
            else:
                self._succeed(ack)
            return self.snapshot()
        finally:
            self._run_lock.release()

    def retry(self) -> bool:
        """
        Go back to ``confirm`` after a failure.

        Transaction hash, error and ledger data are cleared; listing, buyer
        and seller context are kept.

        Returns:
            True if the attempt was reset
        """
        if not self._run_lock.acquire(blocking=False):
            return False
        try:
            with self._state_lock:
                if self._attempt.phase != PurchasePhase.FAILED:
                    return False
                self._receipt = None
                self._attempt = dataclasses.replace(
                    self._attempt,
                    phase=PurchasePhase.CONFIRM,
                    transaction_hash=None,
                    block_number=None,
                    explorer_url=None,
                    confirmed=False,
                    error=None,
                    failure_kind=None,
                    ack=None,
                )
            self.logger.info(f"Purchase {self._attempt.reference} reset for retry")
            self._notify(self.on_change, self.snapshot())
            return True
        finally:
            self._run_lock.release()

    def retry_settlement(self) -> PurchaseAttempt:
        """
        Repeat the ledger call for a payment that confirmed on-chain.

        Only valid after a ledger failure. The same transaction hash is
        sent again; no new transfer is made.
        """
        if not self._run_lock.acquire(blocking=False):
            return self.snapshot()
        try:
            with self._state_lock:
                eligible = (
                    self._attempt.phase == PurchasePhase.FAILED
                    and self._attempt.failure_kind == FailureKind.SUPPORT
                    and self._attempt.confirmed
                    and self._receipt is not None
                )
            if not eligible:
                self.logger.warning("Settlement retry is only possible after a ledger failure")
                return self.snapshot()

            self.logger.info(f"Retrying settlement of {self._attempt.transaction_hash}")
            self._update(phase=PurchasePhase.PROCESSING, error=None, failure_kind=None)
            try:
                ack = self._settle(self._receipt)
            except Exception as e:
                self._fail(e)
            else:
                self._succeed(ack)
            return self.snapshot()
        finally:
            self._run_lock.release()

    def dismiss(self) -> bool:
        """
        Close the purchase dialog.

        Not possible while a transfer is being processed.

        Returns:
            True if dismissed
        """
        if not self._run_lock.acquire(blocking=False):
            return False
        try:
            if self.phase == PurchasePhase.PROCESSING:
                return False
            self._dismissed = True
            return True
        finally:
            self._run_lock.release()

    def _check_preconditions(self) -> None:
        buyer = self.wallet.address
        if not buyer:
            raise WalletNotConnectedError("Wallet not connected. Connect your wallet to continue.")

        self.settlement.check()

        chain_id = self.wallet.get_chain_id()
        if chain_id != self.network.chain_id:
            raise WrongNetworkError(
                f"Wallet is on chain {chain_id}. Switch to {self.network.chain_name} "
                f"(chain {self.network.chain_id}) and try again.",
                expected_chain_id=self.network.chain_id,
                actual_chain_id=chain_id
            )

        recipient = self._attempt.recipient_address or self.settlement.resolve_recipient()
        if not recipient:
            raise RecipientUnresolvedError("Recipient not resolved: the seller has no wallet address")
        if not Web3.is_address(recipient):
            raise RecipientUnresolvedError(f"Recipient not resolved: invalid address {recipient!r}")
        recipient = Web3.to_checksum_address(recipient)

        amount_wei = parse_positive_amount(self._attempt.amount, self.network.decimals)

        # Always a fresh read; the balance may have changed since page load
        balance = self.wallet.get_balance(buyer)
        if balance < amount_wei:
            required = format_amount(amount_wei, self.network.decimals)
            available = format_amount(balance, self.network.decimals)
            raise InsufficientBalanceError(
                f"Insufficient {self.network.symbol} balance. You have {available} "
                f"{self.network.symbol} but need {required} {self.network.symbol}.",
                required=required,
                available=available
            )

        self._update(buyer_address=buyer, recipient_address=recipient, amount_wei=amount_wei)

    def _estimate_gas(self, buyer: str, recipient: str, value: int) -> int:
        try:
            estimate = int(self.wallet.estimate_gas(buyer, recipient, value))
            self.logger.debug(f"Estimated gas: {estimate}")
        except Exception as e:
            estimate = self.default_gas
            self.logger.warning(f"Gas estimation failed, using default: {estimate}. Error: {e}")
        return estimate * (100 + self.gas_buffer_percent) // 100

    def _submit(self) -> TxReceipt:
        attempt = self.snapshot()
        gas_limit = self._estimate_gas(attempt.buyer_address, attempt.recipient_address, attempt.amount_wei)

        try:
            tx_hash = self.wallet.send_transaction(
                attempt.buyer_address,
                attempt.recipient_address,
                attempt.amount_wei,
                gas_limit
            )
        except MarketError:
            raise
        except Exception as e:
            raise TransactionError(f"Failed to send transaction: {str(e)}")

        if not tx_hash:
            raise NoTransactionReferenceError("Transaction failed to submit")

        self.logger.info(f"Purchase {attempt.reference}: transaction sent {tx_hash}")
        self._update(transaction_hash=tx_hash, explorer_url=self.network.explorer_tx_url(tx_hash))

        receipt = self._wait_for_confirmation(tx_hash)
        self._update(block_number=receipt.block_number)
        if receipt.reverted:
            raise TransactionRevertedError(
                "Transaction was reverted; no payment was made",
                transaction_hash=tx_hash
            )

        self._receipt = receipt
        self._update(confirmed=True)
        self.logger.info(f"Purchase {attempt.reference}: {tx_hash} confirmed in block {receipt.block_number}")
        return receipt

    def _wait_for_confirmation(self, tx_hash: str) -> TxReceipt:
        """Wait on a worker thread so a stuck node cannot outlive the timeout."""
        outcome: Dict[str, Any] = {}
        done = threading.Event()

        def _wait() -> None:
            try:
                outcome["receipt"] = self.wallet.wait_for_confirmation(
                    tx_hash, self.confirmations, self.confirmation_timeout
                )
            except Exception as e:
                outcome["error"] = e
            finally:
                done.set()

        worker = threading.Thread(target=_wait, name=f"confirm-{tx_hash[:10]}", daemon=True)
        worker.start()

        timeout_message = (
            f"Transaction {tx_hash} was not confirmed within {self.confirmation_timeout:g}s. "
            "It may still confirm; check the block explorer before trying again."
        )
        if not done.wait(self.confirmation_timeout):
            raise ConfirmationTimeoutError(timeout_message, transaction_hash=tx_hash)

        error = outcome.get("error")
        if isinstance(error, ConfirmationTimeoutError):
            raise ConfirmationTimeoutError(timeout_message, transaction_hash=tx_hash)
        if isinstance(error, MarketError):
            raise error
        if error is not None:
            raise ConfirmationError(f"Failed waiting for confirmation: {str(error)}", transaction_hash=tx_hash)
        return outcome["receipt"]

    def _settle(self, receipt: TxReceipt) -> LedgerAck:
        attempt = self.snapshot()
        try:
            return self.settlement.settle(attempt, receipt)
        except LedgerError:
            raise
        except Exception as e:
            raise LedgerError(f"Ledger call failed: {str(e)}", transaction_hash=attempt.transaction_hash)

    def _describe(self, error: Exception) -> str:
        if isinstance(error, LedgerError):
            tx_hash = self._attempt.transaction_hash
            return (
                f"Your payment was sent (transaction {tx_hash}) but access was not confirmed: {error}. "
                "The payment may have gone through; contact support with this transaction hash "
                "instead of paying again."
            )
        if isinstance(error, MarketError):
            return str(error)
        return f"Payment failed: {str(error)}"

    def _fail(self, error: Exception) -> None:
        kind = error.kind if isinstance(error, MarketError) else FailureKind.RETRYABLE
        message = self._describe(error)
        if isinstance(error, MarketError):
            self.logger.error(f"Purchase {self._attempt.reference} failed ({kind.value}): {message}")
        else:
            self.logger.exception(f"Purchase {self._attempt.reference} failed unexpectedly: {error}")
        self._update(phase=PurchasePhase.FAILED, error=message, failure_kind=kind)
        self._notify(self.on_failure, message)

    def _succeed(self, ack: LedgerAck) -> None:
        self._update(phase=PurchasePhase.SUCCESS, ack=ack, error=None, failure_kind=None)
        tx_hash = self._attempt.transaction_hash
        self.logger.info(f"Purchase {self._attempt.reference} completed: {tx_hash}")
        self._notify(self.on_success, tx_hash)

    def _update(self, **changes: Any) -> None:
        with self._state_lock:
            self._attempt = dataclasses.replace(self._attempt, **changes)
            snapshot = dataclasses.replace(self._attempt)
        self._notify(self.on_change, snapshot)

    def _notify(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            self.logger.warning(f"Purchase listener raised: {e}", exc_info=True)
