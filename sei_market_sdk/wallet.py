"""
Wallet access for native SEI transfers.

The orchestrator only depends on the :class:`WalletClient` protocol, so any
wallet integration can be plugged in. :class:`Web3WalletClient` is the
web3.py implementation used against a JSON-RPC node.
"""
import logging
import time
from typing import Any, Dict, Optional, Protocol

from web3 import Web3
from web3.exceptions import TimeExhausted, TransactionNotFound, Web3Exception
from web3.types import TxReceipt as Web3TxReceipt

from ._rate_limited_log import rate_limited_log
from .config import validate_url
from .exceptions import (
    ConfirmationTimeoutError, SigningRejectedError, TransactionError,
    WalletError, WalletNotConnectedError
)
from .models import TxReceipt
from .signer import Signer
from .signer.local import LocalSigner

# 1 gwei
DEFAULT_GAS_PRICE_WEI = 1_000_000_000


class WalletClient(Protocol):
    """Capabilities the purchase flow needs from a wallet."""

    @property
    def address(self) -> Optional[str]:
        """Connected account address, or None when no wallet is connected"""
        ...

    def get_chain_id(self) -> int:
        ...

    def get_balance(self, address: str) -> int:
        """Balance in wei"""
        ...

    def estimate_gas(self, from_address: str, to_address: str, value: int) -> int:
        ...

    def send_transaction(self, from_address: str, to_address: str, value: int, gas_limit: int) -> Optional[str]:
        """Submit a transfer and return its hash"""
        ...

    def wait_for_confirmation(self, tx_hash: str, confirmations: int = 1, timeout: float = 60.0) -> TxReceipt:
        ...


class Web3WalletClient:
    """
    Wallet client backed by a web3.py HTTP provider.

    Balances and gas come from the node; transfers are signed locally with a
    :class:`Signer` and broadcast as raw transactions.
    """

    def __init__(
        self,
        rpc_url: str,
        signer: Optional[Signer] = None,
        priv_key: Optional[str] = None,
        default_gas_price: int = DEFAULT_GAS_PRICE_WEI,
        poll_interval: float = 2.0,
        timeout: int = 30,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the wallet client

        Args:
            rpc_url: EVM JSON-RPC endpoint (e.g., "https://evm-rpc.sei-apis.com")
            signer: Custom signer (optional if priv_key provided)
            priv_key: Private key used to build a LocalSigner (optional)
            default_gas_price: Gas price used when the node cannot provide one
            poll_interval: Seconds between receipt polls
            timeout: Timeout for RPC requests in seconds
            logger: Optional logger instance

        Without a signer or key the client can still read balances but
        reports no connected address.
        """
        self.rpc_url = validate_url("rpc_url", rpc_url)
        self.logger = logger or logging.getLogger(__name__)
        self.default_gas_price = default_gas_price
        self.poll_interval = poll_interval

        self.w3 = Web3(Web3.HTTPProvider(self.rpc_url, request_kwargs={"timeout": timeout}))

        if signer is None and priv_key:
            signer = LocalSigner(priv_key)
        self.signer = signer

    @property
    def address(self) -> Optional[str]:
        return self.signer.address if self.signer else None

    def get_chain_id(self) -> int:
        try:
            return int(self.w3.eth.chain_id)
        except Exception as e:
            self.logger.error(f"Failed to read chain id: {e}")
            raise WalletError(f"Failed to read chain id: {str(e)}")

    def get_balance(self, address: str) -> int:
        """
        Get the native balance of an address.

        Raises:
            WalletError: If the node cannot be queried
        """
        try:
            return int(self.w3.eth.get_balance(Web3.to_checksum_address(address)))
        except Exception as e:
            self.logger.error(f"Failed to get balance for {address}: {e}")
            raise WalletError(f"Failed to get SEI balance: {str(e)}")

    def estimate_gas(self, from_address: str, to_address: str, value: int) -> int:
        """
        Estimate gas for a plain value transfer.

        Raises:
            WalletError: If the node rejects the estimate
        """
        try:
            return int(self.w3.eth.estimate_gas({
                "from": Web3.to_checksum_address(from_address),
                "to": Web3.to_checksum_address(to_address),
                "value": value,
            }))
        except Exception as e:
            raise WalletError(f"Gas estimation failed: {str(e)}")

    def gas_price(self) -> int:
        try:
            return int(self.w3.eth.gas_price)
        except Exception as e:
            rate_limited_log(
                f"Gas price lookup failed, using default {self.default_gas_price} wei: {e}",
                level="warning",
                logger_instance=self.logger
            )
            return self.default_gas_price

    def send_transaction(self, from_address: str, to_address: str, value: int, gas_limit: int) -> Optional[str]:
        """
        Sign and broadcast a native transfer.

        Returns:
            Transaction hash as 0x-prefixed hex, or None if the node returned none

        Raises:
            WalletNotConnectedError: If no signer is configured
            SigningRejectedError: If the signer refuses the transaction
            TransactionError: If the node rejects the raw transaction
        """
        if not self.signer:
            raise WalletNotConnectedError("Wallet not connected")
        if from_address.lower() != self.signer.address.lower():
            raise TransactionError(f"Signer {self.signer.address} cannot send from {from_address}")

        try:
            sender = Web3.to_checksum_address(from_address)
            tx: Dict[str, Any] = {
                "to": Web3.to_checksum_address(to_address),
                "value": value,
                "gas": gas_limit,
                "gasPrice": self.gas_price(),
                "nonce": self.w3.eth.get_transaction_count(sender, "pending"),
                "chainId": self.get_chain_id(),
            }
        except WalletError as e:
            raise TransactionError(f"Failed to prepare transaction: {str(e)}")
        except Exception as e:
            self.logger.error(f"Failed to prepare transaction: {e}")
            raise TransactionError(f"Failed to prepare transaction: {str(e)}")

        try:
            signed_tx = self.signer.sign_transaction(tx)
        except Exception as e:
            self.logger.error(f"Transaction signing failed: {e}")
            raise SigningRejectedError(f"Transaction signing was rejected: {str(e)}")

        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Exception as e:
            self.logger.error(f"Failed to send transaction: {e}")
            raise TransactionError(f"Failed to send transaction: {str(e)}")

        if not tx_hash:
            return None
        tx_hash_hex = Web3.to_hex(tx_hash) if isinstance(tx_hash, (bytes, bytearray)) else str(tx_hash)
        self.logger.info(f"Transaction sent: {tx_hash_hex}")
        return tx_hash_hex

    def wait_for_confirmation(self, tx_hash: str, confirmations: int = 1, timeout: float = 60.0) -> TxReceipt:
        """
        Wait until a transaction is mined and has enough confirmations.

        Raises:
            ConfirmationTimeoutError: If the deadline passes first
            WalletError: If the node fails while polling
        """
        deadline = time.monotonic() + timeout
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=timeout,
                poll_latency=self.poll_interval
            )
        except TimeExhausted:
            raise ConfirmationTimeoutError(
                f"Transaction {tx_hash} was not confirmed within {timeout:g}s",
                transaction_hash=tx_hash
            )
        except Web3Exception as e:
            raise WalletError(f"Failed waiting for transaction {tx_hash}: {str(e)}")

        converted = self._convert_receipt(receipt)
        if converted.reverted or confirmations <= 1:
            return converted

        while True:
            try:
                depth = int(self.w3.eth.block_number) - converted.block_number + 1
            except Exception as e:
                raise WalletError(f"Failed to read block number: {str(e)}")
            if depth >= confirmations:
                return converted
            if time.monotonic() >= deadline:
                raise ConfirmationTimeoutError(
                    f"Transaction {tx_hash} reached {depth}/{confirmations} confirmations within {timeout:g}s",
                    transaction_hash=tx_hash
                )
            time.sleep(self.poll_interval)

    def get_receipt(self, tx_hash: str) -> Optional[TxReceipt]:
        """Get a receipt without waiting; None while the transaction is pending."""
        try:
            return self._convert_receipt(self.w3.eth.get_transaction_receipt(tx_hash))
        except TransactionNotFound:
            return None
        except Exception as e:
            raise WalletError(f"Failed to get receipt for {tx_hash}: {str(e)}")

    def _convert_receipt(self, web3_receipt: Web3TxReceipt) -> TxReceipt:
        """
        Convert a Web3 receipt to our TxReceipt model

        Args:
            web3_receipt: The Web3 transaction receipt

        Returns:
            Our TxReceipt model
        """
        receipt_dict = dict(web3_receipt)

        for key, value in list(receipt_dict.items()):
            if isinstance(value, (bytes, bytearray)):
                receipt_dict[key] = Web3.to_hex(value)
        receipt_dict["logs"] = [dict(log) for log in receipt_dict.get("logs", [])]

        return TxReceipt.model_validate(receipt_dict)
