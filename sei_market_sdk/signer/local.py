"""
Local private-key signer.
"""
import logging
from typing import Any, Dict

from eth_account import Account
from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)


class LocalSigner:
    """Signs transactions with a private key held in memory."""

    def __init__(self, private_key: str):
        """
        Args:
            private_key: Hex private key, with or without 0x prefix

        Raises:
            ValueError: If the key is not a valid secp256k1 private key
        """
        try:
            self._account: LocalAccount = Account.from_key(private_key)
        except Exception as e:
            # Never echo the key back
            raise ValueError(f"Invalid private key: {type(e).__name__}")
        self.address = self._account.address

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        logger.debug(f"Signing transaction from {self.address} (nonce {transaction_dict.get('nonce')})")
        return self._account.sign_transaction(transaction_dict)

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address!r})"
