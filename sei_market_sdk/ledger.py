"""
Client for the backend ledger API.

The ledger records a confirmed on-chain payment and grants what was paid for
(research access or credits) in one call. Calls are keyed by transaction
hash: the hash is sent as ``Idempotency-Key`` and acknowledged hashes are
cached, so repeating a settlement never records the payment twice from this
client.
"""
import logging
import threading
from typing import Any, Dict, Optional, Tuple

import requests
from cachetools import TTLCache
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import validate_url
from .exceptions import LedgerConnectionError, LedgerResponseError
from .models import CreditPurchaseRequest, LedgerAck, LedgerPurchaseRequest

PURCHASE_PATH = "/api/payments/sei"
CREDIT_PURCHASE_PATH = "/api/credits/purchase"


class LedgerClient:
    """HTTP client for the settlement endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        retry_count: int = 0,
        ack_cache_size: int = 1024,
        ack_cache_ttl: int = 3600,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the ledger client

        Args:
            base_url: Base URL of the ledger service (e.g., "https://market.example.com")
            timeout: Timeout for HTTP requests in seconds
            retry_count: Transport-level retries on connection errors (0 = none)
            ack_cache_size: Maximum number of remembered acknowledgements
            ack_cache_ttl: Seconds an acknowledgement is remembered
            session: Optional pre-configured requests session
            logger: Optional logger instance
        """
        self.base_url = validate_url("ledger_url", base_url)
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        self.session = session or requests.Session()
        if session is None:
            retries = Retry(
                total=retry_count,
                connect=retry_count,
                read=0,
                status=0,
                backoff_factor=0.5,
                allowed_methods=["POST"],
                raise_on_status=False
            )
            self.session.mount("http://", HTTPAdapter(max_retries=retries))
            self.session.mount("https://", HTTPAdapter(max_retries=retries))

        self._acks: TTLCache = TTLCache(maxsize=ack_cache_size, ttl=ack_cache_ttl)
        self._acks_lock = threading.RLock()

    def record_purchase(self, request: LedgerPurchaseRequest) -> LedgerAck:
        """
        Record a marketplace purchase and grant access to the listing.

        Raises:
            LedgerConnectionError: If the ledger cannot be reached
            LedgerResponseError: If the ledger refuses the purchase
        """
        return self._post(PURCHASE_PATH, request.to_payload(), request.transaction_hash)

    def record_credit_purchase(self, request: CreditPurchaseRequest) -> LedgerAck:
        """
        Record a credit top-up and add the credits to the buyer.

        Raises:
            LedgerConnectionError: If the ledger cannot be reached
            LedgerResponseError: If the ledger refuses the top-up
        """
        return self._post(CREDIT_PURCHASE_PATH, request.to_payload(), request.transaction_hash)

    def forget(self, transaction_hash: str) -> None:
        """Drop cached acknowledgements for a transaction."""
        with self._acks_lock:
            for key in [k for k in self._acks if k[1] == transaction_hash]:
                self._acks.pop(key, None)

    def _post(self, path: str, payload: Dict[str, Any], transaction_hash: str) -> LedgerAck:
        cache_key: Tuple[str, str] = (path, transaction_hash)
        with self._acks_lock:
            cached = self._acks.get(cache_key)
        if cached is not None:
            self.logger.info(f"Ledger already acknowledged {transaction_hash}, reusing acknowledgement")
            return cached

        self.logger.debug(f"Posting settlement for {transaction_hash} to {path}")
        try:
            response = self.session.post(
                f"{self.base_url}{path}",
                json=payload,
                headers={"Idempotency-Key": transaction_hash},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            self.logger.error(f"Ledger request failed for {transaction_hash}: {e}")
            raise LedgerConnectionError(
                f"Could not reach the ledger: {str(e)}",
                transaction_hash=transaction_hash
            )

        body = self._json_body(response)

        if response.status_code == 409:
            # Same hash already recorded by an earlier call
            self.logger.info(f"Ledger reports {transaction_hash} as already processed")
            ack = LedgerAck(
                success=True,
                already_recorded=True,
                message=(body or {}).get("error") or "Transaction already processed"
            )
        elif not response.ok:
            error = (body or {}).get("error") or response.text or response.reason or "unknown error"
            self.logger.error(f"Ledger returned HTTP {response.status_code} for {transaction_hash}: {error}")
            raise LedgerResponseError(
                f"Ledger returned HTTP {response.status_code}: {error}",
                status_code=response.status_code,
                transaction_hash=transaction_hash
            )
        else:
            if body is None:
                raise LedgerResponseError(
                    "Ledger returned a non-JSON response",
                    status_code=response.status_code,
                    transaction_hash=transaction_hash
                )
            try:
                ack = LedgerAck.model_validate(body)
            except ValidationError as e:
                raise LedgerResponseError(
                    f"Unexpected ledger response: {e.errors()[0]['msg']}",
                    status_code=response.status_code,
                    transaction_hash=transaction_hash
                )
            if not ack.success:
                raise LedgerResponseError(
                    f"Ledger rejected the payment: {ack.error or 'Payment processing failed'}",
                    status_code=response.status_code,
                    transaction_hash=transaction_hash
                )

        with self._acks_lock:
            self._acks[cache_key] = ack
        self.logger.info(f"Ledger acknowledged {transaction_hash}")
        return ack

    def _json_body(self, response: requests.Response) -> Optional[Dict[str, Any]]:
        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            self.logger.debug(f"Unexpected Content-Type: {content_type} (expected application/json)")
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
