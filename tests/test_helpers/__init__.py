"""
Test doubles shared across the SEI Market SDK tests.
"""
import threading
from typing import Dict, List, Optional

from sei_market_sdk.config import NetworkConfig
from sei_market_sdk.exceptions import LedgerResponseError
from sei_market_sdk.models import LedgerAck, TxReceipt

# Test constants used throughout tests
TEST_LEDGER_URL = "https://market.example.com"
TEST_RPC_URL = "https://rpc.example.com"
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
BUYER = "0x1111111111111111111111111111111111111111"
SELLER = "0x2222222222222222222222222222222222222222"
PLATFORM = "0x3333333333333333333333333333333333333333"
TX_HASH = "0x" + "ab" * 32
MAINNET = NetworkConfig.resolve("sei-mainnet")
TESTNET = NetworkConfig.resolve("sei-testnet")
ONE_SEI = 10 ** 18


class FakeWallet:
    """In-memory wallet that records every call it receives."""

    def __init__(
        self,
        address: Optional[str] = BUYER,
        balance: int = 100 * ONE_SEI,
        chain_id: int = MAINNET.chain_id,
        gas_estimate: Optional[int] = 21000,
        tx_hash: Optional[str] = TX_HASH,
        status: int = 1,
        block_number: int = 1234
    ):
        self.address = address
        self.balance = balance
        self.chain_id = chain_id
        self.gas_estimate = gas_estimate
        self.tx_hash = tx_hash
        self.status = status
        self.block_number = block_number

        self.send_error: Optional[Exception] = None
        self.confirm_error: Optional[Exception] = None
        self.confirm_delay: Optional[threading.Event] = None
        self.send_started = threading.Event()
        self.release_send: Optional[threading.Event] = None

        self.balance_calls: List[str] = []
        self.sent: List[Dict] = []
        self.waited: List[str] = []

    def get_chain_id(self) -> int:
        return self.chain_id

    def get_balance(self, address: str) -> int:
        self.balance_calls.append(address)
        return self.balance

    def estimate_gas(self, from_address: str, to_address: str, value: int) -> int:
        if self.gas_estimate is None:
            raise RuntimeError("execution reverted")
        return self.gas_estimate

    def send_transaction(self, from_address: str, to_address: str, value: int, gas_limit: int) -> Optional[str]:
        self.send_started.set()
        if self.release_send is not None:
            self.release_send.wait(5)
        self.sent.append({"from": from_address, "to": to_address, "value": value, "gas": gas_limit})
        if self.send_error is not None:
            raise self.send_error
        return self.tx_hash

    def wait_for_confirmation(self, tx_hash: str, confirmations: int = 1, timeout: float = 60.0) -> TxReceipt:
        self.waited.append(tx_hash)
        if self.confirm_delay is not None:
            # Blocks until the test releases it, simulating a stuck node
            self.confirm_delay.wait(timeout * 10)
        if self.confirm_error is not None:
            raise self.confirm_error
        return TxReceipt(
            tx_hash=tx_hash,
            block_number=self.block_number,
            status=self.status,
            gas_used=21000,
            from_address=self.address,
        )


class FakeLedger:
    """Stand-in for LedgerClient that records settlement requests."""

    def __init__(self, fail_times: int = 0):
        self.fail_times = fail_times
        self.purchases: List = []
        self.credit_purchases: List = []

    def _respond(self, request) -> LedgerAck:
        if self.fail_times > 0:
            self.fail_times -= 1
            raise LedgerResponseError(
                "Ledger returned HTTP 500: database unavailable",
                status_code=500,
                transaction_hash=request.transaction_hash
            )
        return LedgerAck(success=True, transaction_id="pay-1", access_granted=True)

    def record_purchase(self, request) -> LedgerAck:
        self.purchases.append(request)
        return self._respond(request)

    def record_credit_purchase(self, request) -> LedgerAck:
        self.credit_purchases.append(request)
        return self._respond(request)

    def close(self) -> None:
        pass
