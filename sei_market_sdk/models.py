"""
Data models for the SEI Market SDK.
"""
from typing import Dict, Any, Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .units import parse_positive_amount


class Listing(BaseModel):
    """A marketplace offer to sell access to a research item"""
    id: str
    research_id: str
    seller_id: str = Field(..., alias="user_id")
    price: str = Field(..., alias="price_sei")
    is_active: bool = True
    title: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("price", mode="before")
    @classmethod
    def _check_price(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("price must be a decimal string")
        parse_positive_amount(value)
        return value.strip()


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    status: int
    gas_used: int = Field(0, alias="gasUsed")
    from_address: Optional[str] = Field(None, alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def reverted(self) -> bool:
        return self.status != 1


class LedgerPurchaseRequest(BaseModel):
    """Body of a marketplace settlement call"""
    listing_id: str
    buyer_wallet: str
    seller_wallet: str
    amount: str = Field(..., serialization_alias="amount_sei")
    transaction_hash: str
    is_demo: bool = False
    demo_identifier: Optional[str] = Field(None, serialization_alias="demo_ip")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CreditPurchaseRequest(BaseModel):
    """Body of a credit top-up settlement call"""
    transaction_hash: str = Field(..., serialization_alias="transactionHash")
    amount: str = Field(..., serialization_alias="amountSei")
    credits_amount: int = Field(..., gt=0, serialization_alias="creditsAmount")
    wallet_address: str = Field(..., serialization_alias="userWalletAddress")
    block_number: Optional[int] = Field(None, serialization_alias="blockNumber")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class LedgerAck(BaseModel):
    """Acknowledgement returned by the ledger"""
    success: bool
    transaction_id: Optional[str] = None
    message: Optional[str] = None
    access_granted: Optional[bool] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    already_recorded: bool = False

    model_config = ConfigDict(extra="allow")
