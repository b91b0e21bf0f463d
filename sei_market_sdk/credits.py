"""
Credit packages and pricing.

Credits are bought with SEI. Testnet prices are a hundredth of mainnet
prices. All arithmetic is done on Decimal.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_UP
from typing import List

from .exceptions import InvalidAmountError

# SEI per credit for custom amounts
MAINNET_CREDIT_RATE = Decimal("0.1")
TESTNET_CREDIT_RATE = Decimal("0.001")

TESTNET_DISCOUNT = Decimal(100)


@dataclass(frozen=True)
class CreditPackage:
    credits: int
    price: Decimal
    bonus: int = 0
    popular: bool = False

    @property
    def total_credits(self) -> int:
        return self.credits + self.bonus

    @property
    def price_str(self) -> str:
        return format(self.price, "f")


BASE_CREDIT_PACKAGES = (
    CreditPackage(credits=50, price=Decimal(5)),
    CreditPackage(credits=100, price=Decimal(10)),
    CreditPackage(credits=250, price=Decimal(25), bonus=25, popular=True),
    CreditPackage(credits=500, price=Decimal(50), bonus=75),
    CreditPackage(credits=1000, price=Decimal(100), bonus=200),
)


def credit_packages(testnet: bool = False) -> List[CreditPackage]:
    """Packages priced for the given network."""
    if not testnet:
        return list(BASE_CREDIT_PACKAGES)
    return [
        CreditPackage(
            credits=pkg.credits,
            price=(pkg.price / TESTNET_DISCOUNT).quantize(Decimal("0.0001")),
            bonus=pkg.bonus,
            popular=pkg.popular,
        )
        for pkg in BASE_CREDIT_PACKAGES
    ]


def quote_custom_credits(credits: int, testnet: bool = False) -> str:
    """
    Price of a custom number of credits, as a decimal SEI string.

    Raises:
        InvalidAmountError: If credits is not a positive integer
    """
    if isinstance(credits, bool) or not isinstance(credits, int) or credits <= 0:
        raise InvalidAmountError(f"Credits must be a positive integer, got {credits!r}")
    rate = TESTNET_CREDIT_RATE if testnet else MAINNET_CREDIT_RATE
    places = Decimal("0.000001") if testnet else Decimal("0.01")
    return format((rate * credits).quantize(places, rounding=ROUND_UP), "f")
