"""
Exact conversion between decimal token amounts and base units.

Amounts travel as strings so they never pass through a float.
"""
import re
from decimal import Decimal, localcontext
from typing import Union

from .exceptions import InvalidAmountError

# 1 SEI = 10**18 wei
NATIVE_DECIMALS = 18

# Minimum fractional digits shown to users
DISPLAY_PLACES = 6

# ASCII digits only; int() would accept any Unicode digit
_AMOUNT_RE = re.compile(r"^([0-9]+)(?:\.([0-9]+))?$")


def to_base_units(amount: Union[str, Decimal, int], decimals: int = NATIVE_DECIMALS) -> int:
    """
    Convert a decimal amount to integer base units.

    Args:
        amount: Decimal amount, e.g. "123.456789"
        decimals: Number of decimals of the token

    Returns:
        Amount in base units

    Raises:
        InvalidAmountError: If the amount is malformed, negative or has more
            fractional digits than the token supports
    """
    if isinstance(amount, bool):
        raise InvalidAmountError(f"Invalid amount: {amount!r}")
    if isinstance(amount, int):
        amount = str(amount)
    elif isinstance(amount, Decimal):
        if not amount.is_finite():
            raise InvalidAmountError(f"Invalid amount: {amount}")
        amount = format(amount, "f")
    elif not isinstance(amount, str):
        raise InvalidAmountError(f"Amount must be a decimal string, got {type(amount).__name__}")

    text = amount.strip()
    match = _AMOUNT_RE.match(text)
    if not match:
        raise InvalidAmountError(f"Invalid amount: {amount!r}")

    whole, fraction = match.group(1), match.group(2) or ""
    # Trailing zeros never change the value
    fraction = fraction.rstrip("0")
    if len(fraction) > decimals:
        raise InvalidAmountError(
            f"Amount {amount} has more than {decimals} decimal places"
        )

    return int(whole) * 10 ** decimals + int(fraction.ljust(decimals, "0") or "0")


def from_base_units(value: int, decimals: int = NATIVE_DECIMALS) -> Decimal:
    """Convert integer base units back to an exact Decimal."""
    if value < 0:
        raise InvalidAmountError(f"Base unit value must not be negative, got {value}")
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(value).scaleb(-decimals)


def format_amount(value: int, decimals: int = NATIVE_DECIMALS, min_places: int = DISPLAY_PLACES) -> str:
    """
    Format base units for display.

    At least ``min_places`` fractional digits are shown, more when the value
    needs them, so small balances never round to zero.
    """
    text = format(from_base_units(value, decimals), "f")
    whole, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")
    return f"{whole}.{fraction.ljust(min_places, '0')}"


def parse_positive_amount(amount: Union[str, Decimal, int], decimals: int = NATIVE_DECIMALS) -> int:
    """Convert an amount to base units and require it to be greater than zero."""
    value = to_base_units(amount, decimals)
    if value <= 0:
        raise InvalidAmountError(f"Amount must be greater than zero, got {amount}")
    return value
