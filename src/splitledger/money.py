"""Conversion between major-unit decimals and integer subunits."""

import logging
from decimal import ROUND_HALF_UP, Decimal

logger = logging.getLogger(__name__)

DEFAULT_SUBUNITS_PER_UNIT = 100


def to_subunits(
    amount: Decimal | int | str, subunits_per_unit: int = DEFAULT_SUBUNITS_PER_UNIT
) -> int:
    """
    Convert a major-unit amount (e.g. rupees) to integer subunits (paise).
    Uses ROUND_HALF_UP for consistency.

    Args:
        amount: Major-unit amount; floats are rejected, pass Decimal or str
        subunits_per_unit: Subunits in one major unit

    Returns:
        Amount in subunits (integer)
    """
    if isinstance(amount, float):
        raise TypeError("Pass amounts as Decimal or str, not float")

    value = Decimal(amount)
    exponent = value.as_tuple().exponent
    if isinstance(exponent, int) and Decimal(10) ** -exponent > subunits_per_unit:
        logger.warning(f"Amount {value} has more precision than one subunit")

    subunits = value * subunits_per_unit
    return int(subunits.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_subunits(
    amount: int, subunits_per_unit: int = DEFAULT_SUBUNITS_PER_UNIT
) -> Decimal:
    """Convert integer subunits back to a major-unit Decimal."""
    return Decimal(amount) / Decimal(subunits_per_unit)


def format_money(
    amount: int,
    symbol: str = "₹",
    subunits_per_unit: int = DEFAULT_SUBUNITS_PER_UNIT,
) -> str:
    """
    Format a signed subunit amount for display.

    Whole amounts drop the fraction (₹150), others keep two places (₹3.34).
    Negative amounts use parentheses: (₹85.02)
    """
    major = from_subunits(abs(amount), subunits_per_unit)
    if major == major.to_integral_value():
        text = f"{symbol}{major:,.0f}"
    else:
        text = f"{symbol}{major:,.2f}"
    return f"({text})" if amount < 0 else text
