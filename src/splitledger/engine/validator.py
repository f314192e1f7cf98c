"""Split validation predicates and their raising counterparts."""

from decimal import Decimal

from ..exceptions import PercentageSumMismatchError, SplitSumMismatchError

SHARE_TOLERANCE = 1  # one subunit
PERCENTAGE_TOLERANCE = Decimal("0.01")


def validate_share_sum(total: int, shares: list[int]) -> bool:
    """True if the shares add up to the total within one subunit."""
    return abs(sum(shares) - total) < SHARE_TOLERANCE


def validate_percentage_sum(percentages: list[Decimal]) -> bool:
    """True if the percentages add up to 100 within 0.01."""
    return abs(sum(percentages, Decimal("0")) - 100) < PERCENTAGE_TOLERANCE


def require_share_sum(total: int, shares: list[int]) -> None:
    """Raise SplitSumMismatchError unless the shares add up to the total."""
    if not validate_share_sum(total, shares):
        raise SplitSumMismatchError(total, sum(shares))


def require_percentage_sum(percentages: list[Decimal]) -> None:
    """Raise PercentageSumMismatchError unless the percentages add up to 100."""
    if not validate_percentage_sum(percentages):
        raise PercentageSumMismatchError(str(sum(percentages, Decimal("0"))))
