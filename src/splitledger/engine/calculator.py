"""Split calculation: turning a total into individual shares.

All amounts are integer subunits. Percentages are Decimals.
"""

import logging
from decimal import ROUND_FLOOR, Decimal

from ..exceptions import (
    InvalidAmountError,
    InvalidParticipantSetError,
    NegativeResidualError,
)
from ..models import ParticipantShare, SplitMethod, SplitResult
from .validator import require_percentage_sum, require_share_sum

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def equal_split(total: int, count: int) -> list[int]:
    """
    Split a total equally among count participants.

    Each participant gets floor(total / count); the leftover subunits go one
    each to the first participants in order, so the shares always sum to the
    total and differ by at most one subunit.

    Args:
        total: Amount to split, in subunits (>= 0)
        count: Number of participants (>= 1)

    Returns:
        List of count shares in subunits

    Raises:
        InvalidParticipantSetError: If count < 1
        InvalidAmountError: If total < 0
    """
    if count < 1:
        raise InvalidParticipantSetError("Cannot split among zero participants")
    if total < 0:
        raise InvalidAmountError(f"Cannot split a negative total ({total})")

    base, remainder = divmod(total, count)
    return [base + 1 if i < remainder else base for i in range(count)]


def unequal_split(total: int, other_shares: list[int]) -> SplitResult:
    """
    Split with explicit shares for everyone but the implicit participant.

    The implicit participant gets whatever remains.

    Raises:
        NegativeResidualError: If the explicit shares exceed the total
    """
    if any(share < 0 for share in other_shares):
        raise InvalidAmountError("Shares cannot be negative")

    residual = total - sum(other_shares)
    if residual < 0:
        raise NegativeResidualError(residual)

    require_share_sum(total, [*other_shares, residual])
    return SplitResult(shares=list(other_shares), implicit_share=residual)


def percentage_amounts(total: int, percentages: list[Decimal]) -> list[int]:
    """
    Convert percentages of total (summing to 100) to subunit amounts.

    Steps:
    1. Compute each exact amount and take its floor
    2. Hand the leftover subunits out one each, largest fractional part
       first (ties go to the earlier participant)

    The amounts sum to total exactly and none goes below zero.
    """
    exact = [Decimal(total) * p / HUNDRED for p in percentages]
    amounts = [int(e.to_integral_value(rounding=ROUND_FLOOR)) for e in exact]

    leftover = total - sum(amounts)
    by_remainder = sorted(
        range(len(exact)), key=lambda i: (-(exact[i] - amounts[i]), i)
    )
    for i in by_remainder[:leftover]:
        amounts[i] += 1

    if leftover:
        logger.debug(f"Distributed {leftover} leftover subunits by largest remainder")
    return amounts


def percentage_split(total: int, other_percentages: list[Decimal]) -> SplitResult:
    """
    Split by percentage for everyone but the implicit participant.

    The implicit participant's percentage is 100 minus the others. Amounts
    are distributed by largest remainder over every participant, so the
    shares always add up to the total exactly and a valid set of
    percentages never leaves the implicit participant below zero.

    Raises:
        NegativeResidualError: If the explicit percentages exceed 100
        PercentageSumMismatchError: If the percentages don't reach 100
    """
    if any(p < 0 for p in other_percentages):
        raise InvalidAmountError("Percentages cannot be negative")

    implicit_percentage = HUNDRED - sum(other_percentages, Decimal("0"))
    if implicit_percentage < 0:
        raise NegativeResidualError(
            f"{implicit_percentage}%",
            f"Percentages exceed 100% (residual would be {implicit_percentage}%)",
        )
    require_percentage_sum([*other_percentages, implicit_percentage])

    *shares, implicit_share = percentage_amounts(
        total, [*other_percentages, implicit_percentage]
    )
    return SplitResult(
        shares=shares,
        implicit_share=implicit_share,
        implicit_percentage=implicit_percentage,
    )


def build_participant_shares(
    method: SplitMethod,
    total: int,
    implicit_user_id: str,
    other_user_ids: list[str],
    values: list[int] | list[Decimal] | None = None,
) -> list[ParticipantShare]:
    """
    Assemble the full participant list for a cost-sharing event.

    Explicit participants keep their input order and the implicit participant
    comes last. For equal splits that means the explicit participants absorb
    any rounding surplus first.

    Args:
        method: Split method
        total: Event total in subunits
        implicit_user_id: Participant whose share is the residual
        other_user_ids: Explicit participants, in input order
        values: Shares in subunits (unequal) or percentages (percentage);
                ignored for equal splits

    Returns:
        Participant shares summing exactly to total
    """
    all_ids = [*other_user_ids, implicit_user_id]
    if not other_user_ids:
        raise InvalidParticipantSetError("Add at least one other participant")
    if len(set(all_ids)) != len(all_ids):
        raise InvalidParticipantSetError("Participant ids must be unique")

    if method == "equal":
        shares = equal_split(total, len(all_ids))
    else:
        if values is None or len(values) != len(other_user_ids):
            raise InvalidParticipantSetError(
                f"Expected one value per participant for a {method} split"
            )
        if method == "unequal":
            result = unequal_split(total, [int(v) for v in values])
        elif method == "percentage":
            result = percentage_split(total, [Decimal(v) for v in values])
        else:
            raise ValueError(f"Unknown split method: {method}")
        shares = [*result.shares, result.implicit_share]

    logger.debug(f"{method} split of {total} -> {shares}")

    return [
        ParticipantShare(user_id=user_id, share=share)
        for user_id, share in zip(all_ids, shares, strict=True)
    ]
