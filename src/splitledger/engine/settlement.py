"""Choosing the direction and amount of a settlement transfer."""

from ..exceptions import InvalidAmountError, NoOutstandingBalanceError
from ..models import (
    BalanceStatus,
    PairwiseBalance,
    SettlementDirection,
    SettlementDraft,
)

DEFAULT_SETTLEMENT_NOTE = "Settlement payment"


def direct_settlement(actor_id: str, balance: PairwiseBalance) -> SettlementDirection:
    """
    Decide who pays whom so that a transfer reduces the balance.

    Raises:
        NoOutstandingBalanceError: If the balance is already settled
    """
    if balance.status == BalanceStatus.OWES_YOU:
        return SettlementDirection(
            from_user_id=balance.counterparty_id, to_user_id=actor_id
        )
    if balance.status == BalanceStatus.YOU_OWE:
        return SettlementDirection(
            from_user_id=actor_id, to_user_id=balance.counterparty_id
        )
    raise NoOutstandingBalanceError(balance.counterparty_id)


def prepare_settlement(
    actor_id: str,
    balance: PairwiseBalance,
    amount: int | None = None,
    note: str | None = None,
) -> SettlementDraft:
    """
    Build a settlement draft for a balance.

    The amount defaults to the full outstanding balance. A smaller amount is a
    partial settlement; a larger one flips the balance and is allowed.

    Args:
        actor_id: Acting user
        balance: Current balance with the counterparty
        amount: Optional override in subunits
        note: Optional note (defaults to "Settlement payment")

    Returns:
        Draft ready for create_settlement_transfer
    """
    direction = direct_settlement(actor_id, balance)

    if amount is None:
        amount = balance.outstanding
    if amount <= 0:
        raise InvalidAmountError("Please enter a valid amount")

    return SettlementDraft(
        from_user_id=direction.from_user_id,
        to_user_id=direction.to_user_id,
        amount=amount,
        note=note or DEFAULT_SETTLEMENT_NOTE,
    )
