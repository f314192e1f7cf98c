"""Checks run before destructive ledger operations.

Removing a relationship is blocked outright while money is outstanding.
Deleting or restoring an expense is always allowed, but callers get the
list of counterparties whose currently settled balance it would disturb so
they can warn first.
"""

import logging
from collections.abc import Iterable

from ..exceptions import NonZeroBalanceError
from ..models import (
    BalanceStatus,
    CostSharingEvent,
    DeletionCheck,
    RemovalCheck,
    SettlementTransfer,
)
from .balances import derive_balance

logger = logging.getLogger(__name__)


def check_relationship_removal(
    actor_id: str,
    counterparty_id: str,
    events: Iterable[CostSharingEvent],
    transfers: Iterable[SettlementTransfer],
) -> RemovalCheck:
    """Check whether the actor may remove a counterparty."""
    balance = derive_balance(actor_id, counterparty_id, events, transfers)
    if balance.status == BalanceStatus.SETTLED:
        return RemovalCheck(counterparty_id=counterparty_id, blocked=False, balance=balance)

    return RemovalCheck(
        counterparty_id=counterparty_id,
        blocked=True,
        reason="Cannot remove friend with pending balance. Settle up first!",
        balance=balance,
    )


def ensure_relationship_removable(
    actor_id: str,
    counterparty_id: str,
    events: Iterable[CostSharingEvent],
    transfers: Iterable[SettlementTransfer],
) -> None:
    """
    Raise unless the actor's balance with the counterparty is settled.

    Raises:
        NonZeroBalanceError: If any amount is outstanding
    """
    check = check_relationship_removal(actor_id, counterparty_id, events, transfers)
    if check.blocked:
        raise NonZeroBalanceError(counterparty_id, check.balance.net_amount)


def check_event_mutation(
    actor_id: str,
    event: CostSharingEvent,
    events: Iterable[CostSharingEvent],
    transfers: Iterable[SettlementTransfer],
) -> DeletionCheck:
    """
    Find counterparties whose settled balance an event change would disturb.

    Applies to both deleting and restoring the event. Advisory only.

    Args:
        actor_id: Acting user
        event: The event about to be deleted or restored
        events: Current ledger events
        transfers: Current ledger transfers

    Returns:
        DeletionCheck listing every settled counterparty touched by the event
    """
    events = list(events)
    transfers = list(transfers)

    affected = [
        counterparty_id
        for counterparty_id in event.counterparties_of(actor_id)
        if derive_balance(actor_id, counterparty_id, events, transfers).status
        == BalanceStatus.SETTLED
    ]

    if affected:
        logger.warning(
            f"Changing expense {event.id} will disturb settled balances with: "
            f"{', '.join(affected)}"
        )

    return DeletionCheck(event_id=event.id, affected_counterparties=affected)
