"""Deriving pairwise balances from the ledger.

Balances are never stored. They are re-derived from a ledger snapshot on
every read as a plain sum of independent signed terms, so the result does
not depend on the order of events or transfers.
"""

from collections.abc import Iterable, Iterator

from ..models import (
    BalanceStatus,
    CostSharingEvent,
    DashboardSummary,
    PairwiseBalance,
    SettlementTransfer,
)


def classify_balance(net_amount: int) -> BalanceStatus:
    """Classify a signed net amount (subunits) from the actor's side."""
    if net_amount == 0:
        return BalanceStatus.SETTLED
    return BalanceStatus.OWES_YOU if net_amount > 0 else BalanceStatus.YOU_OWE


def _event_terms(
    actor_id: str, counterparty_id: str, events: Iterable[CostSharingEvent]
) -> Iterator[int]:
    for event in events:
        if event.is_deleted:
            continue
        if not (event.involves(actor_id) and event.involves(counterparty_id)):
            continue
        if event.payer_id == actor_id:
            # Counterparty owes the actor their share
            yield event.share_of(counterparty_id)
        elif event.payer_id == counterparty_id:
            yield -event.share_of(actor_id)


def _transfer_terms(
    actor_id: str, counterparty_id: str, transfers: Iterable[SettlementTransfer]
) -> Iterator[int]:
    for transfer in transfers:
        if (transfer.from_user_id, transfer.to_user_id) == (
            counterparty_id,
            actor_id,
        ):
            # Counterparty paid the actor back
            yield -transfer.amount
        elif (transfer.from_user_id, transfer.to_user_id) == (
            actor_id,
            counterparty_id,
        ):
            yield transfer.amount


def derive_balance(
    actor_id: str,
    counterparty_id: str,
    events: Iterable[CostSharingEvent],
    transfers: Iterable[SettlementTransfer],
) -> PairwiseBalance:
    """
    Derive the actor's balance with one counterparty.

    Args:
        actor_id: User whose perspective the balance is from
        counterparty_id: The other user
        events: Cost-sharing events (deleted ones are ignored)
        transfers: Settlement transfers

    Returns:
        Balance where positive net_amount means the counterparty owes the actor
    """
    net_amount = sum(_event_terms(actor_id, counterparty_id, events)) + sum(
        _transfer_terms(actor_id, counterparty_id, transfers)
    )
    return PairwiseBalance(
        counterparty_id=counterparty_id,
        net_amount=net_amount,
        status=classify_balance(net_amount),
    )


def find_counterparties(
    actor_id: str,
    events: Iterable[CostSharingEvent],
    transfers: Iterable[SettlementTransfer],
) -> set[str]:
    """Every user who shares a live event or a transfer with the actor."""
    found: set[str] = set()
    for event in events:
        if not event.is_deleted and event.involves(actor_id):
            found.update(event.counterparties_of(actor_id))
    for transfer in transfers:
        if transfer.from_user_id == actor_id:
            found.add(transfer.to_user_id)
        elif transfer.to_user_id == actor_id:
            found.add(transfer.from_user_id)
    return found


def derive_balances(
    actor_id: str,
    events: Iterable[CostSharingEvent],
    transfers: Iterable[SettlementTransfer],
    counterparty_ids: Iterable[str] = (),
) -> list[PairwiseBalance]:
    """
    Derive the actor's balance with every counterparty.

    Counterparties are everyone found in the ledger with the actor plus any
    listed explicitly (e.g. friends with no shared history yet).

    Returns:
        Balances sorted by outstanding amount (largest first), then id
    """
    events = list(events)
    transfers = list(transfers)
    counterparties = find_counterparties(actor_id, events, transfers)
    counterparties.update(counterparty_ids)
    counterparties.discard(actor_id)

    balances = [
        derive_balance(actor_id, counterparty_id, events, transfers)
        for counterparty_id in counterparties
    ]
    return sorted(balances, key=lambda b: (-b.outstanding, b.counterparty_id))


def summarize_balances(balances: Iterable[PairwiseBalance]) -> DashboardSummary:
    """Aggregate balances into dashboard totals."""
    balances = list(balances)
    you_owe = sum(
        b.outstanding for b in balances if b.status == BalanceStatus.YOU_OWE
    )
    owed_to_you = sum(
        b.outstanding for b in balances if b.status == BalanceStatus.OWES_YOU
    )
    return DashboardSummary(
        you_owe=you_owe,
        owed_to_you=owed_to_you,
        net_balance=owed_to_you - you_owe,
        balances=balances,
    )
