"""Construction and lifecycle of ledger entries.

Entries are immutable from the caller's point of view: soft-delete and
restore return updated copies instead of mutating in place.
"""

from datetime import datetime

from ..exceptions import (
    InvalidAmountError,
    InvalidEventError,
    InvalidParticipantSetError,
    InvalidTransferError,
)
from ..models import (
    CostSharingEvent,
    ParticipantShare,
    SettlementDraft,
    SettlementTransfer,
    SplitMethod,
    new_id,
    utc_now,
)
from .validator import require_share_sum


def create_cost_sharing_event(
    title: str,
    payer_id: str,
    total_amount: int,
    participants: list[ParticipantShare],
    method: SplitMethod = "equal",
    event_id: str | None = None,
    created_at: datetime | None = None,
) -> CostSharingEvent:
    """
    Create a validated cost-sharing event.

    Args:
        title: Non-empty description
        payer_id: User who paid; must also be a participant
        total_amount: Total in subunits (> 0)
        participants: Every participant's share, payer included
        method: How the shares were computed
        event_id: Optional id (generated if omitted)
        created_at: Optional timestamp (now if omitted)

    Returns:
        The new event

    Raises:
        InvalidEventError: If the title is blank
        InvalidAmountError: If total_amount <= 0
        InvalidParticipantSetError: If participants are empty, duplicated,
            missing the payer, or contain only the payer
        SplitSumMismatchError: If the shares don't add up to total_amount
    """
    if not title or not title.strip():
        raise InvalidEventError("Please enter a title")
    if total_amount <= 0:
        raise InvalidAmountError("Please enter a valid amount")

    user_ids = [p.user_id for p in participants]
    if len(set(user_ids)) != len(user_ids):
        raise InvalidParticipantSetError("Participant ids must be unique")
    if payer_id not in user_ids:
        raise InvalidParticipantSetError(
            f"Payer {payer_id} must be one of the participants"
        )
    if not any(user_id != payer_id for user_id in user_ids):
        raise InvalidParticipantSetError(
            "Please add at least one friend to split with"
        )

    require_share_sum(total_amount, [p.share for p in participants])

    return CostSharingEvent(
        id=event_id or new_id(),
        title=title.strip(),
        payer_id=payer_id,
        total_amount=total_amount,
        participants=list(participants),
        method=method,
        created_at=created_at or utc_now(),
    )


def create_settlement_transfer(
    from_user_id: str,
    to_user_id: str,
    amount: int,
    note: str = "",
    transfer_id: str | None = None,
    created_at: datetime | None = None,
) -> SettlementTransfer:
    """
    Create a validated settlement transfer.

    Raises:
        InvalidAmountError: If amount <= 0
        InvalidTransferError: If both endpoints are the same user
    """
    if amount <= 0:
        raise InvalidAmountError("Please enter a valid amount")
    if from_user_id == to_user_id:
        raise InvalidTransferError("Cannot record a payment to yourself")

    return SettlementTransfer(
        id=transfer_id or new_id(),
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        amount=amount,
        note=note,
        created_at=created_at or utc_now(),
    )


def transfer_from_draft(draft: SettlementDraft) -> SettlementTransfer:
    """Create a transfer exactly as a settlement draft describes it."""
    return create_settlement_transfer(
        from_user_id=draft.from_user_id,
        to_user_id=draft.to_user_id,
        amount=draft.amount,
        note=draft.note,
    )


def soft_delete_event(
    event: CostSharingEvent, reason: str | None = None
) -> CostSharingEvent:
    """Mark an event deleted, keeping it in history."""
    if event.is_deleted:
        raise InvalidEventError(f"Expense {event.id} is already deleted")
    return event.model_copy(update={"is_deleted": True, "deleted_reason": reason})


def restore_event(event: CostSharingEvent) -> CostSharingEvent:
    """Clear an event's deleted flag."""
    if not event.is_deleted:
        raise InvalidEventError(f"Expense {event.id} is not deleted")
    return event.model_copy(update={"is_deleted": False, "deleted_reason": None})
