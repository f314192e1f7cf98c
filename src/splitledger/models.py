"""Pydantic domain models for SplitLedger."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field, computed_field

SplitMethod = Literal["equal", "unequal", "percentage"]


def new_id() -> str:
    """Generate an opaque ledger entity id."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(UTC)


class BalanceStatus(StrEnum):
    """Three-way classification of a pairwise balance."""

    YOU_OWE = "you_owe"
    OWES_YOU = "owes_you"
    SETTLED = "settled"


# ============================================================================
# Ledger Models
# ============================================================================


class ParticipantShare(BaseModel):
    """One participant's share of a cost-sharing event, in subunits."""

    user_id: str
    share: int = Field(ge=0)


class CostSharingEvent(BaseModel):
    """An expense paid by one participant and shared by several.

    The payer is also listed in participants with their own share, so the
    shares always sum to total_amount exactly.
    """

    id: str = Field(default_factory=new_id)
    title: str
    payer_id: str
    total_amount: int  # subunits
    participants: list[ParticipantShare]
    method: SplitMethod = "equal"
    created_at: datetime = Field(default_factory=utc_now)
    is_deleted: bool = False
    deleted_reason: str | None = None

    def involves(self, user_id: str) -> bool:
        """True if the user paid for or shares in this event."""
        return self.payer_id == user_id or any(
            p.user_id == user_id for p in self.participants
        )

    def share_of(self, user_id: str) -> int:
        """Get the user's share (0 if not a participant)."""
        for participant in self.participants:
            if participant.user_id == user_id:
                return participant.share
        return 0

    def counterparties_of(self, user_id: str) -> list[str]:
        """Other users touched by this event, payer first, in order."""
        others: list[str] = []
        for other in [self.payer_id, *(p.user_id for p in self.participants)]:
            if other != user_id and other not in others:
                others.append(other)
        return others


class SettlementTransfer(BaseModel):
    """A direct payment from one user to another."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=new_id)
    from_user_id: str
    to_user_id: str
    amount: int  # subunits, positive
    note: str = ""
    created_at: datetime = Field(default_factory=utc_now)


# ============================================================================
# Derived Models
# ============================================================================


class PairwiseBalance(BaseModel):
    """Net balance between the actor and one counterparty.

    Positive net_amount means the counterparty owes the actor.
    """

    counterparty_id: str
    net_amount: int  # subunits, signed
    status: BalanceStatus

    @property
    def outstanding(self) -> int:
        """Unsigned amount that would settle this balance."""
        return abs(self.net_amount)


class DashboardSummary(BaseModel):
    """Aggregate of every pairwise balance for one actor."""

    you_owe: int = 0
    owed_to_you: int = 0
    net_balance: int = 0
    balances: list[PairwiseBalance] = Field(default_factory=list)


class SettlementDirection(BaseModel):
    """Who pays whom to reduce a balance."""

    from_user_id: str
    to_user_id: str


class SettlementDraft(BaseModel):
    """A settlement transfer ready to be appended to the ledger."""

    from_user_id: str
    to_user_id: str
    amount: int
    note: str


class RemovalCheck(BaseModel):
    """Outcome of checking whether a relationship may be removed."""

    counterparty_id: str
    blocked: bool
    reason: str | None = None
    balance: PairwiseBalance


class DeletionCheck(BaseModel):
    """Advisory outcome of checking an event deletion or restore.

    affected_counterparties lists users whose balance with the actor is
    currently settled and would move away from zero.
    """

    event_id: str
    affected_counterparties: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def warning(self) -> bool:
        return bool(self.affected_counterparties)


# ============================================================================
# Split Input Models
# ============================================================================


class SplitResult(BaseModel):
    """Shares for the explicit participants plus the computed residual."""

    shares: list[int]
    implicit_share: int
    implicit_percentage: Decimal | None = None


class ShareRequest(BaseModel):
    """Raw per-participant input, amounts in major units."""

    user_id: str
    share: Decimal | None = None
    percentage: Decimal | None = None


class ExpenseRequest(BaseModel):
    """Raw expense submission, amounts in major units.

    participants excludes the implicit participant, whose share is the
    residual. The implicit participant defaults to the acting user.
    """

    title: str
    amount: Decimal
    payer_id: str
    method: SplitMethod = "equal"
    participants: list[ShareRequest]
    implicit_user_id: str | None = None
