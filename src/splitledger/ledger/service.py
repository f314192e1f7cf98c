"""Service layer that composes the ledger store and the reconciliation engine.

The acting user is passed explicitly into every call. Balances are derived
from a fresh ledger snapshot on every read.
"""

import logging

from ..config import Settings
from ..db import Database
from ..engine import (
    build_participant_shares,
    check_event_mutation,
    check_relationship_removal,
    create_cost_sharing_event,
    derive_balance,
    derive_balances,
    prepare_settlement,
    restore_event,
    soft_delete_event,
    summarize_balances,
    transfer_from_draft,
)
from ..exceptions import (
    InvalidParticipantSetError,
    NonZeroBalanceError,
    NotFoundError,
)
from ..models import (
    CostSharingEvent,
    DashboardSummary,
    DeletionCheck,
    ExpenseRequest,
    PairwiseBalance,
    RemovalCheck,
    SettlementDraft,
    SettlementTransfer,
)
from ..money import format_money, to_subunits

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for recording expenses and settlements and reading balances."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database

    def _subunits(self, amount) -> int:
        return to_subunits(amount, self.settings.subunits_per_unit)

    def _format(self, amount: int) -> str:
        return format_money(
            amount, self.settings.currency_symbol, self.settings.subunits_per_unit
        )

    def _snapshot(self, actor_id: str):
        events = self.db.list_events(user_id=actor_id)
        transfers = self.db.list_transfers(user_id=actor_id)
        return events, transfers

    def ledger_version(self) -> int:
        """Current ledger version, for change detection."""
        return self.db.get_ledger_version()

    # ========================================================================
    # Relationships
    # ========================================================================

    def add_friend(self, actor_id: str, counterparty_id: str) -> bool:
        """Relate the actor to a counterparty. Returns False if already related."""
        if actor_id == counterparty_id:
            raise InvalidParticipantSetError("You cannot add yourself as a friend")

        added = self.db.add_relationship(actor_id, counterparty_id)
        if added:
            logger.info(f"{actor_id} added friend {counterparty_id}")
        return added

    def list_friends(self, actor_id: str) -> list[str]:
        return self.db.list_relationships(actor_id)

    def check_remove_friend(self, actor_id: str, counterparty_id: str) -> RemovalCheck:
        """Check whether a counterparty may be removed without removing them."""
        events, transfers = self._snapshot(actor_id)
        return check_relationship_removal(actor_id, counterparty_id, events, transfers)

    def remove_friend(self, actor_id: str, counterparty_id: str) -> RemovalCheck:
        """
        Remove a counterparty relationship.

        Raises:
            NotFoundError: If the two users are not related
            NonZeroBalanceError: If their balance is not settled
        """
        if not self.db.has_relationship(actor_id, counterparty_id):
            raise NotFoundError(f"{counterparty_id} is not in your friends list")

        check = self.check_remove_friend(actor_id, counterparty_id)
        if check.blocked:
            logger.info(
                f"Blocked removal of {counterparty_id}: "
                f"balance {check.balance.net_amount}"
            )
            raise NonZeroBalanceError(counterparty_id, check.balance.net_amount)

        self.db.remove_relationship(actor_id, counterparty_id)
        logger.info(f"{actor_id} removed friend {counterparty_id}")
        return check

    # ========================================================================
    # Expenses
    # ========================================================================

    def add_expense(self, actor_id: str, request: ExpenseRequest) -> CostSharingEvent:
        """
        Record a cost-sharing event from a raw expense submission.

        Converts major-unit input to subunits, computes every participant's
        share (the implicit participant takes the residual), validates, and
        appends the event to the ledger.

        Args:
            actor_id: Acting user
            request: Expense submission

        Returns:
            The stored event
        """
        total = self._subunits(request.amount)
        implicit_user_id = request.implicit_user_id or actor_id
        other_ids = [p.user_id for p in request.participants]

        values: list | None = None
        if request.method != "equal":
            field = "share" if request.method == "unequal" else "percentage"
            missing = [
                p.user_id for p in request.participants if getattr(p, field) is None
            ]
            if missing:
                raise InvalidParticipantSetError(
                    f"Missing {field} for {', '.join(missing)} in a "
                    f"{request.method} split"
                )

            if request.method == "unequal":
                values = [self._subunits(p.share) for p in request.participants]
            else:
                values = [p.percentage for p in request.participants]

        participants = build_participant_shares(
            method=request.method,
            total=total,
            implicit_user_id=implicit_user_id,
            other_user_ids=other_ids,
            values=values,
        )

        event = create_cost_sharing_event(
            title=request.title,
            payer_id=request.payer_id,
            total_amount=total,
            participants=participants,
            method=request.method,
        )
        self.db.save_event(event)

        logger.info(
            f"Recorded expense {event.id} '{event.title}' "
            f"({self._format(total)}, {event.method}, "
            f"{len(event.participants)} people)"
        )
        return event

    def get_expense(self, event_id: str) -> CostSharingEvent:
        event = self.db.get_event(event_id)
        if event is None:
            raise NotFoundError(f"Expense {event_id} not found")
        return event

    def list_expenses(
        self,
        actor_id: str,
        include_deleted: bool = False,
        counterparty_id: str | None = None,
    ) -> list[CostSharingEvent]:
        """List the actor's expenses, optionally only those shared with one friend."""
        events = self.db.list_events(user_id=actor_id, include_deleted=include_deleted)
        if counterparty_id is not None:
            events = [e for e in events if e.involves(counterparty_id)]
        return events

    def check_delete_expense(self, actor_id: str, event_id: str) -> DeletionCheck:
        """Report which settled balances deleting or restoring an expense would disturb."""
        event = self.get_expense(event_id)
        events, transfers = self._snapshot(actor_id)
        return check_event_mutation(actor_id, event, events, transfers)

    def delete_expense(
        self, actor_id: str, event_id: str, reason: str | None = None
    ) -> DeletionCheck:
        """
        Soft-delete an expense.

        Deletion is never blocked. The returned check lists counterparties
        whose balance was settled immediately before the deletion.
        """
        check = self.check_delete_expense(actor_id, event_id)
        deleted = soft_delete_event(self.get_expense(event_id), reason)
        self.db.set_event_deleted(deleted)

        logger.info(f"{actor_id} deleted expense {event_id}")
        return check

    def restore_expense(self, actor_id: str, event_id: str) -> DeletionCheck:
        """Restore a soft-deleted expense. Advisory check as for deletion."""
        check = self.check_delete_expense(actor_id, event_id)
        restored = restore_event(self.get_expense(event_id))
        self.db.set_event_deleted(restored)

        logger.info(f"{actor_id} restored expense {event_id}")
        return check

    # ========================================================================
    # Balances
    # ========================================================================

    def get_balance(self, actor_id: str, counterparty_id: str) -> PairwiseBalance:
        """Derive the actor's balance with one counterparty."""
        events, transfers = self._snapshot(actor_id)
        return derive_balance(actor_id, counterparty_id, events, transfers)

    def get_dashboard(self, actor_id: str) -> DashboardSummary:
        """Derive every balance for the actor plus dashboard totals."""
        events, transfers = self._snapshot(actor_id)
        balances = derive_balances(
            actor_id, events, transfers, counterparty_ids=self.list_friends(actor_id)
        )
        summary = summarize_balances(balances)

        logger.debug(
            f"Dashboard for {actor_id}: owe {summary.you_owe}, "
            f"owed {summary.owed_to_you}"
        )
        return summary

    # ========================================================================
    # Settlements
    # ========================================================================

    def draft_settlement(
        self,
        actor_id: str,
        counterparty_id: str,
        amount=None,
        note: str | None = None,
    ) -> SettlementDraft:
        """
        Prepare a settlement with a counterparty.

        Args:
            actor_id: Acting user
            counterparty_id: The other user
            amount: Optional major-unit amount (defaults to the full balance)
            note: Optional note

        Raises:
            NoOutstandingBalanceError: If already settled
        """
        balance = self.get_balance(actor_id, counterparty_id)
        return prepare_settlement(
            actor_id,
            balance,
            amount=self._subunits(amount) if amount is not None else None,
            note=note or self.settings.default_settlement_note,
        )

    def record_settlement(self, draft: SettlementDraft) -> SettlementTransfer:
        """Append a settlement transfer exactly as drafted."""
        transfer = transfer_from_draft(draft)
        self.db.save_transfer(transfer)

        logger.info(
            f"Recorded settlement {transfer.id}: {transfer.from_user_id} paid "
            f"{transfer.to_user_id} {self._format(transfer.amount)}"
        )
        return transfer

    def get_settlement(self, transfer_id: str) -> SettlementTransfer:
        transfer = self.db.get_transfer(transfer_id)
        if transfer is None:
            raise NotFoundError(f"Settlement {transfer_id} not found")
        return transfer

    def list_settlements(
        self, actor_id: str, counterparty_id: str | None = None
    ) -> list[SettlementTransfer]:
        """
        List settlement payments the actor sent or received, oldest first.

        Args:
            actor_id: Acting user
            counterparty_id: Only payments between the actor and this user
        """
        return self.db.list_transfers(user_id=actor_id, counterparty_id=counterparty_id)

    def settle_up(
        self,
        actor_id: str,
        counterparty_id: str,
        amount=None,
        note: str | None = None,
    ) -> SettlementTransfer:
        """Draft and record a settlement in one step."""
        draft = self.draft_settlement(actor_id, counterparty_id, amount, note)
        return self.record_settlement(draft)
