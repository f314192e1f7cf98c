"""Split and balance reconciliation engine (pure functions over a ledger snapshot)."""

from .balances import classify_balance, derive_balance, derive_balances, summarize_balances
from .calculator import (
    build_participant_shares,
    equal_split,
    percentage_split,
    unequal_split,
)
from .entries import (
    create_cost_sharing_event,
    create_settlement_transfer,
    restore_event,
    soft_delete_event,
    transfer_from_draft,
)
from .guard import (
    check_event_mutation,
    check_relationship_removal,
    ensure_relationship_removable,
)
from .settlement import direct_settlement, prepare_settlement
from .validator import validate_percentage_sum, validate_share_sum

__all__ = [
    "build_participant_shares",
    "check_event_mutation",
    "check_relationship_removal",
    "classify_balance",
    "create_cost_sharing_event",
    "create_settlement_transfer",
    "derive_balance",
    "derive_balances",
    "direct_settlement",
    "ensure_relationship_removable",
    "equal_split",
    "percentage_split",
    "prepare_settlement",
    "restore_event",
    "soft_delete_event",
    "summarize_balances",
    "transfer_from_draft",
    "unequal_split",
    "validate_percentage_sum",
    "validate_share_sum",
]
