"""SplitLedger - Split shared expenses and reconcile pairwise balances."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .db import Database
from .engine import (
    derive_balance,
    direct_settlement,
    equal_split,
    percentage_split,
    unequal_split,
)
from .ledger.service import LedgerService
from .models import (
    BalanceStatus,
    CostSharingEvent,
    PairwiseBalance,
    SettlementTransfer,
)
from .money import to_subunits

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "BalanceStatus",
    "CostSharingEvent",
    "PairwiseBalance",
    "SettlementTransfer",
    "derive_balance",
    "direct_settlement",
    "equal_split",
    "percentage_split",
    "unequal_split",
    "LedgerService",
    "to_subunits",
]
