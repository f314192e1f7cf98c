"""Interactive UI components for picking counterparties and confirming actions."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from ..models import PairwiseBalance
from ..money import DEFAULT_SUBUNITS_PER_UNIT, format_money

logger = logging.getLogger(__name__)


def describe_balance(
    balance: PairwiseBalance,
    symbol: str = "₹",
    subunits_per_unit: int = DEFAULT_SUBUNITS_PER_UNIT,
) -> str:
    """Human-readable balance text, e.g. "Owes you ₹150"."""
    amount = format_money(balance.outstanding, symbol, subunits_per_unit)
    if balance.status == "owes_you":
        return f"Owes you {amount}"
    if balance.status == "you_owe":
        return f"You owe {amount}"
    return "Settled up"


class CounterpartyCompleter(Completer):
    """Fuzzy search completer for counterparties with outstanding balances."""

    def __init__(
        self,
        balances: list[PairwiseBalance],
        symbol: str = "₹",
        subunits_per_unit: int = DEFAULT_SUBUNITS_PER_UNIT,
    ):
        """Initialize the completer with the actor's balances."""
        self.balances = balances
        self.symbol = symbol
        self.subunits_per_unit = subunits_per_unit

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for balance in self.balances:
            name = balance.counterparty_id
            if query and not self._fuzzy_match(query, name.lower()):
                continue
            yield Completion(
                text=name,
                start_position=-len(document.text),
                display=name,
                display_meta=describe_balance(
                    balance, self.symbol, self.subunits_per_unit
                ),
            )

    def _fuzzy_match(self, query: str, text: str) -> bool:
        """
        Fuzzy match: all characters in query must appear in order in text.

        Example:
            query="bb" matches "bob"
        """
        query_idx = 0
        for char in text:
            if query_idx < len(query) and char == query[query_idx]:
                query_idx += 1
        return query_idx == len(query)


def select_counterparty_interactive(
    balances: list[PairwiseBalance],
    symbol: str = "₹",
    subunits_per_unit: int = DEFAULT_SUBUNITS_PER_UNIT,
) -> str | None:
    """
    Interactive counterparty selection with fuzzy search.

    Only counterparties with an outstanding balance are offered.

    Returns:
        Selected counterparty id, or None to cancel
    """
    outstanding = [b for b in balances if b.status != "settled"]
    if not outstanding:
        print("Everyone is settled up.")
        return None

    print("\nSettle up with whom?")
    print("   Type to search, press Enter to confirm, Ctrl+C to cancel\n")

    completer = CounterpartyCompleter(outstanding, symbol, subunits_per_unit)
    session: PromptSession[str] = PromptSession(completer=completer)
    valid_ids = {b.counterparty_id for b in outstanding}

    try:
        while True:
            result = session.prompt("Friend: ", complete_while_typing=True).strip()

            if not result:
                return None
            if result in valid_ids:
                logger.info(f"User selected counterparty: {result}")
                return result

            print("❌ No outstanding balance with that friend. Press Tab to complete.")

    except KeyboardInterrupt:
        print("\n⏭️  Cancelled")
        return None
    except EOFError:
        return None


def confirm(message: str, default: bool = False) -> bool:
    """Simple yes/no confirmation."""
    suffix = "[Y/n]" if default else "[y/N]"
    response = input(f"{message} {suffix} ").strip().lower()
    if not response:
        return default
    return response in ("y", "yes")
