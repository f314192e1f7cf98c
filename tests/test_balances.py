"""Tests for deriving pairwise balances and dashboard totals."""

import itertools

from splitledger.engine.balances import (
    classify_balance,
    derive_balance,
    derive_balances,
    find_counterparties,
    summarize_balances,
)
from splitledger.engine.entries import (
    create_cost_sharing_event,
    create_settlement_transfer,
    soft_delete_event,
)
from splitledger.models import BalanceStatus, ParticipantShare


# Helper functions for tests
def make_event(payer_id: str, total: int, **participant_shares: int):
    """Create a cost-sharing event from keyword shares."""
    return create_cost_sharing_event(
        title=f"Paid by {payer_id}",
        payer_id=payer_id,
        total_amount=total,
        participants=[
            ParticipantShare(user_id=user_id, share=share)
            for user_id, share in participant_shares.items()
        ],
    )


def make_transfer(from_user_id: str, to_user_id: str, amount: int):
    return create_settlement_transfer(from_user_id, to_user_id, amount)


class TestClassifyBalance:
    """Three-way status classification with a one-subunit epsilon."""

    def test_zero_is_settled(self):
        assert classify_balance(0) == BalanceStatus.SETTLED

    def test_one_subunit_positive_owes_you(self):
        assert classify_balance(1) == BalanceStatus.OWES_YOU

    def test_one_subunit_negative_you_owe(self):
        assert classify_balance(-1) == BalanceStatus.YOU_OWE


class TestDeriveBalance:
    """Folding events and transfers into one signed balance."""

    def test_actor_paid(self):
        """Actor pays ₹300 split with bob: bob owes ₹150."""
        events = [make_event("alice", 30000, alice=15000, bob=15000)]

        balance = derive_balance("alice", "bob", events, [])

        assert balance.counterparty_id == "bob"
        assert balance.net_amount == 15000
        assert balance.status == BalanceStatus.OWES_YOU

    def test_counterparty_paid(self):
        events = [make_event("bob", 9000, alice=3000, bob=6000)]

        balance = derive_balance("alice", "bob", events, [])

        assert balance.net_amount == -3000
        assert balance.status == BalanceStatus.YOU_OWE

    def test_settlement_from_counterparty_clears_balance(self):
        """Bob pays alice back the ₹150 he owes."""
        events = [make_event("alice", 30000, alice=15000, bob=15000)]
        transfers = [make_transfer("bob", "alice", 15000)]

        balance = derive_balance("alice", "bob", events, transfers)

        assert balance.net_amount == 0
        assert balance.status == BalanceStatus.SETTLED

    def test_settlement_from_actor_clears_debt(self):
        events = [make_event("bob", 9000, alice=3000, bob=6000)]
        transfers = [make_transfer("alice", "bob", 3000)]

        assert derive_balance("alice", "bob", events, transfers).net_amount == 0

    def test_overpayment_flips_sign(self):
        events = [make_event("alice", 30000, alice=15000, bob=15000)]
        transfers = [make_transfer("bob", "alice", 20000)]

        balance = derive_balance("alice", "bob", events, transfers)

        assert balance.net_amount == -5000
        assert balance.status == BalanceStatus.YOU_OWE

    def test_deleted_events_are_ignored(self):
        event = make_event("alice", 30000, alice=15000, bob=15000)

        balance = derive_balance("alice", "bob", [soft_delete_event(event)], [])

        assert balance.net_amount == 0
        assert balance.status == BalanceStatus.SETTLED

    def test_third_party_payer_does_not_affect_pair(self):
        """Carol paid for both: alice and bob owe carol, not each other."""
        events = [make_event("carol", 3000, alice=1000, bob=1000, carol=1000)]

        assert derive_balance("alice", "bob", events, []).net_amount == 0
        assert derive_balance("alice", "carol", events, []).net_amount == -1000

    def test_unrelated_transfers_are_ignored(self):
        transfers = [make_transfer("bob", "carol", 500)]
        assert derive_balance("alice", "bob", [], transfers).net_amount == 0

    def test_multiple_events_both_directions(self):
        events = [
            make_event("alice", 30000, alice=15000, bob=15000),
            make_event("bob", 8000, alice=4000, bob=4000),
            make_event("alice", 1000, alice=334, bob=333, carol=333),
        ]
        transfers = [make_transfer("bob", "alice", 5000)]

        balance = derive_balance("alice", "bob", events, transfers)

        assert balance.net_amount == 15000 - 4000 + 333 - 5000


class TestDeriveBalanceProperties:
    """Purity, order independence and sign symmetry."""

    def _ledger(self):
        events = [
            make_event("alice", 30000, alice=15000, bob=15000),
            make_event("bob", 9001, alice=4501, bob=4500),
            make_event("alice", 1000, alice=334, bob=333, carol=333),
            soft_delete_event(make_event("bob", 5000, alice=2500, bob=2500)),
        ]
        transfers = [
            make_transfer("bob", "alice", 7000),
            make_transfer("alice", "bob", 1200),
        ]
        return events, transfers

    def test_idempotent(self):
        events, transfers = self._ledger()

        first = derive_balance("alice", "bob", events, transfers)
        second = derive_balance("alice", "bob", events, transfers)

        assert first == second

    def test_order_independent(self):
        events, transfers = self._ledger()
        expected = derive_balance("alice", "bob", events, transfers).net_amount

        for event_order in itertools.permutations(events):
            for transfer_order in itertools.permutations(transfers):
                balance = derive_balance("alice", "bob", event_order, transfer_order)
                assert balance.net_amount == expected

    def test_sign_symmetry(self):
        """A's view and B's view of the same ledger are exact opposites."""
        events, transfers = self._ledger()

        from_alice = derive_balance("alice", "bob", events, transfers)
        from_bob = derive_balance("bob", "alice", events, transfers)

        assert from_alice.net_amount == -from_bob.net_amount
        assert from_alice.net_amount != 0

    def test_accepts_generators(self):
        events, transfers = self._ledger()
        expected = derive_balance("alice", "bob", events, transfers)

        balance = derive_balance(
            "alice", "bob", (e for e in events), (t for t in transfers)
        )

        assert balance == expected


class TestDeriveBalances:
    """Balances with every counterparty for dashboard aggregation."""

    def test_finds_counterparties_in_events_and_transfers(self):
        events = [make_event("alice", 3000, alice=1000, bob=1000, carol=1000)]
        transfers = [make_transfer("dave", "alice", 100)]

        assert find_counterparties("alice", events, transfers) == {
            "bob",
            "carol",
            "dave",
        }

    def test_deleted_events_do_not_introduce_counterparties(self):
        events = [soft_delete_event(make_event("alice", 200, alice=100, erin=100))]
        assert find_counterparties("alice", events, []) == set()

    def test_includes_explicit_counterparties_and_sorts(self):
        events = [
            make_event("alice", 3000, alice=1000, bob=1000, carol=1000),
            make_event("carol", 10000, alice=5000, carol=5000),
        ]

        balances = derive_balances("alice", events, [], counterparty_ids=["zoe"])

        assert [(b.counterparty_id, b.net_amount) for b in balances] == [
            ("carol", -4000),
            ("bob", 1000),
            ("zoe", 0),
        ]

    def test_actor_never_listed_as_own_counterparty(self):
        balances = derive_balances("alice", [], [], counterparty_ids=["alice"])
        assert balances == []


class TestSummarizeBalances:
    """Dashboard totals."""

    def test_unsigned_sums_and_net(self):
        events = [
            make_event("alice", 3000, alice=1000, bob=1000, carol=1000),
            make_event("carol", 10000, alice=5000, carol=5000),
            make_event("dave", 600, alice=300, dave=300),
        ]
        summary = summarize_balances(derive_balances("alice", events, []))

        assert summary.owed_to_you == 1000
        assert summary.you_owe == 4000 + 300
        assert summary.net_balance == 1000 - 4300
        assert len(summary.balances) == 3

    def test_empty(self):
        summary = summarize_balances([])

        assert summary.you_owe == 0
        assert summary.owed_to_you == 0
        assert summary.net_balance == 0
