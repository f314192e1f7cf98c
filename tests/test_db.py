"""Tests for the SQLite ledger store."""

import sqlite3

import pytest

from splitledger.db import Database
from splitledger.engine.entries import (
    create_cost_sharing_event,
    create_settlement_transfer,
    soft_delete_event,
)
from splitledger.models import ParticipantShare


@pytest.fixture
def trip():
    return create_cost_sharing_event(
        title="Trip",
        payer_id="carol",
        total_amount=1000,
        participants=[
            ParticipantShare(user_id="carol", share=334),
            ParticipantShare(user_id="alice", share=333),
            ParticipantShare(user_id="bob", share=333),
        ],
        method="equal",
    )


class TestEvents:
    """Tests for event persistence."""

    def test_round_trip_keeps_participant_order(self, db, trip):
        db.save_event(trip)

        loaded = db.get_event(trip.id)

        assert loaded == trip
        assert [p.user_id for p in loaded.participants] == ["carol", "alice", "bob"]

    def test_missing_event(self, db):
        assert db.get_event("missing") is None

    def test_filter_by_user(self, db, trip):
        other = create_cost_sharing_event(
            title="Lunch",
            payer_id="dave",
            total_amount=200,
            participants=[
                ParticipantShare(user_id="dave", share=100),
                ParticipantShare(user_id="erin", share=100),
            ],
        )
        db.save_event(trip)
        db.save_event(other)

        assert [e.id for e in db.list_events(user_id="alice")] == [trip.id]
        assert len(db.list_events()) == 2

    def test_soft_delete_flag(self, db, trip):
        db.save_event(trip)

        assert db.set_event_deleted(soft_delete_event(trip, "Oops")) is True

        assert db.list_events(include_deleted=False) == []
        stored = db.get_event(trip.id)
        assert stored.is_deleted is True
        assert stored.deleted_reason == "Oops"

    def test_duplicate_id_rejected(self, db, trip):
        db.save_event(trip)

        with pytest.raises(sqlite3.IntegrityError):
            db.save_event(trip)

        # The failed insert rolled back without bumping the version
        assert db.get_ledger_version() == 1


class TestTransfers:
    def test_filter_by_user(self, db):
        db.save_transfer(create_settlement_transfer("bob", "alice", 500, note="Cash"))
        db.save_transfer(create_settlement_transfer("carol", "dave", 700))

        transfers = db.list_transfers(user_id="alice")

        assert [(t.from_user_id, t.amount, t.note) for t in transfers] == [
            ("bob", 500, "Cash")
        ]

    def test_filter_by_pair(self, db):
        db.save_transfer(create_settlement_transfer("bob", "alice", 500))
        db.save_transfer(create_settlement_transfer("alice", "carol", 300))
        db.save_transfer(create_settlement_transfer("alice", "bob", 100))

        transfers = db.list_transfers(user_id="alice", counterparty_id="bob")

        assert {(t.from_user_id, t.to_user_id) for t in transfers} == {
            ("bob", "alice"),
            ("alice", "bob"),
        }

    def test_get_transfer(self, db):
        transfer = create_settlement_transfer("bob", "alice", 500, note="UPI")
        db.save_transfer(transfer)

        assert db.get_transfer(transfer.id) == transfer
        assert db.get_transfer("missing") is None


class TestRelationships:
    """Relationships are symmetric."""

    def test_add_is_symmetric(self, db):
        assert db.add_relationship("alice", "bob") is True

        assert db.has_relationship("alice", "bob")
        assert db.has_relationship("bob", "alice")
        assert db.add_relationship("bob", "alice") is False

    def test_remove_both_directions(self, db):
        db.add_relationship("alice", "bob")

        assert db.remove_relationship("bob", "alice") is True

        assert db.list_relationships("alice") == []
        assert db.remove_relationship("alice", "bob") is False


class TestLedgerVersion:
    def test_starts_at_zero(self, db):
        assert db.get_ledger_version() == 0

    def test_no_op_mutations_do_not_bump(self, db):
        db.add_relationship("alice", "bob")
        db.add_relationship("alice", "bob")
        db.remove_relationship("alice", "zoe")

        assert db.get_ledger_version() == 1

    def test_survives_reopen(self, settings, db):
        db.add_relationship("alice", "bob")
        db.close()

        reopened = Database(settings.database_path)
        try:
            assert reopened.get_ledger_version() == 1
        finally:
            reopened.close()
