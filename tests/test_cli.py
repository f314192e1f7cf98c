"""Tests for the ledger CLI commands."""

from decimal import Decimal

import pytest
from typer.testing import CliRunner

from splitledger.cli import app
from splitledger.config import Settings
from splitledger.db import Database
from splitledger.ledger.service import LedgerService
from splitledger.models import ExpenseRequest, ShareRequest

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a temporary database with alice as the actor."""
    monkeypatch.chdir(tmp_path)
    db_path = tmp_path / "cli.db"
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    monkeypatch.setenv("ACTOR_ID", "alice")
    return db_path


@pytest.fixture
def seeded(cli_env):
    """Alice and bob are friends and alice paid ₹300 for dinner."""
    database = Database(cli_env)
    service = LedgerService(Settings(database_path=cli_env), database)
    service.add_friend("alice", "bob")
    event = service.add_expense(
        "alice",
        ExpenseRequest(
            title="Dinner",
            amount=Decimal("300"),
            payer_id="alice",
            participants=[ShareRequest(user_id="bob")],
        ),
    )
    database.close()
    return event


def invoke(*args: str):
    return runner.invoke(app, ["ledger", *args])


class TestFriendCommands:
    """Tests for add-friend and remove-friend."""

    def test_add_friend(self, cli_env):
        result = invoke("add-friend", "bob")

        assert result.exit_code == 0
        assert "Added bob" in result.output

    def test_add_friend_twice(self, cli_env):
        invoke("add-friend", "bob")
        result = invoke("add-friend", "bob")

        assert result.exit_code == 0
        assert "already your friend" in result.output

    def test_add_self_fails(self, cli_env):
        result = invoke("add-friend", "alice")

        assert result.exit_code == 1
        assert "cannot add yourself" in result.output

    def test_remove_blocked_with_balance(self, seeded):
        result = invoke("remove-friend", "bob", "--yes")

        assert result.exit_code == 1
        assert "Settle up first!" in result.output
        assert "Owes you ₹150" in result.output

    def test_remove_after_settling(self, seeded):
        invoke("settle", "bob", "--yes")
        result = invoke("remove-friend", "bob", "--yes")

        assert result.exit_code == 0
        assert "Removed bob" in result.output


class TestExpenseCommands:
    """Tests for add-expense, delete-expense and restore-expense."""

    def test_add_equal_expense(self, cli_env):
        result = invoke("add-expense", "Dinner", "300", "--with", "bob")

        assert result.exit_code == 0
        assert "Expense added" in result.output

        balance = invoke("balance", "bob")
        assert "bob: Owes you ₹150" in balance.output

    def test_balance_uses_configured_subunits(self, cli_env, monkeypatch):
        monkeypatch.setenv("SUBUNITS_PER_UNIT", "1000")

        invoke("add-expense", "Tea", "3", "--with", "bob")
        balance = invoke("balance", "bob")

        assert "bob: Owes you ₹1.50" in balance.output

    def test_add_percentage_expense(self, cli_env):
        result = invoke(
            "add-expense", "Groceries", "500", "-w", "bob:40%", "-m", "percentage"
        )
        assert result.exit_code == 0

        balance = invoke("balance", "bob")
        assert "Owes you ₹200" in balance.output

    def test_friend_paid_unequal(self, cli_env):
        result = invoke(
            "add-expense",
            "Tickets",
            "1,000",
            "-w",
            "bob:600",
            "-m",
            "unequal",
            "--paid-by",
            "bob",
        )
        assert result.exit_code == 0

        balance = invoke("balance", "bob")
        assert "You owe ₹400" in balance.output

    def test_negative_residual_reported(self, cli_env):
        result = invoke("add-expense", "Cab", "100", "-w", "bob:150", "-m", "unequal")

        assert result.exit_code == 1
        assert "exceed the total" in result.output

    def test_unknown_method_is_usage_error(self, cli_env):
        result = invoke("add-expense", "Cab", "100", "-w", "bob", "-m", "shares")
        assert result.exit_code == 2

    def test_bad_amount_is_usage_error(self, cli_env):
        result = invoke("add-expense", "Cab", "lots", "-w", "bob")
        assert result.exit_code == 2

    @pytest.mark.parametrize("amount", ["NaN", "Infinity"])
    def test_non_finite_amount_is_usage_error(self, cli_env, amount):
        result = invoke("add-expense", "Cab", amount, "-w", "bob")

        assert result.exit_code == 2
        assert "not a valid amount" in result.output

    def test_delete_settled_expense_warns(self, seeded):
        invoke("settle", "bob", "--yes")

        result = invoke("delete-expense", seeded.id, "--reason", "Duplicate", "--yes")

        assert result.exit_code == 0
        assert "part of a settled balance" in result.output
        assert "• bob" in result.output
        assert "Expense deleted" in result.output

        balance = invoke("balance", "bob")
        assert "You owe ₹150" in balance.output

    def test_delete_without_warning(self, seeded):
        result = invoke("delete-expense", seeded.id, "--yes")

        assert result.exit_code == 0
        assert "WARNING" not in result.output

    def test_delete_unknown_expense(self, cli_env):
        result = invoke("delete-expense", "missing", "--yes")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_restore(self, seeded):
        invoke("delete-expense", seeded.id, "--yes")

        result = invoke("restore-expense", seeded.id)

        assert result.exit_code == 0
        assert "Owes you ₹150" in invoke("balance", "bob").output


class TestSettleCommand:
    """Tests for settle."""

    def test_full_settlement(self, seeded):
        result = invoke("settle", "bob", "--yes")

        assert result.exit_code == 0
        assert "bob pays ₹150 to you" in result.output
        assert "Settlement recorded" in result.output
        assert "Settled up" in invoke("balance", "bob").output

    def test_partial_settlement(self, seeded):
        result = invoke("settle", "bob", "--amount", "100", "--note", "Cash", "--yes")

        assert result.exit_code == 0
        assert "Owes you ₹50" in invoke("balance", "bob").output

    def test_acting_as_debtor(self, seeded):
        result = invoke("settle", "alice", "--as", "bob", "--yes")

        assert result.exit_code == 0
        assert "You pay ₹150 to alice" in result.output

    def test_nothing_to_settle(self, cli_env):
        result = invoke("settle", "bob", "--yes")
        assert result.exit_code == 1

    def test_picker_with_everyone_settled(self, cli_env):
        invoke("add-friend", "bob")

        result = invoke("settle")

        assert result.exit_code == 0
        assert "Everyone is settled up." in result.output

    def test_declined_confirmation_records_nothing(self, seeded):
        result = runner.invoke(app, ["ledger", "settle", "bob"], input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert "Owes you ₹150" in invoke("balance", "bob").output

    def test_accepted_confirmation(self, seeded):
        result = runner.invoke(app, ["ledger", "settle", "bob"], input="y\n")

        assert result.exit_code == 0
        assert "Settlement recorded" in result.output


class TestHistoryCommands:
    """Tests for settlements and filtered expenses."""

    def test_settlements_listed(self, seeded):
        invoke("settle", "bob", "--amount", "100", "--note", "Cash", "--yes")

        result = invoke("settlements")

        assert result.exit_code == 0
        assert "bob paid you" in result.output
        assert "₹100" in result.output

    def test_settlements_for_other_friend_empty(self, seeded):
        invoke("settle", "bob", "--yes")

        result = invoke("settlements", "--friend", "carol")

        assert result.exit_code == 0
        assert "No settlements yet" in result.output

    def test_expenses_filtered_by_friend(self, seeded):
        with_bob = invoke("expenses", "--friend", "bob")

        assert with_bob.exit_code == 0
        assert "No expenses yet" not in with_bob.output
        assert "No expenses yet" in invoke("expenses", "--friend", "carol").output


class TestDashboardCommand:
    """Tests for dashboard."""

    def test_totals(self, seeded):
        result = invoke("dashboard")

        assert result.exit_code == 0
        assert "Owed to you: ₹150" in result.output
        assert "You owe:     ₹0" in result.output

    def test_empty(self, cli_env):
        result = invoke("dashboard")

        assert result.exit_code == 0
        assert "No balances yet" in result.output

    def test_missing_actor(self, cli_env, monkeypatch):
        monkeypatch.delenv("ACTOR_ID")

        result = invoke("dashboard")

        assert result.exit_code == 1
        assert "No acting user" in result.output


class TestWatchCommand:
    """Tests for watch."""

    def test_prints_dashboard_and_stops_on_interrupt(self, seeded, monkeypatch):
        def interrupted(self, stop_event):
            raise KeyboardInterrupt

        monkeypatch.setattr("splitledger.cli.LedgerPoller.run", interrupted)

        result = runner.invoke(app, ["watch", "--interval", "0.01"])

        assert result.exit_code == 0
        assert "Owed to you: ₹150" in result.output
        assert "Stopped." in result.output
