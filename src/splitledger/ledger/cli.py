"""CLI commands for recording expenses and settlements and reading balances."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation

import typer
from rich.console import Console
from rich.table import Table

from ..config import Settings, load_settings
from ..db import Database
from ..exceptions import ConfigurationError, SplitLedgerError
from ..models import DashboardSummary, ExpenseRequest, ShareRequest, SplitMethod
from ..money import format_money
from .service import LedgerService
from .ui import confirm, describe_balance, select_counterparty_interactive

app = typer.Typer(
    name="ledger",
    help="Record shared expenses and settle up with friends",
)

console = Console()

ACTOR_OPTION = typer.Option(
    None, "--as", help="Acting user id (defaults to ACTOR_ID from settings)"
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose output")


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def open_service(verbose: bool) -> Iterator[tuple[LedgerService, Settings]]:
    """Open the ledger and translate errors into console messages and exit codes."""
    setup_logging(verbose)
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield LedgerService(settings, db), settings
    except SplitLedgerError as e:
        console.print(f"\n[bold yellow]⚠️  {e}[/bold yellow]\n")
        if verbose:
            raise
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def resolve_actor(actor: str | None, settings: Settings) -> str:
    """Pick the acting user from --as or settings."""
    actor_id = actor or settings.actor_id
    if not actor_id:
        raise ConfigurationError("No acting user. Pass --as or set ACTOR_ID.")
    return actor_id


def parse_amount(value: str) -> Decimal:
    """Parse a major-unit amount typed by the user."""
    try:
        amount = Decimal(value.replace(",", "").strip())
    except InvalidOperation as e:
        raise typer.BadParameter(f"'{value}' is not a valid amount") from e
    if not amount.is_finite():
        raise typer.BadParameter(f"'{value}' is not a valid amount")
    return amount


def parse_participant(text: str, method: SplitMethod) -> ShareRequest:
    """
    Parse a --with value.

    Formats:
        bob         (equal split)
        bob:120.50  (unequal split: bob's share)
        bob:40      (percentage split: bob's percentage)
    """
    user_id, _, value = text.partition(":")
    user_id = user_id.strip()
    if not user_id:
        raise typer.BadParameter(f"Missing user id in '{text}'")

    if method == "equal":
        return ShareRequest(user_id=user_id)
    if not value:
        raise typer.BadParameter(f"'{text}' needs a value for a {method} split")
    if method == "unequal":
        return ShareRequest(user_id=user_id, share=parse_amount(value))
    return ShareRequest(user_id=user_id, percentage=parse_amount(value.rstrip("%")))


def display_dashboard(summary: DashboardSummary, settings: Settings):
    """Display dashboard totals and every balance in a table."""
    symbol = settings.currency_symbol
    units = settings.subunits_per_unit

    console.print("\n[bold]Dashboard:[/bold]")
    console.print(f"  You owe:     [red]{format_money(summary.you_owe, symbol, units)}[/red]")
    console.print(
        f"  Owed to you: [green]{format_money(summary.owed_to_you, symbol, units)}[/green]"
    )
    console.print(f"  Net balance: {format_money(summary.net_balance, symbol, units)}")
    console.print()

    if not summary.balances:
        console.print("[dim]No balances yet[/dim]")
        return

    table = Table(title="Balances", show_header=True, header_style="bold magenta")
    table.add_column("Friend", style="cyan")
    table.add_column("Status")
    table.add_column("Amount", justify="right")

    for balance in summary.balances:
        color = {"owes_you": "green", "you_owe": "red"}.get(balance.status, "dim")
        table.add_row(
            balance.counterparty_id,
            f"[{color}]{describe_balance(balance, symbol, units)}[/{color}]",
            format_money(balance.net_amount, symbol, units),
        )

    console.print(table)


@app.command("add-friend")
def add_friend(
    friend: str = typer.Argument(..., help="Friend's user id"),
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Add a friend to split expenses with."""
    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)
        if service.add_friend(actor_id, friend):
            console.print(f"[green]✓ Added {friend}[/green]")
        else:
            console.print(f"[yellow]{friend} is already your friend[/yellow]")


@app.command("remove-friend")
def remove_friend(
    friend: str = typer.Argument(..., help="Friend's user id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Remove a friend. Only allowed once you are settled up."""
    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)

        check = service.check_remove_friend(actor_id, friend)
        if check.blocked:
            console.print(f"[bold red]✗ {check.reason}[/bold red]")
            text = describe_balance(
                check.balance, settings.currency_symbol, settings.subunits_per_unit
            )
            console.print(f"  {text}")
            sys.exit(1)

        if not yes and not confirm(f"Are you sure you want to remove {friend}?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        service.remove_friend(actor_id, friend)
        console.print(f"[green]✓ Removed {friend}[/green]")


@app.command("add-expense")
def add_expense(
    title: str = typer.Argument(..., help="What the expense was for"),
    amount: str = typer.Argument(..., help="Total amount, e.g. 300 or 99.50"),
    with_: list[str] = typer.Option(
        ..., "--with", "-w", help="Participant (id, id:share or id:percent)"
    ),
    paid_by: str | None = typer.Option(
        None, "--paid-by", "-p", help="Who paid (defaults to you)"
    ),
    method: str = typer.Option(
        "equal", "--method", "-m", help="equal, unequal or percentage"
    ),
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    Record a shared expense.

    You are always a participant. With --method unequal or percentage your
    share is whatever the other participants leave over.
    """
    if method not in ("equal", "unequal", "percentage"):
        raise typer.BadParameter(f"Unknown split method '{method}'")
    split_method: SplitMethod = method  # type: ignore[assignment]

    participants = [parse_participant(text, split_method) for text in with_]
    total = parse_amount(amount)

    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)
        request = ExpenseRequest(
            title=title,
            amount=total,
            payer_id=paid_by or actor_id,
            method=split_method,
            participants=participants,
        )
        event = service.add_expense(actor_id, request)

        table = Table(title=event.title, show_header=True, header_style="bold magenta")
        table.add_column("Participant", style="cyan")
        table.add_column("Share", justify="right")
        for participant in event.participants:
            marker = " (paid)" if participant.user_id == event.payer_id else ""
            table.add_row(
                f"{participant.user_id}{marker}",
                format_money(
                    participant.share,
                    settings.currency_symbol,
                    settings.subunits_per_unit,
                ),
            )
        console.print(table)
        console.print(f"\n[bold green]✓ Expense added ({event.id})[/bold green]")


@app.command()
def expenses(
    deleted: bool = typer.Option(False, "--deleted", help="Include deleted expenses"),
    friend: str | None = typer.Option(
        None, "--friend", "-f", help="Only expenses shared with this friend"
    ),
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """List your expenses."""
    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)
        events = service.list_expenses(
            actor_id, include_deleted=deleted, counterparty_id=friend
        )

        if not events:
            console.print("[dim]No expenses yet[/dim]")
            return

        table = Table(title="Expenses", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("Title", style="cyan")
        table.add_column("Paid by")
        table.add_column("Total", justify="right")
        table.add_column("Your share", justify="right")
        table.add_column("Split", style="dim")

        for event in events:
            title = f"[strike]{event.title}[/strike] (deleted)" if event.is_deleted else event.title
            table.add_row(
                event.id,
                title,
                event.payer_id,
                format_money(
                    event.total_amount,
                    settings.currency_symbol,
                    settings.subunits_per_unit,
                ),
                format_money(
                    event.share_of(actor_id),
                    settings.currency_symbol,
                    settings.subunits_per_unit,
                ),
                event.method,
            )

        console.print(table)


@app.command("delete-expense")
def delete_expense(
    event_id: str = typer.Argument(..., help="Expense id"),
    reason: str | None = typer.Option(None, "--reason", help="Why it was deleted"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Delete an expense (it stays in history and can be restored)."""
    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)

        check = service.check_delete_expense(actor_id, event_id)
        if check.warning:
            console.print(
                "\n[bold yellow]⚠️  WARNING: This expense is part of a settled balance![/bold yellow]"
            )
            console.print("Deleting it will change your settled balance with:")
            for counterparty_id in check.affected_counterparties:
                console.print(f"  • {counterparty_id}")
            console.print("The balance will need to be re-settled after deletion.\n")

        if not yes and not confirm("Are you sure you want to delete this expense?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        service.delete_expense(actor_id, event_id, reason)
        console.print("[green]✓ Expense deleted successfully[/green]")


@app.command("restore-expense")
def restore_expense(
    event_id: str = typer.Argument(..., help="Expense id"),
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Restore a deleted expense."""
    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)
        check = service.restore_expense(actor_id, event_id)
        if check.warning:
            console.print(
                "[yellow]⚠️  Restoring changes your settled balance with: "
                f"{', '.join(check.affected_counterparties)}[/yellow]"
            )
        console.print("[green]✓ Expense restored successfully[/green]")


@app.command()
def settle(
    friend: str | None = typer.Argument(None, help="Friend's user id"),
    amount: str | None = typer.Option(
        None, "--amount", "-a", help="Amount to settle (defaults to full balance)"
    ),
    note: str | None = typer.Option(None, "--note", "-n", help="Optional note"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    Record a settlement payment with a friend.

    The direction follows the balance: if they owe you, it records that they
    paid you; if you owe them, it records that you paid them.
    """
    settle_amount = parse_amount(amount) if amount is not None else None

    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)
        symbol = settings.currency_symbol

        if friend is None:
            summary = service.get_dashboard(actor_id)
            friend = select_counterparty_interactive(
                summary.balances, symbol, settings.subunits_per_unit
            )
            if friend is None:
                return

        balance = service.get_balance(actor_id, friend)
        draft = service.draft_settlement(actor_id, friend, settle_amount, note)

        console.print(
            "\nCurrent balance: "
            f"{describe_balance(balance, symbol, settings.subunits_per_unit)}"
        )
        paid = format_money(draft.amount, symbol, settings.subunits_per_unit)
        if draft.from_user_id == actor_id:
            console.print(f"Recording: You pay {paid} to {friend}")
        else:
            console.print(f"Recording: {friend} pays {paid} to you")

        if not yes and not confirm("Continue?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        transfer = service.record_settlement(draft)
        console.print(f"[bold green]✓ Settlement recorded ({transfer.id})[/bold green]")


@app.command()
def settlements(
    friend: str | None = typer.Option(
        None, "--friend", "-f", help="Only payments with this friend"
    ),
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """List settlement payments you made or received."""
    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)
        transfers = service.list_settlements(actor_id, counterparty_id=friend)

        if not transfers:
            console.print("[dim]No settlements yet[/dim]")
            return

        table = Table(title="Settlements", show_header=True, header_style="bold magenta")
        table.add_column("Date", style="dim")
        table.add_column("Payment", style="cyan")
        table.add_column("Amount", justify="right")
        table.add_column("Note", style="dim")

        for transfer in transfers:
            if transfer.from_user_id == actor_id:
                payment = f"You paid {transfer.to_user_id}"
                color = "red"
            else:
                payment = f"{transfer.from_user_id} paid you"
                color = "green"
            amount = format_money(
                transfer.amount, settings.currency_symbol, settings.subunits_per_unit
            )
            table.add_row(
                transfer.created_at.strftime("%Y-%m-%d"),
                payment,
                f"[{color}]{amount}[/{color}]",
                transfer.note,
            )

        console.print(table)


@app.command()
def balance(
    friend: str = typer.Argument(..., help="Friend's user id"),
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show your balance with one friend."""
    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)
        result = service.get_balance(actor_id, friend)
        text = describe_balance(
            result, settings.currency_symbol, settings.subunits_per_unit
        )
        console.print(f"{friend}: {text}")


@app.command()
def dashboard(
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show what you owe, what you're owed, and every balance."""
    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)
        display_dashboard(service.get_dashboard(actor_id), settings)
