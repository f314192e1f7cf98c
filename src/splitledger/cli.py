"""CLI for SplitLedger."""

import threading

import typer

from .ledger.cli import (
    ACTOR_OPTION,
    VERBOSE_OPTION,
    console,
    display_dashboard,
    open_service,
    resolve_actor,
)
from .ledger.cli import app as ledger_app
from .ledger.poller import LedgerPoller

app = typer.Typer(
    name="splitledger",
    help="Track shared expenses and settle debts",
)

app.add_typer(ledger_app, name="ledger", help="Expenses, settlements and balances")


@app.command()
def watch(
    interval: float | None = typer.Option(
        None, "--interval", "-i", help="Seconds between checks"
    ),
    actor: str | None = ACTOR_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show the dashboard and refresh it whenever the ledger changes."""
    with open_service(verbose) as (service, settings):
        actor_id = resolve_actor(actor, settings)
        display_dashboard(service.get_dashboard(actor_id), settings)

        def refresh(version: int):
            console.print(f"\n[dim]Ledger updated (version {version})[/dim]")
            display_dashboard(service.get_dashboard(actor_id), settings)

        poller = LedgerPoller(
            get_version=service.ledger_version,
            on_change=refresh,
            interval=interval or settings.poll_interval_seconds,
        )
        stop = threading.Event()
        console.print("[dim]Watching for changes, Ctrl+C to stop...[/dim]")
        try:
            poller.run(stop)
        except KeyboardInterrupt:
            stop.set()
            console.print("\n[yellow]Stopped.[/yellow]")


if __name__ == "__main__":
    app()
