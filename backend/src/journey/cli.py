"""Command-line interface for the Journey waitlist."""

import asyncio
from datetime import datetime
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from journey.logging_config import configure_logging, get_logger
from journey.sequence.scheduler import DripScheduler
from journey.storage.db import db
from journey.waitlist.store import EntryStore

# Configure logging
configure_logging()
logger = get_logger(__name__)

app = typer.Typer(
    name="journey",
    help="Journey waitlist - queue, referrals and drip campaign",
    no_args_is_help=True,
)

console = Console()


@app.command("init")
def init_database() -> None:
    """Initialize the database and create tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    db.create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("drip-run")
def run_drip(
    as_of: Annotated[
        Optional[datetime],
        typer.Option("--as-of", help="Run as if it were this UTC time (ISO format)"),
    ] = None,
) -> None:
    """Send today's drip sequence emails. Meant to run once a day from cron."""
    console.print("[bold blue]Running drip sequence...[/bold blue]")

    try:
        summary = asyncio.run(DripScheduler(db).run(as_of))
    except Exception as e:
        console.print(f"[bold red]✗[/bold red] Drip run failed: {str(e)}")
        raise typer.Exit(1)

    table = Table(title="Drip run")
    table.add_column("Sent", justify="right", style="green")
    table.add_column("Skipped (unsubscribed)", justify="right", style="yellow")
    table.add_column("Failed", justify="right", style="red")
    table.add_row(str(summary.sent), str(summary.skipped_unsubscribed), str(summary.failed))
    console.print(table)

    if summary.failed:
        raise typer.Exit(1)


@app.command("stats")
def show_stats() -> None:
    """Show waitlist statistics."""
    with db.session() as session:
        stats = EntryStore(session).stats()

    console.print(f"[bold]Total on waitlist:[/bold] {stats['total']}")
    console.print(f"[bold]Paid:[/bold] {stats['paid']}")
    console.print(f"[bold]Free:[/bold] {stats['skipped']}")
    console.print(f"[bold]Pending:[/bold] {stats['pending']}")
    console.print(f"[bold]VIP:[/bold] {stats['vip']}")


if __name__ == "__main__":
    app()
