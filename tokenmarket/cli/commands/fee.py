"""``tokenmarket fee`` — read or change the listing fee."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from tokenmarket.cli.session import db_option, open_session, report_rejections

console = Console()


def fee_cmd(
    new_fee: int = typer.Option(None, "--set", help="New listing fee (operator only)."),
    caller: str = typer.Option(None, "--caller", "-c", help="Identity changing the fee."),
    db: Path = db_option(),
) -> None:
    """Show the listing fee, or change it as the operator."""
    with open_session(db) as session, report_rejections(console):
        ledger = session.ledger
        if new_fee is not None:
            if not caller:
                console.print("[bold red]--caller is required with --set.[/bold red]")
                raise typer.Exit(code=2)
            ledger.set_listing_fee(caller, new_fee)
        fee = ledger.get_listing_fee()
        operator = ledger.operator
    console.print(f"[bold]Listing fee:[/bold] {fee} [dim](operator {escape(operator)})[/dim]")
