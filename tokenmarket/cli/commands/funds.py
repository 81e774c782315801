"""``tokenmarket deposit`` / ``tokenmarket balance`` — wallet funding."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from tokenmarket.cli.session import db_option, open_session, report_rejections

console = Console()


def deposit_cmd(
    identity: str = typer.Argument(..., help="Wallet identity to credit."),
    amount: int = typer.Argument(..., help="Amount in the smallest currency unit."),
    db: Path = db_option(),
) -> None:
    """Credit a wallet with funds from outside the market."""
    with open_session(db) as session, report_rejections(console):
        balance = session.accounts.deposit(identity, amount)
    console.print(f"[green]Deposited[/green] {amount} to [cyan]{escape(identity)}[/cyan] (balance {balance}).")


def balance_cmd(
    identity: str = typer.Argument(..., help="Wallet identity."),
    db: Path = db_option(),
) -> None:
    """Show a wallet balance."""
    with open_session(db) as session:
        balance = session.accounts.balance_of(identity)
    console.print(f"[cyan]{escape(identity)}[/cyan]: {balance}")
