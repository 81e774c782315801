"""``tokenmarket list`` / ``tokenmarket buy`` — escrow and sell assets."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from tokenmarket.cli.session import db_option, open_session, report_rejections

console = Console()


def list_cmd(
    asset_id: int = typer.Argument(..., help="Asset to list."),
    price: int = typer.Argument(..., help="Fixed sale price."),
    caller: str = typer.Option(..., "--caller", "-c", help="Seller identity."),
    payment: int = typer.Option(
        None,
        "--payment",
        "-p",
        help="Fee payment to attach (default: the current listing fee).",
    ),
    registry_ref: str = typer.Option(
        None, "--registry", "-r", help="Registry the asset belongs to."
    ),
    db: Path = db_option(),
) -> None:
    """Move an asset into escrow and list it for a fixed price."""
    with open_session(db) as session, report_rejections(console):
        ledger = session.ledger
        fee = ledger.get_listing_fee() if payment is None else payment
        listing_id = ledger.create_listing(
            caller,
            registry_ref or session.registry.registry_ref,
            asset_id,
            price,
            fee,
        )
    console.print(
        f"[green]Listed[/green] asset {asset_id} as listing [bold]{listing_id}[/bold] "
        f"for {price} (fee {fee})."
    )


def buy_cmd(
    listing_id: int = typer.Argument(..., help="Listing to purchase."),
    caller: str = typer.Option(..., "--caller", "-c", help="Buyer identity."),
    payment: int = typer.Option(
        None,
        "--payment",
        "-p",
        help="Payment to attach (default: the listing price).",
    ),
    db: Path = db_option(),
) -> None:
    """Purchase a listing for exactly its price."""
    with open_session(db) as session, report_rejections(console):
        ledger = session.ledger
        amount = ledger.get_listing(listing_id).price if payment is None else payment
        ledger.purchase(caller, listing_id, amount)
    console.print(
        f"[green]Bought[/green] listing [bold]{listing_id}[/bold] for {amount} "
        f"as [cyan]{escape(caller)}[/cyan]."
    )
