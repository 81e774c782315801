"""``tokenmarket demo`` — walk a full mint, list, and sell cycle.

Funds two wallets, mints an asset for the seller, lists it, buys it as the
buyer, attempts a second purchase, and shows the catalog after each step.
Refuses to run when ``TOKENMARKET_ENVIRONMENT=production``.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from tokenmarket.catalog.projection import CatalogProjection
from tokenmarket.catalog.renderer import CatalogRenderer
from tokenmarket.cli.session import MarketSession, report_rejections
from tokenmarket.config import MarketSettings, settings
from tokenmarket.core.errors import AlreadySold

console = Console()


def demo_cmd(
    db: Path = typer.Option(
        Path(".tokenmarket/demo.db"),
        "--db",
        "-d",
        help="Path to the demo SQLite database (uses a demo-specific default).",
    ),
    price: int = typer.Option(100, "--price", help="Sale price for the demo asset."),
    fee: int = typer.Option(
        5, "--fee", min=0, help="Listing fee for a freshly created demo market."
    ),
) -> None:
    """Run a complete marketplace cycle against a demo database."""
    if settings.is_production:
        console.print("[bold red]The demo mints and funds test wallets; not in production.[/bold red]")
        raise typer.Exit(code=2)

    renderer = CatalogRenderer(console=console)
    with report_rejections(console):
        session = MarketSession(
            db, MarketSettings(db_path=db, listing_fee=fee, operator="operator")
        )
        try:
            ledger = session.ledger
            projection = CatalogProjection(ledger)
            listing_fee = ledger.get_listing_fee()

            console.print()
            console.print(
                Panel(
                    "[bold]tokenmarket demo[/bold]\n\n"
                    "seller mints and lists an asset, buyer purchases it,\n"
                    "and a repeated purchase is rejected.",
                    border_style="cyan",
                    padding=(1, 2),
                )
            )

            session.accounts.deposit("seller", listing_fee or 1)
            asset_id = session.registry.mint("seller", "ipfs://demo-asset.json")
            console.print(f"[green]Minted[/green] asset {asset_id} for seller.")

            listing_id = ledger.create_listing(
                "seller", session.registry.registry_ref, asset_id, price, listing_fee
            )
            console.print(f"[green]Listed[/green] as listing {listing_id} (fee {listing_fee}).")
            renderer.print_items(projection.open_items(), title="Open listings")

            session.accounts.deposit("buyer", price)
            ledger.purchase("buyer", listing_id, price)
            console.print(f"[green]Sold[/green] listing {listing_id} to buyer for {price}.")
            renderer.print_items(projection.owned_items("buyer"), title="Owned by buyer")
            renderer.print_items(projection.created_items("seller"), title="Created by seller")

            try:
                ledger.purchase("buyer", listing_id, price)
            except AlreadySold as exc:
                console.print(f"[yellow]Second purchase rejected ({exc.code}).[/yellow]")

            ledger.journal.verify_chain()
            renderer.print_summary(projection.summary())
            renderer.print_chain_verification(True, ledger.journal.count())
        finally:
            session.close()
