"""``tokenmarket listings`` — the gallery, "my assets", and creator views."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from tokenmarket.catalog.projection import CatalogProjection
from tokenmarket.catalog.renderer import CatalogRenderer
from tokenmarket.cli.session import db_option, open_session

console = Console()


def listings_cmd(
    owned: str = typer.Option(
        None, "--owned", "-o", help="Show listings currently held by this identity."
    ),
    created: str = typer.Option(
        None, "--created", help="Show every listing created by this identity."
    ),
    sold_only: bool = typer.Option(
        False, "--sold", help="With --created, show only sold listings."
    ),
    summary: bool = typer.Option(
        False, "--summary", "-s", help="Show marketplace totals."
    ),
    db: Path = db_option(),
) -> None:
    """Show open listings (default), owned items, or a creator's history."""
    renderer = CatalogRenderer(console=console)
    with open_session(db) as session:
        projection = CatalogProjection(session.ledger)
        if summary:
            renderer.print_summary(projection.summary())
        if owned:
            renderer.print_items(projection.owned_items(owned), title=f"Owned by {owned}")
        elif created:
            if sold_only:
                renderer.print_items(projection.sold_items(created), title=f"Sold by {created}")
            else:
                renderer.print_items(projection.created_items(created), title=f"Created by {created}")
        elif not summary:
            renderer.print_items(projection.open_items(), title="Open listings")
