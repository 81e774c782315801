"""``tokenmarket mint`` — mint a new asset in the default registry."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from tokenmarket.cli.session import db_option, open_session, report_rejections

console = Console()


def mint_cmd(
    caller: str = typer.Option(..., "--caller", "-c", help="Identity minting the asset."),
    metadata_uri: str = typer.Argument(..., help="Opaque metadata pointer (e.g. an IPFS URL)."),
    db: Path = db_option(),
) -> None:
    """Mint an asset held by the caller and print its asset id."""
    with open_session(db) as session, report_rejections(console):
        asset_id = session.registry.mint(caller, metadata_uri)
        registry_ref = session.registry.registry_ref
    console.print(f"[green]Minted[/green] asset [bold]{escape(registry_ref)}:{asset_id}[/bold] for [cyan]{escape(caller)}[/cyan].")
    console.print(f"[bold]{asset_id}[/bold]")
