"""``tokenmarket verify`` — check the event journal's hash chain."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from tokenmarket.catalog.renderer import CatalogRenderer
from tokenmarket.cli.session import db_option, open_session
from tokenmarket.core.errors import JournalIntegrityError

console = Console()


def verify_cmd(db: Path = db_option()) -> None:
    """Verify every entry in the event journal."""
    renderer = CatalogRenderer(console=console)
    with open_session(db) as session:
        journal = session.ledger.journal
        try:
            journal.verify_chain()
        except JournalIntegrityError as exc:
            console.print(f"[bold red]Chain verification failed:[/bold red] {escape(str(exc))}")
            renderer.print_chain_verification(False, journal.count())
            raise typer.Exit(code=1) from exc
        renderer.print_chain_verification(True, journal.count())
