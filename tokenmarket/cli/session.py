"""Wires the engine together for one CLI invocation.

Every command opens the SQLite database named by ``--db`` (or
``TOKENMARKET_DB_PATH``), builds the registry and ledger on a shared
substrate, runs, and closes it again.  All state lives in the database.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from tokenmarket.config import MarketSettings, settings as default_settings
from tokenmarket.core.accounts import AccountBook
from tokenmarket.core.errors import MarketError
from tokenmarket.core.registry import AssetRegistry
from tokenmarket.core.substrate import ExecutionSubstrate
from tokenmarket.marketplace.ledger import MarketplaceLedger


class MarketSession:
    """The registry, ledger and account book bound to one database."""

    def __init__(self, db_path: Path, settings: MarketSettings | None = None) -> None:
        cfg = settings or default_settings
        self.substrate = ExecutionSubstrate(db_path)
        self.accounts = AccountBook(self.substrate)
        self.registry = AssetRegistry(
            self.substrate, cfg.registry_ref, marketplace=cfg.market_address
        )
        self.ledger = MarketplaceLedger(
            self.substrate,
            address=cfg.market_address,
            operator=cfg.operator,
            listing_fee=cfg.listing_fee,
            accounts=self.accounts,
        )
        self.ledger.attach_registry(self.registry)

    def close(self) -> None:
        self.substrate.close()


@contextmanager
def open_session(db: Path | None) -> Iterator[MarketSession]:
    session = MarketSession(db or default_settings.db_path)
    try:
        yield session
    finally:
        session.close()


@contextmanager
def report_rejections(console: Console) -> Iterator[None]:
    """Print a rejected operation's error code and exit with status 1."""
    try:
        yield
    except MarketError as exc:
        console.print(f"[bold red]Rejected ({exc.code}):[/bold red] {escape(exc.message)}")
        raise typer.Exit(code=1) from exc


def db_option() -> Path | None:
    return typer.Option(
        None,
        "--db",
        "-d",
        help="Path to the market SQLite database (default: TOKENMARKET_DB_PATH).",
    )
