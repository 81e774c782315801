"""Shared test fixtures for tokenmarket."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from tokenmarket.core.accounts import AccountBook
from tokenmarket.core.journal import EventJournal
from tokenmarket.core.registry import AssetRegistry
from tokenmarket.core.substrate import ExecutionSubstrate
from tokenmarket.marketplace.ledger import MarketplaceLedger

MARKET = "market"
OPERATOR = "operator"
LISTING_FEE = 5


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases."""
    return tmp_path


@pytest.fixture
def substrate(tmp_dir: Path) -> Iterator[ExecutionSubstrate]:
    """Provide a fresh substrate backed by a temp SQLite database."""
    s = ExecutionSubstrate(tmp_dir / "market.db")
    yield s
    s.close()


@pytest.fixture
def journal(substrate: ExecutionSubstrate) -> EventJournal:
    return EventJournal(substrate)


@pytest.fixture
def accounts(substrate: ExecutionSubstrate) -> AccountBook:
    return AccountBook(substrate)


@pytest.fixture
def registry(substrate: ExecutionSubstrate) -> AssetRegistry:
    """Provide the default registry, pre-authorizing the test market."""
    return AssetRegistry(substrate, "default", marketplace=MARKET)


@pytest.fixture
def ledger(
    substrate: ExecutionSubstrate,
    accounts: AccountBook,
    registry: AssetRegistry,
) -> MarketplaceLedger:
    """Provide a ledger with a listing fee of 5 and the default registry attached."""
    ledger = MarketplaceLedger(
        substrate,
        address=MARKET,
        operator=OPERATOR,
        listing_fee=LISTING_FEE,
        accounts=accounts,
    )
    ledger.attach_registry(registry)
    return ledger


@pytest.fixture
def funded(accounts: AccountBook) -> AccountBook:
    """Give alice, bob and carol 1000 each."""
    for identity in ("alice", "bob", "carol"):
        accounts.deposit(identity, 1000)
    return accounts


@pytest.fixture
def make_listing(
    ledger: MarketplaceLedger,
    registry: AssetRegistry,
    funded: AccountBook,
) -> Callable[..., tuple[int, int]]:
    """Factory fixture: mint an asset for *seller* and list it.

    Returns ``(asset_id, listing_id)``.
    """

    def _factory(
        seller: str = "alice",
        price: int = 100,
        metadata_uri: str = "ipfs://asset.json",
    ) -> tuple[int, int]:
        asset_id = registry.mint(seller, metadata_uri)
        listing_id = ledger.create_listing(
            seller, registry.registry_ref, asset_id, price, ledger.get_listing_fee()
        )
        return asset_id, listing_id

    return _factory
