"""CatalogProjection — pure read-only view over the Marketplace Ledger.

The catalog is a PROJECTION of the ledger.  It joins each listing with the
metadata pointer held by its registry so a presentation layer can render a
gallery, a "my assets" page, or a creator dashboard.  Every call re-reads
the ledger; the projection never maintains its own state.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from tokenmarket.core.errors import NotFound
from tokenmarket.marketplace.ledger import MarketplaceLedger
from tokenmarket.models.journal import EventKind
from tokenmarket.models.listings import Listing, ListingState


class CatalogItem(BaseModel):
    """One listing as a caller sees it, with its metadata pointer resolved."""

    model_config = ConfigDict(frozen=True)

    listing_id: int
    asset_registry_ref: str
    asset_id: int
    seller: str
    owner: str
    price: int
    state: ListingState
    metadata_uri: str | None = None  # None when the registry is not attached

    @property
    def sold(self) -> bool:
        return self.state == ListingState.SOLD


class CatalogSummary(BaseModel):
    """Point-in-time totals for one marketplace."""

    model_config = ConfigDict(frozen=True)

    market: str
    operator: str
    listing_fee: int
    total_listings: int = 0
    open_count: int = 0
    sold_count: int = 0
    sales_volume: int = 0
    fees_collected: int = 0
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class CatalogProjection:
    """Read-only projection over a ``MarketplaceLedger``.

    Parameters
    ----------
    ledger:
        The ledger to project from.
    """

    def __init__(self, ledger: MarketplaceLedger) -> None:
        self._ledger = ledger

    def open_items(self) -> list[CatalogItem]:
        """The gallery: everything currently for sale."""
        return self._items(self._ledger.fetch_open_listings())

    def owned_items(self, identity: str) -> list[CatalogItem]:
        """Items *identity* has bought and still holds through the market."""
        return self._items(self._ledger.fetch_owned(identity))

    def created_items(self, identity: str) -> list[CatalogItem]:
        """Every item *identity* has listed, sold or not."""
        return self._items(self._ledger.fetch_listed_by(identity))

    def sold_items(self, identity: str) -> list[CatalogItem]:
        """The subset of ``created_items`` that has been sold."""
        return [item for item in self.created_items(identity) if item.sold]

    def summary(self) -> CatalogSummary:
        listings = self._ledger.fetch_all()
        sold = [listing for listing in listings if listing.sold]
        prefix = f"listing:{self._ledger.address}:"
        fees = sum(
            entry.payload.get("fee", 0)
            for entry in self._ledger.journal.entries(EventKind.LISTING_CREATED)
            if entry.subject.startswith(prefix)
        )
        config = self._ledger.config
        return CatalogSummary(
            market=self._ledger.address,
            operator=config.operator,
            listing_fee=config.listing_fee,
            total_listings=len(listings),
            open_count=len(listings) - len(sold),
            sold_count=len(sold),
            sales_volume=sum(listing.price for listing in sold),
            fees_collected=fees,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _items(self, listings: list[Listing]) -> list[CatalogItem]:
        return [self._to_item(listing) for listing in listings]

    def _to_item(self, listing: Listing) -> CatalogItem:
        try:
            registry = self._ledger.registry(listing.asset_registry_ref)
            metadata_uri: str | None = registry.resolve_metadata(listing.asset_id)
        except NotFound:
            metadata_uri = None
        return CatalogItem(
            listing_id=listing.listing_id,
            asset_registry_ref=listing.asset_registry_ref,
            asset_id=listing.asset_id,
            seller=listing.seller,
            owner=listing.current_holder,
            price=listing.price,
            state=listing.state,
            metadata_uri=metadata_uri,
        )
