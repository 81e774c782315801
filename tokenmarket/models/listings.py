"""Listing models — one-way escrow-then-sold lifecycle."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ListingState(str, Enum):
    """Lifecycle state of a listing."""

    OPEN = "open"
    SOLD = "sold"


# OPEN -> SOLD is the only transition.  SOLD is terminal.
VALID_TRANSITIONS: dict[ListingState, set[ListingState]] = {
    ListingState.OPEN: {ListingState.SOLD},
    ListingState.SOLD: set(),
}


class Listing(BaseModel):
    """A permanent record pairing an escrowed asset with a fixed price.

    While unsold, ``current_holder`` is the marketplace itself.  Once sold it
    is the buyer.  ``seller`` and ``price`` never change.
    """

    model_config = ConfigDict(frozen=True)

    listing_id: int = Field(gt=0)
    market: str
    asset_registry_ref: str
    asset_id: int = Field(gt=0)
    seller: str
    current_holder: str
    price: int = Field(gt=0)
    sold: bool = False
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    sold_at: datetime | None = None

    @property
    def state(self) -> ListingState:
        return ListingState.SOLD if self.sold else ListingState.OPEN

    @property
    def in_escrow(self) -> bool:
        """True while the marketplace holds the asset on the seller's behalf."""
        return not self.sold and self.current_holder == self.market


class LedgerConfig(BaseModel):
    """Marketplace configuration record: who collects fees, and how much.

    Held by the ledger instance and replaced only through the operator's
    access-controlled setter.
    """

    model_config = ConfigDict(frozen=True)

    operator: str
    listing_fee: int = Field(ge=0)
