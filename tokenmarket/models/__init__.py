"""tokenmarket data models — all Pydantic v2, all frozen (immutable)."""

from tokenmarket.models.assets import Asset
from tokenmarket.models.journal import EventKind, JournalEntry
from tokenmarket.models.listings import (
    VALID_TRANSITIONS,
    LedgerConfig,
    Listing,
    ListingState,
)

__all__ = [
    # assets
    "Asset",
    # listings
    "Listing",
    "ListingState",
    "LedgerConfig",
    "VALID_TRANSITIONS",
    # journal
    "EventKind",
    "JournalEntry",
]
