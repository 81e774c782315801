"""Event journal entry model (append-only, hash-chained).

Every committed state change in the engine is recorded as exactly one
journal entry, written inside the same transaction as the change itself.
A rolled-back operation therefore leaves no trace in the journal.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """The kinds of state change the journal records."""

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    PAYMENT = "payment"
    MINT = "mint"
    TRANSFER = "transfer"
    LISTING_CREATED = "listing_created"
    LISTING_SOLD = "listing_sold"
    FEE_CHANGED = "fee_changed"


class JournalEntry(BaseModel):
    """A single sealed entry in the event journal."""

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: EventKind
    actor: str
    subject: str = ""  # e.g. "listing:3", "asset:default:7", "account:alice"
    payload: dict[str, Any] = {}
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    previous_entry_hash: str = ""
    entry_hash: str = ""  # computed on append, seals this entry
