"""Asset records owned by an Asset Registry."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class Asset(BaseModel):
    """A uniquely identified token with an opaque metadata pointer.

    ``asset_id`` is scoped to the registry named by ``registry_ref`` and is
    assigned 1, 2, 3, ... without gaps.  ``metadata_uri`` never changes after
    mint.  ``holder`` is the single identity currently entitled to the asset.
    """

    model_config = ConfigDict(frozen=True)

    registry_ref: str
    asset_id: int = Field(gt=0)
    metadata_uri: str
    holder: str
    creator: str
    marketplace_authorized: bool = True
    minted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
