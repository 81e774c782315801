"""Asset Registry — mints tokens and guards custody transfers.

Each registry is identified by a ``registry_ref`` and numbers its assets
1, 2, 3, ... independently of every other registry.  At construction a
registry is bound to one marketplace identity; every asset it mints carries
``marketplace_authorized = True``, which lets that marketplace move the asset
without per-transfer consent from the holder.  The capability is checked on
every transfer, never assumed.
"""

from __future__ import annotations

import logging
import sqlite3

from tokenmarket.core.errors import HolderMismatch, NotFound, Unauthorized
from tokenmarket.core.guards import require_caller, require_identity
from tokenmarket.core.journal import EventJournal
from tokenmarket.core.substrate import ExecutionSubstrate
from tokenmarket.models.assets import Asset
from tokenmarket.models.journal import EventKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_REGISTRIES = """
CREATE TABLE IF NOT EXISTS registries (
    registry_ref TEXT PRIMARY KEY,
    marketplace  TEXT NOT NULL
);
"""

_CREATE_ASSETS = """
CREATE TABLE IF NOT EXISTS assets (
    registry_ref           TEXT NOT NULL REFERENCES registries(registry_ref),
    asset_id               INTEGER NOT NULL CHECK (asset_id > 0),
    metadata_uri           TEXT NOT NULL,
    holder                 TEXT NOT NULL,
    creator                TEXT NOT NULL,
    marketplace_authorized INTEGER NOT NULL DEFAULT 1,
    minted_at              TEXT NOT NULL,
    PRIMARY KEY (registry_ref, asset_id)
);
"""

_CREATE_IDX_HOLDER = """
CREATE INDEX IF NOT EXISTS idx_assets_holder ON assets(registry_ref, holder, asset_id);
"""


class AssetRegistry:
    """Mints assets and reassigns their holder under access control.

    Parameters
    ----------
    substrate:
        The shared execution substrate.
    registry_ref:
        Name under which marketplaces reach this registry.
    marketplace:
        Identity of the marketplace pre-authorized to move minted assets.
        Ignored when the registry already exists on the substrate; the
        persisted binding wins.
    """

    def __init__(
        self,
        substrate: ExecutionSubstrate,
        registry_ref: str = "default",
        *,
        marketplace: str,
    ) -> None:
        require_identity(registry_ref, "registry")
        require_identity(marketplace, "marketplace")
        self._substrate = substrate
        self._registry_ref = registry_ref
        self._substrate.ensure_schema(_CREATE_REGISTRIES, _CREATE_ASSETS, _CREATE_IDX_HOLDER)
        self._journal = EventJournal(substrate)

        with self._substrate.transaction() as conn:
            row = conn.execute(
                "SELECT marketplace FROM registries WHERE registry_ref = ?",
                (registry_ref,),
            ).fetchone()
            if row is None:
                conn.execute(
                    "INSERT INTO registries (registry_ref, marketplace) VALUES (?, ?)",
                    (registry_ref, marketplace),
                )
                self._marketplace = marketplace
            else:
                self._marketplace = row["marketplace"]
                if self._marketplace != marketplace:
                    logger.warning(
                        "Registry '%s' is bound to marketplace '%s'; ignoring '%s'.",
                        registry_ref,
                        self._marketplace,
                        marketplace,
                    )

    @property
    def registry_ref(self) -> str:
        return self._registry_ref

    @property
    def marketplace(self) -> str:
        """The identity authorized to move assets minted here."""
        return self._marketplace

    @property
    def substrate(self) -> ExecutionSubstrate:
        return self._substrate

    # ------------------------------------------------------------------
    # Mint
    # ------------------------------------------------------------------

    def mint(self, caller: str, metadata_uri: str) -> int:
        """Mint a new asset held by *caller* and return its ``asset_id``.

        ``metadata_uri`` is stored verbatim; its format is not validated.
        """
        require_caller(caller)
        if not isinstance(metadata_uri, str):
            raise TypeError(f"metadata_uri must be a string, got {type(metadata_uri).__name__}")

        asset_id: int
        with self._substrate.transaction() as conn:
            asset_id = conn.execute(
                "SELECT COALESCE(MAX(asset_id), 0) + 1 FROM assets WHERE registry_ref = ?",
                (self._registry_ref,),
            ).fetchone()[0]
            asset = Asset(
                registry_ref=self._registry_ref,
                asset_id=asset_id,
                metadata_uri=metadata_uri,
                holder=caller,
                creator=caller,
                marketplace_authorized=True,
            )
            conn.execute(
                """
                INSERT INTO assets
                    (registry_ref, asset_id, metadata_uri, holder, creator,
                     marketplace_authorized, minted_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    asset.registry_ref,
                    asset.asset_id,
                    asset.metadata_uri,
                    asset.holder,
                    asset.creator,
                    int(asset.marketplace_authorized),
                    asset.minted_at.isoformat(),
                ),
            )
            self._journal.record(
                EventKind.MINT,
                actor=caller,
                subject=self._subject(asset_id),
                payload={"metadata_uri": metadata_uri},
            )
        logger.info("Minted asset %s:%d for '%s'.", self._registry_ref, asset_id, caller)
        return asset_id

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    def transfer(self, caller: str, asset_id: int, from_: str, to: str) -> None:
        """Reassign the holder of *asset_id* from *from_* to *to*.

        Raises
        ------
        NotFound
            If *asset_id* was never minted here.
        Unauthorized
            If *caller* is neither the holder nor the authorized marketplace.
        HolderMismatch
            If *from_* is not the current holder.
        """
        require_caller(caller)
        require_identity(to, "recipient")
        with self._substrate.transaction() as conn:
            asset = self._load(conn, asset_id)
            is_holder = caller == asset.holder
            is_mover = asset.marketplace_authorized and caller == self._marketplace
            if not (is_holder or is_mover):
                raise Unauthorized(
                    f"'{caller}' may not move asset {self._registry_ref}:{asset_id}."
                )
            if from_ != asset.holder:
                raise HolderMismatch(
                    f"Asset {self._registry_ref}:{asset_id} is held by "
                    f"'{asset.holder}', not '{from_}'."
                )
            conn.execute(
                "UPDATE assets SET holder = ? WHERE registry_ref = ? AND asset_id = ?",
                (to, self._registry_ref, asset_id),
            )
            self._journal.record(
                EventKind.TRANSFER,
                actor=caller,
                subject=self._subject(asset_id),
                payload={"from": from_, "to": to},
            )
        logger.debug(
            "Moved asset %s:%d from '%s' to '%s'.", self._registry_ref, asset_id, from_, to
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_asset(self, asset_id: int) -> Asset:
        row = self._substrate.fetch_one(
            "SELECT * FROM assets WHERE registry_ref = ? AND asset_id = ?",
            (self._registry_ref, asset_id),
        )
        if row is None:
            raise NotFound(f"No asset {self._registry_ref}:{asset_id}.")
        return self._row_to_asset(row)

    def resolve_metadata(self, asset_id: int) -> str:
        """Return the metadata pointer stored at mint time."""
        return self.get_asset(asset_id).metadata_uri

    def holder_of(self, asset_id: int) -> str:
        return self.get_asset(asset_id).holder

    def assets_held_by(self, identity: str) -> list[Asset]:
        rows = self._substrate.fetch_all(
            "SELECT * FROM assets WHERE registry_ref = ? AND holder = ? ORDER BY asset_id ASC",
            (self._registry_ref, identity),
        )
        return [self._row_to_asset(row) for row in rows]

    def total_minted(self) -> int:
        return self._substrate.scalar(
            "SELECT COUNT(*) FROM assets WHERE registry_ref = ?", (self._registry_ref,)
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _subject(self, asset_id: int) -> str:
        return f"asset:{self._registry_ref}:{asset_id}"

    def _load(self, conn: sqlite3.Connection, asset_id: int) -> Asset:
        row = conn.execute(
            "SELECT * FROM assets WHERE registry_ref = ? AND asset_id = ?",
            (self._registry_ref, asset_id),
        ).fetchone()
        if row is None:
            raise NotFound(f"No asset {self._registry_ref}:{asset_id}.")
        return self._row_to_asset(row)

    @staticmethod
    def _row_to_asset(row: sqlite3.Row) -> Asset:
        return Asset(
            registry_ref=row["registry_ref"],
            asset_id=row["asset_id"],
            metadata_uri=row["metadata_uri"],
            holder=row["holder"],
            creator=row["creator"],
            marketplace_authorized=bool(row["marketplace_authorized"]),
            minted_at=row["minted_at"],
        )
