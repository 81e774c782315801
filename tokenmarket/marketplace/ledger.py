"""Marketplace Ledger — escrowed, fixed-price, single-unit token sales.

Lifecycle of a listing
----------------------
``create_listing`` moves the asset from the seller into the ledger's custody
(escrow), collects the flat listing fee and credits it to the operator, and
appends an OPEN listing.  ``purchase`` flips the listing to SOLD, moves the
asset to the buyer, and pays the full price to the seller.  OPEN -> SOLD is
the only transition.  Listings are never deleted.

Every mutating call runs in one substrate transaction.  Within ``purchase``
the sold flag is written before any asset or fund movement, so a collaborator
that calls back into the ledger mid-sale sees the listing as already sold.

Funds flow through the ledger's own account and leave it in the same
operation, so the ledger never retains value.

Persistence::

    listings          — append-only catalog, one row per listing
    market_settings   — operator + listing_fee per marketplace address
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone

from tokenmarket.core.accounts import AccountBook
from tokenmarket.core.errors import (
    AlreadySold,
    FeeMismatch,
    InvalidPrice,
    MarketError,
    NotFound,
    PaymentMismatch,
    Unauthorized,
)
from tokenmarket.core.guards import is_amount, require_amount, require_caller, require_identity
from tokenmarket.core.journal import EventJournal
from tokenmarket.core.registry import AssetRegistry
from tokenmarket.core.substrate import ExecutionSubstrate
from tokenmarket.models.journal import EventKind
from tokenmarket.models.listings import VALID_TRANSITIONS, LedgerConfig, Listing, ListingState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_SETTINGS = """
CREATE TABLE IF NOT EXISTS market_settings (
    market      TEXT PRIMARY KEY,
    operator    TEXT NOT NULL,
    listing_fee INTEGER NOT NULL CHECK (listing_fee >= 0)
);
"""

_CREATE_LISTINGS = """
CREATE TABLE IF NOT EXISTS listings (
    market             TEXT NOT NULL,
    listing_id         INTEGER NOT NULL CHECK (listing_id > 0),
    asset_registry_ref TEXT NOT NULL,
    asset_id           INTEGER NOT NULL,
    seller             TEXT NOT NULL,
    current_holder     TEXT NOT NULL,
    price              INTEGER NOT NULL CHECK (price > 0),
    sold               INTEGER NOT NULL DEFAULT 0 CHECK (sold IN (0, 1)),
    created_at         TEXT NOT NULL,
    sold_at            TEXT,
    PRIMARY KEY (market, listing_id)
);
"""

_CREATE_IDX_OPEN = """
CREATE INDEX IF NOT EXISTS idx_listings_open ON listings(market, sold, listing_id);
"""

_CREATE_IDX_SELLER = """
CREATE INDEX IF NOT EXISTS idx_listings_seller ON listings(market, seller, listing_id);
"""

_CREATE_IDX_HOLDER = """
CREATE INDEX IF NOT EXISTS idx_listings_holder ON listings(market, current_holder, listing_id);
"""


class MarketplaceLedger:
    """Owns the listing catalog and settles sales out of escrow.

    Parameters
    ----------
    substrate:
        The shared execution substrate.  Every attached registry must live
        on the same substrate so listing and sale effects commit together.
    address:
        The ledger's own identity.  It is the escrow holder of every open
        listing and must be the ``marketplace`` of each attached registry.
    operator:
        Identity that receives listing fees and may change the fee.  Only
        used when this ledger is first created on the substrate.
    listing_fee:
        Initial flat fee per listing.  Only used on first creation.
    accounts:
        Optional account book; one is created on the substrate if omitted.

    Examples
    --------
    >>> from pathlib import Path
    >>> substrate = ExecutionSubstrate(Path("/tmp/tm_doc/market.db"))
    >>> ledger = MarketplaceLedger(substrate, address="market", operator="op", listing_fee=5)
    >>> ledger.get_listing_fee()
    5
    """

    def __init__(
        self,
        substrate: ExecutionSubstrate,
        *,
        address: str = "market",
        operator: str,
        listing_fee: int,
        accounts: AccountBook | None = None,
    ) -> None:
        require_identity(address, "marketplace")
        require_identity(operator, "operator")
        require_amount(listing_fee, positive=False)
        self._substrate = substrate
        self._address = address
        self._substrate.ensure_schema(
            _CREATE_SETTINGS,
            _CREATE_LISTINGS,
            _CREATE_IDX_OPEN,
            _CREATE_IDX_SELLER,
            _CREATE_IDX_HOLDER,
        )
        self._accounts = accounts or AccountBook(substrate)
        self._journal = EventJournal(substrate)
        self._registries: dict[str, AssetRegistry] = {}

        with self._substrate.transaction() as conn:
            conn.execute(
                """
                INSERT INTO market_settings (market, operator, listing_fee) VALUES (?, ?, ?)
                ON CONFLICT(market) DO NOTHING
                """,
                (address, operator, listing_fee),
            )
        config = self.config
        if config.operator != operator:
            logger.warning(
                "Market '%s' is operated by '%s'; ignoring '%s'.",
                address,
                config.operator,
                operator,
            )

    # -- Identity & configuration -------------------------------------------

    @property
    def address(self) -> str:
        return self._address

    @property
    def operator(self) -> str:
        return self.config.operator

    @property
    def config(self) -> LedgerConfig:
        """The persisted configuration record, re-read on every access."""
        row = self._substrate.fetch_one(
            "SELECT operator, listing_fee FROM market_settings WHERE market = ?",
            (self._address,),
        )
        return LedgerConfig(operator=row["operator"], listing_fee=row["listing_fee"])

    @property
    def accounts(self) -> AccountBook:
        return self._accounts

    @property
    def journal(self) -> EventJournal:
        return self._journal

    def get_listing_fee(self) -> int:
        """Return the flat fee currently charged per new listing."""
        return self.config.listing_fee

    def set_listing_fee(self, caller: str, new_fee: int) -> None:
        """Change the listing fee.  Only the operator may call this."""
        try:
            require_caller(caller)
            with self._substrate.transaction() as conn:
                config = self.config
                if caller != config.operator:
                    raise Unauthorized(
                        f"Only the operator may set the listing fee, not '{caller}'."
                    )
                require_amount(new_fee, positive=False)
                old_fee = config.listing_fee
                conn.execute(
                    "UPDATE market_settings SET listing_fee = ? WHERE market = ?",
                    (new_fee, self._address),
                )
                self._journal.record(
                    EventKind.FEE_CHANGED,
                    actor=caller,
                    subject=f"market:{self._address}",
                    payload={"old_fee": old_fee, "new_fee": new_fee},
                )
        except MarketError as exc:
            logger.warning("Rejected fee change on '%s': %s", self._address, exc)
            raise
        logger.info("Listing fee on '%s' changed %d -> %d.", self._address, old_fee, new_fee)

    # -- Registries ---------------------------------------------------------

    def attach_registry(self, registry: AssetRegistry) -> None:
        """Make *registry* reachable by its ``registry_ref``.

        Raises
        ------
        ValueError
            If the registry lives on another substrate, since listing and
            sale effects could not then commit atomically.
        """
        if registry.substrate is not self._substrate:
            raise ValueError(
                f"Registry '{registry.registry_ref}' is on a different substrate "
                f"than market '{self._address}'."
            )
        if registry.marketplace != self._address:
            logger.warning(
                "Registry '%s' authorizes '%s', not '%s'; listings from it will be rejected.",
                registry.registry_ref,
                registry.marketplace,
                self._address,
            )
        self._registries[registry.registry_ref] = registry
        logger.debug("Attached registry '%s' to market '%s'.", registry.registry_ref, self._address)

    def registry(self, asset_registry_ref: str) -> AssetRegistry:
        registry = self._registries.get(asset_registry_ref)
        if registry is None:
            raise NotFound(f"No registry '{asset_registry_ref}' attached to '{self._address}'.")
        return registry

    # -- Listing ------------------------------------------------------------

    def create_listing(
        self,
        caller: str,
        asset_registry_ref: str,
        asset_id: int,
        price: int,
        payment: int,
    ) -> int:
        """Escrow *asset_id* and list it for *price*.  Returns the ``listing_id``.

        Raises
        ------
        InvalidPrice
            If *price* is not a positive integer.
        FeeMismatch
            If *payment* is not exactly the listing fee.
        NotFound
            If the registry or asset is unknown.
        Unauthorized
            If *caller* does not currently hold the asset.
        InsufficientFunds
            If *caller* cannot cover the fee.
        """
        try:
            require_caller(caller)
            if not is_amount(price) or price <= 0:
                raise InvalidPrice(f"Price must be a positive integer, got {price!r}.")
            with self._substrate.transaction() as conn:
                # fee and operator are read under the substrate lock
                config = self.config
                if not is_amount(payment) or payment != config.listing_fee:
                    raise FeeMismatch(f"Listing fee is {config.listing_fee}, got {payment!r}.")
                registry = self.registry(asset_registry_ref)
                holder = registry.holder_of(asset_id)
                if holder != caller:
                    raise Unauthorized(
                        f"'{caller}' does not hold asset {asset_registry_ref}:{asset_id}."
                    )
                self._accounts.pay(caller, self._address, payment, memo="listing fee")
                registry.transfer(self._address, asset_id, caller, self._address)
                self._accounts.pay(self._address, config.operator, payment, memo="listing fee")

                listing_id = conn.execute(
                    "SELECT COALESCE(MAX(listing_id), 0) + 1 FROM listings WHERE market = ?",
                    (self._address,),
                ).fetchone()[0]
                listing = Listing(
                    listing_id=listing_id,
                    market=self._address,
                    asset_registry_ref=asset_registry_ref,
                    asset_id=asset_id,
                    seller=caller,
                    current_holder=self._address,
                    price=price,
                )
                conn.execute(
                    """
                    INSERT INTO listings
                        (market, listing_id, asset_registry_ref, asset_id, seller,
                         current_holder, price, sold, created_at, sold_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, NULL)
                    """,
                    (
                        listing.market,
                        listing.listing_id,
                        listing.asset_registry_ref,
                        listing.asset_id,
                        listing.seller,
                        listing.current_holder,
                        listing.price,
                        listing.created_at.isoformat(),
                    ),
                )
                self._journal.record(
                    EventKind.LISTING_CREATED,
                    actor=caller,
                    subject=self._subject(listing_id),
                    payload={
                        "asset_registry_ref": asset_registry_ref,
                        "asset_id": asset_id,
                        "price": price,
                        "fee": payment,
                        "operator": config.operator,
                    },
                )
        except MarketError as exc:
            logger.warning("Rejected listing on '%s': %s", self._address, exc)
            raise

        logger.info(
            "Listed %s:%d as listing %d for %d (seller '%s').",
            asset_registry_ref,
            asset_id,
            listing_id,
            price,
            caller,
        )
        return listing_id

    # -- Sale ---------------------------------------------------------------

    def purchase(self, caller: str, listing_id: int, payment: int) -> None:
        """Buy *listing_id* for exactly its price.

        Effects run in a fixed order inside one transaction: the listing is
        marked sold to *caller*, then the asset moves to *caller*, then the
        seller is paid.  Any failure rolls back all three.

        Raises
        ------
        NotFound
            If *listing_id* does not exist.
        AlreadySold
            If the listing has already been bought.
        PaymentMismatch
            If *payment* is not exactly the listing price.
        Unauthorized
            If *caller* is the seller.
        InsufficientFunds
            If *caller* cannot cover the price.
        """
        try:
            require_caller(caller)
            with self._substrate.transaction() as conn:
                listing = self._load(conn, listing_id)
                if ListingState.SOLD not in VALID_TRANSITIONS[listing.state]:
                    raise AlreadySold(f"Listing {listing_id} has already been sold.")
                if not is_amount(payment) or payment != listing.price:
                    raise PaymentMismatch(
                        f"Listing {listing_id} costs {listing.price}, got {payment!r}."
                    )
                if caller == listing.seller:
                    raise Unauthorized(f"Seller '{caller}' cannot buy their own listing.")
                registry = self.registry(listing.asset_registry_ref)

                # (1) the sold flag lands before any funds or custody move
                flipped = conn.execute(
                    """
                    UPDATE listings SET sold = 1, current_holder = ?, sold_at = ?
                    WHERE market = ? AND listing_id = ? AND sold = 0
                    """,
                    (caller, datetime.now(timezone.utc).isoformat(), self._address, listing_id),
                ).rowcount
                if flipped != 1:
                    raise AlreadySold(f"Listing {listing_id} has already been sold.")
                self._accounts.pay(caller, self._address, payment, memo="purchase")
                # (2) custody
                registry.transfer(self._address, listing.asset_id, self._address, caller)
                # (3) settlement
                self._accounts.pay(self._address, listing.seller, listing.price, memo="sale proceeds")

                self._journal.record(
                    EventKind.LISTING_SOLD,
                    actor=caller,
                    subject=self._subject(listing_id),
                    payload={
                        "seller": listing.seller,
                        "buyer": caller,
                        "price": listing.price,
                        "asset_registry_ref": listing.asset_registry_ref,
                        "asset_id": listing.asset_id,
                    },
                )
        except MarketError as exc:
            logger.warning("Rejected purchase on '%s': %s", self._address, exc)
            raise

        logger.info("Listing %d sold to '%s' for %d.", listing_id, caller, payment)

    # -- Views --------------------------------------------------------------

    def get_listing(self, listing_id: int) -> Listing:
        row = self._substrate.fetch_one(
            "SELECT * FROM listings WHERE market = ? AND listing_id = ?",
            (self._address, listing_id),
        )
        if row is None:
            raise NotFound(f"No listing {listing_id} on '{self._address}'.")
        return self._row_to_listing(row)

    def fetch_open_listings(self) -> list[Listing]:
        """Listings currently held in escrow and available for purchase."""
        rows = self._substrate.fetch_all(
            "SELECT * FROM listings WHERE market = ? AND sold = 0 ORDER BY listing_id ASC",
            (self._address,),
        )
        return [self._row_to_listing(row) for row in rows]

    def fetch_owned(self, identity: str) -> list[Listing]:
        """Listings whose ``current_holder`` is *identity*."""
        rows = self._substrate.fetch_all(
            "SELECT * FROM listings WHERE market = ? AND current_holder = ? ORDER BY listing_id ASC",
            (self._address, identity),
        )
        return [self._row_to_listing(row) for row in rows]

    def fetch_listed_by(self, identity: str) -> list[Listing]:
        """Every listing *identity* has created, sold or not."""
        rows = self._substrate.fetch_all(
            "SELECT * FROM listings WHERE market = ? AND seller = ? ORDER BY listing_id ASC",
            (self._address, identity),
        )
        return [self._row_to_listing(row) for row in rows]

    def fetch_all(self) -> list[Listing]:
        rows = self._substrate.fetch_all(
            "SELECT * FROM listings WHERE market = ? ORDER BY listing_id ASC",
            (self._address,),
        )
        return [self._row_to_listing(row) for row in rows]

    def listing_count(self) -> int:
        return self._substrate.scalar(
            "SELECT COUNT(*) FROM listings WHERE market = ?", (self._address,)
        )

    # -- Internal helpers ---------------------------------------------------

    def _subject(self, listing_id: int) -> str:
        return f"listing:{self._address}:{listing_id}"

    def _load(self, conn: sqlite3.Connection, listing_id: int) -> Listing:
        row = conn.execute(
            "SELECT * FROM listings WHERE market = ? AND listing_id = ?",
            (self._address, listing_id),
        ).fetchone()
        if row is None:
            raise NotFound(f"No listing {listing_id} on '{self._address}'.")
        return self._row_to_listing(row)

    @staticmethod
    def _row_to_listing(row: sqlite3.Row) -> Listing:
        return Listing(
            listing_id=row["listing_id"],
            market=row["market"],
            asset_registry_ref=row["asset_registry_ref"],
            asset_id=row["asset_id"],
            seller=row["seller"],
            current_holder=row["current_holder"],
            price=row["price"],
            sold=bool(row["sold"]),
            created_at=row["created_at"],
            sold_at=row["sold_at"],
        )
