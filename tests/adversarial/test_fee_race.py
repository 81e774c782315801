"""Adversarial tests — a fee change racing a listing on another thread.

The fee check and the fee collection of ``create_listing`` must run inside
one serialized operation.  A concurrent ``set_listing_fee`` either lands
entirely before the listing or waits until the listing has committed.
"""

from __future__ import annotations

import threading

import pytest

from tokenmarket.core.errors import FeeMismatch
from tokenmarket.marketplace.ledger import MarketplaceLedger
from tokenmarket.models.journal import EventKind


class InterleavingLedger(MarketplaceLedger):
    """Starts a fee change on another thread mid-way through a listing."""

    armed = True
    new_fee = 7
    worker: threading.Thread | None = None
    blocked_while_listing: bool | None = None

    def registry(self, asset_registry_ref):
        if self.armed:
            self.armed = False
            self.worker = threading.Thread(
                target=self.set_listing_fee, args=(self.operator, self.new_fee)
            )
            self.worker.start()
            self.worker.join(timeout=0.5)
            self.blocked_while_listing = self.worker.is_alive()
        return super().registry(asset_registry_ref)


@pytest.fixture
def racing(substrate, accounts, registry, funded) -> InterleavingLedger:
    ledger = InterleavingLedger(
        substrate, address="market", operator="operator", listing_fee=5, accounts=accounts
    )
    ledger.attach_registry(registry)
    return ledger


class TestFeeChangeDuringListing:
    def test_fee_change_waits_for_listing(self, racing, registry, funded):
        asset_id = registry.mint("alice", "ipfs://race")
        listing_id = racing.create_listing("alice", "default", asset_id, 100, 5)
        racing.worker.join(timeout=10)

        assert racing.blocked_while_listing is True
        assert listing_id == 1
        assert funded.balance_of("operator") == 5
        assert racing.get_listing_fee() == 7

        kinds = [entry.kind for entry in racing.journal.entries()]
        assert kinds.index(EventKind.LISTING_CREATED) < kinds.index(EventKind.FEE_CHANGED)
        (created,) = racing.journal.entries(EventKind.LISTING_CREATED)
        (changed,) = racing.journal.entries(EventKind.FEE_CHANGED)
        assert created.payload["fee"] == 5
        assert changed.payload == {"old_fee": 5, "new_fee": 7}

    def test_stale_fee_rejected_after_change(self, racing, registry, funded):
        racing.armed = False
        racing.set_listing_fee("operator", 7)
        asset_id = registry.mint("alice", "ipfs://late")
        with pytest.raises(FeeMismatch):
            racing.create_listing("alice", "default", asset_id, 100, 5)
        assert registry.holder_of(asset_id) == "alice"
        assert funded.balance_of("operator") == 0
