"""Tests for the ledger's read-only views."""

from __future__ import annotations

import pytest

from tokenmarket.core.errors import NotFound


def _ids(listings):
    return [listing.listing_id for listing in listings]


class TestViews:
    def test_empty_market(self, ledger):
        assert ledger.fetch_open_listings() == []
        assert ledger.fetch_owned("alice") == []
        assert ledger.fetch_listed_by("alice") == []
        assert ledger.fetch_all() == []
        assert ledger.listing_count() == 0

    def test_open_listings_in_id_order(self, ledger, make_listing):
        make_listing(seller="alice")
        make_listing(seller="bob")
        make_listing(seller="alice")
        assert _ids(ledger.fetch_open_listings()) == [1, 2, 3]

    def test_sold_listing_leaves_open_view(self, ledger, make_listing):
        make_listing(seller="alice")
        _, second = make_listing(seller="bob")
        ledger.purchase("carol", second, 100)
        assert _ids(ledger.fetch_open_listings()) == [1]

    def test_owned_view(self, ledger, make_listing):
        _, first = make_listing(seller="alice")
        _, second = make_listing(seller="alice")
        ledger.purchase("bob", first, 100)
        ledger.purchase("bob", second, 100)
        assert _ids(ledger.fetch_owned("bob")) == [1, 2]
        # escrowed listings are not owned by their seller
        assert ledger.fetch_owned("alice") == []

    def test_owned_view_tracks_holder_at_sale(self, ledger, make_listing):
        asset_id, listing_id = make_listing(seller="alice")
        ledger.purchase("bob", listing_id, 100)
        ledger.create_listing("bob", "default", asset_id, 50, ledger.get_listing_fee())
        # the first listing still records bob as its buyer
        assert _ids(ledger.fetch_owned("bob")) == [1]
        assert _ids(ledger.fetch_owned("market")) == [2]

    def test_listed_by_includes_sold(self, ledger, make_listing):
        _, first = make_listing(seller="alice")
        make_listing(seller="bob")
        make_listing(seller="alice")
        ledger.purchase("carol", first, 100)
        created = ledger.fetch_listed_by("alice")
        assert _ids(created) == [1, 3]
        assert [listing.sold for listing in created] == [True, False]

    def test_get_listing_unknown(self, ledger):
        with pytest.raises(NotFound):
            ledger.get_listing(1)

    def test_views_return_snapshots(self, ledger, make_listing):
        _, listing_id = make_listing()
        before = ledger.fetch_open_listings()
        ledger.purchase("bob", listing_id, 100)
        assert before[0].sold is False
