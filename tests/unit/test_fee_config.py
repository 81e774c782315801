"""Tests for listing fee configuration and operator access control."""

from __future__ import annotations

import pytest

from tokenmarket.core.errors import InvalidAmount, Unauthorized
from tokenmarket.marketplace.ledger import MarketplaceLedger
from tokenmarket.models.journal import EventKind


class TestListingFee:
    def test_initial_fee(self, ledger):
        assert ledger.get_listing_fee() == 5
        assert ledger.config.operator == "operator"

    def test_operator_changes_fee(self, ledger):
        ledger.set_listing_fee("operator", 9)
        assert ledger.get_listing_fee() == 9

    def test_fee_may_be_zero(self, ledger):
        ledger.set_listing_fee("operator", 0)
        assert ledger.get_listing_fee() == 0

    def test_non_operator_rejected(self, ledger):
        with pytest.raises(Unauthorized):
            ledger.set_listing_fee("alice", 1)
        assert ledger.get_listing_fee() == 5

    @pytest.mark.parametrize("fee", [-1, 2.5, True])
    def test_invalid_fee_rejected(self, ledger, fee):
        with pytest.raises(InvalidAmount):
            ledger.set_listing_fee("operator", fee)
        assert ledger.get_listing_fee() == 5

    def test_change_is_journaled(self, ledger):
        ledger.set_listing_fee("operator", 7)
        (entry,) = ledger.journal.entries(EventKind.FEE_CHANGED)
        assert entry.payload == {"old_fee": 5, "new_fee": 7}

    def test_new_fee_applies_to_next_listing(self, ledger, registry, funded, make_listing):
        make_listing()
        ledger.set_listing_fee("operator", 20)
        asset_id = registry.mint("bob", "b")
        ledger.create_listing("bob", "default", asset_id, 100, 20)
        assert funded.balance_of("operator") == 25


class TestPersistedConfig:
    def test_config_survives_new_instance(self, substrate, ledger, accounts):
        ledger.set_listing_fee("operator", 11)
        again = MarketplaceLedger(
            substrate, address="market", operator="someone-else", listing_fee=99, accounts=accounts
        )
        assert again.get_listing_fee() == 11
        assert again.operator == "operator"

    def test_instances_see_each_others_changes(self, substrate, ledger, accounts):
        other = MarketplaceLedger(
            substrate, address="market", operator="operator", listing_fee=5, accounts=accounts
        )
        other.set_listing_fee("operator", 3)
        assert ledger.get_listing_fee() == 3

    def test_markets_are_independent(self, substrate, ledger, accounts):
        second = MarketplaceLedger(
            substrate, address="bazaar", operator="keeper", listing_fee=1, accounts=accounts
        )
        assert second.get_listing_fee() == 1
        assert ledger.get_listing_fee() == 5
