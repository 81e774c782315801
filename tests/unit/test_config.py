"""Tests for MarketSettings (pydantic-settings)."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from tokenmarket.config import MarketSettings


class TestMarketSettings:
    def test_defaults(self, monkeypatch):
        for name in ("DB_PATH", "LISTING_FEE", "OPERATOR", "ENVIRONMENT"):
            monkeypatch.delenv(f"TOKENMARKET_{name}", raising=False)
        cfg = MarketSettings(_env_file=None)
        assert cfg.environment == "development"
        assert cfg.db_path == Path(".tokenmarket/market.db")
        assert cfg.market_address == "market"
        assert cfg.operator == "operator"
        assert cfg.listing_fee == 25
        assert cfg.registry_ref == "default"
        assert cfg.is_production is False

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TOKENMARKET_DB_PATH", str(tmp_path / "x.db"))
        monkeypatch.setenv("TOKENMARKET_LISTING_FEE", "7")
        monkeypatch.setenv("TOKENMARKET_ENVIRONMENT", "production")
        cfg = MarketSettings(_env_file=None)
        assert cfg.db_path == tmp_path / "x.db"
        assert cfg.listing_fee == 7
        assert cfg.is_production is True

    def test_negative_fee_rejected(self, monkeypatch):
        monkeypatch.setenv("TOKENMARKET_LISTING_FEE", "-1")
        with pytest.raises(ValidationError):
            MarketSettings(_env_file=None)
