"""Unit tests for the CLI — Typer command registration and end-to-end use.

Every invocation points ``--db`` at a temporary database, so commands share
state across calls exactly as separate shell invocations would.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from tokenmarket.cli.app import app

runner = CliRunner()


@pytest.fixture
def db(tmp_path: Path) -> str:
    return str(tmp_path / "cli.db")


def _fee(db: str) -> int:
    result = runner.invoke(app, ["fee", "--db", db])
    assert result.exit_code == 0
    return int(result.output.split("Listing fee:")[1].split()[0])


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("deposit", "balance", "mint", "list", "buy", "listings", "fee", "verify", "demo"):
            assert name in result.output

    @pytest.mark.parametrize("command", ["mint", "list", "buy", "listings", "verify"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# Test: commands against a real database
# ---------------------------------------------------------------------------


class TestCliFlow:
    def test_deposit_and_balance(self, db):
        result = runner.invoke(app, ["deposit", "alice", "40", "--db", db])
        assert result.exit_code == 0
        result = runner.invoke(app, ["balance", "alice", "--db", db])
        assert result.exit_code == 0
        assert "40" in result.output

    def test_invalid_deposit_is_rejected(self, db):
        result = runner.invoke(app, ["deposit", "alice", "0", "--db", db])
        assert result.exit_code == 1
        assert "invalid_amount" in result.output

    def test_mint_list_buy(self, db):
        fee = _fee(db)
        assert runner.invoke(app, ["deposit", "alice", str(fee + 1), "--db", db]).exit_code == 0
        assert runner.invoke(app, ["deposit", "bob", "50", "--db", db]).exit_code == 0

        result = runner.invoke(app, ["mint", "ipfs://cli.json", "--caller", "alice", "--db", db])
        assert result.exit_code == 0
        assert "Minted" in result.output

        result = runner.invoke(app, ["list", "1", "50", "--caller", "alice", "--db", db])
        assert result.exit_code == 0, result.output
        assert "listing 1" in result.output

        result = runner.invoke(app, ["listings", "--db", db])
        assert result.exit_code == 0
        assert "ipfs://cli.json" in result.output

        result = runner.invoke(app, ["buy", "1", "--caller", "bob", "--db", db])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["listings", "--owned", "bob", "--db", db])
        assert result.exit_code == 0
        assert "SOLD" in result.output

        result = runner.invoke(app, ["buy", "1", "--caller", "bob", "--payment", "50", "--db", db])
        assert result.exit_code == 1
        assert "already_sold" in result.output

        result = runner.invoke(app, ["verify", "--db", db])
        assert result.exit_code == 0
        assert "VALID" in result.output

    def test_wrong_fee_payment(self, db):
        fee = _fee(db)
        runner.invoke(app, ["deposit", "alice", str(fee + 10), "--db", db])
        runner.invoke(app, ["mint", "ipfs://x", "--caller", "alice", "--db", db])
        result = runner.invoke(
            app, ["list", "1", "50", "--caller", "alice", "--payment", str(fee + 1), "--db", db]
        )
        assert result.exit_code == 1
        assert "fee_mismatch" in result.output

    def test_fee_change_requires_operator(self, db):
        result = runner.invoke(app, ["fee", "--set", "3", "--caller", "alice", "--db", db])
        assert result.exit_code == 1
        assert "unauthorized" in result.output

    def test_fee_change_by_operator(self, db):
        result = runner.invoke(app, ["fee", "--set", "3", "--caller", "operator", "--db", db])
        assert result.exit_code == 0
        assert _fee(db) == 3

    def test_fee_set_without_caller(self, db):
        result = runner.invoke(app, ["fee", "--set", "3", "--db", db])
        assert result.exit_code == 2

    def test_empty_listings(self, db):
        result = runner.invoke(app, ["listings", "--db", db])
        assert result.exit_code == 0
        assert "none" in result.output

    def test_summary(self, db):
        result = runner.invoke(app, ["listings", "--summary", "--db", db])
        assert result.exit_code == 0
        assert "Fees collected" in result.output

    def test_demo(self, tmp_path):
        result = runner.invoke(app, ["demo", "--db", str(tmp_path / "demo.db")])
        assert result.exit_code == 0, result.output
        assert "already_sold" in result.output
        assert "VALID" in result.output


# ---------------------------------------------------------------------------
# Test: stored strings are printed literally, never as markup
# ---------------------------------------------------------------------------


class TestCliLiteralOutput:
    def test_metadata_with_markup_closing_tag(self, db):
        fee = _fee(db)
        runner.invoke(app, ["deposit", "alice", str(fee + 1), "--db", db])
        result = runner.invoke(app, ["mint", "ipfs://x[/b]", "--caller", "alice", "--db", db])
        assert result.exit_code == 0, result.output
        result = runner.invoke(app, ["list", "1", "10", "--caller", "alice", "--db", db])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["listings", "--db", db])
        assert result.exit_code == 0, result.output
        assert "ipfs://x[/b]" in result.output

    def test_identity_with_markup(self, db):
        result = runner.invoke(app, ["deposit", "[/red]eve", "5", "--db", db])
        assert result.exit_code == 0, result.output
        assert "[/red]eve" in result.output

        result = runner.invoke(app, ["listings", "--owned", "[bold]eve", "--db", db])
        assert result.exit_code == 0, result.output
        assert "Owned by [bold]eve: none." in result.output

    def test_rejection_message_with_markup(self, db):
        result = runner.invoke(app, ["fee", "--set", "3", "--caller", "[/x]", "--db", db])
        assert result.exit_code == 1
        assert "'[/x]'" in result.output


class TestDemoGuards:
    def test_invalid_price_is_reported(self, tmp_path):
        result = runner.invoke(app, ["demo", "--db", str(tmp_path / "demo.db"), "--price", "0"])
        assert result.exit_code == 1
        assert "Rejected (invalid_price)" in result.output

    def test_refused_in_production(self, tmp_path, monkeypatch):
        from tokenmarket.config import settings

        monkeypatch.setattr(settings, "environment", "production")
        result = runner.invoke(app, ["demo", "--db", str(tmp_path / "demo.db")])
        assert result.exit_code == 2
        assert not (tmp_path / "demo.db").exists()
