"""Main Typer application — imports and registers all CLI commands.

Entry point: ``tokenmarket`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from tokenmarket.cli.commands.assets import mint_cmd
from tokenmarket.cli.commands.demo import demo_cmd
from tokenmarket.cli.commands.fee import fee_cmd
from tokenmarket.cli.commands.funds import balance_cmd, deposit_cmd
from tokenmarket.cli.commands.listings_cmd import listings_cmd
from tokenmarket.cli.commands.trade import buy_cmd, list_cmd
from tokenmarket.cli.commands.verify import verify_cmd
from tokenmarket.config import settings

app = typer.Typer(
    name="tokenmarket",
    help="tokenmarket: escrowed, fixed-price marketplace for tokenized assets.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    level = logging.DEBUG if verbose or settings.debug else settings.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="deposit", help="Credit a wallet with funds.")(deposit_cmd)
app.command(name="balance", help="Show a wallet balance.")(balance_cmd)
app.command(name="mint", help="Mint a new asset.")(mint_cmd)
app.command(name="list", help="List an asset for sale (escrow).")(list_cmd)
app.command(name="buy", help="Purchase a listing.")(buy_cmd)
app.command(name="listings", help="Show open, owned, or created listings.")(listings_cmd)
app.command(name="fee", help="Show or change the listing fee.")(fee_cmd)
app.command(name="verify", help="Verify the event journal hash chain.")(verify_cmd)
app.command(name="demo", help="Run a complete mint/list/buy demo.")(demo_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
