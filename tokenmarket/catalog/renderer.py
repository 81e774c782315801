"""Rich terminal renderer for catalog projections.

Color scheme
------------
- green : OPEN
- dim   : SOLD
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from tokenmarket.models.listings import ListingState

if TYPE_CHECKING:
    from tokenmarket.catalog.projection import CatalogItem, CatalogSummary


_STATE_ICONS: dict[ListingState, str] = {
    ListingState.OPEN: "[green]OPEN[/green]",
    ListingState.SOLD: "[dim]SOLD[/dim]",
}


class CatalogRenderer:
    """Renders catalog items and summaries as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_items(self, items: list[CatalogItem], title: str = "Listings") -> Table:
        table = Table(title=escape(title), show_lines=False, expand=False)
        table.add_column("#", justify="right", style="bold")
        table.add_column("Asset", style="cyan")
        table.add_column("Price", justify="right", style="green")
        table.add_column("Seller")
        table.add_column("Owner")
        table.add_column("State", justify="center")
        table.add_column("Metadata", style="dim", overflow="fold")

        for item in items:
            table.add_row(
                str(item.listing_id),
                escape(f"{item.asset_registry_ref}:{item.asset_id}"),
                str(item.price),
                escape(item.seller),
                escape(item.owner),
                _STATE_ICONS.get(item.state, item.state.value),
                escape(item.metadata_uri) if item.metadata_uri is not None else "[red]unresolved[/red]",
            )
        return table

    def render_summary(self, summary: CatalogSummary) -> Panel:
        lines = [
            f"[bold]Market:[/bold]         {escape(summary.market)}",
            f"[bold]Operator:[/bold]       {escape(summary.operator)}",
            f"[bold]Listing fee:[/bold]    {summary.listing_fee}",
            "",
            f"[bold]Listings:[/bold]       {summary.total_listings} "
            f"([green]{summary.open_count} open[/green], {summary.sold_count} sold)",
            f"[bold]Sales volume:[/bold]   {summary.sales_volume}",
            f"[bold]Fees collected:[/bold] {summary.fees_collected}",
        ]
        return Panel(
            "\n".join(lines),
            title="[bold]tokenmarket[/bold]",
            border_style="cyan",
            padding=(1, 2),
        )

    def print_items(self, items: list[CatalogItem], title: str = "Listings") -> None:
        if not items:
            self.console.print(f"[dim]{escape(title)}: none.[/dim]")
            return
        self.console.print(self.render_items(items, title=title))

    def print_summary(self, summary: CatalogSummary) -> None:
        self.console.print(self.render_summary(summary))

    def print_chain_verification(self, valid: bool, entry_count: int) -> None:
        if valid:
            self.console.print(
                f"[bold green]Journal chain VALID[/bold green] ({entry_count} entries)"
            )
        else:
            self.console.print("[bold red]Journal chain INVALID[/bold red]")
