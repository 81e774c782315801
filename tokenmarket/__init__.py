"""tokenmarket: escrowed, fixed-price marketplace for tokenized assets.

  - Asset Registry: gapless per-registry ids, opaque metadata pointers,
    marketplace transfer capability checked on every move
  - Marketplace Ledger: escrow on listing, flat operator fee, atomic
    sale settlement, open / owned / listed-by views
  - SQLite execution substrate: serialized, all-or-nothing operations
  - Hash-chained event journal of every committed change
"""

__version__ = "0.1.0"
__description__ = "Escrowed, fixed-price marketplace ledger for tokenized assets"

from tokenmarket.core.accounts import AccountBook
from tokenmarket.core.registry import AssetRegistry
from tokenmarket.core.substrate import ExecutionSubstrate
from tokenmarket.marketplace.ledger import MarketplaceLedger

__all__ = [
    "AccountBook",
    "AssetRegistry",
    "ExecutionSubstrate",
    "MarketplaceLedger",
    "__version__",
]
