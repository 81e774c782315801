"""Marketplace Ledger — escrowed listings and atomic fixed-price sales."""

from tokenmarket.marketplace.ledger import MarketplaceLedger

__all__ = ["MarketplaceLedger"]
