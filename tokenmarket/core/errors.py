"""Error taxonomy for the marketplace engine.

Every rejected operation raises exactly one of these and leaves no partial
effect behind.  Each class carries a stable ``code`` so callers and tests
can assert on *why* an operation was rejected without matching messages.
"""

from __future__ import annotations


class MarketError(RuntimeError):
    """Base class for all engine rejections."""

    code: str = "market_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class InvalidPrice(MarketError):
    """Raised when a listing price is not a positive integer."""

    code = "invalid_price"


class InvalidAmount(MarketError):
    """Raised when a deposit, withdrawal, payment or fee amount is malformed."""

    code = "invalid_amount"


class InvalidIdentity(MarketError):
    """Raised when a recipient identity is empty or not a string."""

    code = "invalid_identity"


class FeeMismatch(MarketError):
    """Raised when a listing payment differs from the listing fee."""

    code = "fee_mismatch"


class PaymentMismatch(MarketError):
    """Raised when a purchase payment differs from the listing price."""

    code = "payment_mismatch"


class Unauthorized(MarketError):
    """Raised when the caller lacks the required custody or role."""

    code = "unauthorized"


class NotFound(MarketError):
    """Raised for an unknown asset, listing, or registry reference."""

    code = "not_found"


class AlreadySold(MarketError):
    """Raised when a purchase targets a listing that has already sold."""

    code = "already_sold"


class HolderMismatch(MarketError):
    """Raised when a transfer names a ``from`` that is not the holder."""

    code = "holder_mismatch"


class InsufficientFunds(MarketError):
    """Raised when a wallet balance cannot cover a payment or withdrawal."""

    code = "insufficient_funds"


class JournalIntegrityError(RuntimeError):
    """Raised when the event journal's hash chain is broken."""

