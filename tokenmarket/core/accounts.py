"""Single-currency account book.

Wallet balances live on the shared substrate so that a payment commits or
rolls back together with the listing or sale that caused it.  Value only
enters through ``deposit`` and only leaves through ``withdraw``; every other
movement is a ``pay`` between two accounts, which conserves the total.
"""

from __future__ import annotations

import logging

from tokenmarket.core.errors import InsufficientFunds
from tokenmarket.core.guards import require_amount, require_caller, require_identity
from tokenmarket.core.journal import EventJournal
from tokenmarket.core.substrate import ExecutionSubstrate
from tokenmarket.models.journal import EventKind

logger = logging.getLogger(__name__)


_CREATE_ACCOUNTS = """
CREATE TABLE IF NOT EXISTS accounts (
    identity TEXT PRIMARY KEY,
    balance  INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0)
);
"""


class AccountBook:
    """Balances per identity, in the smallest currency unit.

    Parameters
    ----------
    substrate:
        The shared execution substrate.
    """

    def __init__(self, substrate: ExecutionSubstrate) -> None:
        self._substrate = substrate
        self._substrate.ensure_schema(_CREATE_ACCOUNTS)
        self._journal = EventJournal(substrate)

    # -- Funding boundary ---------------------------------------------------

    def deposit(self, identity: str, amount: int) -> int:
        """Credit *identity* with funds from outside the market.

        Returns the new balance.
        """
        require_identity(identity, "account")
        require_amount(amount)
        with self._substrate.transaction():
            balance = self._credit(identity, amount)
            self._journal.record(
                EventKind.DEPOSIT,
                actor=identity,
                subject=f"account:{identity}",
                payload={"amount": amount, "balance": balance},
            )
        logger.info("Deposited %d to '%s' (balance %d).", amount, identity, balance)
        return balance

    def withdraw(self, identity: str, amount: int) -> int:
        """Debit *identity* to outside the market.  Returns the new balance."""
        require_caller(identity)
        require_amount(amount)
        with self._substrate.transaction():
            balance = self._debit(identity, amount)
            self._journal.record(
                EventKind.WITHDRAW,
                actor=identity,
                subject=f"account:{identity}",
                payload={"amount": amount, "balance": balance},
            )
        logger.info("Withdrew %d from '%s' (balance %d).", amount, identity, balance)
        return balance

    # -- Internal movement --------------------------------------------------

    def pay(self, payer: str, payee: str, amount: int, *, memo: str = "") -> None:
        """Move *amount* from *payer* to *payee*.

        A zero amount is accepted and recorded, so a market configured with
        a zero listing fee still leaves a complete audit trail.
        """
        require_caller(payer)
        require_identity(payee, "payee")
        require_amount(amount, positive=False)
        with self._substrate.transaction():
            self._debit(payer, amount)
            self._credit(payee, amount)
            self._journal.record(
                EventKind.PAYMENT,
                actor=payer,
                subject=f"account:{payee}",
                payload={"payer": payer, "payee": payee, "amount": amount, "memo": memo},
            )
        logger.debug("Paid %d from '%s' to '%s' (%s).", amount, payer, payee, memo)

    def _credit(self, identity: str, amount: int) -> int:
        with self._substrate.transaction() as conn:
            conn.execute(
                """
                INSERT INTO accounts (identity, balance) VALUES (?, ?)
                ON CONFLICT(identity) DO UPDATE SET balance = balance + excluded.balance
                """,
                (identity, amount),
            )
            return conn.execute(
                "SELECT balance FROM accounts WHERE identity = ?", (identity,)
            ).fetchone()[0]

    def _debit(self, identity: str, amount: int) -> int:
        with self._substrate.transaction() as conn:
            row = conn.execute(
                "SELECT balance FROM accounts WHERE identity = ?", (identity,)
            ).fetchone()
            balance = row[0] if row else 0
            if balance < amount:
                raise InsufficientFunds(
                    f"'{identity}' holds {balance}, needs {amount}."
                )
            conn.execute(
                "UPDATE accounts SET balance = balance - ? WHERE identity = ?",
                (amount, identity),
            )
            return balance - amount

    # -- Reads --------------------------------------------------------------

    def balance_of(self, identity: str) -> int:
        """Return the balance of *identity*; zero if it has never been funded."""
        value = self._substrate.scalar(
            "SELECT balance FROM accounts WHERE identity = ?", (identity,)
        )
        return value or 0

    def total_supply(self) -> int:
        """Sum of every balance in the book."""
        return self._substrate.scalar("SELECT COALESCE(SUM(balance), 0) FROM accounts")

    def balances(self) -> dict[str, int]:
        rows = self._substrate.fetch_all(
            "SELECT identity, balance FROM accounts ORDER BY identity ASC"
        )
        return {row["identity"]: row["balance"] for row in rows}
