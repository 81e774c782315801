"""Serialized, transactional execution substrate backed by SQLite.

Every public mutating operation in the engine runs inside
``ExecutionSubstrate.transaction()``.  The substrate guarantees:

- Serialization: a single re-entrant lock admits one top-level operation
  at a time.  No two operations interleave mid-execution.
- Atomicity: the outermost ``transaction()`` opens ``BEGIN IMMEDIATE`` and
  commits only if the block completes.  Nested calls (the Ledger calling
  into an Asset Registry, or a re-entrant call from a collaborator) join the
  outer transaction through a SAVEPOINT, so a failure anywhere rolls the
  whole operation back as a unit.
- Visibility: reads issued on the substrate inside an open transaction see
  that transaction's uncommitted writes.  A re-entrant caller therefore
  observes every effect the outer operation has already applied.

All engine components that must commit together (registries, the ledger,
the account book, the journal) share one substrate.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ExecutionSubstrate:
    """One SQLite database, one connection, one lock.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._depth = 0
        self._savepoint_seq = 0
        self._conn = sqlite3.connect(
            str(self._db_path),
            check_same_thread=False,
            isolation_level=None,  # explicit BEGIN/COMMIT only
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        logger.debug("Opened execution substrate at %s.", self._db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def in_transaction(self) -> bool:
        """Whether an operation is open on this substrate, on any thread."""
        return self._depth > 0

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def ensure_schema(self, *statements: str) -> None:
        """Run idempotent DDL statements (``CREATE ... IF NOT EXISTS``)."""
        with self._lock:
            for statement in statements:
                self._conn.execute(statement)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed block as one all-or-nothing unit.

        The outermost call owns the SQLite transaction; inner calls open a
        SAVEPOINT.  Any exception rolls back to the start of the innermost
        block and propagates, which in turn unwinds every enclosing block.
        """
        with self._lock:
            savepoint: str | None = None
            if self._depth == 0:
                self._conn.execute("BEGIN IMMEDIATE")
            else:
                self._savepoint_seq += 1
                savepoint = f"sp_{self._savepoint_seq}"
                self._conn.execute(f"SAVEPOINT {savepoint}")
            self._depth += 1
            try:
                yield self._conn
            except BaseException:
                self._depth -= 1
                if savepoint is None:
                    self._conn.execute("ROLLBACK")
                    logger.debug("Rolled back operation on %s.", self._db_path)
                else:
                    self._conn.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
                    self._conn.execute(f"RELEASE SAVEPOINT {savepoint}")
                raise
            self._depth -= 1
            if savepoint is None:
                self._conn.execute("COMMIT")
            else:
                self._conn.execute(f"RELEASE SAVEPOINT {savepoint}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None:
        with self._lock:
            return self._conn.execute(sql, params).fetchone()

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        row = self.fetch_one(sql, params)
        return row[0] if row is not None else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> ExecutionSubstrate:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
