"""Append-only, hash-chained event journal backed by SQLite.

The journal is the audit trail of the engine.  It does not decide anything;
it records what every committed operation did.

Design:
- Append-only: only ``record()`` writes; no update, no delete.
- Hash-chained: each entry includes the SHA-256 seal of the previous entry.
- Transactional: ``record()`` joins the caller's open transaction, so an
  operation that rolls back also drops its journal entries.
- entry_hash UNIQUE constraint for tamper detection.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any

from tokenmarket.core.errors import JournalIntegrityError
from tokenmarket.core.hasher import compute_anchor_hash, compute_entry_hash
from tokenmarket.core.substrate import ExecutionSubstrate
from tokenmarket.models.journal import EventKind, JournalEntry


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_JOURNAL = """
CREATE TABLE IF NOT EXISTS event_journal (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_id            TEXT NOT NULL UNIQUE,
    kind                TEXT NOT NULL,
    actor               TEXT NOT NULL,
    subject             TEXT NOT NULL DEFAULT '',
    payload_json        TEXT NOT NULL DEFAULT '{}',
    timestamp_utc       TEXT NOT NULL,
    previous_entry_hash TEXT NOT NULL DEFAULT '',
    entry_hash          TEXT NOT NULL UNIQUE
);
"""

_CREATE_IDX_KIND = """
CREATE INDEX IF NOT EXISTS idx_journal_kind ON event_journal(kind, id);
"""


class EventJournal:
    """Append-only, hash-chained record of committed market events.

    Parameters
    ----------
    substrate:
        The shared execution substrate.  Entries are written on its
        connection so they commit or roll back with the operation.
    """

    def __init__(self, substrate: ExecutionSubstrate) -> None:
        self._substrate = substrate
        self._substrate.ensure_schema(_CREATE_JOURNAL, _CREATE_IDX_KIND)

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def record(
        self,
        kind: EventKind,
        actor: str,
        subject: str = "",
        payload: dict[str, Any] | None = None,
    ) -> JournalEntry:
        """Seal and append one entry.  This is the ONLY write method."""
        entry = JournalEntry(
            kind=kind, actor=actor, subject=subject, payload=payload or {}
        )
        with self._substrate.transaction() as conn:
            previous_hash = self._latest_hash(conn)
            entry_dict = entry.model_dump(mode="json")
            entry_dict["previous_entry_hash"] = previous_hash
            entry_dict["entry_hash"] = ""
            sealed = entry.model_copy(
                update={
                    "previous_entry_hash": previous_hash,
                    "entry_hash": compute_entry_hash(entry_dict),
                }
            )
            conn.execute(
                """
                INSERT INTO event_journal
                    (entry_id, kind, actor, subject, payload_json,
                     timestamp_utc, previous_entry_hash, entry_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    sealed.entry_id,
                    sealed.kind.value,
                    sealed.actor,
                    sealed.subject,
                    json.dumps(sealed.payload),
                    entry_dict["timestamp_utc"],
                    sealed.previous_entry_hash,
                    sealed.entry_hash,
                ),
            )
        return sealed

    @staticmethod
    def _latest_hash(conn: sqlite3.Connection) -> str:
        row = conn.execute(
            "SELECT entry_hash FROM event_journal ORDER BY id DESC LIMIT 1"
        ).fetchone()
        return row[0] if row else ""

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def entries(self, kind: EventKind | None = None) -> list[JournalEntry]:
        """Return journal entries in append order, optionally by kind."""
        if kind is None:
            rows = self._substrate.fetch_all(
                "SELECT * FROM event_journal ORDER BY id ASC"
            )
        else:
            rows = self._substrate.fetch_all(
                "SELECT * FROM event_journal WHERE kind = ? ORDER BY id ASC",
                (kind.value,),
            )
        return [self._row_to_entry(row) for row in rows]

    def count(self) -> int:
        return self._substrate.scalar("SELECT COUNT(*) FROM event_journal")

    def latest(self) -> JournalEntry | None:
        row = self._substrate.fetch_one(
            "SELECT * FROM event_journal ORDER BY id DESC LIMIT 1"
        )
        return self._row_to_entry(row) if row else None

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self) -> bool:
        """Walk every entry, re-linking and re-sealing it.

        Returns True if the chain is valid, raises JournalIntegrityError
        otherwise.
        """
        prev_hash = ""
        for entry in self.entries():
            if entry.previous_entry_hash != prev_hash:
                raise JournalIntegrityError(
                    f"Chain broken at entry {entry.entry_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {entry.previous_entry_hash!r}"
                )
            expected_hash = compute_entry_hash(entry.model_dump(mode="json"))
            if entry.entry_hash != expected_hash:
                raise JournalIntegrityError(
                    f"Tampered entry {entry.entry_id}: "
                    f"expected hash={expected_hash!r}, "
                    f"got {entry.entry_hash!r}"
                )
            prev_hash = entry.entry_hash
        return True

    # ------------------------------------------------------------------
    # External anchoring
    # ------------------------------------------------------------------

    def export_anchor(self) -> dict[str, Any]:
        """Export a tamper-evident digest of the current chain head.

        Returns
        -------
        dict[str, Any]
            Keys: ``entry_count``, ``root_hash`` (seal of the last entry),
            ``first_entry_hash``, ``timestamp_utc``, ``anchor_hash``.
        """
        entries = self.entries()
        if not entries:
            return {
                "entry_count": 0,
                "root_hash": "",
                "first_entry_hash": "",
                "timestamp_utc": datetime.now(timezone.utc).isoformat(),
                "anchor_hash": "",
            }
        anchor_payload: dict[str, Any] = {
            "entry_count": len(entries),
            "root_hash": entries[-1].entry_hash,
            "first_entry_hash": entries[0].entry_hash,
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }
        anchor_payload["anchor_hash"] = compute_anchor_hash(anchor_payload)
        return anchor_payload

    def verify_against_anchor(self, anchor: dict[str, Any]) -> bool:
        """Verify the current chain against a previously exported anchor.

        The chain may have grown since the anchor was taken, but the
        anchored prefix must be unchanged.
        """
        entries = self.entries()
        expected_count = anchor.get("entry_count", 0)
        if len(entries) < expected_count:
            raise JournalIntegrityError(
                f"Journal has {len(entries)} entries but anchor expects "
                f"at least {expected_count}."
            )
        if expected_count == 0:
            return True

        if entries[0].entry_hash != anchor.get("first_entry_hash", ""):
            raise JournalIntegrityError(
                "First entry hash mismatch. "
                "Journal may have been rewritten from the beginning."
            )
        if entries[expected_count - 1].entry_hash != anchor.get("root_hash", ""):
            raise JournalIntegrityError(
                f"Root hash mismatch at entry {expected_count}. "
                "Journal may have been retroactively modified."
            )
        self.verify_chain()
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> JournalEntry:
        return JournalEntry(
            entry_id=row["entry_id"],
            kind=EventKind(row["kind"]),
            actor=row["actor"],
            subject=row["subject"],
            payload=json.loads(row["payload_json"]),
            timestamp_utc=row["timestamp_utc"],
            previous_entry_hash=row["previous_entry_hash"],
            entry_hash=row["entry_hash"],
        )
