"""SHA-256 sealing for journal entries and chain anchors.

Both seals hash the same canonical JSON encoding, so an entry re-read from
SQLite and re-serialized produces the seal it was written with.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

# Fields that are never part of the bytes they seal.
_ENTRY_SEAL_FIELD = "entry_hash"
_ANCHOR_SEAL_FIELD = "anchor_hash"


def canonical_json_bytes(obj: Any) -> bytes:
    """Sorted keys, compact separators, ASCII-only, UTF-8 encoded."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _seal(fields: dict[str, Any], exclude: str) -> str:
    return sha256_hex(canonical_json_bytes({k: v for k, v in fields.items() if k != exclude}))


def compute_entry_hash(entry_dict: dict[str, Any]) -> str:
    """Seal one journal entry, including its link to the previous entry.

    ``entry_dict`` is the JSON-mode dump of a ``JournalEntry``; any value
    already present under ``entry_hash`` is ignored.
    """
    return _seal(entry_dict, _ENTRY_SEAL_FIELD)


def compute_anchor_hash(anchor: dict[str, Any]) -> str:
    """Seal an exported chain anchor so it can be witnessed elsewhere."""
    return _seal(anchor, _ANCHOR_SEAL_FIELD)
