"""State store — JSON snapshot of an election.

The snapshot is rewritten after every successful mutation so that an
election can be resumed across processes (the CLI relies on this).
Writes go to a temporary sibling file first and are then renamed over
the snapshot, so a crash never leaves a half-written state file.

Each snapshot records how many events the log held when it was taken.
A snapshot is only valid alongside a log of exactly that length.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


SCHEMA_VERSION = 2


@dataclass(frozen=True)
class Snapshot:
    """A stored election record and the event count it covers."""
    election: dict[str, Any]
    event_count: int


class StateStore:
    """File-backed election snapshot."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    def save_election(self, record: dict[str, Any], event_count: int) -> None:
        """Persist an election record. Raises OSError on write failure."""
        document = {
            "schema_version": SCHEMA_VERSION,
            "event_count": event_count,
            "election": record,
        }
        tmp_path = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, sort_keys=True, ensure_ascii=False)
        os.replace(tmp_path, self._storage_path)

    def load_election(self) -> Optional[Snapshot]:
        """Return the stored snapshot, or None if nothing is stored."""
        if not self._storage_path.exists():
            return None
        with self._storage_path.open("r", encoding="utf-8") as f:
            document = json.load(f)
        version = document.get("schema_version")
        if version != SCHEMA_VERSION:
            raise ValueError(
                f"Unsupported state schema version {version} in {self._storage_path}"
            )
        return Snapshot(
            election=document["election"],
            event_count=int(document["event_count"]),
        )
