"""Persistent TTL cache for remote query results (fail-soft).

The cache file is a JSON document::

    {"entries": {"project_<id>": {"data": [...], "timestamp": 1700000000, "ttl_seconds": 3600}}}

Expired entries are never handed out and are dropped whenever the file is
loaded. There is no background eviction.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from t9s_core.collectors import file_size, read_json

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600


@dataclass(frozen=True)
class CacheEntry:
    data: Any
    stored_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now > self.stored_at + self.ttl

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "timestamp": self.stored_at, "ttl_seconds": self.ttl}

    @classmethod
    def from_dict(cls, payload: Any) -> "CacheEntry | None":
        if not isinstance(payload, dict) or "data" not in payload:
            return None
        try:
            return cls(
                data=payload["data"],
                stored_at=float(payload.get("timestamp", 0)),
                ttl=float(payload.get("ttl_seconds", 0)),
            )
        except (TypeError, ValueError):
            return None


def cache_key(namespace: str, ident: str) -> str:
    return f"{namespace}_{ident}"


class PersistentCache:
    """Read-modify-write JSON cache file.

    Writes are not atomic across processes; the last writer wins. The cache only
    saves round trips, so a lost update costs one extra fetch.
    """

    def __init__(self, path: Path, clock: Callable[[], float] = time.time):
        self.path = Path(path)
        self.clock = clock

    def now(self) -> float:
        return float(self.clock())

    def load(self) -> dict[str, CacheEntry]:
        raw = read_json(self.path)
        if not isinstance(raw, dict) or not isinstance(raw.get("entries"), dict):
            return {}

        now = self.now()
        entries: dict[str, CacheEntry] = {}
        for key, payload in raw["entries"].items():
            entry = CacheEntry.from_dict(payload)
            if entry is None or entry.is_expired(now):
                continue
            entries[str(key)] = entry
        return entries

    def save(self, entries: dict[str, CacheEntry]) -> None:
        """Persist entries; raises OSError so callers can decide to log and move on."""
        content = json.dumps(
            {"entries": {key: entry.to_dict() for key, entry in entries.items()}},
            indent=2,
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(content)

    def get(self, key: str) -> Any | None:
        entry = self.load().get(key)
        if entry is None or entry.is_expired(self.now()):
            return None
        return entry.data

    def put(self, key: str, data: Any, ttl: float = DEFAULT_TTL_SECONDS) -> bool:
        entries = self.load()
        entries[key] = CacheEntry(data=data, stored_at=self.now(), ttl=float(ttl))
        try:
            self.save(entries)
        except OSError as exc:
            logger.warning("Failed to save cache %s: %s", self.path, exc)
            return False
        return True

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def info(self) -> tuple[int, int]:
        return len(self.load()), file_size(self.path)
