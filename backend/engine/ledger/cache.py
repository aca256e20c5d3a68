"""Filter signatures and the bounded result cache keyed by them."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Any

from engine.ledger.codes import natural_sort_key
from engine.ledger.filters import LedgerFilters

_log = logging.getLogger(__name__)


def _join_codes(codes: frozenset[str]) -> str:
    return ",".join(sorted(codes, key=natural_sort_key))


def _text(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def filter_signature(filters: LedgerFilters) -> str:
    """Deterministic cache key for a filter set; equal filters give equal strings."""
    parts = [
        f"fy={_text(filters.fiscal_year_id)}",
        f"from={_text(filters.start_date)}",
        f"to={_text(filters.end_date)}",
        f"jfrom={_text(filters.document_from)}",
        f"jto={_text(filters.document_to)}",
        f"gf={_join_codes(filters.group_codes)}",
        f"mf={_join_codes(filters.general_codes)}",
        f"sf={_join_codes(filters.specific_codes)}",
        f"df={_join_codes(filters.detail_codes)}",
    ]
    return "|".join(parts)


class ResultCache:
    """Thread-safe LRU memo of filtered ledger frames, keyed by filter signature.

    ``max_entries`` bounds growth; ``ttl`` seconds (0 disables) expires
    entries on read. A hit returns whatever was last stored for the exact
    signature.
    """

    def __init__(self, max_entries: int = 128, ttl: float = 0.0):
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.max_entries = max_entries
        self.ttl = ttl
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, signature: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(signature)
            if entry is None:
                self.misses += 1
                return None
            stored_at, value = entry
            if self.ttl and time.monotonic() - stored_at > self.ttl:
                del self._entries[signature]
                self.misses += 1
                return None
            self._entries.move_to_end(signature)
            self.hits += 1
            return value

    def set(self, signature: str, value: Any) -> None:
        with self._lock:
            self._entries[signature] = (time.monotonic(), value)
            self._entries.move_to_end(signature)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                _log.debug("Result cache evicted %s", evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
