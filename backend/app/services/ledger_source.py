"""Ledger query seam, in-memory source, and signature-tagged concurrent fetches.

The report needs two row sets per request: the active period and the
before-period (fiscal-year start up to the day before the active start).
Both are fetched concurrently; each result carries the signature it was
requested under so a newer request for the same view wins regardless of
arrival order.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol

import pandas as pd

from engine.ledger import CodeWidths, LedgerFilters, empty_ledger_frame, ledger_frame
from engine.ledger.codes import DEFAULT_WIDTHS

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerQuery:
    """Server-side parameters of the ledger query service (dates inclusive)."""

    fiscal_year_id: str | None
    start_date: date
    end_date: date
    document_from: int | None = None
    document_to: int | None = None

    @classmethod
    def from_filters(cls, filters: LedgerFilters) -> LedgerQuery:
        if filters.start_date is None or filters.end_date is None:
            raise ValueError("Ledger query needs both start_date and end_date")
        return cls(
            fiscal_year_id=filters.fiscal_year_id,
            start_date=filters.start_date,
            end_date=filters.end_date,
            document_from=filters.document_from,
            document_to=filters.document_to,
        )


class LedgerSource(Protocol):
    def fetch_items(self, query: LedgerQuery) -> pd.DataFrame: ...

    def fetch_codes(self) -> list[Any]: ...

    def fetch_details(self) -> list[Any]: ...

    def fetch_fiscal_years(self) -> list[Any]: ...


class InMemoryLedgerSource:
    """Ledger query service backed by items loaded through the API."""

    def __init__(self, widths: CodeWidths = DEFAULT_WIDTHS):
        self.widths = widths
        self._frame = empty_ledger_frame()
        self._codes: list[Any] = []
        self._details: list[Any] = []
        self._fiscal_years: list[Any] = []
        self._lock = threading.Lock()

    # ── Loading ─────────────────────────────────────────────────────────────

    def load_items(self, items: Any) -> pd.DataFrame:
        frame = ledger_frame(items, self.widths)
        with self._lock:
            self._frame = frame
        return frame

    def load_codes(self, codes: list[Any]) -> None:
        with self._lock:
            self._codes = list(codes)

    def load_details(self, details: list[Any]) -> None:
        with self._lock:
            self._details = list(details)

    def load_fiscal_years(self, fiscal_years: list[Any]) -> None:
        with self._lock:
            self._fiscal_years = list(fiscal_years)

    @property
    def item_count(self) -> int:
        return len(self._frame)

    def fetch_all(self) -> pd.DataFrame:
        with self._lock:
            return self._frame

    # ── Query service contract ──────────────────────────────────────────────

    def fetch_items(self, query: LedgerQuery) -> pd.DataFrame:
        with self._lock:
            frame = self._frame
        if frame.empty:
            return frame

        dates = frame["date"].fillna("")
        mask = (dates >= query.start_date.isoformat()) & (dates <= query.end_date.isoformat())
        mask = mask & (dates != "")
        docs = frame["document_number"]
        if query.document_from is not None:
            mask = mask & (docs >= query.document_from)
        if query.document_to is not None:
            mask = mask & (docs <= query.document_to)
        return frame.loc[mask]

    def fetch_codes(self) -> list[Any]:
        with self._lock:
            return list(self._codes)

    def fetch_details(self) -> list[Any]:
        with self._lock:
            return list(self._details)

    def fetch_fiscal_years(self) -> list[Any]:
        with self._lock:
            return list(self._fiscal_years)


# ── Fetch coordination ──────────────────────────────────────────────────────

class StaleFetchError(RuntimeError):
    """A fetch finished after a newer filter set was requested for the same view."""

    def __init__(self, view_id: str, signature: str):
        super().__init__(f"Result for view '{view_id}' superseded by a newer request")
        self.view_id = view_id
        self.signature = signature


@dataclass(frozen=True)
class TaggedRows:
    """Rows plus the signature of the view request that asked for them."""

    request: str
    frame: pd.DataFrame


class FetchCoordinator:
    """Tracks the latest requested signature per view; last request wins."""

    def __init__(self) -> None:
        self._latest: dict[str, str] = {}
        self._lock = threading.Lock()

    def begin(self, view_id: str, signature: str) -> None:
        with self._lock:
            self._latest[view_id] = signature

    def is_current(self, view_id: str, signature: str) -> bool:
        with self._lock:
            return self._latest.get(view_id) == signature

    def accept(self, view_id: str, tagged: TaggedRows) -> pd.DataFrame:
        """Return the rows, or raise StaleFetchError if the view moved on."""
        if not self.is_current(view_id, tagged.request):
            _log.warning("Discarding stale ledger fetch for view %s", view_id)
            raise StaleFetchError(view_id, tagged.request)
        return tagged.frame


def safe_fetch(source: LedgerSource, query: LedgerQuery, request: str) -> TaggedRows:
    """Fetch one row set; a failing source degrades to an empty frame."""
    try:
        frame = source.fetch_items(query)
    except Exception as exc:
        _log.warning(
            "Ledger fetch failed for %s..%s (%s); continuing with no rows",
            query.start_date, query.end_date, exc,
        )
        frame = empty_ledger_frame()
    return TaggedRows(request=request, frame=frame)


async def fetch_concurrently(
    source: LedgerSource,
    queries: list[LedgerQuery],
    request: str,
) -> list[TaggedRows]:
    """Run every query on a worker thread at once, tagging results with *request*."""
    return list(
        await asyncio.gather(
            *(asyncio.to_thread(safe_fetch, source, query, request) for query in queries)
        )
    )
