"""Ledger item filtering by per-level code inclusion sets."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

import pandas as pd

from engine.ledger.codes import to_ascii_digits


def _code_set(values: Iterable[str] | None) -> frozenset[str]:
    if not values:
        return frozenset()
    out = {to_ascii_digits(v) for v in values}
    out.discard("")
    return frozenset(out)


@dataclass(frozen=True)
class LedgerFilters:
    """Active filter set of the hierarchical report.

    ``fiscal_year_id``, the date range and the document-number range are
    passed through to the ledger query service. The four code sets are
    applied here, in memory.
    """

    fiscal_year_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    document_from: int | None = None
    document_to: int | None = None
    group_codes: frozenset[str] = field(default_factory=frozenset)
    general_codes: frozenset[str] = field(default_factory=frozenset)
    specific_codes: frozenset[str] = field(default_factory=frozenset)
    detail_codes: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        # Accept any iterable of codes and store normalized frozensets.
        for name in ("group_codes", "general_codes", "specific_codes", "detail_codes"):
            object.__setattr__(self, name, _code_set(getattr(self, name)))

    @property
    def code_sets(self) -> dict[str, frozenset[str]]:
        """Frame column → inclusion set, in hierarchy order."""
        return {
            "group_code": self.group_codes,
            "general_code": self.general_codes,
            "specific_code": self.specific_codes,
            "detail_key": self.detail_codes,
        }

    @property
    def has_code_filters(self) -> bool:
        return any(self.code_sets.values())


def filter_ledger(frame: pd.DataFrame, filters: LedgerFilters) -> pd.DataFrame:
    """Keep rows whose code at every constrained level is in that level's set.

    OR within a level (set membership), AND across levels. Levels with an
    empty set impose no constraint; with no active set the frame is returned
    as is.
    """
    if not filters.has_code_filters or frame.empty:
        return frame

    mask = pd.Series(True, index=frame.index)
    for column, allowed in filters.code_sets.items():
        if allowed:
            mask = mask & frame[column].fillna("").isin(allowed)

    return frame.loc[mask]
