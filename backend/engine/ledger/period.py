"""Fiscal-year selection and before-period date ranges."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, timedelta
from typing import Any

from engine.ledger.filters import LedgerFilters


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def default_fiscal_year(fiscal_years: Sequence[Any]) -> Any | None:
    """First open fiscal year; otherwise the one with the latest end date."""
    if not fiscal_years:
        return None
    for fy in fiscal_years:
        if not _field(fy, "is_closed"):
            return fy
    return max(fiscal_years, key=lambda fy: str(_field(fy, "end_date") or ""))


def before_period_range(fiscal_year_start: date | None, start_date: date | None) -> tuple[date, date] | None:
    """Fiscal-year start through the day before *start_date*.

    None when either bound is unknown or the active range starts on or
    before the fiscal-year start; before-period balances are then zero.
    """
    if fiscal_year_start is None or start_date is None:
        return None
    if start_date <= fiscal_year_start:
        return None
    return fiscal_year_start, start_date - timedelta(days=1)


def before_period_filters(filters: LedgerFilters, fiscal_year_start: date | None) -> LedgerFilters | None:
    """The active filter set moved onto the before-period range.

    The document-number range is dropped: opening balances cover every
    document from the fiscal-year start.
    """
    bounds = before_period_range(fiscal_year_start, filters.start_date)
    if bounds is None:
        return None
    start, end = bounds
    return LedgerFilters(
        fiscal_year_id=filters.fiscal_year_id,
        start_date=start,
        end_date=end,
        group_codes=filters.group_codes,
        general_codes=filters.general_codes,
        specific_codes=filters.specific_codes,
        detail_codes=filters.detail_codes,
    )
