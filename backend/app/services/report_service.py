"""Hierarchical report orchestration: fetch → filter → aggregate → tree → table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import pandas as pd

from app.config import LEVEL_LABELS, resolve_lang
from app.services.ledger_source import LedgerQuery, fetch_concurrently
from engine.ledger import (
    DuplicateCodeError,
    ExpansionState,
    HierarchyIndex,
    LedgerFilters,
    LevelTotals,
    TableRow,
    Totals,
    TreeNode,
    aggregate_levels,
    before_period_filters,
    build_hierarchy_index,
    build_tree,
    default_fiscal_year,
    details_by_specific,
    filter_ledger,
    filter_signature,
    flatten,
    search_tree,
    tree_totals,
)

_log = logging.getLogger(__name__)

EXPANSION_BY_NAME = {
    "collapsed": ExpansionState.COLLAPSED,
    "general": ExpansionState.SHOW_GENERAL,
    "specific": ExpansionState.SHOW_SPECIFIC,
    "detail": ExpansionState.SHOW_DETAIL,
}


class UnknownFiscalYearError(ValueError):
    def __init__(self, fiscal_year_id: str):
        super().__init__(f"Unknown fiscal year '{fiscal_year_id}'")
        self.fiscal_year_id = fiscal_year_id


@dataclass
class ReportResult:
    signature: str
    cached: bool
    filters: LedgerFilters
    before_filters: LedgerFilters | None
    expansion: ExpansionState
    tree: list[TreeNode] = field(default_factory=list)
    rows: list[TableRow] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)


# ── Catalog ─────────────────────────────────────────────────────────────────

def rebuild_index(session: Any, *, widths, duplicates) -> HierarchyIndex:
    """Rebuild the session's hierarchy index from its source catalogs.

    A failing catalog fetch leaves an empty index (titles fall back to
    level labels); duplicate codes under the reject policy propagate.
    """
    try:
        codes = session.source.fetch_codes()
        details = session.source.fetch_details()
    except Exception as exc:
        _log.warning("Catalog fetch failed for session %s (%s); using empty index", session.session_id, exc)
        session.index = HierarchyIndex()
        return session.index

    try:
        session.index = build_hierarchy_index(codes, details, widths=widths, duplicates=duplicates)
    except DuplicateCodeError:
        session.index = HierarchyIndex()
        raise
    return session.index


# ── Fiscal year / filters ───────────────────────────────────────────────────

def resolve_fiscal_year(fiscal_years: list[Any], fiscal_year_id: str | None) -> Any | None:
    if not fiscal_years:
        if fiscal_year_id is not None:
            raise UnknownFiscalYearError(fiscal_year_id)
        return None
    if fiscal_year_id is None:
        return default_fiscal_year(fiscal_years)
    for fy in fiscal_years:
        if str(fy.id) == str(fiscal_year_id):
            return fy
    raise UnknownFiscalYearError(fiscal_year_id)


def filters_from_request(request: Any, fiscal_year_id: str | None) -> LedgerFilters:
    return LedgerFilters(
        fiscal_year_id=fiscal_year_id,
        start_date=request.start_date,
        end_date=request.end_date,
        document_from=request.document_from,
        document_to=request.document_to,
        group_codes=request.group_codes,
        general_codes=request.general_codes,
        specific_codes=request.specific_codes,
        detail_codes=request.detail_codes,
    )


# ── Report ──────────────────────────────────────────────────────────────────

async def _load_rows(
    session: Any,
    view_id: str,
    request_signature: str,
    filter_sets: list[LedgerFilters],
) -> tuple[list[pd.DataFrame], bool]:
    """Filtered frames for each filter set, from cache or fetched concurrently."""
    signatures = [filter_signature(f) for f in filter_sets]
    frames: list[pd.DataFrame | None] = [session.cache.get(sig) for sig in signatures]
    missing = [i for i, frame in enumerate(frames) if frame is None]
    if not missing:
        return frames, True

    queries = [LedgerQuery.from_filters(filter_sets[i]) for i in missing]
    fetched = await fetch_concurrently(session.source, queries, request_signature)
    for i, tagged in zip(missing, fetched):
        frame = session.coordinator.accept(view_id, tagged)
        filtered = filter_ledger(frame, filter_sets[i])
        session.cache.set(signatures[i], filtered)
        frames[i] = filtered
    return frames, False


async def build_report(session: Any, request: Any) -> ReportResult:
    """Run the full report pipeline for one request against a session."""
    fiscal_year = resolve_fiscal_year(session.source.fetch_fiscal_years(), request.fiscal_year_id)
    fiscal_year_id = str(fiscal_year.id) if fiscal_year is not None else request.fiscal_year_id
    fy_start: date | None = fiscal_year.start_date if fiscal_year is not None else None

    filters = filters_from_request(request, fiscal_year_id)
    before_filters = before_period_filters(filters, fy_start)
    signature = filter_signature(filters)
    session.coordinator.begin(request.view_id, signature)

    filter_sets = [filters] if before_filters is None else [filters, before_filters]
    frames, cached = await _load_rows(session, request.view_id, signature, filter_sets)
    current = frames[0]
    before_totals = aggregate_levels(frames[1]) if before_filters is not None else LevelTotals()

    lang = resolve_lang(request.lang)
    tree = build_tree(
        session.index,
        aggregate_levels(current),
        details_by_specific(current),
        fallback_titles=LEVEL_LABELS[lang],
    )
    tree = search_tree(tree, request.search)
    expansion = EXPANSION_BY_NAME[request.expansion]
    rows = flatten(tree, expansion, before_totals)

    _log.info(
        "Built report for session %s: %d rows in, %d groups, %d table rows (cached=%s)",
        session.session_id, len(current), len(tree), len(rows), cached,
    )
    return ReportResult(
        signature=signature,
        cached=cached,
        filters=filters,
        before_filters=before_filters,
        expansion=expansion,
        tree=tree,
        rows=rows,
        totals=tree_totals(tree),
    )
