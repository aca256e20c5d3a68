"""
ledger – Hierarchical ledger aggregation for the codes/balance report.

Pipeline, leaf-first::

    codes       → normalize account codes per level (configurable widths)
    hierarchy   → titles + parent/children lists from the code catalog
    frame       → ledger items as a DataFrame with normalized code columns
    filters     → per-level code inclusion sets (OR within, AND across)
    aggregate   → debit/credit per code at each level
    tree        → Group → General → Specific → Detail tree + text search
    projection  → flat table rows under an ExpansionState
    cache       → filter signatures + bounded result cache

Quick start::

    from engine.ledger import (
        ExpansionState, aggregate_levels, build_hierarchy_index,
        build_tree, details_by_specific, flatten, ledger_frame,
    )

    index = build_hierarchy_index(codes, details)
    frame = ledger_frame(items)
    tree = build_tree(index, aggregate_levels(frame), details_by_specific(frame))
    rows = flatten(tree, ExpansionState.SHOW_GENERAL)
"""

from engine.ledger.aggregate import (
    LevelTotals,
    Totals,
    aggregate,
    aggregate_levels,
    by_general,
    by_group,
    by_specific,
    by_specific_detail,
    details_by_specific,
)
from engine.ledger.cache import ResultCache, filter_signature
from engine.ledger.codes import CodeWidths, normalize_code, to_ascii_digits
from engine.ledger.filters import LedgerFilters, filter_ledger
from engine.ledger.frame import empty_ledger_frame, ledger_frame
from engine.ledger.hierarchy import (
    DuplicateCodeError,
    DuplicatePolicy,
    HierarchyIndex,
    build_hierarchy_index,
)
from engine.ledger.period import before_period_filters, before_period_range, default_fiscal_year
from engine.ledger.projection import ExpansionState, TableRow, flatten
from engine.ledger.tree import Level, TreeNode, build_tree, search_tree, tree_totals

__all__ = [
    "CodeWidths",
    "DuplicateCodeError",
    "DuplicatePolicy",
    "ExpansionState",
    "HierarchyIndex",
    "LedgerFilters",
    "Level",
    "LevelTotals",
    "ResultCache",
    "TableRow",
    "Totals",
    "TreeNode",
    "aggregate",
    "aggregate_levels",
    "before_period_filters",
    "before_period_range",
    "build_hierarchy_index",
    "build_tree",
    "by_general",
    "by_group",
    "by_specific",
    "by_specific_detail",
    "default_fiscal_year",
    "details_by_specific",
    "empty_ledger_frame",
    "filter_ledger",
    "filter_signature",
    "flatten",
    "ledger_frame",
    "normalize_code",
    "search_tree",
    "to_ascii_digits",
    "tree_totals",
]
