"""Tree builder, search and table projection tests."""

from __future__ import annotations

import pytest

from app.config import LEVEL_LABELS
from engine.ledger import (
    ExpansionState,
    HierarchyIndex,
    LedgerFilters,
    Level,
    LevelTotals,
    TreeNode,
    aggregate_levels,
    build_hierarchy_index,
    build_tree,
    details_by_specific,
    filter_ledger,
    flatten,
    ledger_frame,
    search_tree,
    tree_totals,
)
from engine.tests.conftest import SAMPLE_CODES, SAMPLE_DETAILS, SAMPLE_ITEMS


def _tree(items=SAMPLE_ITEMS, codes=SAMPLE_CODES, details=SAMPLE_DETAILS) -> list[TreeNode]:
    frame = ledger_frame(items)
    return build_tree(
        build_hierarchy_index(codes, details),
        aggregate_levels(frame),
        details_by_specific(frame),
    )


def _codes(nodes: list[TreeNode]) -> list[str]:
    return [n.code for n in nodes]


# ── build_tree ───────────────────────────────────────────────────────────────

class TestBuildTree:
    def test_two_level_rollup(self) -> None:
        codes = [
            {"code": "10", "title": "Assets", "kind": "group"},
            {"code": "1001", "title": "Cash", "kind": "general"},
        ]
        items = [
            {"account_code": "100101", "debit": 500},
            {"account_code": "100102", "credit": 200},
        ]
        tree = _tree(items, codes, [])
        assert len(tree) == 1
        group = tree[0]
        assert (group.code, group.title, group.debit, group.credit) == ("10", "Assets", 500.0, 200.0)
        general = group.children[0]
        assert (general.code, general.title, general.debit, general.credit) == ("1001", "Cash", 500.0, 200.0)

    def test_structure(self) -> None:
        tree = _tree()
        assert _codes(tree) == ["10", "20"]
        assets = tree[0]
        assert _codes(assets.children) == ["1001", "1002"]
        assert _codes(assets.children[0].children) == ["100101", "100102"]
        assert _codes(assets.children[0].children[0].children) == ["5001", "5002"]

    def test_node_amounts_come_from_own_aggregate(self) -> None:
        cash_on_hand = _tree()[0].children[0].children[0]
        assert (cash_on_hand.debit, cash_on_hand.credit) == (600.0, 0.0)
        assert sum(d.debit for d in cash_on_hand.children) == pytest.approx(600.0)

    def test_specific_without_details_keeps_amount(self) -> None:
        petty = _tree()[0].children[0].children[1]
        assert petty.code == "100102"
        assert petty.credit == 200.0
        assert petty.children == []

    def test_levels(self) -> None:
        levels = {n.level for n in _tree()[0].walk()}
        assert levels == {Level.GROUP, Level.GENERAL, Level.SPECIFIC, Level.DETAIL}

    def test_zero_activity_omitted(self) -> None:
        items = [i for i in SAMPLE_ITEMS if i["account_code"] != "100201"]
        items.append({"account_code": "100201", "debit": 0, "credit": 0})
        tree = _tree(items)
        assert "1002" not in _codes(tree[0].children)

    def test_fallback_titles(self) -> None:
        items = [{"account_code": "300101", "detail_code": "77", "debit": 5}]
        codes = [
            {"code": "3001", "title": "", "kind": "general"},
            {"code": "300101", "title": "", "kind": "specific"},
        ]
        frame = ledger_frame(items)
        tree = build_tree(
            build_hierarchy_index(codes),
            aggregate_levels(frame),
            details_by_specific(frame),
            fallback_titles=LEVEL_LABELS["fa"],
        )
        titles = [n.title for n in tree[0].walk()]
        assert titles == ["گروه", "کل", "معین", "تفصیل"]

    def test_empty_index_lists_groups_only(self) -> None:
        frame = ledger_frame(SAMPLE_ITEMS)
        tree = build_tree(HierarchyIndex(), aggregate_levels(frame))
        assert _codes(tree) == ["10", "20"]
        assert tree[0].title == "Group"
        assert tree[0].children == []

    def test_empty_ledger(self) -> None:
        assert build_tree(build_hierarchy_index(SAMPLE_CODES), LevelTotals()) == []

    def test_disjoint_filter_gives_empty_tree(self) -> None:
        frame = filter_ledger(ledger_frame(SAMPLE_ITEMS), LedgerFilters(group_codes=["20"], general_codes=["1001"]))
        assert build_tree(build_hierarchy_index(SAMPLE_CODES), aggregate_levels(frame)) == []

    def test_unmatched_specific_filter_gives_empty_tree(self) -> None:
        frame = filter_ledger(ledger_frame(SAMPLE_ITEMS), LedgerFilters(specific_codes=["999999"]))
        assert build_tree(build_hierarchy_index(SAMPLE_CODES), aggregate_levels(frame)) == []
        assert flatten([], ExpansionState.SHOW_DETAIL, aggregate_levels(frame)) == []

    def test_short_account_code_adds_no_group(self) -> None:
        items = [{"account_code": "1", "debit": 50}, {"account_code": "100101", "debit": 10}]
        tree = build_tree(build_hierarchy_index(SAMPLE_CODES), aggregate_levels(ledger_frame(items)))
        assert _codes(tree) == ["10"]
        assert tree[0].debit == 10.0

    def test_tree_totals(self) -> None:
        totals = tree_totals(_tree())
        assert (totals.debit, totals.credit) == (900.0, 500.0)


# ── search_tree ──────────────────────────────────────────────────────────────

class TestSearchTree:
    def test_blank_query_is_identity(self) -> None:
        tree = _tree()
        assert search_tree(tree, "  ") is tree
        assert search_tree(tree, None) is tree

    def test_keeps_ancestors_of_matches(self) -> None:
        result = search_tree(_tree(), "customers")
        assert _codes(result) == ["10"]
        assert _codes(result[0].children) == ["1002"]
        assert _codes(result[0].children[0].children) == ["100201"]

    def test_drops_non_matching_siblings(self) -> None:
        result = search_tree(_tree(), "cash")
        general = result[0].children
        assert _codes(general) == ["1001"]
        # Details under a matching specific are dropped unless they match too.
        assert _codes(general[0].children) == ["100101", "100102"]
        assert general[0].children[0].children == []

    def test_matches_code(self) -> None:
        result = search_tree(_tree(), "5002")
        specifics = [n.code for n in result[0].walk() if n.level == Level.SPECIFIC]
        assert specifics == ["100101", "100201"]

    def test_no_match(self) -> None:
        assert search_tree(_tree(), "zzz") == []

    def test_every_match_reachable(self) -> None:
        tree = _tree()
        result = search_tree(tree, "branch")
        matches = [n for root in tree for n in root.walk() if n.matches("branch")]
        kept = [n for root in result for n in root.walk() if n.matches("branch")]
        assert len(kept) == len(matches)

    def test_does_not_mutate_input(self) -> None:
        tree = _tree()
        search_tree(tree, "customers")
        assert _codes(tree[0].children) == ["1001", "1002"]


# ── ExpansionState / flatten ─────────────────────────────────────────────────

class TestExpansionState:
    def test_flags_cascade(self) -> None:
        assert ExpansionState.from_flags() is ExpansionState.COLLAPSED
        assert ExpansionState.from_flags(general=True) is ExpansionState.SHOW_GENERAL
        assert ExpansionState.from_flags(general=True, specific=True) is ExpansionState.SHOW_SPECIFIC
        assert ExpansionState.from_flags(True, True, True) is ExpansionState.SHOW_DETAIL

    def test_hidden_parent_hides_deeper_levels(self) -> None:
        assert ExpansionState.from_flags(general=False, specific=True, detail=True) is ExpansionState.COLLAPSED
        assert ExpansionState.from_flags(general=True, specific=False, detail=True) is ExpansionState.SHOW_GENERAL

    def test_shows(self) -> None:
        assert ExpansionState.SHOW_SPECIFIC.shows(Level.GENERAL)
        assert not ExpansionState.SHOW_SPECIFIC.shows(Level.DETAIL)


class TestFlatten:
    @pytest.mark.parametrize(
        "expansion, expected",
        [
            (ExpansionState.COLLAPSED, 2),
            (ExpansionState.SHOW_GENERAL, 5),
            (ExpansionState.SHOW_SPECIFIC, 9),
            (ExpansionState.SHOW_DETAIL, 12),
        ],
    )
    def test_row_counts(self, expansion: ExpansionState, expected: int) -> None:
        assert len(flatten(_tree(), expansion)) == expected

    def test_depth_first_order(self) -> None:
        rows = flatten(_tree(), ExpansionState.SHOW_SPECIFIC)
        assert [r.node.code for r in rows] == [
            "10", "1001", "100101", "100102", "1002", "100201", "20", "2001", "200101",
        ]

    def test_single_level_cell_per_row(self) -> None:
        for row in flatten(_tree(), ExpansionState.SHOW_DETAIL):
            cells = [row.group, row.main, row.special, row.detail]
            assert sum(c is not None for c in cells) == 1

    def test_before_balances_by_level(self) -> None:
        before_frame = ledger_frame(SAMPLE_ITEMS[:2])
        rows = flatten(_tree(SAMPLE_ITEMS[2:]), ExpansionState.SHOW_DETAIL, aggregate_levels(before_frame))
        by_code = {r.node.code: r for r in rows}
        assert (by_code["10"].before_debit, by_code["10"].before_credit) == (500.0, 200.0)
        assert by_code["20"].before_debit == 0.0
        assert by_code["100101"].before_debit == 500.0
        # Detail 5002 under 100101 had no before-period postings; 5001 is not in the active tree.
        assert by_code["5002"].before_debit == 0.0

    def test_remainders(self) -> None:
        before = aggregate_levels(ledger_frame(SAMPLE_ITEMS[:2]))
        rows = flatten(_tree(SAMPLE_ITEMS[2:]), ExpansionState.COLLAPSED, before)
        assets, liabilities = rows
        assert (assets.total_debit, assets.total_credit) == (900.0, 200.0)
        assert (assets.remain_debit, assets.remain_credit) == (700.0, 0.0)
        assert (liabilities.remain_debit, liabilities.remain_credit) == (0.0, 300.0)
        for row in rows:
            assert row.remain_debit == 0.0 or row.remain_credit == 0.0

    def test_empty_tree(self) -> None:
        assert flatten([], ExpansionState.SHOW_DETAIL) == []
