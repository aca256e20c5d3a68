"""Report tree construction (Group → General → Specific → Detail) and search."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import IntEnum

from engine.ledger.aggregate import ZERO, LevelTotals, Totals
from engine.ledger.codes import sorted_codes
from engine.ledger.hierarchy import HierarchyIndex


class Level(IntEnum):
    GROUP = 0
    GENERAL = 1
    SPECIFIC = 2
    DETAIL = 3


# Shown when a code has activity but no title in the catalog.
DEFAULT_FALLBACK_TITLES: dict[Level, str] = {
    Level.GROUP: "Group",
    Level.GENERAL: "Main",
    Level.SPECIFIC: "Special",
    Level.DETAIL: "Detail",
}


@dataclass
class TreeNode:
    code: str
    title: str
    level: Level
    debit: float = 0.0
    credit: float = 0.0
    children: list[TreeNode] = field(default_factory=list)

    @property
    def totals(self) -> Totals:
        return Totals(self.debit, self.credit)

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on code or title; *query* is lower-cased."""
        return query in self.code.lower() or query in (self.title or "").lower()

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()


def _node(code: str, title: str | None, level: Level, totals: Totals, fallback: Mapping[Level, str]) -> TreeNode:
    return TreeNode(
        code=code,
        title=title or fallback[level],
        level=level,
        debit=totals.debit,
        credit=totals.credit,
    )


def _active(totals: Mapping[str, Totals], code: str) -> bool:
    entry = totals.get(code)
    return entry is not None and entry.has_activity


def build_tree(
    index: HierarchyIndex,
    totals: LevelTotals,
    specific_details: Mapping[str, list[str]] | None = None,
    *,
    fallback_titles: Mapping[Level, str] = DEFAULT_FALLBACK_TITLES,
) -> list[TreeNode]:
    """Compose catalog relations and aggregates into the report tree.

    Every node takes debit/credit from its own aggregate entry, never from
    its children, so a specific code with postings but no detail tags keeps
    its full amount. Nodes without activity are omitted at every level.
    Group codes come from the aggregates rather than the catalog, so a group
    missing from the catalog still shows up under its fallback title.
    """
    specific_details = specific_details or {}
    nodes: list[TreeNode] = []

    group_codes = sorted_codes(code for code in totals.group if _active(totals.group, code))
    for g_code in group_codes:
        g_node = _node(g_code, index.group_titles.get(g_code), Level.GROUP, totals.group[g_code], fallback_titles)

        for m_code in index.generals_of(g_code):
            if not _active(totals.general, m_code):
                continue
            m_node = _node(m_code, index.general_titles.get(m_code), Level.GENERAL, totals.general[m_code], fallback_titles)

            for s_code in index.specifics_of(m_code):
                if not _active(totals.specific, s_code):
                    continue
                s_node = _node(s_code, index.specific_titles.get(s_code), Level.SPECIFIC, totals.specific[s_code], fallback_titles)

                for d_code in sorted_codes(specific_details.get(s_code, [])):
                    d_totals = totals.detail(s_code, d_code)
                    if not d_totals.has_activity:
                        continue
                    s_node.children.append(
                        _node(d_code, index.detail_titles.get(d_code), Level.DETAIL, d_totals, fallback_titles)
                    )
                m_node.children.append(s_node)
            g_node.children.append(m_node)
        nodes.append(g_node)

    return nodes


def _prune(node: TreeNode, query: str) -> TreeNode | None:
    kept: list[TreeNode] = []
    for child in node.children:
        pruned = _prune(child, query)
        if pruned is not None:
            kept.append(pruned)
    if kept or node.matches(query):
        return replace(node, children=kept)
    return None


def search_tree(nodes: list[TreeNode], query: str | None) -> list[TreeNode]:
    """Keep nodes that match *query* or have a matching descendant.

    Surviving ancestors keep only children on a path to a match, so every
    match stays reachable from its group. Blank query returns *nodes*.
    """
    q = (query or "").strip().lower()
    if not q:
        return nodes
    out: list[TreeNode] = []
    for node in nodes:
        pruned = _prune(node, q)
        if pruned is not None:
            out.append(pruned)
    return out


def tree_totals(nodes: list[TreeNode]) -> Totals:
    """Grand totals across the top-level (group) nodes."""
    total = ZERO
    for node in nodes:
        total = total + node.totals
    return total
