"""Table projection of the report tree under a column-expansion state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from engine.ledger.aggregate import ZERO, LevelTotals, Totals
from engine.ledger.tree import Level, TreeNode


class ExpansionState(IntEnum):
    """Deepest hierarchy level shown as table rows.

    Each state implies every shallower one, so "details shown" can never
    coexist with "generals hidden".
    """

    COLLAPSED = 0
    SHOW_GENERAL = 1
    SHOW_SPECIFIC = 2
    SHOW_DETAIL = 3

    @classmethod
    def from_flags(cls, general: bool = False, specific: bool = False, detail: bool = False) -> ExpansionState:
        """Convert the three header toggles; a hidden level hides everything below it."""
        if not general:
            return cls.COLLAPSED
        if not specific:
            return cls.SHOW_GENERAL
        if not detail:
            return cls.SHOW_SPECIFIC
        return cls.SHOW_DETAIL

    def shows(self, level: Level) -> bool:
        return int(level) <= int(self)


@dataclass(frozen=True)
class TableRow:
    """One visible tree node.

    Exactly one of ``group``/``main``/``special``/``detail`` is set; the
    others are None so ancestor cells stay blank.
    """

    node: TreeNode
    before_debit: float = 0.0
    before_credit: float = 0.0

    @property
    def level(self) -> Level:
        return self.node.level

    @property
    def group(self) -> TreeNode | None:
        return self.node if self.level == Level.GROUP else None

    @property
    def main(self) -> TreeNode | None:
        return self.node if self.level == Level.GENERAL else None

    @property
    def special(self) -> TreeNode | None:
        return self.node if self.level == Level.SPECIFIC else None

    @property
    def detail(self) -> TreeNode | None:
        return self.node if self.level == Level.DETAIL else None

    @property
    def debit(self) -> float:
        return self.node.debit

    @property
    def credit(self) -> float:
        return self.node.credit

    @property
    def total_debit(self) -> float:
        return self.before_debit + self.debit

    @property
    def total_credit(self) -> float:
        return self.before_credit + self.credit

    @property
    def remain_debit(self) -> float:
        return max(0.0, self.total_debit - self.total_credit)

    @property
    def remain_credit(self) -> float:
        return max(0.0, self.total_credit - self.total_debit)


def _row(node: TreeNode, before: Totals) -> TableRow:
    return TableRow(node=node, before_debit=before.debit, before_credit=before.credit)


def flatten(
    tree: list[TreeNode],
    expansion: ExpansionState = ExpansionState.COLLAPSED,
    before: LevelTotals | None = None,
) -> list[TableRow]:
    """Depth-first rows: each group, then its generals, specifics and details as enabled.

    Before-period balances come from *before* at the row's own level
    (details keyed by ``specific|detail``), zero when absent.
    """
    before = before or LevelTotals()
    rows: list[TableRow] = []

    for g in tree:
        rows.append(_row(g, before.group.get(g.code, ZERO)))
        if not expansion.shows(Level.GENERAL):
            continue
        for m in g.children:
            rows.append(_row(m, before.general.get(m.code, ZERO)))
            if not expansion.shows(Level.SPECIFIC):
                continue
            for s in m.children:
                rows.append(_row(s, before.specific.get(s.code, ZERO)))
                if not expansion.shows(Level.DETAIL):
                    continue
                for d in s.children:
                    rows.append(_row(d, before.detail(s.code, d.code)))

    return rows
