"""Debit/credit aggregation per normalized code at each hierarchy level."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import pandas as pd

KeyFn = Callable[[pd.DataFrame], pd.Series]

DETAIL_KEY_SEPARATOR = "|"


@dataclass(frozen=True)
class Totals:
    debit: float = 0.0
    credit: float = 0.0

    @property
    def has_activity(self) -> bool:
        return self.debit != 0 or self.credit != 0

    def __add__(self, other: Totals) -> Totals:
        return Totals(self.debit + other.debit, self.credit + other.credit)


ZERO = Totals()


# ── Key functions ────────────────────────────────────────────────────────────

def by_group(frame: pd.DataFrame) -> pd.Series:
    return frame["group_code"]


def by_general(frame: pd.DataFrame) -> pd.Series:
    return frame["general_code"]


def by_specific(frame: pd.DataFrame) -> pd.Series:
    return frame["specific_code"]


def specific_detail_key(specific_code: str, detail_code: str) -> str:
    return f"{specific_code}{DETAIL_KEY_SEPARATOR}{detail_code}"


def by_specific_detail(frame: pd.DataFrame) -> pd.Series:
    """``specific|detail`` keys; empty when either part is missing."""
    specific = frame["specific_code"].fillna("").astype(str)
    detail = frame["detail_key"].fillna("").astype(str)
    keys = specific + DETAIL_KEY_SEPARATOR + detail
    return keys.where((specific != "") & (detail != ""), "")


# ── Aggregation ──────────────────────────────────────────────────────────────

def aggregate(frame: pd.DataFrame, key_fn: KeyFn) -> dict[str, Totals]:
    """Sum debit and credit per key; rows with an empty or missing key are skipped."""
    if frame.empty:
        return {}

    keys = key_fn(frame).fillna("").astype(str)
    valid = keys != ""
    if not valid.any():
        return {}

    work = pd.DataFrame(
        {
            "key": keys[valid].values,
            "debit": frame.loc[valid, "debit"].astype(float).values,
            "credit": frame.loc[valid, "credit"].astype(float).values,
        }
    )
    sums = work.groupby("key", sort=False)[["debit", "credit"]].sum()
    return {
        str(key): Totals(debit=float(row.debit), credit=float(row.credit))
        for key, row in sums.iterrows()
    }


@dataclass(frozen=True)
class LevelTotals:
    """Aggregates at all four levels for one row set."""

    group: dict[str, Totals] = field(default_factory=dict)
    general: dict[str, Totals] = field(default_factory=dict)
    specific: dict[str, Totals] = field(default_factory=dict)
    specific_detail: dict[str, Totals] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.group

    def detail(self, specific_code: str, detail_code: str) -> Totals:
        return self.specific_detail.get(specific_detail_key(specific_code, detail_code), ZERO)


def aggregate_levels(frame: pd.DataFrame) -> LevelTotals:
    return LevelTotals(
        group=aggregate(frame, by_group),
        general=aggregate(frame, by_general),
        specific=aggregate(frame, by_specific),
        specific_detail=aggregate(frame, by_specific_detail),
    )


def details_by_specific(frame: pd.DataFrame) -> dict[str, list[str]]:
    """Detail codes observed on ledger rows for each specific code."""
    if frame.empty:
        return {}
    pairs = frame[["specific_code", "detail_key"]].fillna("")
    pairs = pairs[(pairs["specific_code"] != "") & (pairs["detail_key"] != "")]
    out: dict[str, list[str]] = {}
    for specific, grp in pairs.groupby("specific_code", sort=False):
        out[str(specific)] = list(dict.fromkeys(grp["detail_key"].astype(str)))
    return out
