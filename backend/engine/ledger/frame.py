"""Ledger frame: raw ledger items as a DataFrame with normalized code columns."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from engine.ledger.codes import DEFAULT_WIDTHS, CodeWidths, detail_code_of, normalize_code

# Columns of one ledger posting line as delivered by the ledger query service.
ITEM_COLUMNS = ["debit", "credit", "date", "document_number", "account_code", "detail_code"]

# Derived columns, one normalized code per hierarchy level.
CODE_COLUMNS = ["group_code", "general_code", "specific_code", "detail_key"]

LEDGER_COLUMNS = ITEM_COLUMNS + CODE_COLUMNS


def _as_record(item: Any) -> dict[str, Any]:
    if isinstance(item, Mapping):
        return dict(item)
    if hasattr(item, "model_dump"):
        return item.model_dump()
    return {col: getattr(item, col, None) for col in ITEM_COLUMNS}


def empty_ledger_frame() -> pd.DataFrame:
    frame = pd.DataFrame({col: pd.Series(dtype="object") for col in LEDGER_COLUMNS})
    frame["debit"] = frame["debit"].astype(float)
    frame["credit"] = frame["credit"].astype(float)
    return frame


def ledger_frame(
    items: Iterable[Any] | pd.DataFrame,
    widths: CodeWidths = DEFAULT_WIDTHS,
) -> pd.DataFrame:
    """Build a ledger frame from items (dicts, pydantic models) or a raw DataFrame.

    Missing amounts count as zero. Codes are normalized once here so that
    filtering and aggregation work on plain string columns.
    """
    if isinstance(items, pd.DataFrame):
        raw = items.copy()
    else:
        raw = pd.DataFrame([_as_record(it) for it in items])

    if raw.empty:
        return empty_ledger_frame()

    for col in ITEM_COLUMNS:
        if col not in raw.columns:
            raw[col] = None

    frame = raw[ITEM_COLUMNS].copy()
    frame["debit"] = pd.to_numeric(frame["debit"], errors="coerce").fillna(0.0).astype(float)
    frame["credit"] = pd.to_numeric(frame["credit"], errors="coerce").fillna(0.0).astype(float)
    frame["document_number"] = pd.to_numeric(frame["document_number"], errors="coerce")
    frame["date"] = frame["date"].map(_iso_date)

    accounts = frame["account_code"]
    frame["group_code"] = accounts.map(lambda v: _level_code(v, widths.group))
    frame["general_code"] = accounts.map(lambda v: _level_code(v, widths.general))
    frame["specific_code"] = accounts.map(lambda v: _level_code(v, widths.specific))
    frame["detail_key"] = frame["detail_code"].map(detail_code_of)
    return frame.reset_index(drop=True)


def _level_code(value: Any, digits: int) -> str:
    # A prefix shorter than the level width matches nothing at that level.
    code = normalize_code(value, digits)
    return code if len(code) == digits else ""


def _iso_date(value: Any) -> str | None:
    """Normalize a date cell to ``YYYY-MM-DD``; unparseable values become None."""
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    try:
        ts = pd.Timestamp(str(value).strip().replace("/", "-"))
    except (TypeError, ValueError):
        return None
    if pd.isna(ts):
        return None
    return ts.date().isoformat()
