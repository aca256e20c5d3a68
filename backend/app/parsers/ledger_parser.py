"""Ledger file parsing: CSV / Excel uploads → raw ledger item DataFrame."""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path

import pandas as pd
from fastapi import HTTPException

from app.config import LEDGER_COLUMN_ALIASES, LEDGER_UPLOAD_SUFFIXES
from engine.ledger.codes import to_ascii_digits

_log = logging.getLogger(__name__)

REQUIRED_COLS = {"account_code"}
AMOUNT_COLS = ("debit", "credit")


def _norm_key(text: object) -> str:
    return str(text).strip().lower().replace(" ", "_").replace("-", "_")


def _canonical_columns(df: pd.DataFrame) -> pd.DataFrame:
    renamed: dict[str, str] = {}
    for col in df.columns:
        target = LEDGER_COLUMN_ALIASES.get(_norm_key(col))
        if target is not None and target not in renamed.values():
            renamed[col] = target
    return df[list(renamed)].rename(columns=renamed)


def _clean_amounts(series: pd.Series) -> pd.Series:
    # Thousands separators (ASCII or Arabic) and Persian digits are common in exports.
    return series.map(
        lambda v: to_ascii_digits(v).replace(",", "").replace("٬", "").strip() if isinstance(v, str) else v
    )


def _read_table(filename: str, content: bytes) -> pd.DataFrame:
    suffix = Path(filename).suffix.lower()
    if suffix not in LEDGER_UPLOAD_SUFFIXES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported ledger file type '{suffix or filename}'. Use {', '.join(LEDGER_UPLOAD_SUFFIXES)}",
        )
    try:
        if suffix == ".csv":
            return pd.read_csv(BytesIO(content), dtype=str, encoding="utf-8-sig")
        return pd.read_excel(BytesIO(content), dtype=str)
    except Exception as exc:
        raise HTTPException(status_code=400, detail=f"Cannot read ledger file: {exc}")


def parse_ledger_file(filename: str, content: bytes) -> pd.DataFrame:
    """Read an uploaded ledger file into the canonical item columns.

    Header spellings are mapped through ``LEDGER_COLUMN_ALIASES``; unknown
    columns are dropped. An account-code column is required, and at least
    one of debit / credit.
    """
    raw = _read_table(filename, content)
    df = _canonical_columns(raw)

    missing = sorted(REQUIRED_COLS - set(df.columns))
    if missing or not any(c in df.columns for c in AMOUNT_COLS):
        missing = missing + [c for c in AMOUNT_COLS if c not in df.columns]
        raise HTTPException(
            status_code=400,
            detail=f"Ledger file '{filename}' is missing required columns: {', '.join(missing)}",
        )

    for col in AMOUNT_COLS:
        if col in df.columns:
            df[col] = _clean_amounts(df[col])

    _log.info("Parsed ledger file %s: %d rows, columns=%s", filename, len(df), list(df.columns))
    return df
