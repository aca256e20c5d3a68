"""Report settings, level labels and export column labels.

Settings are module constants overridable from the environment, so a
deployment can change code widths or cache bounds without code changes.
"""

from __future__ import annotations

import os

from engine.ledger.codes import CodeWidths
from engine.ledger.hierarchy import DuplicatePolicy
from engine.ledger.tree import Level


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}")


# ── Code hierarchy ──────────────────────────────────────────────────────────

CODE_WIDTHS = CodeWidths(
    group=_env_int("LEDGER_CODE_DIGITS_GROUP", 2),
    general=_env_int("LEDGER_CODE_DIGITS_GENERAL", 4),
    specific=_env_int("LEDGER_CODE_DIGITS_SPECIFIC", 6),
)

DUPLICATE_CODE_POLICY = DuplicatePolicy(
    os.environ.get("LEDGER_DUPLICATE_CODE_POLICY", DuplicatePolicy.LAST.value).strip().lower()
)

# ── Result cache ────────────────────────────────────────────────────────────

RESULT_CACHE_SIZE = _env_int("LEDGER_RESULT_CACHE_SIZE", 128)
RESULT_CACHE_TTL = _env_float("LEDGER_RESULT_CACHE_TTL", 0.0)

# ── CORS ────────────────────────────────────────────────────────────────────

_DEFAULT_CORS_ORIGINS = [
    "http://localhost:8080",
    "http://127.0.0.1:8080",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
_extra_origins = os.environ.get("LEDGER_CORS_ORIGINS", "")
CORS_ORIGINS = _DEFAULT_CORS_ORIGINS + [o.strip() for o in _extra_origins.split(",") if o.strip()]

# ── Ledger upload ───────────────────────────────────────────────────────────

LEDGER_UPLOAD_SUFFIXES = (".csv", ".xlsx", ".xls")

# Accepted header spellings for uploaded ledger files → canonical item column.
LEDGER_COLUMN_ALIASES = {
    "debit": "debit",
    "credit": "credit",
    "date": "date",
    "document_number": "document_number",
    "document": "document_number",
    "journal_code": "document_number",
    "account_code": "account_code",
    "account": "account_code",
    "code": "account_code",
    "detail_code": "detail_code",
    "detail": "detail_code",
}

# ── Labels (en / fa) ────────────────────────────────────────────────────────

SUPPORTED_LANGS = ("en", "fa")

LEVEL_LABELS: dict[str, dict[Level, str]] = {
    "en": {
        Level.GROUP: "Group",
        Level.GENERAL: "Main",
        Level.SPECIFIC: "Special",
        Level.DETAIL: "Detail",
    },
    "fa": {
        Level.GROUP: "گروه",
        Level.GENERAL: "کل",
        Level.SPECIFIC: "معین",
        Level.DETAIL: "تفصیل",
    },
}

AMOUNT_LABELS: dict[str, dict[str, str]] = {
    "en": {
        "before_debit": "Before Debit",
        "before_credit": "Before Credit",
        "debit": "Debit",
        "credit": "Credit",
        "remain_debit": "Remain Debit",
        "remain_credit": "Remain Credit",
        "total": "Total",
    },
    "fa": {
        "before_debit": "گردش قبل از دوره بدهکار",
        "before_credit": "گردش قبل از دوره بستانکار",
        "debit": "بدهکار",
        "credit": "بستانکار",
        "remain_debit": "مانده بدهکار",
        "remain_credit": "مانده بستانکار",
        "total": "جمع",
    },
}

REPORT_TITLES = {"en": "Balance Report", "fa": "گزارش تراز"}
PERIOD_LABELS = {"en": ("Filters", "to"), "fa": ("فیلترها", "تا")}


def resolve_lang(lang: str) -> str:
    """Resolve a requested language to a supported one (English fallback)."""
    lang = (lang or "en").strip().lower()
    return lang if lang in SUPPORTED_LANGS else "en"
