"""Spreadsheet and printable-HTML documents for the hierarchical balance table.

Both documents render the same column list from ``report_columns`` so the
workbook, the print view and the JSON response never disagree on which
hierarchy levels and amount columns are shown.
"""

from __future__ import annotations

import html as html_lib
from dataclasses import dataclass
from enum import Enum
from io import BytesIO

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from app.config import AMOUNT_LABELS, LEVEL_LABELS, REPORT_TITLES, resolve_lang
from engine.ledger import ExpansionState, Level, TableRow, TreeNode

_HIERARCHY_WIDTH = 28
_AMOUNT_WIDTH = 14
_PERSIAN_DIGITS = str.maketrans("0123456789,", "۰۱۲۳۴۵۶۷۸۹٬")


class ColumnMode(str, Enum):
    TWO = "two"
    FOUR = "four"
    SIX = "six"

    @property
    def has_before(self) -> bool:
        return self is ColumnMode.SIX

    @property
    def has_remain(self) -> bool:
        return self is not ColumnMode.TWO


@dataclass(frozen=True)
class ReportColumn:
    key: str
    label: str
    level: Level | None = None

    @property
    def is_amount(self) -> bool:
        return self.level is None


_LEVEL_KEYS = {
    Level.GROUP: "group",
    Level.GENERAL: "main",
    Level.SPECIFIC: "special",
    Level.DETAIL: "detail",
}


def report_columns(
    column_mode: ColumnMode | str,
    expansion: ExpansionState,
    lang: str = "en",
) -> list[ReportColumn]:
    """Hierarchy columns for every shown level, then the mode's amount columns."""
    mode = ColumnMode(column_mode)
    lang = resolve_lang(lang)
    levels = LEVEL_LABELS[lang]
    amounts = AMOUNT_LABELS[lang]

    columns = [
        ReportColumn(key=_LEVEL_KEYS[level], label=levels[level], level=level)
        for level in Level
        if expansion.shows(level)
    ]
    amount_keys = ["debit", "credit"]
    if mode.has_before:
        amount_keys = ["before_debit", "before_credit"] + amount_keys
    if mode.has_remain:
        amount_keys = amount_keys + ["remain_debit", "remain_credit"]
    columns.extend(ReportColumn(key=k, label=amounts[k]) for k in amount_keys)
    return columns


def node_label(node: TreeNode | None) -> str:
    return f"{node.code} — {node.title}" if node is not None else ""


def _cell(row: TableRow, column: ReportColumn):
    if column.is_amount:
        return float(getattr(row, column.key))
    return node_label(getattr(row, column.key))


# ── Table ───────────────────────────────────────────────────────────────────

def to_table(
    rows: list[TableRow],
    column_mode: ColumnMode | str,
    expansion: ExpansionState,
    lang: str = "en",
) -> pd.DataFrame:
    """One record per table row, columns labelled for *lang*."""
    columns = report_columns(column_mode, expansion, lang)
    records = [[_cell(row, col) for col in columns] for row in rows]
    return pd.DataFrame(records, columns=[c.label for c in columns])


def group_totals(rows: list[TableRow]) -> dict[str, float]:
    """Footer sums over group rows only; deeper rows are already inside them."""
    keys = ("before_debit", "before_credit", "debit", "credit", "remain_debit", "remain_credit")
    totals = dict.fromkeys(keys, 0.0)
    for row in rows:
        if row.level != Level.GROUP:
            continue
        for key in keys:
            totals[key] += float(getattr(row, key))
    return totals


# ── Workbook ────────────────────────────────────────────────────────────────

def write_workbook(
    frame: pd.DataFrame,
    *,
    hierarchy_columns: int,
    sheet_name: str = REPORT_TITLES["en"],
    rtl: bool = False,
) -> bytes:
    """Write *frame* as a single-sheet xlsx and return the file bytes.

    The first *hierarchy_columns* columns hold ``code — title`` text; the
    rest are amounts formatted with thousands separators.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]
    if rtl:
        ws.sheet_view.rightToLeft = True

    for ci, label in enumerate(frame.columns, start=1):
        ws.cell(row=1, column=ci, value=str(label)).font = Font(bold=True)

    for ri, record in enumerate(frame.itertuples(index=False), start=2):
        for ci, value in enumerate(record, start=1):
            cell = ws.cell(row=ri, column=ci, value=value)
            if ci > hierarchy_columns:
                cell.number_format = "#,##0"

    for ci in range(1, len(frame.columns) + 1):
        width = _HIERARCHY_WIDTH if ci <= hierarchy_columns else _AMOUNT_WIDTH
        ws.column_dimensions[get_column_letter(ci)].width = width

    if len(frame.columns):
        ws.auto_filter.ref = f"A1:{get_column_letter(len(frame.columns))}{len(frame) + 1}"

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_workbook(
    rows: list[TableRow],
    column_mode: ColumnMode | str,
    expansion: ExpansionState,
    lang: str = "en",
) -> bytes:
    lang = resolve_lang(lang)
    frame = to_table(rows, column_mode, expansion, lang)
    hierarchy_columns = sum(1 for level in Level if expansion.shows(level))
    return write_workbook(
        frame,
        hierarchy_columns=hierarchy_columns,
        sheet_name=REPORT_TITLES[lang],
        rtl=lang == "fa",
    )


# ── Print view ──────────────────────────────────────────────────────────────

def format_amount(value: float, lang: str = "en") -> str:
    """Whole-unit amount with thousands separators; Persian digits for fa."""
    text = f"{int(round(value)):,}"
    if resolve_lang(lang) == "fa":
        text = text.translate(_PERSIAN_DIGITS)
    return text


_PRINT_STYLE = """
  body {{ font-family: {font}; color: #0f172a; background: #ffffff; margin: 6mm; }}
  h1 {{ margin: 0 0 8px; text-align: center; }}
  .muted {{ color: #475569; text-align: center; margin-bottom: 10px; }}
  table {{ width: 100%; border-collapse: collapse; }}
  th, td {{ border: 1px solid #e5e7eb; padding: 6px 8px; font-size: 13px; text-align: {align}; }}
  th {{ background: #f1f5f9; }}
  .amount {{ text-align: {amount_align}; font-variant-numeric: tabular-nums; background: #f8fafc; }}
  .remain-debit {{ background: #ecfdf5; }}
  .remain-credit {{ background: #fee2e2; }}
  .lvl-main {{ padding-{indent}: 16px; }}
  .lvl-special {{ padding-{indent}: 32px; }}
  .lvl-detail {{ padding-{indent}: 48px; }}
  tfoot tr {{ background: #f8fafc; font-weight: 600; }}
  @page {{ size: A4 landscape; margin: 10mm 6mm; }}
"""


def _td(column: ReportColumn, text: str) -> str:
    if column.is_amount:
        css = "amount"
        if column.key.startswith("remain_"):
            css += " " + column.key.replace("_", "-")
    else:
        css = f"lvl-{column.key}"
    return f"<td class='{css}'>{html_lib.escape(text)}</td>"


def to_print_document(
    rows: list[TableRow],
    column_mode: ColumnMode | str,
    expansion: ExpansionState,
    *,
    period_label: str = "",
    lang: str = "en",
) -> str:
    """Standalone printable HTML table with a totals footer."""
    lang = resolve_lang(lang)
    rtl = lang == "fa"
    columns = report_columns(column_mode, expansion, lang)
    title = REPORT_TITLES[lang]

    head = "".join(f"<th>{html_lib.escape(c.label)}</th>" for c in columns)

    body_lines = []
    for row in rows:
        cells = []
        for col in columns:
            value = _cell(row, col)
            cells.append(_td(col, format_amount(value, lang) if col.is_amount else value))
        body_lines.append(f"<tr>{''.join(cells)}</tr>")

    totals = group_totals(rows)
    foot_cells = []
    for i, col in enumerate(columns):
        if col.is_amount:
            foot_cells.append(_td(col, format_amount(totals[col.key], lang)))
        elif i == 0:
            foot_cells.append(f"<td>{html_lib.escape(AMOUNT_LABELS[lang]['total'])}</td>")
        else:
            foot_cells.append("<td></td>")

    style = _PRINT_STYLE.format(
        font="'Vazirmatn', system-ui, sans-serif" if rtl else "system-ui, -apple-system, Segoe UI, Roboto, Arial, sans-serif",
        align="right" if rtl else "left",
        amount_align="left" if rtl else "right",
        indent="right" if rtl else "left",
    )
    body = "\n      ".join(body_lines)
    return f"""<!doctype html>
<html lang="{lang}" dir="{'rtl' if rtl else 'ltr'}">
<head>
<meta charset="utf-8" />
<title>{html_lib.escape(title)}</title>
<style>{style}</style>
</head>
<body>
  <h1>{html_lib.escape(title)}</h1>
  <div class="muted">{html_lib.escape(period_label)}</div>
  <table>
    <thead>
      <tr>{head}</tr>
    </thead>
    <tbody>
      {body}
    </tbody>
    <tfoot>
      <tr>{''.join(foot_cells)}</tr>
    </tfoot>
  </table>
</body>
</html>
"""
