"""Hierarchical balance report routes: JSON view, xlsx export and print view."""

from __future__ import annotations

from datetime import date
from io import BytesIO

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse, StreamingResponse

from app.config import PERIOD_LABELS, resolve_lang
from app.schemas import (
    NodeRef,
    ReportNode,
    ReportRequest,
    ReportResponse,
    ReportRow,
    ReportTotals,
)
from app.services.exporter import export_workbook, report_columns, to_print_document
from app.services.ledger_source import StaleFetchError
from app.services.report_service import ReportResult, UnknownFiscalYearError, build_report
from app.session import _get_session
from engine.ledger import TableRow, TreeNode

router = APIRouter()


# ── Helpers ────────────────────────────────────────────────────────────────

async def _run_report(session_id: str, request: ReportRequest) -> ReportResult:
    session = _get_session(session_id)
    try:
        return await build_report(session, request)
    except UnknownFiscalYearError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except StaleFetchError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


def _node_model(node: TreeNode) -> ReportNode:
    return ReportNode(
        code=node.code,
        title=node.title,
        level=int(node.level),
        debit=node.debit,
        credit=node.credit,
        children=[_node_model(c) for c in node.children],
    )


def _ref(node: TreeNode | None) -> NodeRef | None:
    return NodeRef(code=node.code, title=node.title) if node is not None else None


def _row_model(row: TableRow) -> ReportRow:
    return ReportRow(
        level=int(row.level),
        group=_ref(row.group),
        main=_ref(row.main),
        special=_ref(row.special),
        detail=_ref(row.detail),
        debit=row.debit,
        credit=row.credit,
        before_debit=row.before_debit,
        before_credit=row.before_credit,
        remain_debit=row.remain_debit,
        remain_credit=row.remain_credit,
    )


def _period_label(request: ReportRequest) -> str:
    heading, to = PERIOD_LABELS[resolve_lang(request.lang)]
    return f"{heading}: {request.start_date.isoformat()} {to} {request.end_date.isoformat()}"


# ── Routes ─────────────────────────────────────────────────────────────────

@router.post("/api/sessions/{session_id}/reports/hierarchical", response_model=ReportResponse)
async def hierarchical_report(session_id: str, request: ReportRequest) -> ReportResponse:
    result = await _run_report(session_id, request)
    before = result.before_filters
    return ReportResponse(
        session_id=session_id,
        signature=result.signature,
        cached=result.cached,
        fiscal_year_id=result.filters.fiscal_year_id,
        start_date=request.start_date,
        end_date=request.end_date,
        before_start=before.start_date if before is not None else None,
        before_end=before.end_date if before is not None else None,
        expansion=request.expansion,
        column_mode=request.column_mode,
        columns=[c.label for c in report_columns(request.column_mode, result.expansion, request.lang)],
        tree=[_node_model(n) for n in result.tree],
        rows=[_row_model(r) for r in result.rows],
        totals=ReportTotals(debit=result.totals.debit, credit=result.totals.credit),
    )


@router.post("/api/sessions/{session_id}/reports/hierarchical/export")
async def export_hierarchical_report(session_id: str, request: ReportRequest):
    """Export the visible table rows as an Excel (.xlsx) file."""
    result = await _run_report(session_id, request)
    content = export_workbook(result.rows, request.column_mode, result.expansion, request.lang)

    filename = f"hierarchical_table_{session_id[:8]}_{date.today().isoformat()}.xlsx"
    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/api/sessions/{session_id}/reports/hierarchical/print", response_class=HTMLResponse)
async def print_hierarchical_report(session_id: str, request: ReportRequest) -> HTMLResponse:
    result = await _run_report(session_id, request)
    document = to_print_document(
        result.rows,
        request.column_mode,
        result.expansion,
        period_label=_period_label(request),
        lang=request.lang,
    )
    return HTMLResponse(content=document)
