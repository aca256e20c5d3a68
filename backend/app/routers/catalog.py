"""Session, code catalog, detail catalog, fiscal-year and ledger upload routes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from fastapi import APIRouter, File, HTTPException, UploadFile

from app.config import CODE_WIDTHS, DUPLICATE_CODE_POLICY
from app.parsers.ledger_parser import parse_ledger_file
from app.schemas import (
    CatalogSummary,
    CodeRecord,
    DetailRecord,
    FiscalYear,
    FiscalYearsResponse,
    LedgerItem,
    LedgerLoadResponse,
    SessionMeta,
)
from app.services.report_service import rebuild_index
from app.session import ReportSession, _create_session, _delete_session, _get_session
from engine.ledger import DuplicateCodeError, default_fiscal_year

_log = logging.getLogger(__name__)

router = APIRouter()


# ── Helpers ────────────────────────────────────────────────────────────────

def _catalog_summary(session: ReportSession) -> CatalogSummary:
    index = session.index
    return CatalogSummary(
        session_id=session.session_id,
        groups=len(index.group_titles),
        generals=len(index.general_titles),
        specifics=len(index.specific_titles),
        details=len(index.detail_titles),
    )


def _replace_catalog(
    session: ReportSession,
    load: Callable[[list[Any]], None],
    previous: list[Any],
    records: list[Any],
) -> None:
    """Load *records* and rebuild the index; restore *previous* on a rejected duplicate."""
    load(records)
    try:
        rebuild_index(session, widths=CODE_WIDTHS, duplicates=DUPLICATE_CODE_POLICY)
    except DuplicateCodeError as exc:
        load(previous)
        rebuild_index(session, widths=CODE_WIDTHS, duplicates=DUPLICATE_CODE_POLICY)
        raise HTTPException(status_code=409, detail=str(exc))


def _ledger_response(session: ReportSession, filename: str | None = None) -> LedgerLoadResponse:
    frame = session.source.fetch_all()
    dates = frame["date"].dropna()
    return LedgerLoadResponse(
        session_id=session.session_id,
        items=len(frame),
        first_date=str(dates.min()) if not dates.empty else None,
        last_date=str(dates.max()) if not dates.empty else None,
        filename=filename,
    )


def _store_ledger(session: ReportSession, items: Any, filename: str | None = None) -> LedgerLoadResponse:
    session.source.load_items(items)
    session.cache.clear()
    session.meta.has_ledger = session.source.item_count > 0
    response = _ledger_response(session, filename)
    _log.info(
        "Loaded %d ledger items into session %s (%s..%s)",
        response.items, session.session_id, response.first_date, response.last_date,
    )
    return response


# ── Sessions ───────────────────────────────────────────────────────────────

@router.post("/api/sessions", response_model=SessionMeta)
def create_session() -> SessionMeta:
    return _create_session().meta


@router.get("/api/sessions/{session_id}", response_model=SessionMeta)
def get_session(session_id: str) -> SessionMeta:
    return _get_session(session_id).meta


@router.delete("/api/sessions/{session_id}")
def delete_session(session_id: str) -> dict[str, str]:
    _delete_session(session_id)
    return {"status": "ok"}


# ── Catalogs ───────────────────────────────────────────────────────────────

@router.put("/api/sessions/{session_id}/codes", response_model=CatalogSummary)
def put_codes(session_id: str, codes: list[CodeRecord]) -> CatalogSummary:
    session = _get_session(session_id)
    _replace_catalog(session, session.source.load_codes, session.source.fetch_codes(), codes)
    session.meta.has_codes = bool(codes)
    return _catalog_summary(session)


@router.put("/api/sessions/{session_id}/details", response_model=CatalogSummary)
def put_details(session_id: str, details: list[DetailRecord]) -> CatalogSummary:
    session = _get_session(session_id)
    _replace_catalog(session, session.source.load_details, session.source.fetch_details(), details)
    session.meta.has_details = bool(details)
    return _catalog_summary(session)


@router.get("/api/sessions/{session_id}/codes", response_model=CatalogSummary)
def get_catalog_summary(session_id: str) -> CatalogSummary:
    return _catalog_summary(_get_session(session_id))


@router.put("/api/sessions/{session_id}/fiscal-years", response_model=FiscalYearsResponse)
def put_fiscal_years(session_id: str, fiscal_years: list[FiscalYear]) -> FiscalYearsResponse:
    session = _get_session(session_id)
    ids = [fy.id for fy in fiscal_years]
    if len(set(ids)) != len(ids):
        raise HTTPException(status_code=400, detail="Fiscal year ids must be unique")
    session.source.load_fiscal_years(fiscal_years)
    session.meta.has_fiscal_years = bool(fiscal_years)
    return get_fiscal_years(session_id)


@router.get("/api/sessions/{session_id}/fiscal-years", response_model=FiscalYearsResponse)
def get_fiscal_years(session_id: str) -> FiscalYearsResponse:
    session = _get_session(session_id)
    fiscal_years = session.source.fetch_fiscal_years()
    default = default_fiscal_year(fiscal_years)
    return FiscalYearsResponse(
        session_id=session_id,
        fiscal_years=fiscal_years,
        default_fiscal_year_id=default.id if default is not None else None,
    )


# ── Ledger ─────────────────────────────────────────────────────────────────

@router.put("/api/sessions/{session_id}/ledger", response_model=LedgerLoadResponse)
def put_ledger(session_id: str, items: list[LedgerItem]) -> LedgerLoadResponse:
    session = _get_session(session_id)
    return _store_ledger(session, items)


@router.post("/api/sessions/{session_id}/ledger/upload", response_model=LedgerLoadResponse)
async def upload_ledger(session_id: str, file: UploadFile = File(...)) -> LedgerLoadResponse:
    session = _get_session(session_id)
    safe_filename = Path(file.filename or "ledger.csv").name
    content = await file.read()
    frame = parse_ledger_file(safe_filename, content)
    return _store_ledger(session, frame, filename=safe_filename)


@router.get("/api/sessions/{session_id}/ledger", response_model=LedgerLoadResponse)
def get_ledger_summary(session_id: str) -> LedgerLoadResponse:
    return _ledger_response(_get_session(session_id))
