"""Pydantic models defining the REST contract between frontend and backend."""

from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


def _as_text(value: Any) -> Any:
    # Codes and ids often arrive as JSON numbers.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value


# ── Session & Metadata ──────────────────────────────────────────────────────

class SessionMeta(BaseModel):
    session_id: str
    created_at: str
    status: str = "active"
    schema_version: str = "v1"
    has_codes: bool = False
    has_details: bool = False
    has_fiscal_years: bool = False
    has_ledger: bool = False


# ── Catalog ─────────────────────────────────────────────────────────────────

class CodeRecord(BaseModel):
    id: str | None = None
    code: str
    title: str = ""
    kind: Literal["group", "general", "specific"]
    parent_id: str | None = None

    @field_validator("id", "code", "parent_id", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("kind", mode="before")
    @classmethod
    def _lower_kind(cls, value: Any) -> Any:
        return str(value).strip().lower() if value is not None else value


class DetailRecord(BaseModel):
    id: str | None = None
    code: str
    title: str = ""

    @field_validator("id", "code", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class FiscalYear(BaseModel):
    id: str
    name: str | None = None
    start_date: date
    end_date: date
    is_closed: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @model_validator(mode="after")
    def _check_range(self) -> FiscalYear:
        if self.end_date < self.start_date:
            raise ValueError(f"Fiscal year {self.id}: end_date precedes start_date")
        return self


class CatalogSummary(BaseModel):
    session_id: str
    groups: int = 0
    generals: int = 0
    specifics: int = 0
    details: int = 0


class FiscalYearsResponse(BaseModel):
    session_id: str
    fiscal_years: list[FiscalYear] = Field(default_factory=list)
    default_fiscal_year_id: str | None = None


# ── Ledger items ────────────────────────────────────────────────────────────

class LedgerItem(BaseModel):
    debit: float = 0.0
    credit: float = 0.0
    date: str | None = None
    document_number: int | None = None
    account_code: str | None = None
    detail_code: str | None = None

    @field_validator("account_code", "detail_code", "date", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("debit", "credit", mode="before")
    @classmethod
    def _none_is_zero(cls, value: Any) -> Any:
        return 0.0 if value is None or value == "" else value


class LedgerLoadResponse(BaseModel):
    session_id: str
    items: int
    first_date: str | None = None
    last_date: str | None = None
    filename: str | None = None


# ── Hierarchical report ─────────────────────────────────────────────────────

class ReportRequest(BaseModel):
    fiscal_year_id: str | None = None
    start_date: date
    end_date: date
    document_from: int | None = None
    document_to: int | None = None
    group_codes: list[str] = Field(default_factory=list)
    general_codes: list[str] = Field(default_factory=list)
    specific_codes: list[str] = Field(default_factory=list)
    detail_codes: list[str] = Field(default_factory=list)
    search: str | None = None
    expansion: Literal["collapsed", "general", "specific", "detail"] = "collapsed"
    column_mode: Literal["two", "four", "six"] = "four"
    lang: str = "en"
    view_id: str = "default"

    @field_validator("fiscal_year_id", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("group_codes", "general_codes", "specific_codes", "detail_codes", mode="before")
    @classmethod
    def _coerce_codes(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (list, tuple, set)):
            return [_as_text(v) for v in value]
        return value

    @model_validator(mode="after")
    def _check_ranges(self) -> ReportRequest:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        if (
            self.document_from is not None
            and self.document_to is not None
            and self.document_to < self.document_from
        ):
            raise ValueError("document_to must not be lower than document_from")
        return self


class ReportNode(BaseModel):
    code: str
    title: str
    level: int
    debit: float
    credit: float
    children: list[ReportNode] = Field(default_factory=list)


class NodeRef(BaseModel):
    code: str
    title: str


class ReportRow(BaseModel):
    level: int
    group: NodeRef | None = None
    main: NodeRef | None = None
    special: NodeRef | None = None
    detail: NodeRef | None = None
    debit: float
    credit: float
    before_debit: float = 0.0
    before_credit: float = 0.0
    remain_debit: float = 0.0
    remain_credit: float = 0.0


class ReportTotals(BaseModel):
    debit: float = 0.0
    credit: float = 0.0


class ReportResponse(BaseModel):
    session_id: str
    signature: str
    cached: bool = False
    fiscal_year_id: str | None = None
    start_date: date
    end_date: date
    before_start: date | None = None
    before_end: date | None = None
    expansion: str
    column_mode: str
    columns: list[str] = Field(default_factory=list)
    tree: list[ReportNode] = Field(default_factory=list)
    rows: list[ReportRow] = Field(default_factory=list)
    totals: ReportTotals = Field(default_factory=ReportTotals)
