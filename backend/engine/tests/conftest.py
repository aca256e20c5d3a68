"""Shared pytest fixtures for engine and API integration tests.

Provides:
- test_client: session-scoped FastAPI TestClient with lifespan handling
- session_id: per-test session with automatic cleanup
- loaded_session_id: session with the sample catalog, fiscal years and ledger
- make_ledger_csv / make_ledger_excel: in-memory upload payloads
- SAMPLE_*: synthetic catalog, fiscal-year and ledger records

Sample ledger (codes are 2/4/6 digits: group / general / specific):

    date        doc  account  detail  debit  credit
    2025-01-15  1    100101   5001    500
    2025-02-10  2    100102                  200
    2025-03-05  3    100201   5002    300
    2025-03-20  4    200101                  300
    2025-04-01  5    100101   5002    100

Reporting 2025-03-01..2025-12-31 in FY2025 puts docs 1-2 in the
before-period and docs 3-5 in the active period.
"""

from __future__ import annotations

import io
from typing import Any

import pandas as pd
import pytest
from starlette.testclient import TestClient

from app.main import app


# ── Synthetic catalog / ledger ─────────────────────────────────────────────

SAMPLE_CODES: list[dict[str, Any]] = [
    {"code": "10", "title": "Assets", "kind": "group"},
    {"code": "20", "title": "Liabilities", "kind": "group"},
    {"code": "1001", "title": "Cash", "kind": "general"},
    {"code": "1002", "title": "Receivables", "kind": "general"},
    {"code": "2001", "title": "Payables", "kind": "general"},
    {"code": "100101", "title": "Cash on hand", "kind": "specific"},
    {"code": "100102", "title": "Petty cash", "kind": "specific"},
    {"code": "100201", "title": "Customers", "kind": "specific"},
    {"code": "200101", "title": "Suppliers", "kind": "specific"},
]

SAMPLE_DETAILS: list[dict[str, Any]] = [
    {"code": "5001", "title": "Branch North"},
    {"code": "5002", "title": "Branch South"},
]

SAMPLE_FISCAL_YEARS: list[dict[str, Any]] = [
    {"id": "1", "name": "FY2024", "start_date": "2024-01-01", "end_date": "2024-12-31", "is_closed": True},
    {"id": "2", "name": "FY2025", "start_date": "2025-01-01", "end_date": "2025-12-31", "is_closed": False},
]

SAMPLE_ITEMS: list[dict[str, Any]] = [
    {"date": "2025-01-15", "document_number": 1, "account_code": "100101", "detail_code": "5001", "debit": 500, "credit": 0},
    {"date": "2025-02-10", "document_number": 2, "account_code": "100102", "detail_code": None, "debit": 0, "credit": 200},
    {"date": "2025-03-05", "document_number": 3, "account_code": "100201", "detail_code": "5002", "debit": 300, "credit": 0},
    {"date": "2025-03-20", "document_number": 4, "account_code": "200101", "detail_code": None, "debit": 0, "credit": 300},
    {"date": "2025-04-01", "document_number": 5, "account_code": "100101", "detail_code": "5002", "debit": 100, "credit": 0},
]

SAMPLE_REPORT: dict[str, Any] = {
    "fiscal_year_id": "2",
    "start_date": "2025-03-01",
    "end_date": "2025-12-31",
}


def make_ledger_csv(items: list[dict[str, Any]] = SAMPLE_ITEMS, headers: dict[str, str] | None = None) -> bytes:
    """CSV upload payload; *headers* renames canonical columns (e.g. to aliases)."""
    df = pd.DataFrame(items)
    if headers:
        df = df.rename(columns=headers)
    return df.to_csv(index=False).encode("utf-8")


def make_ledger_excel(items: list[dict[str, Any]] = SAMPLE_ITEMS) -> bytes:
    buf = io.BytesIO()
    pd.DataFrame(items).to_excel(buf, index=False, sheet_name="Ledger")
    return buf.getvalue()


def load_sample_data(client: TestClient, sid: str) -> None:
    for path, payload in (
        ("codes", SAMPLE_CODES),
        ("details", SAMPLE_DETAILS),
        ("fiscal-years", SAMPLE_FISCAL_YEARS),
        ("ledger", SAMPLE_ITEMS),
    ):
        resp = client.put(f"/api/sessions/{sid}/{path}", json=payload)
        assert resp.status_code == 200, resp.text


# ── TestClient ─────────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def test_client():
    """Session-scoped TestClient; triggers app lifespan."""
    with TestClient(app) as client:
        yield client


# ── Session management ─────────────────────────────────────────────────────

@pytest.fixture()
def session_id(test_client: TestClient):
    """Create a fresh API session, yield its id, delete it on teardown."""
    resp = test_client.post("/api/sessions")
    assert resp.status_code == 200
    sid = resp.json()["session_id"]
    yield sid
    test_client.delete(f"/api/sessions/{sid}")


@pytest.fixture()
def loaded_session_id(test_client: TestClient, session_id: str) -> str:
    load_sample_data(test_client, session_id)
    return session_id
