"""Ledger parser contract tests — header aliases, amount cleanup, rejected files.

Tests the public contract of ``parse_ledger_file`` without going through
HTTP endpoints.
"""

from __future__ import annotations

import pytest
from fastapi import HTTPException

from app.parsers.ledger_parser import parse_ledger_file
from engine.ledger import ledger_frame
from engine.tests.conftest import SAMPLE_ITEMS, make_ledger_csv, make_ledger_excel


class TestParseLedgerCsv:
    def test_canonical_headers(self) -> None:
        df = parse_ledger_file("ledger.csv", make_ledger_csv())
        assert len(df) == len(SAMPLE_ITEMS)
        assert set(df.columns) == {"date", "document_number", "account_code", "detail_code", "debit", "credit"}
        assert df.iloc[0]["account_code"] == "100101"

    def test_header_aliases(self) -> None:
        content = make_ledger_csv(
            headers={"account_code": "Account", "document_number": "Journal Code", "detail_code": "Detail"}
        )
        df = parse_ledger_file("ledger.csv", content)
        assert {"account_code", "document_number", "detail_code"} <= set(df.columns)

    def test_unknown_columns_dropped(self) -> None:
        content = b"account_code,debit,memo\n100101,10,hello\n"
        df = parse_ledger_file("ledger.csv", content)
        assert "memo" not in df.columns

    def test_codes_keep_leading_zeros(self) -> None:
        content = b"account_code,debit\n0101,10\n"
        df = parse_ledger_file("ledger.csv", content)
        assert df.iloc[0]["account_code"] == "0101"

    def test_amount_cleanup(self) -> None:
        content = 'account_code,debit,credit\n100101,"1,250",۳۰۰\n'.encode("utf-8")
        frame = ledger_frame(parse_ledger_file("ledger.csv", content))
        assert frame.iloc[0]["debit"] == 1250.0
        assert frame.iloc[0]["credit"] == 300.0

    def test_bom_is_ignored(self) -> None:
        content = "\ufeffaccount_code,debit\n100101,5\n".encode("utf-8")
        df = parse_ledger_file("ledger.csv", content)
        assert "account_code" in df.columns


class TestParseLedgerExcel:
    def test_xlsx(self) -> None:
        df = parse_ledger_file("ledger.xlsx", make_ledger_excel())
        frame = ledger_frame(df)
        assert len(frame) == len(SAMPLE_ITEMS)
        assert frame["debit"].sum() == 900.0
        assert frame.iloc[2]["specific_code"] == "100201"


class TestParseLedgerErrors:
    def test_unsupported_suffix(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            parse_ledger_file("ledger.txt", b"x")
        assert exc_info.value.status_code == 400

    def test_missing_account_column(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            parse_ledger_file("ledger.csv", b"debit,credit\n1,2\n")
        assert "account_code" in exc_info.value.detail

    def test_missing_amount_columns(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            parse_ledger_file("ledger.csv", b"account_code,date\n100101,2025-01-01\n")
        assert "debit" in exc_info.value.detail

    def test_unreadable_excel(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            parse_ledger_file("ledger.xlsx", b"not an excel file")
        assert exc_info.value.status_code == 400

    def test_empty_csv(self) -> None:
        with pytest.raises(HTTPException):
            parse_ledger_file("ledger.csv", b"")
