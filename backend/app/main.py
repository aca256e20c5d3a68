"""
Ledger report backend – FastAPI app for hierarchical balance reports.

=== ROLE IN THE SYSTEM ===
Holds per-session code catalogs, detail catalogs, fiscal years and ledger
items, and serves the Group → General → Specific → Detail balance report
built from them. Sessions live in memory; the client reloads catalogs and
ledger rows after a restart.

=== ROUTES ===
  GET    /api/health
  POST   /api/sessions                                    → create session
  GET    /api/sessions/{id}                               → session meta
  DELETE /api/sessions/{id}
  PUT    /api/sessions/{id}/codes | details | fiscal-years | ledger
  POST   /api/sessions/{id}/ledger/upload                 → CSV / Excel ledger file
  POST   /api/sessions/{id}/reports/hierarchical          → tree + table rows
  POST   /api/sessions/{id}/reports/hierarchical/export   → xlsx download
  POST   /api/sessions/{id}/reports/hierarchical/print    → printable HTML
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import app.state as state
from app.config import CODE_WIDTHS, CORS_ORIGINS, DUPLICATE_CODE_POLICY, RESULT_CACHE_SIZE, RESULT_CACHE_TTL
from app.routers import catalog, report

_log = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Log effective settings on startup; drop every session on shutdown."""
    _log.info(
        "Ledger report backend starting: widths=%s/%s/%s duplicates=%s cache=%d ttl=%.1fs",
        CODE_WIDTHS.group, CODE_WIDTHS.general, CODE_WIDTHS.specific,
        DUPLICATE_CODE_POLICY.value, RESULT_CACHE_SIZE, RESULT_CACHE_TTL,
    )
    yield
    with state._sessions_lock:
        for session in state._SESSIONS.values():
            session.cache.clear()
        state._SESSIONS.clear()


app = FastAPI(lifespan=_lifespan)

# ---------------------------------------------------------------------------
# CORS: local frontend origins plus any listed in LEDGER_CORS_ORIGINS.
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(catalog.router)
app.include_router(report.router)
