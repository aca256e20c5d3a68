"""Report sessions: per-client catalog, ledger source, fiscal years and result cache."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import HTTPException

import app.state as state
from app.config import CODE_WIDTHS, RESULT_CACHE_SIZE, RESULT_CACHE_TTL
from app.schemas import SessionMeta
from app.services.ledger_source import FetchCoordinator, InMemoryLedgerSource
from engine.ledger import HierarchyIndex, ResultCache

_log = logging.getLogger(__name__)


@dataclass
class ReportSession:
    meta: SessionMeta
    source: InMemoryLedgerSource = field(default_factory=lambda: InMemoryLedgerSource(CODE_WIDTHS))
    index: HierarchyIndex = field(default_factory=HierarchyIndex)
    cache: ResultCache = field(
        default_factory=lambda: ResultCache(max_entries=RESULT_CACHE_SIZE, ttl=RESULT_CACHE_TTL)
    )
    coordinator: FetchCoordinator = field(default_factory=FetchCoordinator)

    @property
    def session_id(self) -> str:
        return self.meta.session_id


# ── Session registry ────────────────────────────────────────────────────────

def _create_session() -> ReportSession:
    meta = SessionMeta(
        session_id=str(uuid.uuid4()),
        created_at=datetime.now(timezone.utc).isoformat(),
        status="active",
        schema_version="v1",
    )
    session = ReportSession(meta=meta)
    with state._sessions_lock:
        state._SESSIONS[meta.session_id] = session
    _log.info("Created report session %s", meta.session_id)
    return session


def _get_session(session_id: str) -> ReportSession:
    with state._sessions_lock:
        session = state._SESSIONS.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found. Create it first via POST /api/sessions")
    return session


def _delete_session(session_id: str) -> None:
    with state._sessions_lock:
        session = state._SESSIONS.pop(session_id, None)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    session.cache.clear()
    _log.info("Deleted report session %s", session_id)
