"""
Global mutable state shared across the application.

All modules access these via ``import app.state as state`` and then
``state._SESSIONS`` etc. so that rebinding in the lifespan function is
visible everywhere.
"""

from __future__ import annotations

import threading

# Live report sessions keyed by session id (ReportSession objects).
# Sessions are in-memory only: catalogs and ledger rows are reloaded by the
# client after a restart.
_SESSIONS: dict = {}

# Guards _SESSIONS; sync route handlers run on the threadpool.
_sessions_lock = threading.Lock()
