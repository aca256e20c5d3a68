"""
Ledger report backend – standalone server entry point.

Development uses ``uvicorn app.main:app --reload`` from ``backend/``; this
module is for running the service as a plain process.

Environment variables:
  LEDGER_HOST       – bind address (default 127.0.0.1)
  LEDGER_PORT       – port; 0 picks a free port and prints "PORT:{port}"
  LEDGER_LOG_LEVEL  – root logging level (default INFO)
"""

from __future__ import annotations

import logging
import os
import socket

import uvicorn

from app.main import app as _fastapi_app


def _find_free_port(host: str) -> int:
    """Bind to port 0, let the OS assign a free port, return it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("LEDGER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("LEDGER_HOST", "127.0.0.1")
    port = int(os.environ.get("LEDGER_PORT", "8000"))
    if port == 0:
        port = _find_free_port(host)
        print(f"PORT:{port}", flush=True)

    uvicorn.run(_fastapi_app, host=host, port=port, workers=1, loop="asyncio")


if __name__ == "__main__":
    main()
