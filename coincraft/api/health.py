"""
Liveness and readiness checks.

/readyz reports in-memory mode when no database is configured; otherwise it
checks connectivity and that the state tables exist. No secrets are returned.
"""

import logging
from typing import List

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from coincraft.core.database import get_database_url, get_engine

logger = logging.getLogger("coincraft")

root_router = APIRouter(tags=["health"])

REQUIRED_TABLES = ["streaks", "envelopes"]


def _not_ready(detail: str) -> JSONResponse:
    return JSONResponse(status_code=503, content={"status": "error", "detail": detail})


def _missing_tables(engine) -> List[str]:
    inspector = inspect(engine)
    return [table for table in REQUIRED_TABLES if not inspector.has_table(table)]


@root_router.get("/healthz")
def healthz():
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz():
    if not get_database_url():
        return {"status": "ok", "storage": "memory"}

    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
        missing = _missing_tables(engine)
    except Exception as exc:
        logger.error("readyz.database_unreachable", extra={"error_code": type(exc).__name__})
        return _not_ready("database unreachable")

    if missing:
        logger.warning("readyz.missing_tables", extra={"missing_tables": ",".join(missing)})
        return _not_ready(f"missing tables: {', '.join(missing)}")
    return {"status": "ok", "storage": "database"}
