"""
Database engine, sessions and the persisted rule state.

Only two tables are stored: the per-user streak and the envelopes. Everything
else (nudges, health score, achievement evaluation) is computed per request.
The engine is created lazily from TEST_DATABASE_URL or DATABASE_URL.
"""
import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, MetaData, String, Table, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool
from sqlalchemy.sql import func

from coincraft.core.config import settings

logger = logging.getLogger("coincraft")

metadata = MetaData()

# Pool sizing for server databases (ignored for SQLite)
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_database_url() -> Optional[str]:
    """TEST_DATABASE_URL wins over DATABASE_URL so tests never touch real data."""
    return os.getenv("TEST_DATABASE_URL") or os.getenv("DATABASE_URL") or settings.DATABASE_URL


def init_engine(database_url: Optional[str] = None) -> Engine:
    global _engine, _SessionLocal

    url = database_url or get_database_url()
    if not url:
        raise ValueError("DATABASE_URL is not configured; set it in the environment or .env")

    if url.startswith("sqlite"):
        _engine = create_engine(url)
    else:
        _engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            pool_pre_ping=True,
        )
    _SessionLocal = sessionmaker(bind=_engine, autoflush=False)
    logger.info("database.engine_ready", extra={"event_type": "database.engine_ready"})
    return _engine


def dispose_engine() -> None:
    """Close pooled connections and forget the engine (tests, shutdown)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_engine() -> Engine:
    if _engine is None:
        init_engine()
    return _engine


@contextmanager
def get_db_session() -> Iterator[Session]:
    """One unit of work: commit on success, roll back on any error."""
    if _SessionLocal is None:
        init_engine()
    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables() -> None:
    """Idempotent; existing tables are left alone."""
    metadata.create_all(bind=get_engine())


# last_log_date is the guard column for conditional streak updates
streaks = Table(
    'streaks',
    metadata,
    Column('user_id', String(100), primary_key=True),
    Column('current_streak', Integer, nullable=False, default=0),
    Column('longest_streak', Integer, nullable=False, default=0),
    Column('last_log_date', Date, nullable=True),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
)

# Amounts in centavos; version increases on every write
envelopes = Table(
    'envelopes',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('user_id', String(100), nullable=False),
    Column('name', String(200), nullable=False),
    Column('icon', String(16), nullable=True),
    Column('period', String(16), nullable=False),
    Column('period_start', Date, nullable=True),
    Column('current_amount', Integer, nullable=False, default=0),
    Column('target_amount', Integer, nullable=True),
    Column('rollover_enabled', Boolean, nullable=False, default=False),
    Column('rollover_amount', Integer, nullable=False, default=0),
    Column('is_active', Boolean, nullable=False, default=True),
    Column('version', Integer, nullable=False, default=0),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Index('idx_envelopes_user_id', 'user_id'),
)
