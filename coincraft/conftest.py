# coincraft/conftest.py
import sys
import pytest
from pathlib import Path

# Add project root to PYTHONPATH so `import coincraft` works without installing
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(scope="function", autouse=True)
def in_memory_stores(monkeypatch):
    """
    Run every test against fresh in-memory stores.

    Tests that exercise the SQL stores pass their own store instance.
    """
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("TEST_DATABASE_URL", raising=False)

    from coincraft.core.config import settings

    monkeypatch.setattr(settings, "DATABASE_URL", None)

    from coincraft.features.envelopes.store import reset_envelope_store
    from coincraft.features.streaks.store import reset_streak_store

    reset_streak_store()
    reset_envelope_store()
    yield
    reset_streak_store()
    reset_envelope_store()


@pytest.fixture
def sqlite_db(tmp_path, monkeypatch):
    """
    File-backed SQLite database with all tables created.

    Yields the database URL; the engine is disposed afterwards.
    """
    from coincraft.core.database import create_all_tables, dispose_engine, init_engine

    url = f"sqlite:///{tmp_path / 'coincraft.db'}"
    monkeypatch.setenv("TEST_DATABASE_URL", url)
    dispose_engine()
    init_engine(url)
    create_all_tables()
    yield url
    dispose_engine()
