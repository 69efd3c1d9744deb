"""
coincraft/features/streaks/store.py

Streak state storage with compare-and-set writes.

Both implementations share one contract: `compare_and_set` only applies when
the stored last_log_date still equals the value the caller read, and
`insert` fails when a row already exists. Callers retry with fresh state.
"""

import threading
from datetime import date
from typing import Dict, Optional

from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError

from coincraft.core.database import get_database_url, get_db_session, streaks
from coincraft.models.streak import StreakState


class InMemoryStreakStore:
    """Process-local store used when no database is configured."""

    def __init__(self):
        self._rows: Dict[str, StreakState] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[StreakState]:
        with self._lock:
            return self._rows.get(user_id)

    def insert(self, state: StreakState) -> bool:
        with self._lock:
            if state.user_id in self._rows:
                return False
            self._rows[state.user_id] = state
            return True

    def compare_and_set(self, expected_last_log_date: Optional[date], state: StreakState) -> bool:
        with self._lock:
            current = self._rows.get(state.user_id)
            if current is None or current.last_log_date != expected_last_log_date:
                return False
            self._rows[state.user_id] = state
            return True

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._rows.clear()


class SqlStreakStore:
    """SQLAlchemy-backed store; each write is a single conditional statement."""

    @staticmethod
    def _to_state(row) -> StreakState:
        return StreakState(
            user_id=row.user_id,
            current_streak=row.current_streak,
            longest_streak=row.longest_streak,
            last_log_date=row.last_log_date,
        )

    def get(self, user_id: str) -> Optional[StreakState]:
        with get_db_session() as session:
            row = session.execute(
                select(streaks).where(streaks.c.user_id == user_id)
            ).first()
            return self._to_state(row) if row else None

    def insert(self, state: StreakState) -> bool:
        try:
            with get_db_session() as session:
                session.execute(
                    insert(streaks).values(
                        user_id=state.user_id,
                        current_streak=state.current_streak,
                        longest_streak=state.longest_streak,
                        last_log_date=state.last_log_date,
                    )
                )
            return True
        except IntegrityError:
            return False

    def compare_and_set(self, expected_last_log_date: Optional[date], state: StreakState) -> bool:
        if expected_last_log_date is None:
            guard = streaks.c.last_log_date.is_(None)
        else:
            guard = streaks.c.last_log_date == expected_last_log_date
        with get_db_session() as session:
            result = session.execute(
                update(streaks)
                .where(streaks.c.user_id == state.user_id, guard)
                .values(
                    current_streak=state.current_streak,
                    longest_streak=state.longest_streak,
                    last_log_date=state.last_log_date,
                )
            )
            return result.rowcount == 1


_store_instance = None


def get_streak_store():
    """
    Get the singleton streak store.

    SQL-backed when a database URL is configured (TEST_DATABASE_URL first,
    then DATABASE_URL), in-memory otherwise.
    """
    global _store_instance
    if _store_instance is None:
        if get_database_url():
            _store_instance = SqlStreakStore()
        else:
            _store_instance = InMemoryStreakStore()
    return _store_instance


def reset_streak_store() -> None:
    """FOR TESTING ONLY - forces re-initialization on next get_streak_store() call."""
    global _store_instance
    _store_instance = None
