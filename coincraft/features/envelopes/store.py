"""
coincraft/features/envelopes/store.py

Envelope storage. Writes are conditional on the row version the caller read;
a successful write stores version + 1.
"""

import threading
from dataclasses import replace
from typing import Dict, List, Optional

from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError

from coincraft.core.database import get_database_url, get_db_session, envelopes
from coincraft.models.envelope import EnvelopePeriod, EnvelopeState


class InMemoryEnvelopeStore:
    def __init__(self):
        self._rows: Dict[str, EnvelopeState] = {}
        self._lock = threading.Lock()

    def get(self, envelope_id: str) -> Optional[EnvelopeState]:
        with self._lock:
            return self._rows.get(envelope_id)

    def list_for_user(self, user_id: str) -> List[EnvelopeState]:
        with self._lock:
            return [row for row in self._rows.values() if row.user_id == user_id]

    def insert(self, envelope: EnvelopeState) -> bool:
        with self._lock:
            if envelope.envelope_id in self._rows:
                return False
            self._rows[envelope.envelope_id] = replace(envelope, version=0)
            return True

    def compare_and_set(self, expected_version: int, envelope: EnvelopeState) -> bool:
        with self._lock:
            current = self._rows.get(envelope.envelope_id)
            if current is None or current.version != expected_version:
                return False
            self._rows[envelope.envelope_id] = replace(envelope, version=expected_version + 1)
            return True

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._rows.clear()


class SqlEnvelopeStore:
    @staticmethod
    def _to_state(row) -> EnvelopeState:
        return EnvelopeState(
            envelope_id=row.id,
            user_id=row.user_id,
            name=row.name,
            icon=row.icon,
            period=EnvelopePeriod(row.period),
            period_start=row.period_start,
            current_amount=row.current_amount,
            target_amount=row.target_amount,
            rollover_enabled=row.rollover_enabled,
            rollover_amount=row.rollover_amount,
            is_active=row.is_active,
            version=row.version,
        )

    @staticmethod
    def _values(envelope: EnvelopeState) -> dict:
        return {
            "user_id": envelope.user_id,
            "name": envelope.name,
            "icon": envelope.icon,
            "period": envelope.period.value,
            "period_start": envelope.period_start,
            "current_amount": envelope.current_amount,
            "target_amount": envelope.target_amount,
            "rollover_enabled": envelope.rollover_enabled,
            "rollover_amount": envelope.rollover_amount,
            "is_active": envelope.is_active,
        }

    def get(self, envelope_id: str) -> Optional[EnvelopeState]:
        with get_db_session() as session:
            row = session.execute(
                select(envelopes).where(envelopes.c.id == envelope_id)
            ).first()
            return self._to_state(row) if row else None

    def list_for_user(self, user_id: str) -> List[EnvelopeState]:
        with get_db_session() as session:
            rows = session.execute(
                select(envelopes)
                .where(envelopes.c.user_id == user_id)
                .order_by(envelopes.c.created_at, envelopes.c.id)
            ).all()
            return [self._to_state(row) for row in rows]

    def insert(self, envelope: EnvelopeState) -> bool:
        try:
            with get_db_session() as session:
                session.execute(
                    insert(envelopes).values(id=envelope.envelope_id, version=0, **self._values(envelope))
                )
            return True
        except IntegrityError:
            return False

    def compare_and_set(self, expected_version: int, envelope: EnvelopeState) -> bool:
        with get_db_session() as session:
            result = session.execute(
                update(envelopes)
                .where(envelopes.c.id == envelope.envelope_id, envelopes.c.version == expected_version)
                .values(version=expected_version + 1, **self._values(envelope))
            )
            return result.rowcount == 1


_store_instance = None


def get_envelope_store():
    """SQL-backed when get_database_url() returns a URL, in-memory otherwise."""
    global _store_instance
    if _store_instance is None:
        if get_database_url():
            _store_instance = SqlEnvelopeStore()
        else:
            _store_instance = InMemoryEnvelopeStore()
    return _store_instance


def reset_envelope_store() -> None:
    """FOR TESTING ONLY."""
    global _store_instance
    _store_instance = None
