"""
Envelope budgeting service.

Every read goes through _load_current, which applies the lazy period reset
and persists it before the caller sees the envelope.
"""

from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable, List, Optional
from uuid import uuid4

from coincraft.core.config import settings
from coincraft.core.errors import ConflictError, NotFoundError, ValidationError
from coincraft.core.logging import log_event
from coincraft.features.envelopes.periods import check_and_reset_if_due, natural_period_start
from coincraft.features.envelopes.store import get_envelope_store
from coincraft.models.envelope import EnvelopePeriod, EnvelopeState
from coincraft.models.figures import AllocationFigures


def _today() -> date:
    return datetime.now(timezone.utc).date()


class EnvelopeService:
    def __init__(self, store=None, week_start: Optional[int] = None, max_retries: Optional[int] = None):
        self._store = store
        self._week_start = settings.WEEK_START_WEEKDAY if week_start is None else week_start
        self._max_retries = settings.STATE_WRITE_RETRIES if max_retries is None else max_retries

    @property
    def store(self):
        return self._store if self._store is not None else get_envelope_store()

    def create_envelope(
        self,
        *,
        user_id: str,
        name: str,
        target_amount: int,
        period: EnvelopePeriod = EnvelopePeriod.MONTHLY,
        rollover_enabled: bool = False,
        icon: Optional[str] = None,
        envelope_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> EnvelopeState:
        if not user_id:
            raise ValidationError("user_id is required")
        if not name or not name.strip():
            raise ValidationError("Envelope name is required")
        if target_amount is None or target_amount <= 0:
            raise ValidationError("Target amount must be greater than 0")

        day = today or _today()
        envelope = EnvelopeState(
            envelope_id=envelope_id or str(uuid4()),
            user_id=user_id,
            name=name.strip(),
            icon=icon,
            period=period,
            period_start=natural_period_start(period, day, self._week_start),
            current_amount=0,
            target_amount=target_amount,
            rollover_enabled=rollover_enabled,
        )
        if not self.store.insert(envelope):
            raise ConflictError(f"Envelope {envelope.envelope_id} already exists")

        log_event(
            "info",
            "envelope.created",
            user_id=user_id,
            envelope_id=envelope.envelope_id,
            event_type="envelope.created",
            extra={"period": period.value, "target_amount": target_amount},
        )
        return self.store.get(envelope.envelope_id)

    def get_envelope(self, envelope_id: str, today: Optional[date] = None) -> EnvelopeState:
        return self._mutate(envelope_id, today or _today(), None)

    def list_envelopes(self, user_id: str, today: Optional[date] = None) -> List[EnvelopeState]:
        day = today or _today()
        return [
            self._mutate(envelope.envelope_id, day, None)
            for envelope in self.store.list_for_user(user_id)
        ]

    def record_spending(self, envelope_id: str, amount: int, today: Optional[date] = None) -> EnvelopeState:
        """Add spending to the envelope's active period (after any due reset)."""
        if amount is None or amount <= 0:
            raise ValidationError("Spending amount must be greater than 0")

        def spend(envelope: EnvelopeState) -> EnvelopeState:
            return replace(envelope, current_amount=envelope.current_amount + amount)

        return self._mutate(envelope_id, today or _today(), spend)

    def figures(self, user_id: str, today: Optional[date] = None) -> List[AllocationFigures]:
        """Active envelopes as rule inputs; the target is the period's available budget."""
        return [
            AllocationFigures(
                id=envelope.envelope_id,
                name=envelope.name,
                current_amount=envelope.current_amount,
                target_amount=envelope.available_amount,
                is_active=envelope.is_active,
            )
            for envelope in self.list_envelopes(user_id, today)
            if envelope.is_active
        ]

    def _mutate(
        self,
        envelope_id: str,
        today: date,
        change: Optional[Callable[[EnvelopeState], EnvelopeState]],
    ) -> EnvelopeState:
        """Reset if due, apply ``change``, and persist with a version check.

        Pure reads (no change, no reset due) never write.
        """
        store = self.store
        for attempt in range(self._max_retries + 1):
            current = store.get(envelope_id)
            if current is None:
                raise NotFoundError(f"Envelope {envelope_id} not found")

            updated = check_and_reset_if_due(current, today, self._week_start)
            was_reset = updated is not current
            if change is not None:
                updated = change(updated)
            if updated is current:
                return current

            if store.compare_and_set(current.version, updated):
                if was_reset:
                    log_event(
                        "info",
                        "envelope.period_reset",
                        user_id=current.user_id,
                        envelope_id=envelope_id,
                        event_type="envelope.period_reset",
                        extra={
                            "previous_period_start": current.period_start,
                            "period_start": updated.period_start,
                            "rollover_amount": updated.rollover_amount,
                        },
                    )
                return replace(updated, version=current.version + 1)

            log_event(
                "warning",
                "envelope.write_conflict",
                user_id=current.user_id,
                envelope_id=envelope_id,
                event_type="envelope.write_conflict",
                extra={"attempt": attempt + 1},
            )

        raise ConflictError(f"Envelope {envelope_id} changed concurrently; try again")


envelope_service = EnvelopeService()
