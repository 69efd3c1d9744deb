from dataclasses import replace
from datetime import date

import pytest

from coincraft.core.errors import ConflictError, NotFoundError, ValidationError
from coincraft.features.envelopes.service import EnvelopeService
from coincraft.features.envelopes.store import InMemoryEnvelopeStore
from coincraft.models.envelope import EnvelopePeriod


@pytest.fixture
def service():
    return EnvelopeService(store=InMemoryEnvelopeStore(), week_start=0)


def test_create_sets_natural_period_start(service):
    envelope = service.create_envelope(
        user_id="u1", name="  Groceries ", target_amount=500000, envelope_id="env-1", today=date(2024, 1, 17)
    )

    assert envelope.name == "Groceries"
    assert envelope.period_start == date(2024, 1, 1)
    assert envelope.current_amount == 0
    assert envelope.version == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(user_id="u1", name="", target_amount=100),
        dict(user_id="u1", name="Food", target_amount=0),
        dict(user_id="", name="Food", target_amount=100),
    ],
)
def test_create_rejects_invalid_input(service, kwargs):
    with pytest.raises(ValidationError):
        service.create_envelope(**kwargs)


def test_duplicate_id_conflicts(service):
    service.create_envelope(user_id="u1", name="Food", target_amount=100, envelope_id="env-1")

    with pytest.raises(ConflictError):
        service.create_envelope(user_id="u1", name="Food", target_amount=100, envelope_id="env-1")


def test_read_in_new_period_persists_reset(service):
    service.create_envelope(user_id="u1", name="Food", target_amount=10000, envelope_id="env-1", today=date(2024, 1, 2))
    service.record_spending("env-1", 5000, today=date(2024, 1, 20))

    envelope = service.get_envelope("env-1", today=date(2024, 2, 3))

    assert envelope.period_start == date(2024, 2, 1)
    assert envelope.current_amount == 0
    stored = service.store.get("env-1")
    assert stored.period_start == date(2024, 2, 1)
    assert stored.current_amount == 0


def test_read_in_same_period_does_not_write(service):
    service.create_envelope(user_id="u1", name="Food", target_amount=10000, envelope_id="env-1", today=date(2024, 1, 2))

    first = service.get_envelope("env-1", today=date(2024, 1, 5))
    second = service.get_envelope("env-1", today=date(2024, 1, 6))

    assert first.version == second.version == 0


def test_spending_after_rollover_uses_new_period(service):
    service.create_envelope(
        user_id="u1",
        name="Fun",
        target_amount=10000,
        period=EnvelopePeriod.WEEKLY,
        rollover_enabled=True,
        envelope_id="env-1",
        today=date(2024, 1, 8),
    )
    service.record_spending("env-1", 4000, today=date(2024, 1, 9))

    envelope = service.record_spending("env-1", 1500, today=date(2024, 1, 16))

    assert envelope.period_start == date(2024, 1, 15)
    assert envelope.rollover_amount == 6000
    assert envelope.current_amount == 1500
    assert envelope.remaining_amount == 14500


def test_week_start_change_keeps_spending(service):
    service.create_envelope(
        user_id="u1", name="Fun", target_amount=10000, period=EnvelopePeriod.WEEKLY,
        envelope_id="env-1", today=date(2024, 1, 8),
    )
    service.record_spending("env-1", 4000, today=date(2024, 1, 8))

    sunday_weeks = EnvelopeService(store=service.store, week_start=6)
    envelope = sunday_weeks.get_envelope("env-1", today=date(2024, 1, 10))

    assert envelope.period_start == date(2024, 1, 8)
    assert envelope.current_amount == 4000


def test_spending_must_be_positive(service):
    service.create_envelope(user_id="u1", name="Food", target_amount=100, envelope_id="env-1")

    with pytest.raises(ValidationError):
        service.record_spending("env-1", 0)


def test_unknown_envelope_not_found(service):
    with pytest.raises(NotFoundError):
        service.get_envelope("missing", today=date(2024, 1, 1))


def test_list_and_figures_use_available_budget(service):
    service.create_envelope(
        user_id="u1", name="Food", target_amount=10000, rollover_enabled=True, envelope_id="a", today=date(2024, 1, 2)
    )
    service.create_envelope(user_id="u1", name="Fun", target_amount=5000, envelope_id="b", today=date(2024, 1, 2))
    service.create_envelope(user_id="u2", name="Other", target_amount=5000, envelope_id="c", today=date(2024, 1, 2))
    service.record_spending("a", 2000, today=date(2024, 1, 3))

    figures = {f.id: f for f in service.figures("u1", today=date(2024, 2, 1))}

    assert set(figures) == {"a", "b"}
    assert figures["a"].target_amount == 18000
    assert figures["a"].current_amount == 0
    assert figures["b"].target_amount == 5000


def test_concurrent_spend_is_not_lost(service):
    service.create_envelope(user_id="u1", name="Food", target_amount=10000, envelope_id="env-1", today=date(2024, 1, 2))
    inner = service.store

    class RacingStore:
        def __init__(self):
            self.raced = False

        def get(self, envelope_id):
            return inner.get(envelope_id)

        def compare_and_set(self, expected_version, envelope):
            if not self.raced:
                self.raced = True
                current = inner.get(envelope.envelope_id)
                assert inner.compare_and_set(expected_version, replace(current, current_amount=current.current_amount + 700))
            return inner.compare_and_set(expected_version, envelope)

    racing = EnvelopeService(store=RacingStore(), week_start=0, max_retries=2)
    envelope = racing.record_spending("env-1", 300, today=date(2024, 1, 3))

    assert envelope.current_amount == 1000
    assert inner.get("env-1").current_amount == 1000
