"""
Envelope period arithmetic.

Periods are not advanced by a background job. Every period-sensitive read
runs check_and_reset_if_due first, so an envelope catches up lazily the
first time it is touched in a new week or month.
"""

from dataclasses import replace
from datetime import date, timedelta
from typing import Optional

from coincraft.models.envelope import EnvelopePeriod, EnvelopeState

MONDAY = 0


def natural_period_start(period: EnvelopePeriod, today: date, week_start: int = MONDAY) -> Optional[date]:
    """Start of the period that contains ``today``.

    Weekly periods begin on ``week_start`` (date.weekday() numbering);
    monthly periods begin on the 1st.
    """
    if period == EnvelopePeriod.WEEKLY:
        offset = (today.weekday() - week_start) % 7
        return today - timedelta(days=offset)
    if period == EnvelopePeriod.MONTHLY:
        return today.replace(day=1)
    return None


def is_reset_due(envelope: EnvelopeState, today: date, week_start: int = MONDAY) -> bool:
    """True when ``today`` falls in a later period than the stored one.

    Periods only move forward, so an earlier ``today`` or a natural start
    that shifted backwards (e.g. a changed week start) never resets.
    """
    if envelope.period == EnvelopePeriod.NONE:
        return False
    if envelope.period_start is None:
        return True
    return natural_period_start(envelope.period, today, week_start) > envelope.period_start


def check_and_reset_if_due(envelope: EnvelopeState, today: date, week_start: int = MONDAY) -> EnvelopeState:
    """Roll the envelope into the period containing ``today`` if it has not been yet.

    With rollover enabled the unspent part of the old period's budget
    (target plus anything already rolled in) becomes the new rollover
    amount. Overspending is not carried, and an envelope that never had a
    period has nothing to carry. Calling this again within the same period
    returns the envelope unchanged.
    """
    if not is_reset_due(envelope, today, week_start):
        return envelope

    carried = 0
    if (
        envelope.rollover_enabled
        and envelope.period_start is not None
        and envelope.available_amount is not None
    ):
        carried = max(0, envelope.available_amount - envelope.current_amount)

    return replace(
        envelope,
        period_start=natural_period_start(envelope.period, today, week_start),
        current_amount=0,
        rollover_amount=carried,
    )
