"""Service for finding free slots to move a conflicting event into."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Sequence

from conflict_engine.config import DEFAULT_TIME_SLOTS
from conflict_engine.domain.models import Event
from conflict_engine.services.intervals import to_interval

_SATURDAY = 5


def suggest_reschedule_options(
    event: Event,
    existing_events: Sequence[Event],
    *,
    max_days_out: int = 7,
    time_slots: Sequence[str] | None = None,
    avoid_weekends: bool = False,
    limit: int = 5,
) -> list[datetime]:
    """Return up to ``limit`` start times on the days after ``event``.

    Each day from 1 to ``max_days_out`` is tried at every preferred time slot;
    a slot is free when it does not overlap any active event for the same
    person (family-wide events block everyone).
    """
    start, end = to_interval(event)
    duration = end - start
    blocking = [
        to_interval(e)
        for e in existing_events
        if e.id != event.id
        and e.is_active
        and (e.person == event.person or e.is_family or event.is_family)
    ]

    suggestions: list[datetime] = []
    for day in range(1, max_days_out + 1):
        test_date = start.date() + timedelta(days=day)
        if avoid_weekends and test_date.weekday() >= _SATURDAY:
            continue
        for slot in time_slots or DEFAULT_TIME_SLOTS:
            slot_time = datetime.strptime(slot, "%H:%M").time()
            slot_start = datetime.combine(test_date, slot_time, tzinfo=start.tzinfo)
            slot_end = slot_start + duration
            if any(slot_start < b_end and b_start < slot_end for b_start, b_end in blocking):
                continue
            suggestions.append(slot_start)
            if len(suggestions) >= limit:
                return suggestions
    return suggestions
