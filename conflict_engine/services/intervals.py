"""Interval arithmetic over calendar events.

Events are placed on the timeline as half-open intervals ``[start, end)``,
so an event ending at 10:00 and one starting at 10:00 do not overlap.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta

from dateutil.parser import isoparse

from conflict_engine.domain.errors import InvalidEventError
from conflict_engine.domain.models import Event

logger = logging.getLogger(__name__)

Interval = tuple[datetime, datetime]

# Calendar date and local time-of-day, no offset.
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_TIME_RE = re.compile(r"\d{2}:\d{2}")


def to_interval(event: Event) -> Interval:
    """Return ``(start, end)`` for an event.

    ``date`` must be ``YYYY-MM-DD`` and ``time`` a local ``HH:MM``; both are
    wall-clock values, so the interval is naive. Raises ``InvalidEventError``
    if the duration is not positive or the date/time do not combine into a
    single start instant.
    """
    if event.duration <= 0:
        logger.warning(f"Event {event.id} has non-positive duration {event.duration}")
        raise InvalidEventError(
            f"Event {event.id!r} must have a positive duration, got {event.duration}",
            event_id=event.id,
        )
    date, time = event.date.strip(), event.time.strip()
    try:
        if not (_DATE_RE.fullmatch(date) and _TIME_RE.fullmatch(time)):
            raise ValueError("expected YYYY-MM-DD and HH:MM")
        start = isoparse(f"{date}T{time}")
    except (ValueError, OverflowError) as exc:
        logger.warning(f"Event {event.id} has unparseable date/time {event.date!r} {event.time!r}")
        raise InvalidEventError(
            f"Event {event.id!r} has an invalid date/time: {event.date!r} {event.time!r}",
            event_id=event.id,
        ) from exc
    return start, start + timedelta(minutes=event.duration)


def overlaps(a: Event, b: Event) -> bool:
    a_start, a_end = to_interval(a)
    b_start, b_end = to_interval(b)
    return a_start < b_end and b_start < a_end


def gap_minutes(a: Event, b: Event) -> float:
    """Minutes from the earlier event's end to the later event's start.

    Negative when the two events overlap.
    """
    first, second = sorted((to_interval(a), to_interval(b)))
    return (second[0] - first[1]).total_seconds() / 60


def overlap_minutes(a: Event, b: Event) -> float:
    a_start, a_end = to_interval(a)
    b_start, b_end = to_interval(b)
    shared = min(a_end, b_end) - max(a_start, b_start)
    return max(0.0, shared.total_seconds() / 60)


def contains(outer: Event, inner: Event) -> bool:
    """True if ``inner`` lies entirely within ``outer`` (bounds inclusive)."""
    outer_start, outer_end = to_interval(outer)
    inner_start, inner_end = to_interval(inner)
    return outer_start <= inner_start and inner_end <= outer_end
