"""Conflict classifiers, one strategy per rule type.

Every classifier has the same shape::

    classifier(candidate, existing_events, people, rule) -> list[ClassifierMatch]

It scans ``existing_events`` in order, keeps every match, and never looks at
other classifiers' output. Cancelled events never match.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Sequence

from conflict_engine.domain.models import (
    ConflictRule,
    ConflictType,
    Event,
    Person,
    Severity,
)
from conflict_engine.services.intervals import contains, gap_minutes, overlaps, to_interval

DEFAULT_TRAVEL_BUFFER_MINUTES = 20


@dataclass(frozen=True)
class ClassifierMatch:
    event: Event
    severity: Severity


Classifier = Callable[
    [Event, Sequence[Event], Sequence[Person], ConflictRule], list[ClassifierMatch]
]


def _same_party(a: Event, b: Event) -> bool:
    return a.person == b.person or a.is_family or b.is_family


def _normalize_location(location: str | None) -> str:
    return (location or "").strip().casefold()


def _active(candidate: Event, existing_events: Sequence[Event]) -> list[Event]:
    if not candidate.is_active:
        return []
    return [e for e in existing_events if e.is_active]


def detect_time_overlaps(
    candidate: Event,
    existing_events: Sequence[Event],
    people: Sequence[Person],
    rule: ConflictRule,
) -> list[ClassifierMatch]:
    return [
        ClassifierMatch(event, rule.severity)
        for event in _active(candidate, existing_events)
        if _same_party(candidate, event) and overlaps(candidate, event)
    ]


def detect_double_bookings(
    candidate: Event,
    existing_events: Sequence[Event],
    people: Sequence[Person],
    rule: ConflictRule,
) -> list[ClassifierMatch]:
    """Identical intervals, or the candidate sits entirely inside the existing event."""
    severity = rule.severity.at_least(Severity.MAJOR)
    return [
        ClassifierMatch(event, severity)
        for event in _active(candidate, existing_events)
        if _same_party(candidate, event)
        and (to_interval(candidate) == to_interval(event) or contains(event, candidate))
    ]


def detect_location_conflicts(
    candidate: Event,
    existing_events: Sequence[Event],
    people: Sequence[Person],
    rule: ConflictRule,
) -> list[ClassifierMatch]:
    """Two different people need the same place at the same time."""
    location = _normalize_location(candidate.location)
    if not location:
        return []
    return [
        ClassifierMatch(event, rule.severity)
        for event in _active(candidate, existing_events)
        if _normalize_location(event.location) == location
        and not _same_party(candidate, event)
        and overlaps(candidate, event)
    ]


def detect_travel_time(
    candidate: Event,
    existing_events: Sequence[Event],
    people: Sequence[Person],
    rule: ConflictRule,
    *,
    buffer_minutes: int = DEFAULT_TRAVEL_BUFFER_MINUTES,
) -> list[ClassifierMatch]:
    """Back-to-back events at different places with too little time between them."""
    location = _normalize_location(candidate.location)
    if not location:
        return []
    matches: list[ClassifierMatch] = []
    for event in _active(candidate, existing_events):
        other = _normalize_location(event.location)
        if not other or other == location or not _same_party(candidate, event):
            continue
        gap = gap_minutes(candidate, event)
        # A negative gap is an overlap, which time_overlap reports.
        if 0 <= gap < buffer_minutes:
            matches.append(ClassifierMatch(event, rule.severity))
    return matches


def detect_family_conflicts(
    candidate: Event,
    existing_events: Sequence[Event],
    people: Sequence[Person],
    rule: ConflictRule,
) -> list[ClassifierMatch]:
    """A family-wide event collides with an individual one."""
    return [
        ClassifierMatch(event, rule.severity)
        for event in _active(candidate, existing_events)
        if candidate.is_family != event.is_family and overlaps(candidate, event)
    ]


def build_classifiers(
    travel_buffer_minutes: int = DEFAULT_TRAVEL_BUFFER_MINUTES,
) -> dict[ConflictType, Classifier]:
    """Return the strategy table, ordered the way classifiers must run."""
    table: dict[ConflictType, Classifier] = {
        ConflictType.TIME_OVERLAP: detect_time_overlaps,
        ConflictType.DOUBLE_BOOKING: detect_double_bookings,
        ConflictType.LOCATION_CONFLICT: detect_location_conflicts,
        ConflictType.TRAVEL_TIME: partial(
            detect_travel_time, buffer_minutes=travel_buffer_minutes
        ),
        ConflictType.FAMILY_CONFLICT: detect_family_conflicts,
    }
    return {conflict_type: table[conflict_type] for conflict_type in ConflictType}


CLASSIFIERS = build_classifiers()
