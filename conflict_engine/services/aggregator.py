"""Merge classifier output into ranked DetectedConflict records."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Mapping, Sequence

from conflict_engine.domain.models import (
    ConflictRule,
    ConflictType,
    DetectedConflict,
    Event,
    EventStatus,
    Person,
    Severity,
)
from conflict_engine.services.classifiers import CLASSIFIERS, Classifier, ClassifierMatch
from conflict_engine.services.intervals import to_interval
from conflict_engine.services.resolutions import generate_resolutions

logger = logging.getLogger(__name__)

SEVERITY_BASE = {Severity.MINOR: 3, Severity.MAJOR: 6, Severity.CRITICAL: 9}
DEFAULT_COST_THRESHOLD = 50.0

PairKey = frozenset[str]


def _pair(a: Event, b: Event) -> PairKey:
    return frozenset((a.id, b.id))


def compute_priority(
    severity: Severity,
    events: Sequence[Event],
    cost_threshold: float = DEFAULT_COST_THRESHOLD,
) -> int:
    """``base(severity) + cost weight + status weight``, clamped to 1..10."""
    cost_weight = 1 if any(e.cost > cost_threshold for e in events) else 0
    status_weight = 1 if any(e.status == EventStatus.CONFIRMED for e in events) else 0
    return max(1, min(10, SEVERITY_BASE[severity] + cost_weight + status_weight))


def affected_people(events: Sequence[Event], people: Sequence[Person]) -> list[str]:
    """Union of the events' people, in first-seen order.

    The family sentinel stands for everyone in ``people``; with no known
    people it is reported as-is.
    """
    known = [p.id for p in people]
    result: list[str] = []
    for event in events:
        ids = known if event.is_family and known else [event.person]
        for person_id in ids:
            if person_id not in result:
                result.append(person_id)
    return result


def validate_events(candidate: Event, existing_events: Sequence[Event]) -> None:
    """Raise ``InvalidEventError`` for the first event that has no valid interval."""
    to_interval(candidate)
    for event in existing_events:
        to_interval(event)


def classify(
    candidate: Event,
    existing_events: Sequence[Event],
    people: Sequence[Person],
    rules: Mapping[ConflictType, ConflictRule],
    classifiers: Mapping[ConflictType, Classifier] = CLASSIFIERS,
) -> dict[ConflictType, list[ClassifierMatch]]:
    """Run every enabled classifier and return its non-empty matches, in order."""
    raw: dict[ConflictType, list[ClassifierMatch]] = {}
    for conflict_type, classifier in classifiers.items():
        rule = rules.get(conflict_type)
        if rule is None or not rule.enabled:
            continue
        matches = classifier(candidate, existing_events, people, rule)
        logger.debug(f"{conflict_type}: {len(matches)} match(es) for {candidate.id}")
        if matches:
            raw[conflict_type] = matches
    return raw


def _merge_severities(
    raw: Mapping[ConflictType, list[ClassifierMatch]],
    candidate: Event,
) -> dict[ConflictType, Severity]:
    severities = {
        conflict_type: max((m.severity for m in matches), key=lambda s: s.rank)
        for conflict_type, matches in raw.items()
    }

    double_booked = {
        _pair(candidate, m.event) for m in raw.get(ConflictType.DOUBLE_BOOKING, [])
    }
    if ConflictType.DOUBLE_BOOKING in severities:
        severities[ConflictType.DOUBLE_BOOKING] = severities[
            ConflictType.DOUBLE_BOOKING
        ].at_least(Severity.MAJOR)

    overlapping = {
        _pair(candidate, m.event) for m in raw.get(ConflictType.TIME_OVERLAP, [])
    }
    if overlapping & double_booked:
        severities[ConflictType.TIME_OVERLAP] = severities[
            ConflictType.TIME_OVERLAP
        ].upgraded()
    return severities


def aggregate(
    candidate: Event,
    existing_events: Sequence[Event],
    people: Sequence[Person],
    rules: Mapping[ConflictType, ConflictRule],
    *,
    classifiers: Mapping[ConflictType, Classifier] = CLASSIFIERS,
    cost_threshold: float = DEFAULT_COST_THRESHOLD,
    now: datetime | None = None,
) -> list[DetectedConflict]:
    """Detect, merge and rank conflicts for ``candidate``.

    One record is produced per rule type that fired, listing every existing
    event that type matched. Records are sorted by descending priority; the
    sort is stable so ties keep classifier order.
    """
    validate_events(candidate, existing_events)
    detected_at = now or datetime.now(timezone.utc)

    raw = classify(candidate, existing_events, people, rules, classifiers)
    severities = _merge_severities(raw, candidate)

    conflicts: list[DetectedConflict] = []
    for conflict_type, matches in raw.items():
        conflicting = [m.event for m in matches]
        involved = [candidate, *conflicting]
        severity = severities[conflict_type]
        conflict = DetectedConflict(
            id=f"{rules[conflict_type].id}:{candidate.id}",
            conflict_type=conflict_type,
            severity=severity,
            priority=compute_priority(severity, involved, cost_threshold),
            new_event=candidate,
            conflicting_events=conflicting,
            affected_people=affected_people(involved, people),
            detected_at=detected_at,
        )
        conflict.resolutions = generate_resolutions(conflict)
        conflicts.append(conflict)

    conflicts.sort(key=lambda c: -c.priority)
    return conflicts
