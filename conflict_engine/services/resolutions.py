"""Service for suggesting structural fixes for a detected conflict."""

from __future__ import annotations

from conflict_engine.domain.models import (
    ConflictResolution,
    ConflictType,
    DetectedConflict,
    Impact,
    ResolutionType,
    Severity,
)
from conflict_engine.services.intervals import gap_minutes, overlap_minutes

_RELOCATABLE = {ConflictType.LOCATION_CONFLICT, ConflictType.TRAVEL_TIME}


def _titles(conflict: DetectedConflict) -> str:
    return ", ".join(f'"{e.title}"' for e in conflict.conflicting_events)


def _accept_description(conflict: DetectedConflict) -> str:
    candidate = conflict.new_event
    if conflict.conflict_type == ConflictType.TRAVEL_TIME:
        shortest = min(gap_minutes(candidate, e) for e in conflict.conflicting_events)
        return f'Keep "{candidate.title}" with only {shortest:g} minutes to travel'
    longest = max(overlap_minutes(candidate, e) for e in conflict.conflicting_events)
    return f'Keep "{candidate.title}" despite {longest:g} minutes of overlap'


def generate_resolutions(conflict: DetectedConflict) -> list[ConflictResolution]:
    """Return the applicable resolutions, least disruptive first.

    ``ignore`` is never suggested here: dismissing a warning is the caller's
    decision, not a fix. Nothing is applied automatically.
    """
    candidate = conflict.new_event
    catalogue: list[tuple[ResolutionType, Impact, str]] = [
        (
            ResolutionType.RESCHEDULE,
            Impact.MEDIUM,
            f'Move "{candidate.title}" to a free slot away from {_titles(conflict)}',
        ),
        (
            ResolutionType.CANCEL,
            Impact.HIGH,
            f'Cancel "{candidate.title}"',
        ),
    ]
    if conflict.conflict_type in _RELOCATABLE:
        catalogue.append(
            (
                ResolutionType.RELOCATE,
                Impact.MEDIUM,
                f'Hold "{candidate.title}" somewhere other than '
                f'"{(candidate.location or "").strip()}"',
            )
        )
    if conflict.severity == Severity.MINOR:
        catalogue.append(
            (ResolutionType.ACCEPT_OVERLAP, Impact.LOW, _accept_description(conflict))
        )

    resolutions = [
        ConflictResolution(
            id=f"{conflict.id}:{resolution_type}",
            type=resolution_type,
            description=description,
            impact=impact,
            automated=False,
        )
        for resolution_type, impact, description in catalogue
    ]
    return sorted(resolutions, key=lambda r: r.impact.rank)
