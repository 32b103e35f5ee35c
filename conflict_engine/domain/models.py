"""Domain models for the scheduling conflict engine."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

FAMILY = "all"
"""Person identifier meaning "the whole family"."""


class EventStatus(StrEnum):
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


class EventCategory(StrEnum):
    SPORT = "sport"
    MEETING = "meeting"
    FITNESS = "fitness"
    SOCIAL = "social"
    EDUCATION = "education"
    FAMILY = "family"
    OTHER = "other"
    APPOINTMENT = "appointment"
    WORK = "work"
    PERSONAL = "personal"


class Recurrence(StrEnum):
    NONE = "none"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class EventPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ConflictType(StrEnum):
    # Declaration order is the order classifiers run in.
    TIME_OVERLAP = "time_overlap"
    DOUBLE_BOOKING = "double_booking"
    LOCATION_CONFLICT = "location_conflict"
    TRAVEL_TIME = "travel_time"
    FAMILY_CONFLICT = "family_conflict"


class Severity(StrEnum):
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def upgraded(self) -> Severity:
        """Return the next level up, staying at critical once there."""
        return _SEVERITY_ORDER[min(self.rank + 1, len(_SEVERITY_ORDER) - 1)]

    def at_least(self, floor: Severity) -> Severity:
        return self if self.rank >= floor.rank else floor


_SEVERITY_ORDER = [Severity.MINOR, Severity.MAJOR, Severity.CRITICAL]


class ResolutionType(StrEnum):
    RESCHEDULE = "reschedule"
    CANCEL = "cancel"
    RELOCATE = "relocate"
    IGNORE = "ignore"
    ACCEPT_OVERLAP = "accept_overlap"
    OTHER = "other"


class Impact(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return [Impact.LOW, Impact.MEDIUM, Impact.HIGH].index(self)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Calendar models (owned by the calling application)
# ---------------------------------------------------------------------------


class Event(BaseModel):
    """A calendar entry as the application stores it.

    ``date``, ``time`` and ``duration`` are not checked here; the engine
    validates them when it builds the event's interval.
    """

    id: str = Field(default_factory=_new_id)
    title: str
    person: str
    date: str
    time: str
    duration: int
    location: str | None = None
    type: EventCategory = EventCategory.OTHER
    cost: float = 0
    recurring: Recurrence = Recurrence.NONE
    priority: EventPriority = EventPriority.MEDIUM
    status: EventStatus = EventStatus.CONFIRMED

    @property
    def is_family(self) -> bool:
        return self.person == FAMILY

    @property
    def is_active(self) -> bool:
        return self.status != EventStatus.CANCELLED


class Person(BaseModel):
    id: str
    name: str
    color: str = "#808080"


# ---------------------------------------------------------------------------
# Engine models
# ---------------------------------------------------------------------------


class ConflictRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: ConflictType
    name: str
    description: str = ""
    enabled: bool = True
    severity: Severity


class RuleUpdate(BaseModel):
    """Partial update for a ConflictRule. Only these fields are mutable."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool | None = None
    severity: Severity | None = None


class ConflictResolution(BaseModel):
    id: str
    type: ResolutionType
    description: str
    impact: Impact
    automated: bool = False


class DetectedConflict(BaseModel):
    id: str
    conflict_type: ConflictType
    severity: Severity
    priority: int = Field(ge=1, le=10)
    new_event: Event
    conflicting_events: list[Event]
    affected_people: list[str] = Field(default_factory=list)
    detected_at: datetime = Field(default_factory=_utcnow)
    resolutions: list[ConflictResolution] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class DetectConflictsRequest(BaseModel):
    candidate: Event
    existing_events: list[Event] = Field(default_factory=list)
    people: list[Person] = Field(default_factory=list)


class RescheduleOptionsRequest(BaseModel):
    event: Event
    existing_events: list[Event] = Field(default_factory=list)
    avoid_weekends: bool = False


class RescheduleOptionsResponse(BaseModel):
    suggestions: list[datetime]
