"""Entry point for the scheduling conflict engine.

The application calls ``detect_conflicts`` before saving an event (and again
after any edit to its date, time or duration), renders rule toggles from
``get_rules`` and applies user changes through ``update_rule``. The engine
never saves, cancels or moves events itself.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Sequence

from conflict_engine.config import Settings, get_settings
from conflict_engine.domain.models import (
    ConflictRule,
    DetectedConflict,
    Event,
    Person,
    RuleUpdate,
)
from conflict_engine.repos.rules import RuleRegistry
from conflict_engine.services.aggregator import aggregate
from conflict_engine.services.classifiers import build_classifiers
from conflict_engine.services.slots import suggest_reschedule_options as _suggest

logger = logging.getLogger(__name__)


class ConflictEngine:
    """Detects conflicts for a candidate event against existing events.

    Safe to share between threads: each detection call works on its own
    inputs plus a snapshot of the rule registry taken when the call starts.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        registry: RuleRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.registry = registry if registry is not None else RuleRegistry()
        self.clock = clock
        self._classifiers = build_classifiers(self.settings.travel_buffer_minutes)

    def detect_conflicts(
        self,
        candidate: Event,
        existing_events: Sequence[Event],
        people: Sequence[Person] = (),
    ) -> list[DetectedConflict]:
        """Return the conflicts ``candidate`` would cause, highest priority first.

        ``existing_events`` must not contain the candidate itself. Raises
        ``InvalidEventError`` if any event cannot be placed on the timeline.
        """
        rules = self.registry.snapshot()
        enabled = [r.id for r in rules.values() if r.enabled]
        logger.debug(f"Rules in effect for {candidate.id}: {enabled}")
        conflicts = aggregate(
            candidate,
            existing_events,
            people,
            rules,
            classifiers=self._classifiers,
            cost_threshold=self.settings.cost_threshold,
            now=self.clock() if self.clock else None,
        )
        logger.info(
            f"Checked event {candidate.id} against {len(existing_events)} event(s): "
            f"{len(conflicts)} conflict(s)"
        )
        return conflicts

    def get_rules(self) -> list[ConflictRule]:
        return self.registry.list_rules()

    def update_rule(
        self, rule_id: str, updates: RuleUpdate | Mapping[str, Any]
    ) -> ConflictRule:
        return self.registry.update_rule(rule_id, updates)

    def suggest_reschedule_options(
        self,
        event: Event,
        existing_events: Sequence[Event],
        *,
        max_days_out: int | None = None,
        time_slots: Sequence[str] | None = None,
        avoid_weekends: bool = False,
        limit: int | None = None,
    ) -> list[datetime]:
        """Free start times on the following days, for the ``reschedule`` resolution."""
        return _suggest(
            event,
            existing_events,
            max_days_out=max_days_out or self.settings.reschedule_max_days_out,
            time_slots=time_slots or self.settings.reschedule_time_slots,
            avoid_weekends=avoid_weekends,
            limit=limit or self.settings.reschedule_max_suggestions,
        )
