"""In-memory registry of conflict-detection rules."""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

from pydantic import ValidationError

from conflict_engine.domain.errors import InvalidRuleUpdateError, RuleNotFoundError
from conflict_engine.domain.models import ConflictRule, ConflictType, RuleUpdate, Severity

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = frozenset({"enabled", "severity"})


def default_rules() -> list[ConflictRule]:
    """One enabled rule per classifier, in classifier order."""
    return [
        ConflictRule(
            id="time-overlap",
            type=ConflictType.TIME_OVERLAP,
            name="Time Overlap Detection",
            description="Detects when events overlap in time for the same person",
            severity=Severity.MAJOR,
        ),
        ConflictRule(
            id="double-booking",
            type=ConflictType.DOUBLE_BOOKING,
            name="Double Booking Prevention",
            description="Flags an event booked over an identical or enclosing slot",
            severity=Severity.CRITICAL,
        ),
        ConflictRule(
            id="location-conflict",
            type=ConflictType.LOCATION_CONFLICT,
            name="Location Conflict Detection",
            description="Detects two people needing the same place at the same time",
            severity=Severity.MAJOR,
        ),
        ConflictRule(
            id="travel-time",
            type=ConflictType.TRAVEL_TIME,
            name="Travel Time Consideration",
            description="Flags too little time to travel between locations",
            severity=Severity.MINOR,
        ),
        ConflictRule(
            id="family-conflict",
            type=ConflictType.FAMILY_CONFLICT,
            name="Family Event Conflicts",
            description="Detects family-wide events colliding with personal ones",
            severity=Severity.MAJOR,
        ),
    ]


class RuleRegistry:
    """Dict-backed store for ConflictRule instances, keyed by id.

    Rules are frozen and replaced on update, so a snapshot handed to an
    in-flight detection call never changes underneath it.
    """

    def __init__(self, rules: list[ConflictRule] | None = None) -> None:
        self._lock = threading.Lock()
        self._store: dict[str, ConflictRule] = {}
        self._load(rules if rules is not None else default_rules())

    def _load(self, rules: list[ConflictRule]) -> None:
        store = {rule.id: rule for rule in rules}
        with self._lock:
            self._store = store

    def reset(self) -> None:
        """Restore the default rule set."""
        self._load(default_rules())

    def list_rules(self) -> list[ConflictRule]:
        with self._lock:
            return list(self._store.values())

    def get_rule(self, rule_id: str) -> ConflictRule:
        with self._lock:
            rule = self._store.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return rule

    def snapshot(self) -> dict[ConflictType, ConflictRule]:
        with self._lock:
            return {rule.type: rule for rule in self._store.values()}

    def update_rule(
        self, rule_id: str, updates: RuleUpdate | Mapping[str, Any]
    ) -> ConflictRule:
        """Apply ``enabled``/``severity`` changes to a rule, all or nothing.

        Raises ``RuleNotFoundError`` for an unknown id and
        ``InvalidRuleUpdateError`` for any other field or an invalid value.
        """
        changes = self._validate(self.get_rule(rule_id), updates)
        with self._lock:
            current = self._store.get(rule_id)
            if current is None:
                raise RuleNotFoundError(rule_id)
            updated = current.model_copy(update=changes)
            self._store[rule_id] = updated
        logger.info(f"Updated conflict rule {rule_id}: {changes}")
        return updated

    @staticmethod
    def _validate(
        rule: ConflictRule, updates: RuleUpdate | Mapping[str, Any]
    ) -> dict[str, Any]:
        if isinstance(updates, RuleUpdate):
            return updates.model_dump(exclude_none=True)

        rule_id = rule.id
        current = rule.model_dump()
        # Echoing an immutable field back unchanged is not an attempt to change it.
        rejected = sorted(
            key
            for key, value in updates.items()
            if key not in MUTABLE_FIELDS and (key not in current or current[key] != value)
        )
        if rejected:
            logger.warning(f"Rejected update to conflict rule {rule_id}: {rejected}")
            raise InvalidRuleUpdateError(
                f"Cannot change {', '.join(rejected)} on rule {rule_id!r}; "
                f"only {', '.join(sorted(MUTABLE_FIELDS))} are mutable"
            )
        try:
            parsed = RuleUpdate.model_validate(
                {k: v for k, v in updates.items() if k in MUTABLE_FIELDS}
            )
        except ValidationError as exc:
            logger.warning(f"Rejected update to conflict rule {rule_id}: {exc}")
            raise InvalidRuleUpdateError(
                f"Invalid update for rule {rule_id!r}: {exc.errors()[0]['msg']}"
            ) from exc
        return parsed.model_dump(exclude_none=True)
