"""Tests for the in-memory rule registry."""

from __future__ import annotations

import threading

import pytest

from conflict_engine.domain.errors import InvalidRuleUpdateError, RuleNotFoundError
from conflict_engine.domain.models import ConflictType, RuleUpdate, Severity
from conflict_engine.repos.rules import RuleRegistry


@pytest.fixture()
def registry():
    return RuleRegistry()


def test_one_enabled_rule_per_type_in_fixed_order(registry):
    """Each rule type has one rule, enabled, in classifier order."""
    rules = registry.list_rules()

    assert [r.id for r in rules] == [
        "time-overlap",
        "double-booking",
        "location-conflict",
        "travel-time",
        "family-conflict",
    ]
    assert [r.type for r in rules] == list(ConflictType)
    assert all(r.enabled for r in rules)
    assert all(r.name and r.description for r in rules)


def test_default_severities(registry):
    """Default severities per rule."""
    severities = {r.id: r.severity for r in registry.list_rules()}
    assert severities == {
        "time-overlap": Severity.MAJOR,
        "double-booking": Severity.CRITICAL,
        "location-conflict": Severity.MAJOR,
        "travel-time": Severity.MINOR,
        "family-conflict": Severity.MAJOR,
    }


def test_order_survives_updates(registry):
    """Updating a rule does not reorder the list."""
    before = [r.id for r in registry.list_rules()]
    registry.update_rule("double-booking", {"enabled": False})
    assert [r.id for r in registry.list_rules()] == before


def test_toggle_rule(registry):
    """Disabling a rule shows in get_rule, list_rules and snapshot."""
    updated = registry.update_rule("travel-time", {"enabled": False})

    assert updated.enabled is False
    assert registry.get_rule("travel-time").enabled is False
    assert registry.snapshot()[ConflictType.TRAVEL_TIME].enabled is False


def test_change_severity_from_string(registry):
    """Severity accepts its string value."""
    updated = registry.update_rule("travel-time", {"severity": "critical"})
    assert updated.severity == Severity.CRITICAL
    assert updated.type == ConflictType.TRAVEL_TIME


def test_update_with_model(registry):
    """A RuleUpdate model applies only the fields it sets."""
    updated = registry.update_rule("family-conflict", RuleUpdate(severity=Severity.MINOR))
    assert updated.severity == Severity.MINOR
    assert updated.enabled is True


def test_unknown_rule(registry):
    """Unknown ids raise RuleNotFoundError, which is a KeyError."""
    with pytest.raises(RuleNotFoundError) as exc_info:
        registry.update_rule("no-such-rule", {"enabled": False})
    assert exc_info.value.rule_id == "no-such-rule"

    with pytest.raises(KeyError):
        registry.get_rule("no-such-rule")


def test_rule_type_cannot_change(registry):
    """Changing the type is refused and nothing else in the update applies."""
    with pytest.raises(InvalidRuleUpdateError):
        registry.update_rule("time-overlap", {"type": "travel_time", "enabled": False})

    rule = registry.get_rule("time-overlap")
    assert rule.type == ConflictType.TIME_OVERLAP
    assert rule.enabled is True


def test_echoing_the_current_type_is_allowed(registry):
    """The unchanged type can be sent back with a toggle."""
    updated = registry.update_rule("time-overlap", {"type": "time_overlap", "enabled": False})
    assert updated.enabled is False


@pytest.mark.parametrize("updates", [{"id": "renamed"}, {"name": "Renamed"}, {"colour": "red"}])
def test_other_fields_are_immutable(registry, updates):
    """Id, name and unknown fields cannot be set."""
    with pytest.raises(InvalidRuleUpdateError):
        registry.update_rule("time-overlap", updates)


def test_invalid_value_applies_nothing(registry):
    """A bad value rejects the whole update."""
    with pytest.raises(InvalidRuleUpdateError):
        registry.update_rule("time-overlap", {"enabled": False, "severity": "extreme"})

    rule = registry.get_rule("time-overlap")
    assert rule.enabled is True
    assert rule.severity == Severity.MAJOR


def test_snapshot_is_isolated_from_later_updates(registry):
    """A snapshot does not see later updates."""
    snapshot = registry.snapshot()

    registry.update_rule("time-overlap", {"enabled": False})

    assert snapshot[ConflictType.TIME_OVERLAP].enabled is True
    assert registry.snapshot()[ConflictType.TIME_OVERLAP].enabled is False


def test_reset_restores_defaults(registry):
    """reset puts every rule back to its default."""
    registry.update_rule("time-overlap", {"enabled": False, "severity": "minor"})
    registry.reset()
    rule = registry.get_rule("time-overlap")
    assert rule.enabled is True
    assert rule.severity == Severity.MAJOR


def test_concurrent_updates_are_not_lost(registry):
    """Updates from several threads leave every rule valid."""
    severities = [Severity.MINOR, Severity.MAJOR, Severity.CRITICAL]

    def worker(i: int) -> None:
        for _ in range(50):
            registry.update_rule("travel-time", {"severity": severities[i % 3]})
            registry.update_rule("family-conflict", {"enabled": i % 2 == 0})

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    rules = registry.list_rules()
    assert len(rules) == 5
    assert registry.get_rule("travel-time").type == ConflictType.TRAVEL_TIME
