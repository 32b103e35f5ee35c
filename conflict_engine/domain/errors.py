"""Exceptions raised by the conflict engine."""

from __future__ import annotations


class ConflictEngineError(Exception):
    """Base exception for conflict engine operations."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidEventError(ConflictEngineError, ValueError):
    """An event cannot be placed on the timeline.

    Causes:
    - duration is zero or negative
    - date/time cannot be parsed into a single start instant
    """

    def __init__(self, message: str, event_id: str | None = None) -> None:
        super().__init__(message)
        self.event_id = event_id


class RuleNotFoundError(ConflictEngineError, KeyError):
    """No conflict rule is registered under the given id."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Conflict rule not found: {rule_id}")
        self.rule_id = rule_id


class InvalidRuleUpdateError(ConflictEngineError, ValueError):
    """A rule update touched an immutable field or carried an invalid value."""
