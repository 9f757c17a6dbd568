"""Exception types raised by the work tracker engine."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for engine errors. None of these leave state half-updated."""


class ValidationError(TrackerError, ValueError):
    """An hour value could not be parsed, was not finite, or was negative.

    Raised by ``ledger.validate_hours`` and recovered inside ``set_hours`` by
    storing 0; callers of the public ledger API never see it.
    """


class DuplicateTaskError(TrackerError):
    """The task name already exists in the category."""

    def __init__(self, category: str, name: str) -> None:
        super().__init__(f"Task already exists in {category}: {name}")
        self.category = category
        self.name = name


class FormatError(TrackerError, ValueError):
    """An import payload or persisted record is structurally invalid."""
