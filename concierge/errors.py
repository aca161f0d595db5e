"""Exception hierarchy shared by the tracking engine."""

from __future__ import annotations


class ConciergeError(Exception):
    """Base class for all engine errors."""


class DataCorruptionError(ConciergeError):
    """A persisted value could not be parsed."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Persisted value for {key!r} is corrupt: {reason}")
        self.key = key
        self.reason = reason


class InvalidOperationError(ConciergeError):
    """A user action that cannot be performed in the current state."""


class EmptyListError(InvalidOperationError):
    """The shopping list has no entries."""


class SessionInvalidError(ConciergeError):
    """The client-side session failed validation and was cleared."""


class EnvironmentUnavailableError(ConciergeError):
    """A platform capability (native share, clipboard) is not available."""
