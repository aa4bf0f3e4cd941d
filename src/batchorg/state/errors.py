"""Errors raised while reading or writing persisted batch history."""


class StateError(Exception):
    """Base exception for state repository operations."""


class MissingStateError(StateError):
    """Raised when no batch history has been recorded yet."""
