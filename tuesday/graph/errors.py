"""
Exception classes for the tuesday node graph.

All exceptions carry a human-readable message plus JSON-serializable
context so they can be printed by the CLI or dumped as JSON.
"""

from typing import Dict, Any


class TuesdayError(Exception):
    """Base exception for all tuesday errors."""

    def __init__(self, message: str, **context):
        """
        Initialize error with message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context for debugging (must be JSON-serializable)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to JSON-serializable dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context
        }


class NotFoundError(TuesdayError):
    """Identifier resolves to no live node under any interpretation."""
    pass


class InvalidIdentifierError(TuesdayError):
    """Malformed date expression, or a token that is neither numeric nor an alias."""
    pass


class DuplicateAliasError(TuesdayError):
    """Alias already bound to a different live node."""
    pass


class DuplicateDateError(TuesdayError):
    """A date node already exists for the calendar date."""
    pass


class InvalidEdgeError(TuesdayError):
    """Self-link, duplicate parallel edge, or unlinking an edge that does not exist."""
    pass


class EmptySelectionError(TuesdayError):
    """Raffle found no eligible children."""
    pass


class PersistenceError(TuesdayError):
    """Graph or blueprint file could not be read or written."""
    pass


class CorruptionError(PersistenceError):
    """Stored data failed checksum or structural validation."""
    pass


class BlueprintError(TuesdayError):
    """Blueprint missing, already present, or used with a forbidden command."""
    pass


class ConfigError(TuesdayError):
    """Configuration file is unreadable or holds invalid values."""
    pass
