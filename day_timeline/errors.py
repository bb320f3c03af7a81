"""Exceptions raised by the timeline core."""


class TimelineError(Exception):
    """Base class for every error the core raises."""


class ValidationError(TimelineError):
    """Input rejected; the initiating action had no effect."""


class InvalidStateError(TimelineError):
    """Operation not allowed in the current day state."""


class StorageError(TimelineError):
    """The persistence backend failed to load or save."""
