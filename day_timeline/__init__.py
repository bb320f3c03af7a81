"""Personal day-timeline tracker.

The core (models, storage, tag registry, state machine, projector) has no
GUI dependency; the Kivy front end lives in :mod:`day_timeline.app`.
"""
from .errors import InvalidStateError, StorageError, TimelineError, ValidationError
from .models import DayRecord, Tag, Task
from .projector import MIN_VISIBLE_FRACTION, project_height, tag_breakdown, timesteps
from .storage import JsonFileStore, MemoryStore, PersistenceGateway
from .tags import TagRegistry
from .timeline import DayPhase, DayState, DayTimelineStateMachine

__version__ = "1.0.0"

__all__ = [
    "DayPhase", "DayRecord", "DayState", "DayTimelineStateMachine", "InvalidStateError",
    "JsonFileStore", "MIN_VISIBLE_FRACTION", "MemoryStore", "PersistenceGateway",
    "StorageError", "Tag", "TagRegistry", "Task", "TimelineError", "ValidationError",
    "project_height", "tag_breakdown", "timesteps",
]
