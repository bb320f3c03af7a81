"""Data records for a tracked day.

Stored dicts keep the key names of the original web app (``tagId``,
``startTime``, ``dayEndTime`` ...) so a day written by one front end can be
read by the other. Timestamps are ISO-8601 strings; an open end time is
stored as ``null``. Times are naive local datetimes in memory; aware
timestamps read from storage are converted to local time.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .errors import StorageError


def _parse_time(value: Any, field_name: str) -> datetime:
    if not isinstance(value, str):
        raise StorageError(f"{field_name}: expected ISO timestamp, got {value!r}")
    # the web app writes UTC with a trailing Z (toISOString)
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise StorageError(f"{field_name}: bad timestamp {value!r}") from e
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _parse_optional_time(value: Any, field_name: str) -> Optional[datetime]:
    if value is None:
        return None
    return _parse_time(value, field_name)


def _format_optional_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Tag:
    """A named, coloured label. Never changes once created."""
    id: str
    name: str
    color: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Tag":
        try:
            return cls(id=str(raw["id"]), name=str(raw["name"]), color=str(raw["color"]))
        except (KeyError, TypeError) as e:
            raise StorageError(f"malformed tag: {raw!r}") from e


@dataclass
class Task:
    """One block of the day.

    ``end_time`` is None while this is the running task of an open day.
    """
    id: str
    title: str
    description: str
    tag_id: str
    start_time: datetime
    end_time: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def duration(self, now: datetime) -> float:
        """Seconds spent so far; open tasks run until ``now``."""
        end = self.end_time if self.end_time is not None else now
        return (end - self.start_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "tagId": self.tag_id,
            "startTime": self.start_time.isoformat(),
            "endTime": _format_optional_time(self.end_time),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Task":
        if not isinstance(raw, dict) or "id" not in raw:
            raise StorageError(f"malformed task: {raw!r}")
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            tag_id=str(raw.get("tagId") or ""),
            start_time=_parse_time(raw.get("startTime"), "startTime"),
            end_time=_parse_optional_time(raw.get("endTime"), "endTime"),
        )


@dataclass
class DayRecord:
    date: str
    day_start_time: datetime
    tasks: List[Task] = field(default_factory=list)
    day_end_time: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.day_end_time is None

    def find_task(self, task_id: Optional[str]) -> Optional[Task]:
        if not task_id:
            return None
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "tasks": [t.to_dict() for t in self.tasks],
            "dayStartTime": self.day_start_time.isoformat(),
            "dayEndTime": _format_optional_time(self.day_end_time),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "DayRecord":
        if not isinstance(raw, dict) or not isinstance(raw.get("date"), str):
            raise StorageError(f"malformed day record: {raw!r}")
        # remote stores drop empty lists, so a day without tasks may lack the key
        tasks = raw.get("tasks") or []
        if not isinstance(tasks, list):
            raise StorageError(f"day {raw['date']}: tasks is not a list")
        return cls(
            date=raw["date"],
            day_start_time=_parse_time(raw.get("dayStartTime"), "dayStartTime"),
            tasks=[Task.from_dict(t) for t in tasks],
            day_end_time=_parse_optional_time(raw.get("dayEndTime"), "dayEndTime"),
        )
