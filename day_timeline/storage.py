"""Persistence for day records and the tag registry.

Both stores keep the layout of the original browser storage: one entry per
calendar day keyed by ``YYYY-MM-DD`` plus a single ``tags`` entry holding the
whole registry.
"""
import copy
import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from . import config
from .errors import StorageError
from .models import DayRecord, Tag
from .utils import is_date_key, log_error

logger = logging.getLogger(__name__)

TAGS_KEY = "tags"

DayCallback = Callable[[Optional[DayRecord]], None]
TagsCallback = Callable[[List[Tag]], None]


class PersistenceGateway(ABC):
    """Load/save contract the timeline core relies on.

    Backends may additionally provide ``subscribe_day(date_key, callback)``,
    ``unsubscribe_day(date_key, callback)``, ``subscribe_tags(callback)`` and
    ``find_open_day()``; callers check with :meth:`supports` and fall back
    to loading on start when they are absent.
    """

    @abstractmethod
    def save_day(self, day: DayRecord) -> None: ...

    @abstractmethod
    def load_day(self, date_key: str) -> Optional[DayRecord]: ...

    @abstractmethod
    def save_tags(self, tags: Sequence[Tag]) -> None: ...

    @abstractmethod
    def load_tags(self) -> List[Tag]: ...

    def supports(self, capability: str) -> bool:
        return callable(getattr(self, capability, None))


def _tags_from_raw(raw: Any) -> List[Tag]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise StorageError("tags entry is not a list")
    return [Tag.from_dict(t) for t in raw]


def _latest_open_day(data: Dict[str, Any]) -> Optional[DayRecord]:
    for key in sorted((k for k in data if is_date_key(k)), reverse=True):
        try:
            day = DayRecord.from_dict(data[key])
        except StorageError as e:
            log_error(e, f"skipping unreadable day {key}")
            continue
        if day.is_open:
            return day
    return None


# ---------------- JSON file ----------------
class JsonFileStore(PersistenceGateway):
    """Single JSON document on disk, rewritten on every save."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or config.DATA_FILE

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("data root is not a dict")
            return data
        except ValueError as e:
            # corrupt file: keep a copy aside and start over
            backup_name = f"{self.path}.backup.{int(datetime.now().timestamp())}"
            try:
                os.rename(self.path, backup_name)
            except OSError as rename_error:
                raise StorageError(f"cannot move corrupt {self.path} aside") from rename_error
            log_error(e, f"corrupt data file moved to {backup_name}")
            return {}
        except OSError as e:
            raise StorageError(f"cannot read {self.path}") from e

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise StorageError(f"cannot write {self.path}") from e

    def save_day(self, day: DayRecord) -> None:
        data = self._load()
        data[day.date] = day.to_dict()
        self._save(data)
        logger.debug("saved day %s (%d tasks)", day.date, len(day.tasks))

    def load_day(self, date_key: str) -> Optional[DayRecord]:
        raw = self._load().get(date_key)
        if raw is None:
            return None
        return DayRecord.from_dict(raw)

    def save_tags(self, tags: Sequence[Tag]) -> None:
        data = self._load()
        data[TAGS_KEY] = [t.to_dict() for t in tags]
        self._save(data)

    def load_tags(self) -> List[Tag]:
        return _tags_from_raw(self._load().get(TAGS_KEY))

    def find_open_day(self) -> Optional[DayRecord]:
        return _latest_open_day(self._load())


# ---------------- In memory ----------------
class MemoryStore(PersistenceGateway):
    """Dict-backed store with synchronous change notifications.

    Records are kept in their serialised form so callers never share
    mutable objects with the store.
    """

    def __init__(self):
        self.data: Dict[str, Any] = {}
        self._day_listeners: Dict[str, List[DayCallback]] = {}
        self._tag_listeners: List[TagsCallback] = []

    def save_day(self, day: DayRecord) -> None:
        self.data[day.date] = day.to_dict()
        for callback in list(self._day_listeners.get(day.date, [])):
            callback(self.load_day(day.date))

    def load_day(self, date_key: str) -> Optional[DayRecord]:
        raw = self.data.get(date_key)
        if raw is None:
            return None
        return DayRecord.from_dict(copy.deepcopy(raw))

    def save_tags(self, tags: Sequence[Tag]) -> None:
        self.data[TAGS_KEY] = [t.to_dict() for t in tags]
        for callback in list(self._tag_listeners):
            callback(self.load_tags())

    def load_tags(self) -> List[Tag]:
        return _tags_from_raw(self.data.get(TAGS_KEY))

    def find_open_day(self) -> Optional[DayRecord]:
        return _latest_open_day(self.data)

    def subscribe_day(self, date_key: str, callback: DayCallback) -> None:
        self._day_listeners.setdefault(date_key, []).append(callback)

    def unsubscribe_day(self, date_key: str, callback: DayCallback) -> None:
        listeners = self._day_listeners.get(date_key, [])
        if callback in listeners:
            listeners.remove(callback)
        if not listeners:
            self._day_listeners.pop(date_key, None)

    def subscribe_tags(self, callback: TagsCallback) -> None:
        self._tag_listeners.append(callback)
