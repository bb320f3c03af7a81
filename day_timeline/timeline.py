"""Lifecycle of the active day.

The machine is either without a day or holding one open ``DayRecord``.
Every mutation goes through one of its public operations, which keep two
rules intact: the store holds at most one open day, and that day holds at
most one open task (always the last one). A new task starts at exactly the
instant the previous one ends.

Persistence is best effort. When the store fails, the error is logged and
handed to ``on_storage_error`` while the in-memory day stays authoritative
for the running session.

Not thread-safe; the owning event loop must be the only caller.
"""
import enum
import logging
from datetime import datetime
from typing import Callable, Optional

from .errors import InvalidStateError, StorageError, ValidationError
from .models import DayRecord, Task
from .storage import PersistenceGateway
from .utils import date_key, log_error, new_id

logger = logging.getLogger(__name__)


class DayState(enum.Enum):
    NO_ACTIVE_DAY = "no_active_day"
    DAY_OPEN = "day_open"


class DayPhase(enum.Enum):
    NO_DAY = "no_day"
    NO_TASKS = "no_tasks"
    MID_TASK = "mid_task"


class DayTimelineStateMachine:
    def __init__(self, store: PersistenceGateway,
                 now: Callable[[], datetime] = datetime.now,
                 on_storage_error: Optional[Callable[[StorageError], None]] = None):
        self.store = store
        self.now = now
        self.on_storage_error = on_storage_error
        self.state = DayState.NO_ACTIVE_DAY
        self.day: Optional[DayRecord] = None
        self.current_task_index: Optional[int] = None
        self._subscribed_key: Optional[str] = None

    # -------------------- cold start --------------------
    def resume(self) -> DayState:
        """Pick up a day left open by an earlier session, if any."""
        try:
            day = None
            if self.store.supports("find_open_day"):
                day = self.store.find_open_day()
            if day is None:
                day = self.store.load_day(date_key(self.now()))
        except StorageError as e:
            self._report(e)
            day = None
        if day is not None and day.is_open:
            self._enter(day)
            logger.info("resumed day %s with %d tasks", day.date, len(day.tasks))
        else:
            self._leave()
        return self.state

    def attach(self) -> bool:
        """Follow pushed changes of the active date when the store offers them."""
        if not self.store.supports("subscribe_day"):
            return False
        key = self.day.date if self.day is not None else date_key(self.now())
        if key == self._subscribed_key:
            return True
        if self._subscribed_key is not None and self.store.supports("unsubscribe_day"):
            self.store.unsubscribe_day(self._subscribed_key, self._on_pushed_day)
        self.store.subscribe_day(key, self._on_pushed_day)
        self._subscribed_key = key
        return True

    def _on_pushed_day(self, day: Optional[DayRecord]) -> None:
        # our own saves echo back unchanged
        if day is None or day == self.day:
            return
        if day.date != self._subscribed_key:
            return
        if day.is_open:
            self._enter(day)
        elif self.day is not None and self.day.date == day.date:
            self._leave()

    # -------------------- day transitions --------------------
    def start_day(self) -> DayRecord:
        if self.state is DayState.DAY_OPEN:
            raise InvalidStateError(f"day {self.day.date} is already open")
        now = self.now()
        key = date_key(now)
        try:
            earlier = self.store.load_day(key)
        except StorageError as e:
            self._report(e)
            earlier = None
        if earlier is not None:
            # same date ended earlier: reopen it so its tasks are kept
            earlier.day_end_time = None
            day = earlier
            logger.info("reopened day %s with %d tasks", day.date, len(day.tasks))
        else:
            day = DayRecord(date=key, day_start_time=now)
            logger.info("started day %s", day.date)
        self._enter(day)
        self._persist()
        return day

    def end_day(self) -> DayRecord:
        if self.state is not DayState.DAY_OPEN:
            raise InvalidStateError("no day is open")
        day = self.day
        now = self.now()
        day.day_end_time = now
        for task in day.tasks:
            if task.end_time is None:
                task.end_time = now
        logger.info("ended day %s after %d tasks", day.date, len(day.tasks))
        self._persist()
        self._leave()
        return day

    # -------------------- tasks --------------------
    def submit_task(self, title: str, description: str, tag_id: Optional[str],
                    editing_task_id: Optional[str] = None) -> Task:
        """Start a new task, or edit one of today's when ``editing_task_id`` matches."""
        if self.state is not DayState.DAY_OPEN:
            raise ValidationError("start the day before logging tasks")
        if not tag_id:
            raise ValidationError("select a tag")
        title = title or ""
        description = description or ""

        task = self.day.find_task(editing_task_id)
        if task is not None:
            task.title = title
            task.description = description
            task.tag_id = tag_id
        else:
            task = self._close_then_append(title, description, tag_id)
        self._persist()
        return task

    def _close_then_append(self, title: str, description: str, tag_id: str) -> Task:
        now = self.now()
        current = self.current_task()
        if current is not None:
            current.end_time = now
        task = Task(id=new_id(), title=title, description=description,
                    tag_id=tag_id, start_time=now)
        self.day.tasks.append(task)
        self.current_task_index = len(self.day.tasks) - 1
        logger.info("started task %r at %s", title, now.isoformat())
        return task

    def current_task(self) -> Optional[Task]:
        if self.day is None or self.current_task_index is None:
            return None
        task = self.day.tasks[self.current_task_index]
        return task if task.is_open else None

    @property
    def phase(self) -> DayPhase:
        if self.state is not DayState.DAY_OPEN:
            return DayPhase.NO_DAY
        if self.current_task() is None:
            return DayPhase.NO_TASKS
        return DayPhase.MID_TASK

    def dialog_title(self, editing_task_id: Optional[str] = None) -> str:
        if self.day is not None and self.day.find_task(editing_task_id) is not None:
            return "Edit Task"
        if self.phase is DayPhase.MID_TASK:
            return "Start New Task"
        return "Start First Task"

    # -------------------- internals --------------------
    def _enter(self, day: DayRecord) -> None:
        self.day = day
        self.state = DayState.DAY_OPEN
        if day.tasks and day.tasks[-1].is_open:
            self.current_task_index = len(day.tasks) - 1
        else:
            self.current_task_index = None

    def _leave(self) -> None:
        self.day = None
        self.state = DayState.NO_ACTIVE_DAY
        self.current_task_index = None

    def _persist(self) -> None:
        try:
            self.store.save_day(self.day)
        except StorageError as e:
            self._report(e)

    def _report(self, e: StorageError) -> None:
        log_error(e, "day storage failed")
        if self.on_storage_error is not None:
            self.on_storage_error(e)
