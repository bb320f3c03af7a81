"""Turn a day's timestamps into proportional block heights.

Everything here is a pure function of ``(task, day, now)``: the caller owns
the clock and re-evaluates on each render tick while the day is open.
"""
from datetime import datetime
from typing import Dict, List

from .models import DayRecord, Task

# smallest share a block may take so that short tasks stay clickable
MIN_VISIBLE_FRACTION = 0.05


def day_span(day: DayRecord, now: datetime) -> float:
    """Seconds from day start to its end, or to ``now`` while it is open."""
    end = day.day_end_time if day.day_end_time is not None else now
    return (end - day.day_start_time).total_seconds()


def project_height(task: Task, day: DayRecord, now: datetime,
                   minimum: float = MIN_VISIBLE_FRACTION) -> float:
    """Share of the day's height given to ``task``, within ``[minimum, 1.0]``."""
    total = day_span(day, now)
    if total <= 0:
        return minimum
    fraction = task.duration(now) / total
    return min(1.0, max(minimum, fraction))


def timesteps(day: DayRecord, now: datetime) -> List[datetime]:
    """Boundary times printed between blocks, top to bottom.

    The first task's start, then each task's end; the running task ends at
    ``now``.
    """
    if not day.tasks:
        return []
    steps = [day.tasks[0].start_time]
    for task in day.tasks:
        steps.append(task.end_time if task.end_time is not None else now)
    return steps


def tag_breakdown(day: DayRecord, now: datetime) -> Dict[str, float]:
    """Seconds per tag id, in order of first use."""
    totals: Dict[str, float] = {}
    for task in day.tasks:
        totals[task.tag_id] = totals.get(task.tag_id, 0.0) + max(0.0, task.duration(now))
    return totals
