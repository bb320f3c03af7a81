import csv
import os
from datetime import datetime
from typing import Optional, Sequence

from . import config
from .models import DayRecord, Tag

CSV_HEADER = ["title", "description", "tag", "start", "end", "seconds"]


def export_day_csv(day: DayRecord, tags: Sequence[Tag], now: datetime,
                   out_path: Optional[str] = None) -> str:
    """Write one row per task of ``day``; a running task has an empty end."""
    if out_path is None:
        out_path = os.path.join(config.EXPORT_DIR, f"timeline_{day.date}.csv")
    names = {t.id: t.name for t in tags}
    with open(out_path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for task in day.tasks:
            writer.writerow([
                task.title,
                task.description,
                names.get(task.tag_id, ""),
                task.start_time.isoformat(),
                task.end_time.isoformat() if task.end_time else "",
                int(task.duration(now)),
            ])
    return out_path
