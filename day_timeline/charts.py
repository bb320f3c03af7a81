"""
Day charts rendered with matplotlib (Agg) to PNG files.

The timeline chart is a single vertical bar split into one block per task,
sized the same way as the on-screen timeline. The pie shows time per tag.
"""
import os
from datetime import datetime
from typing import Dict, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from . import config
from .models import DayRecord, Tag
from .projector import project_height, tag_breakdown
from .utils import format_seconds, format_time

UNTAGGED_COLOR = "#000000"


def _tag_lookup(tags: Sequence[Tag]) -> Dict[str, Tag]:
    return {t.id: t for t in tags}


def default_chart_path(day: DayRecord, kind: str) -> str:
    os.makedirs(config.CHARTS_DIR, exist_ok=True)
    return os.path.join(config.CHARTS_DIR, f"{kind}_{day.date}.png")


def generate_day_timeline_chart(day: DayRecord, tags: Sequence[Tag], now: datetime, out_path: str) -> str:
    """
    Draw the day top to bottom as stacked blocks coloured by tag.
    Block heights are the projected fractions, rescaled to fill the bar.
    """
    lookup = _tag_lookup(tags)
    heights = [project_height(task, day, now) for task in day.tasks]
    scale = sum(heights) or 1.0

    fig, ax = plt.subplots(figsize=(3.2, 8.0), dpi=120)
    fig.patch.set_facecolor('white')
    top = 1.0
    for task, h in zip(day.tasks, heights):
        share = h / scale
        tag = lookup.get(task.tag_id)
        ax.bar(0, share, bottom=top - share, width=0.8,
               color=tag.color if tag else UNTAGGED_COLOR, edgecolor='white', linewidth=0.8)
        ax.text(0, top - share / 2, task.title or "(untitled)", ha='center', va='center',
                color='white', fontsize=8, fontweight='bold')
        ax.text(0.45, top, format_time(task.start_time), ha='left', va='center', fontsize=6)
        top -= share
    if day.tasks:
        last = day.tasks[-1]
        ax.text(0.45, top, format_time(last.end_time or now), ha='left', va='center', fontsize=6)
    ax.set_xlim(-0.5, 1.0)
    ax.set_ylim(0, 1.0)
    ax.axis('off')
    ax.set_title(day.date, fontsize=10)
    plt.tight_layout()
    fig.savefig(out_path, bbox_inches='tight', facecolor=fig.get_facecolor())
    plt.close(fig)
    return out_path


def generate_tag_pie_chart(day: DayRecord, tags: Sequence[Tag], now: datetime, out_path: str) -> str:
    lookup = _tag_lookup(tags)
    totals = {tid: sec for tid, sec in tag_breakdown(day, now).items() if sec > 0}
    labels, sizes, colors = [], [], []
    for tag_id, sec in totals.items():
        tag = lookup.get(tag_id)
        labels.append(f"{tag.name if tag else '?'} ({format_seconds(int(sec))})")
        sizes.append(sec)
        colors.append(tag.color if tag else UNTAGGED_COLOR)
    # nothing recorded yet: draw an empty ring instead of failing
    if not sizes:
        labels, sizes, colors = ["no time yet"], [1], ['#dddddd']

    fig, ax = plt.subplots(figsize=(3.0, 3.0), dpi=120)
    fig.patch.set_facecolor('white')
    ax.pie(sizes, labels=None, colors=colors, startangle=90, wedgeprops={'linewidth': 0.5, 'edgecolor': 'white'})
    ax.axis('equal')
    ax.legend(labels, loc='lower center', bbox_to_anchor=(0.5, -0.12), ncol=1, fontsize=7)
    plt.tight_layout()
    fig.savefig(out_path, bbox_inches='tight', facecolor=fig.get_facecolor())
    plt.close(fig)
    return out_path
