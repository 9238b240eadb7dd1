"""
Timeline layout for one staff member's day.

Vertical placement is a linear function of time. Horizontal placement
comes from overlap clustering and greedy column packing:

1. Sort tasks by start.
2. Group them into clusters of transitively overlapping tasks.
3. Inside a cluster, put each task in the first column whose last task
   has ended; open a new column otherwise.
4. Tasks with (near-)identical times share the row in equal slices.
   Everything else cascades: indent grows with the column, capped.

Pure computation; safe to run for several staff members in parallel.
"""

import logging
from dataclasses import dataclass
from datetime import time

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_START_HOUR = 1
DEFAULT_PX_PER_HOUR = 80
DEFAULT_MIN_HEIGHT = 26

# Times within this many minutes count as the same slot
DUPLICATE_TOLERANCE_MINUTES = 2

INDENT_STEP_PCT = 12
MAX_INDENT_PCT = 60


@dataclass(frozen=True)
class TaskPlacement:
    task_id: int
    top: float
    height: float
    left_pct: float
    width_pct: float
    z_index: int
    column: int = 0
    cluster: int = 0

    def as_dict(self):
        return {
            'task_id': self.task_id,
            'top': self.top,
            'height': self.height,
            'left_pct': self.left_pct,
            'width_pct': self.width_pct,
            'z_index': self.z_index,
        }


@dataclass(eq=False)
class _Slot:
    task_id: int
    start: int
    end: int
    column: int = 0

    @property
    def effective_end(self):
        # Inverted times still occupy their start minute
        return max(self.start, self.end)


def _minutes(value):
    """Minutes since midnight for a datetime.time or "HH:MM[:SS]" string."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        raise ValueError(f'not a time: {value!r}')
    parts = value.strip().split(':')
    if len(parts) < 2:
        raise ValueError(f'not a time: {value!r}')
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 24 and 0 <= minute < 60):
        raise ValueError(f'time out of range: {value!r}')
    return hour * 60 + minute


def _engine_setting(name, default):
    return getattr(settings, 'WORKTIMELINE', {}).get(name, default)


def _cluster(slots):
    clusters = []
    current = []
    cluster_end = None
    # Clustering uses real minutes, not rendered height: zero-length tasks
    # at the same minute land in separate clusters and render on top of each other
    for slot in slots:
        if current and slot.start < cluster_end:
            current.append(slot)
            cluster_end = max(cluster_end, slot.effective_end)
        else:
            current = [slot]
            clusters.append(current)
            cluster_end = slot.effective_end
    return clusters


def _pack_columns(cluster):
    """Greedy interval partitioning; assigns slot.column in place."""
    column_ends = []
    for slot in cluster:
        for index, last_end in enumerate(column_ends):
            if slot.start >= last_end:
                slot.column = index
                column_ends[index] = slot.effective_end
                break
        else:
            slot.column = len(column_ends)
            column_ends.append(slot.effective_end)
    return len(column_ends)


def _is_duplicate(a, b):
    return (abs(a.start - b.start) < DUPLICATE_TOLERANCE_MINUTES
            and abs(a.end - b.end) < DUPLICATE_TOLERANCE_MINUTES)


def compute_day_layout(tasks, start_hour=None, px_per_hour=None, min_height=None):
    """
    Compute timeline placements for one staff member's tasks on one day.

    Args:
        tasks: Objects with id, start_time and end_time (Task instances or
            anything shaped like them); times may be datetime.time or
            "HH:MM[:SS]" strings
        start_hour: Hour rendered at offset 0 (WORKTIMELINE TIMELINE_START_HOUR)
        px_per_hour: Vertical scale (WORKTIMELINE TIMELINE_PX_PER_HOUR)
        min_height: Smallest rendered height (WORKTIMELINE TIMELINE_MIN_HEIGHT)

    Returns:
        List of TaskPlacement ordered by start time. Tasks with missing or
        malformed times are left out.
    """
    if start_hour is None:
        start_hour = _engine_setting('TIMELINE_START_HOUR', DEFAULT_START_HOUR)
    if px_per_hour is None:
        px_per_hour = _engine_setting('TIMELINE_PX_PER_HOUR', DEFAULT_PX_PER_HOUR)
    if min_height is None:
        min_height = _engine_setting('TIMELINE_MIN_HEIGHT', DEFAULT_MIN_HEIGHT)

    origin = start_hour * 60
    slots = []
    for task in tasks:
        task_id = getattr(task, 'pk', None) or getattr(task, 'id', None)
        try:
            start = _minutes(task.start_time) - origin
            end = _minutes(task.end_time) - origin
        except (AttributeError, TypeError, ValueError):
            logger.warning("Task %s left out of timeline: malformed start/end time", task_id)
            continue
        slots.append(_Slot(task_id=task_id, start=start, end=end))

    # Stable: equal starts keep input order
    slots.sort(key=lambda s: s.start)

    placements = []
    for cluster_index, cluster in enumerate(_cluster(slots)):
        _pack_columns(cluster)
        for slot in cluster:
            top = slot.start / 60 * px_per_hour
            height = max(min_height, (slot.end - slot.start) / 60 * px_per_hour)

            group = [other for other in cluster if _is_duplicate(slot, other)]
            if len(group) > 1:
                group.sort(key=lambda s: s.task_id or 0)
                position = group.index(slot)
                width = 100 / len(group)
                left = position * width
                z_index = 30 + position
            else:
                left = min(slot.column * INDENT_STEP_PCT, MAX_INDENT_PCT)
                width = 100 - left
                z_index = 20 + slot.column

            placements.append(TaskPlacement(
                task_id=slot.task_id,
                top=top,
                height=height,
                left_pct=left,
                width_pct=width,
                z_index=z_index,
                column=slot.column,
                cluster=cluster_index,
            ))
    return placements
