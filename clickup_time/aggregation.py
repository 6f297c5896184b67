"""
Time Aggregation Engine

Turns a raw ClickUp time report (per-user, per-task totals) into grouped,
percentage-annotated summaries:

- task  : one group per task, straight from the report
- list  : task detail fetched per distinct task -> owning list
- space : task detail fetched per distinct task -> owning space
- day   : raw time entries fetched per distinct task -> local calendar day

Totals are always sums of per-task times; the user-level ``time`` field of
the report is ignored. Per-task fetches run concurrently, but accumulation
follows report order so the output never depends on completion order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Tuple

from clickup_time.errors import TimeTrackingError, UpstreamError
from clickup_time.time_helpers import (
    TimeRange,
    day_key,
    format_duration,
    ms_to_datetime,
    percentage,
)

logger = logging.getLogger(__name__)

GROUP_BY_OPTIONS = ("task", "list", "space", "day")


@dataclass
class TaskShare:
    id: str
    name: str
    time: int
    percentage: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "time": self.time,
            "time_formatted": format_duration(self.time),
            "percentage": self.percentage,
        }


@dataclass
class GroupSummary:
    group_key: str
    group_name: str
    time: int
    percentage: int = 0
    tasks: List[TaskShare] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "group_key": self.group_key,
            "group_name": self.group_name,
            "time": self.time,
            "time_formatted": format_duration(self.time),
            "percentage": self.percentage,
            "tasks": [t.to_dict() for t in self.tasks],
        }


def iter_report_tasks(report: Dict) -> Iterator[Tuple[str, str, int]]:
    """Yield ``(task_id, task_name, time_ms)`` for every user/task cell in report order."""
    for record in (report or {}).get("data") or []:
        for key, task in (record.get("tasks") or {}).items():
            task_id = str(task.get("id") or key)
            yield task_id, task.get("name") or task_id, int(task.get("time") or 0)


def total_time(report: Dict) -> int:
    """Sum of every per-task time in the report (user totals are not trusted)."""
    return sum(t for _, _, t in iter_report_tasks(report))


class _GroupAccumulator:
    def __init__(self, key: str, name: str):
        self.key = key
        self.name = name
        self.time = 0
        self.tasks: Dict[str, List] = {}  # task_id -> [name, time]

    def add(self, task_id: str, task_name: str, ms: int):
        self.time += ms
        slot = self.tasks.setdefault(task_id, [task_name, 0])
        slot[1] += ms


class TimeAggregationEngine:
    """
    Groups a time report by task / list / space / day.

    ``source`` is any object providing ``get_task(task_id)`` and
    ``get_time_entries(task_id=..., time_range=...)``; the ClickUp
    TimeTrackingService in production, a fake in tests.
    """

    def __init__(self, source=None, tz=None, max_workers: int = 10):
        self.source = source
        self.tz = tz
        self.max_workers = max_workers

    def aggregate(
        self, report: Dict, group_by: str, time_range: TimeRange
    ) -> List[GroupSummary]:
        mode = (group_by or "task").strip().lower()
        if mode not in GROUP_BY_OPTIONS:
            raise ValueError(
                f"Invalid group_by: {group_by!r}. Expected one of: "
                f"{', '.join(GROUP_BY_OPTIONS)}"
            )

        if mode == "task":
            groups = self._group_by_task(report)
        elif mode == "day":
            groups = self._group_by_day(report, time_range)
        else:
            groups = self._group_by_location(report, mode)

        return self._finalize(groups)

    # ------------------------------------------------------------------
    # Grouping modes
    # ------------------------------------------------------------------

    def _group_by_task(self, report: Dict) -> List[_GroupAccumulator]:
        groups: Dict[str, _GroupAccumulator] = {}
        for task_id, name, ms in iter_report_tasks(report):
            group = groups.setdefault(task_id, _GroupAccumulator(task_id, name))
            group.add(task_id, name, ms)
        return list(groups.values())

    def _group_by_location(self, report: Dict, kind: str) -> List[_GroupAccumulator]:
        cells = list(iter_report_tasks(report))
        details = self._fan_out(self._require_source().get_task, [c[0] for c in cells])

        groups: Dict[str, _GroupAccumulator] = {}
        for task_id, name, ms in cells:
            location = details[task_id].get(kind)
            if not isinstance(location, dict) or not location.get("id"):
                raise UpstreamError(
                    f"Task {task_id} detail has no {kind} information",
                    detail=details[task_id],
                )
            key = str(location["id"])
            group = groups.setdefault(
                key, _GroupAccumulator(key, location.get("name") or key)
            )
            group.add(task_id, name, ms)
        return list(groups.values())

    def _group_by_day(
        self, report: Dict, time_range: TimeRange
    ) -> List[_GroupAccumulator]:
        names: Dict[str, str] = {}
        for task_id, name, _ in iter_report_tasks(report):
            names.setdefault(task_id, name)

        source = self._require_source()
        entries = self._fan_out(
            lambda tid: source.get_time_entries(task_id=tid, time_range=time_range),
            list(names),
        )

        groups: Dict[str, _GroupAccumulator] = {}
        for task_id, task_name in names.items():
            for entry in entries[task_id] or []:
                start = int(entry.get("start") or 0)
                if not time_range.start <= start <= time_range.end:
                    continue
                ms = self._entry_duration(entry, start, time_range)
                key = day_key(start, self.tz)
                if key not in groups:
                    label = ms_to_datetime(start, self.tz).strftime("%A, %b %d, %Y")
                    groups[key] = _GroupAccumulator(key, label)
                groups[key].add(task_id, task_name, ms)
        return list(groups.values())

    @staticmethod
    def _entry_duration(entry: Dict, start: int, time_range: TimeRange) -> int:
        duration = int(entry.get("duration") or 0)
        if not entry.get("end") or duration < 0:
            # running timer: count what elapsed inside the window
            return max(0, time_range.end - start)
        return duration

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_source(self):
        if self.source is None:
            raise ValueError("This grouping needs a task-detail / time-entry source")
        return self.source

    def _fan_out(self, fetch: Callable, task_ids: List[str]) -> Dict[str, object]:
        """Run ``fetch`` once per distinct task id concurrently; first failure propagates."""
        unique = list(dict.fromkeys(task_ids))
        if not unique:
            return {}

        workers = max(1, min(self.max_workers, len(unique)))
        logger.debug("Fetching %d tasks with %d workers", len(unique), workers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {tid: executor.submit(fetch, tid) for tid in unique}
            results = {}
            for tid, future in futures.items():
                try:
                    results[tid] = future.result()
                except TimeTrackingError:
                    raise
                except Exception as e:
                    raise UpstreamError(f"Failed to fetch task {tid}: {e}") from e
        return results

    @staticmethod
    def _finalize(groups: List[_GroupAccumulator]) -> List[GroupSummary]:
        grand_total = sum(g.time for g in groups)
        summaries = []
        for g in groups:
            tasks = [
                TaskShare(id=tid, name=name, time=ms, percentage=percentage(ms, g.time))
                for tid, (name, ms) in g.tasks.items()
            ]
            tasks.sort(key=lambda t: t.time, reverse=True)
            summaries.append(
                GroupSummary(
                    group_key=g.key,
                    group_name=g.name,
                    time=g.time,
                    percentage=percentage(g.time, grand_total),
                    tasks=tasks,
                )
            )
        summaries.sort(key=lambda s: s.time, reverse=True)
        return summaries
