"""
Time Tracking Operations
========================
Request-level operations behind the MCP tools and resources:

1. get_time_tracking_report  : per-task breakdown for a period
2. get_time_tracking_summary : grouped by task | list | space | day
3. start_timer / stop_timer / get_current_timer
4. get_time_history          : most recent time entries
5. add_time_entry / delete_time_entry

Every call returns a dict with a ``status`` field. Failures carry
``status="error"`` plus ``error`` and ``error_type``; an empty period is a
success with zero totals, never an error. Starting a timer while another
runs returns ``status="not_started"`` with the running timer attached.

Report and summary output formats durations as d/h/m (``format_duration``);
timer output uses h/m/s (``format_duration_hms``).
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from clickup_time.aggregation import TimeAggregationEngine, total_time
from clickup_time.errors import TimeTrackingError, UpstreamError
from clickup_time.name_resolver import NameResolver
from clickup_time.time_helpers import (
    PERIOD_LABELS,
    format_duration,
    format_duration_hms,
    format_timestamp,
    ms_to_iso,
    parse_timestamp,
    resolve_date_range,
)
from clickup_time.time_tracking import StartTimerOptions, tag_names

logger = logging.getLogger(__name__)


def error_result(e: Exception) -> Dict:
    """Structured failure payload for any exception raised by an operation."""
    if isinstance(e, TimeTrackingError):
        result = {"status": "error", "error_type": e.error_type, "error": str(e)}
        if isinstance(e, UpstreamError) and e.status is not None:
            result["upstream_status"] = e.status
        return result
    if isinstance(e, ValueError):
        return {"status": "error", "error_type": "invalid_argument", "error": str(e)}
    logger.exception("Unexpected failure")
    return {"status": "error", "error_type": "upstream_error", "error": str(e)}


def entry_summary(entry: Dict, now_ms: Optional[int] = None) -> Dict:
    """Readable view of one ClickUp time entry (running when ``end`` is absent)."""
    task = entry.get("task") or {}
    start = int(entry.get("start") or 0)
    end = entry.get("end")
    running = not end
    duration = int(entry.get("duration") or 0)
    if (running or duration < 0) and now_ms is not None:
        duration = max(0, now_ms - start)
    return {
        "id": entry.get("id"),
        "task": {"id": task.get("id"), "name": task.get("name")},
        "start": ms_to_iso(start) if start else None,
        "end": ms_to_iso(int(end)) if end else None,
        "running": running,
        "duration_ms": max(0, duration),
        "duration": format_duration(max(0, duration)),
        "description": entry.get("description") or "",
        "billable": bool(entry.get("billable")),
        "tags": tag_names(entry),
    }


class TimeTrackingOperations:
    """
    Wires DateRangeResolver -> NameResolver -> ClickUp -> TimeAggregationEngine.

    All collaborators are injected; nothing is shared between calls except
    the service's HTTP session.
    """

    def __init__(
        self,
        service,
        tz=None,
        resolver: Optional[NameResolver] = None,
        engine: Optional[TimeAggregationEngine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.service = service
        self.tz = tz
        self.resolver = resolver or NameResolver(service)
        self.engine = engine or TimeAggregationEngine(service, tz=tz)
        self._clock = clock

    def _now(self) -> Optional[datetime]:
        return self._clock() if self._clock else None

    def _now_ms(self) -> int:
        now = self._now() or datetime.now().astimezone()
        return round(now.timestamp() * 1000)

    def _range(self, period, start_date=None, end_date=None):
        return resolve_date_range(
            period, start_date, end_date, now=self._now(), tz=self.tz
        )

    def _fmt(self, ms) -> str:
        return format_timestamp(ms, self.tz)

    # =========================================================================
    # 1. REPORT
    # =========================================================================

    def get_time_tracking_report(
        self,
        period: str = "today",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Dict:
        try:
            time_range = self._range(period, start_date, end_date)
            report = self.service.get_time_report(time_range)
            groups = self.engine.aggregate(report, "task", time_range)
            total = total_time(report)

            tasks = [
                {
                    "task_id": g.group_key,
                    "task_name": g.group_name,
                    "time": g.time,
                    "time_formatted": format_duration(g.time),
                    "percentage": g.percentage,
                }
                for g in groups
            ]

            lines = [
                f"# Time Tracking Report: {PERIOD_LABELS.get(period, period)}",
                "",
                f"**Period:** {self._fmt(time_range.start)} to {self._fmt(time_range.end)}",
                f"**Total Time Tracked:** {format_duration(total)}",
                "",
            ]
            if not tasks:
                lines.append("No time entries found for this period.")
            else:
                lines += [
                    "## Tasks Breakdown",
                    "",
                    "| Task | Time | Percentage |",
                    "|------|-----:|-----------:|",
                ]
                for t in tasks:
                    lines.append(
                        f"| {t['task_name']} | {t['time_formatted']} | {t['percentage']}% |"
                    )

            return {
                "status": "success",
                "period": period,
                "date_range": time_range.to_dict(),
                "total_time": total,
                "total_time_formatted": format_duration(total),
                "tasks": tasks,
                "formatted_output": "\n".join(lines),
            }
        except Exception as e:
            return error_result(e)

    # =========================================================================
    # 2. SUMMARY
    # =========================================================================

    def get_time_tracking_summary(
        self,
        period: str = "this_week",
        group_by: str = "task",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        task_id: Optional[str] = None,
        task_name: Optional[str] = None,
        list_name: Optional[str] = None,
    ) -> Dict:
        try:
            time_range = self._range(period, start_date, end_date)

            filters = {}
            if task_id or task_name:
                filters["task_id"] = self.resolver.resolve_task(
                    task_id, task_name, list_name
                )
            elif list_name:
                filters["list_id"] = self.resolver.resolve_list_id(list_name)

            report = self.service.get_time_report(time_range, **filters)
            groups = self.engine.aggregate(report, group_by, time_range)
            total = sum(g.time for g in groups)

            lines = [
                f"# Time Tracking Summary: {PERIOD_LABELS.get(period, period)} (by {group_by})",
                "",
                f"**Period:** {self._fmt(time_range.start)} to {self._fmt(time_range.end)}",
                f"**Total Time Tracked:** {format_duration(total)}",
                "",
            ]
            if not groups:
                lines.append("No time entries found for this period.")
            for g in groups:
                lines += [
                    f"## {g.group_name} ({format_duration(g.time)}, {g.percentage}%)",
                    "",
                    "| Task | Time | Percentage |",
                    "|------|-----:|-----------:|",
                ]
                for t in g.tasks:
                    lines.append(
                        f"| {t.name} | {format_duration(t.time)} | {t.percentage}% |"
                    )
                lines.append("")

            return {
                "status": "success",
                "period": period,
                "group_by": group_by,
                "filters": filters,
                "date_range": time_range.to_dict(),
                "total_time": total,
                "total_time_formatted": format_duration(total),
                "group_count": len(groups),
                "groups": [g.to_dict() for g in groups],
                "formatted_output": "\n".join(lines).rstrip(),
            }
        except Exception as e:
            return error_result(e)

    # =========================================================================
    # 3. TIMERS
    # =========================================================================

    def start_timer(
        self,
        task_id: Optional[str] = None,
        task_name: Optional[str] = None,
        list_name: Optional[str] = None,
        description: str = "",
        billable: bool = False,
        tags: Optional[List[str]] = None,
    ) -> Dict:
        try:
            target = self.resolver.resolve_task(task_id, task_name, list_name)

            current = self.service.get_current_timer()
            if current:
                running = entry_summary(current, self._now_ms())
                return {
                    "status": "not_started",
                    "reason": "already_running",
                    "message": (
                        f"A timer is already running on "
                        f"\"{running['task']['name']}\". Stop it before starting a new one."
                    ),
                    "requested_task_id": target,
                    "running_timer": running,
                }

            timer = self.service.start_timer(
                target,
                StartTimerOptions(
                    description=description or "",
                    billable=bool(billable),
                    tags=list(tags or []),
                ),
            )
            started = int(timer.get("start") or self._now_ms())
            task_label = (timer.get("task") or {}).get("name") or task_name or target
            return {
                "status": "success",
                "message": "Timer started",
                "task_id": target,
                "task_name": task_label,
                "started_at": ms_to_iso(started),
                "description": description or "",
                "billable": bool(billable),
                "tags": tag_names(timer) or list(tags or []),
                "formatted_output": f"Timer started on **{task_label}** at {self._fmt(started)}",
            }
        except Exception as e:
            return error_result(e)

    def stop_timer(self) -> Dict:
        try:
            stopped = self.service.stop_timer()
            if not stopped:
                return {"status": "no_timer", "message": "No timer was running"}

            start = int(stopped.get("start") or 0)
            end = int(stopped.get("end") or self._now_ms())
            duration = max(0, end - start)
            task = stopped.get("task") or {}
            return {
                "status": "success",
                "message": "Timer stopped",
                "task": {
                    "id": task.get("id"),
                    "name": task.get("name"),
                    "url": task.get("url"),
                },
                "duration": format_duration_hms(duration),
                "duration_ms": duration,
                "started_at": ms_to_iso(start),
                "ended_at": ms_to_iso(end),
                "description": stopped.get("description") or "",
                "formatted_output": (
                    f"Timer stopped on **{task.get('name')}** after "
                    f"{format_duration_hms(duration)}"
                ),
            }
        except Exception as e:
            return error_result(e)

    def get_current_timer(self) -> Dict:
        try:
            current = self.service.get_current_timer()
            if not current:
                return {"status": "no_timer", "message": "No timer running"}

            start = int(current.get("start") or 0)
            elapsed = max(0, self._now_ms() - start)
            task = current.get("task") or {}
            return {
                "status": "success",
                "running": True,
                "task": {"id": task.get("id"), "name": task.get("name")},
                "started": ms_to_iso(start),
                "running_for": format_duration_hms(elapsed),
                "running_for_ms": elapsed,
                "description": current.get("description") or "",
                "billable": bool(current.get("billable")),
                "tags": tag_names(current),
                "formatted_output": self._timer_text(current),
            }
        except Exception as e:
            return error_result(e)

    # =========================================================================
    # 4. HISTORY
    # =========================================================================

    def get_time_history(self, count: int = 10) -> Dict:
        try:
            count = int(count)
            if count < 1:
                raise ValueError("count must be a positive integer")
            entries = self.service.get_time_entries()
            entries = sorted(
                entries, key=lambda e: int(e.get("start") or 0), reverse=True
            )[:count]
            now_ms = self._now_ms()
            formatted = [entry_summary(e, now_ms) for e in entries]
            return {
                "status": "success",
                "total": len(formatted),
                "entries": formatted,
                "formatted_output": self._history_text(formatted),
            }
        except Exception as e:
            return error_result(e)

    # =========================================================================
    # 5. MANUAL ENTRIES
    # =========================================================================

    def add_time_entry(
        self,
        start: str,
        duration_minutes: Optional[float] = None,
        task_id: Optional[str] = None,
        task_name: Optional[str] = None,
        list_name: Optional[str] = None,
        description: str = "",
        billable: bool = False,
        tags: Optional[List[str]] = None,
        duration_ms: Optional[int] = None,
    ) -> Dict:
        try:
            start_ms = parse_timestamp(start, self.tz)
            if duration_ms is None:
                if duration_minutes is None:
                    raise ValueError("Either duration_minutes or duration_ms is required")
                duration_ms = round(float(duration_minutes) * 60_000)
            duration_ms = int(duration_ms)
            if duration_ms <= 0:
                raise ValueError("Duration must be greater than zero")

            target = self.resolver.resolve_task(task_id, task_name, list_name)
            entry = self.service.add_time_entry(
                target,
                start_ms,
                duration_ms,
                StartTimerOptions(
                    description=description or "",
                    billable=bool(billable),
                    tags=list(tags or []),
                ),
            )
            return {
                "status": "success",
                "message": "Time entry added",
                "entry_id": entry.get("id"),
                "task_id": target,
                "start": ms_to_iso(start_ms),
                "end": ms_to_iso(start_ms + duration_ms),
                "duration_ms": duration_ms,
                "duration": format_duration(duration_ms),
                "description": description or "",
                "billable": bool(billable),
                "tags": list(dict.fromkeys(tags or [])),
                "formatted_output": (
                    f"Added {format_duration(duration_ms)} to task {target} "
                    f"starting {self._fmt(start_ms)}"
                ),
            }
        except Exception as e:
            return error_result(e)

    def delete_time_entry(self, entry_id: str) -> Dict:
        try:
            if not entry_id:
                raise ValueError("entry_id is required")
            self.service.delete_time_entry(entry_id)
            return {
                "status": "success",
                "message": "Time entry deleted",
                "entry_id": entry_id,
                "formatted_output": f"Time entry {entry_id} deleted",
            }
        except Exception as e:
            return error_result(e)

    # =========================================================================
    # MARKDOWN VIEWS (resources)
    # =========================================================================

    def report_markdown(self, period: str) -> str:
        result = self.get_time_tracking_report(period)
        if result["status"] != "success":
            return f"Error generating time tracking report: {result['error']}"
        return result["formatted_output"]

    def current_timer_markdown(self) -> str:
        try:
            current = self.service.get_current_timer()
        except Exception as e:
            return f"Error getting current timer: {e}"
        if not current:
            return "# Timer Status\n\nNo timer is currently running."
        return self._timer_text(current)

    def _timer_text(self, current: Dict) -> str:
        start = int(current.get("start") or 0)
        lines = [
            "# Current Timer Status",
            "",
            f"**Task:** {(current.get('task') or {}).get('name')}",
            f"**Started:** {self._fmt(start)}",
            f"**Running For:** {format_duration_hms(max(0, self._now_ms() - start))}",
        ]
        if current.get("description"):
            lines.append(f"**Description:** {current['description']}")
        if current.get("billable"):
            lines.append("**Billable:** Yes")
        if tag_names(current):
            lines.append(f"**Tags:** {', '.join(tag_names(current))}")
        return "\n".join(lines)

    def history_markdown(self, count: int = 10) -> str:
        result = self.get_time_history(count)
        if result["status"] != "success":
            return f"Error getting time tracking history: {result['error']}"
        return result["formatted_output"]

    def _history_text(self, entries: List[Dict]) -> str:
        lines = ["# Recent Time Entries", ""]
        if not entries:
            lines.append("No recent time entries found.")
        for e in entries:
            start_ms = parse_timestamp(e["start"]) if e["start"] else 0
            when = f"**When:** {self._fmt(start_ms)}"
            if e["end"]:
                when += f" to {self._fmt(parse_timestamp(e['end']))}"
            else:
                when += " (Running)"
            lines += [f"## {e['task']['name']}", f"**Time:** {e['duration']}", when]
            if e["description"]:
                lines.append(f"**Description:** {e['description']}")
            if e["billable"]:
                lines.append("**Billable:** Yes")
            if e["tags"]:
                lines.append(f"**Tags:** {', '.join(e['tags'])}")
            lines.append("")
        return "\n".join(lines).rstrip()
