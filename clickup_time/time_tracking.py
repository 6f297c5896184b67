"""
ClickUp Time Tracking Service

Wraps ClickUpClient's ``(data, error)`` tuples into plain return values and
raises UpstreamError for API failures or payloads missing the expected keys.
Nothing here is cached: every call goes to ClickUp.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from clickup_time.aggregation import total_time
from clickup_time.api_client import ClickUpClient
from clickup_time.errors import UpstreamError
from clickup_time.time_helpers import TimeRange

logger = logging.getLogger(__name__)

_STATUS_RE = re.compile(r"^API (\d{3})")
_PAGE_SIZE = 100


@dataclass
class StartTimerOptions:
    description: str = ""
    billable: bool = False
    tags: List[str] = field(default_factory=list)

    def payload(self) -> dict:
        # tag set: de-duplicated, first occurrence order kept
        tags = list(dict.fromkeys(t.strip() for t in self.tags or [] if t.strip()))
        return {
            "description": self.description or "",
            "billable": bool(self.billable),
            "tags": [{"name": t} for t in tags],
        }


@dataclass
class CreateTimeEntryParams:
    task_id: str
    start: int
    duration: int
    options: StartTimerOptions = field(default_factory=StartTimerOptions)

    def payload(self) -> dict:
        return {
            "tid": self.task_id,
            "start": int(self.start),
            "duration": int(self.duration),
            **self.options.payload(),
        }


def tag_names(entry: dict) -> List[str]:
    """Tag names of a time entry (ClickUp sends objects, older payloads strings)."""
    names = []
    for tag in entry.get("tags") or []:
        name = tag.get("name") if isinstance(tag, dict) else tag
        if name:
            names.append(str(name))
    return names


class TimeTrackingService:
    """ClickUp operations consumed by the time-tracking core."""

    def __init__(self, client: ClickUpClient):
        self.client = client

    @property
    def team_id(self) -> Optional[str]:
        return self.client.get_team_id()

    def _team_path(self, suffix: str) -> str:
        team_id = self.team_id
        if not team_id:
            raise UpstreamError("ClickUp workspace (team) id is unavailable")
        return f"/team/{team_id}{suffix}"

    @staticmethod
    def _unwrap(result, action: str):
        data, err = result
        if err is not None:
            m = _STATUS_RE.match(err)
            raise UpstreamError(
                f"Failed to {action}: {err}",
                status=int(m.group(1)) if m else None,
                detail=err,
            )
        return data

    @staticmethod
    def _require(data, key: str, action: str):
        if not isinstance(data, dict) or key not in data:
            raise UpstreamError(
                f"Invalid API response structure from {action} endpoint",
                detail=data,
            )
        return data[key]

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    def get_spaces(self) -> List[Dict]:
        data = self._unwrap(self.client.get(self._team_path("/space")), "get spaces")
        return self._require(data, "spaces", "spaces")

    def get_folders(self, space_id: str) -> List[Dict]:
        data = self._unwrap(
            self.client.get(f"/space/{space_id}/folder"), "get folders"
        )
        return self._require(data, "folders", "folders")

    def get_folderless_lists(self, space_id: str) -> List[Dict]:
        data = self._unwrap(self.client.get(f"/space/{space_id}/list"), "get lists")
        return self._require(data, "lists", "lists")

    def get_tasks(self, list_id: str) -> List[Dict]:
        """All tasks of a list (closed tasks and subtasks included), every page."""
        tasks: List[Dict] = []
        page = 0
        while True:
            params = {"page": page, "include_closed": "true", "subtasks": "true"}
            data = self._unwrap(
                self.client.get(f"/list/{list_id}/task", params=params),
                f"get tasks of list {list_id}",
            )
            batch = self._require(data, "tasks", "tasks")
            tasks.extend(t for t in batch if isinstance(t, dict))
            if len(batch) < _PAGE_SIZE or data.get("last_page"):
                break
            page += 1
        return tasks

    def get_task(self, task_id: str) -> Dict:
        data = self._unwrap(self.client.get(f"/task/{task_id}"), f"get task {task_id}")
        if not isinstance(data, dict) or not data.get("id"):
            raise UpstreamError(
                f"Invalid API response structure for task {task_id}", detail=data
            )
        return data

    # ------------------------------------------------------------------
    # Reports & entries
    # ------------------------------------------------------------------

    def get_time_report(self, time_range: TimeRange, **filters) -> Dict:
        """Per-user, per-task totals: ``{"data": [UserTimeRecord, ...]}``."""
        params = {"start_date": time_range.start, "end_date": time_range.end}
        params.update({k: v for k, v in filters.items() if v not in (None, "")})
        data = self._unwrap(
            self.client.get(self._team_path("/time_tracking/report"), params=params),
            "get time tracking report",
        )
        if not isinstance(data, dict) or not isinstance(data.get("data", []), list):
            raise UpstreamError(
                "Invalid API response structure from time tracking report endpoint",
                detail=data,
            )
        data.setdefault("data", [])
        return data

    def get_time_entries(
        self,
        task_id: Optional[str] = None,
        time_range: Optional[TimeRange] = None,
        **filters,
    ) -> List[Dict]:
        params = {}
        if time_range is not None:
            params["start_date"] = time_range.start
            params["end_date"] = time_range.end
        if task_id:
            params["task_id"] = task_id
        params.update({k: v for k, v in filters.items() if v not in (None, "")})
        data = self._unwrap(
            self.client.get(self._team_path("/time_entries"), params=params or None),
            "get time entries",
        )
        return self._require(data, "data", "time entries")

    def get_total_time_tracked(self, time_range: TimeRange, **filters) -> int:
        return total_time(self.get_time_report(time_range, **filters))

    def get_task_time_tracked(self, task_id: str, time_range: TimeRange) -> int:
        report = self.get_time_report(time_range, task_id=task_id)
        return sum(
            int((record.get("tasks") or {}).get(task_id, {}).get("time") or 0)
            for record in report["data"]
        )

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def get_current_timer(self) -> Optional[Dict]:
        data = self._unwrap(
            self.client.get(self._team_path("/time_entries/current")),
            "get current timer",
        )
        if not isinstance(data, dict):
            raise UpstreamError(
                "Invalid API response structure from current timer endpoint",
                detail=data,
            )
        # ClickUp answers {"data": null} (or {}) when nothing is running
        return data.get("data") or None

    def start_timer(
        self, task_id: str, options: Optional[StartTimerOptions] = None
    ) -> Dict:
        payload = {"tid": task_id, **(options or StartTimerOptions()).payload()}
        data = self._unwrap(
            self.client.post(self._team_path("/time_entries/start"), payload=payload),
            "start timer",
        )
        entry = self._require(data, "data", "start timer")
        logger.info("Timer started on task %s", task_id)
        return entry

    def stop_timer(self) -> Optional[Dict]:
        data = self._unwrap(
            self.client.post(self._team_path("/time_entries/stop")), "stop timer"
        )
        if not isinstance(data, dict):
            raise UpstreamError(
                "Invalid API response structure from stop timer endpoint", detail=data
            )
        return data.get("data") or None

    def add_time_entry(
        self,
        task_id: str,
        start: int,
        duration: int,
        options: Optional[StartTimerOptions] = None,
    ) -> Dict:
        params = CreateTimeEntryParams(
            task_id=task_id,
            start=start,
            duration=duration,
            options=options or StartTimerOptions(),
        )
        data = self._unwrap(
            self.client.post(self._team_path("/time_entries"), payload=params.payload()),
            "add time entry",
        )
        return self._require(data, "data", "add time entry")

    def delete_time_entry(self, entry_id: str) -> bool:
        self._unwrap(
            self.client.delete(self._team_path(f"/time_entries/{entry_id}")),
            f"delete time entry {entry_id}",
        )
        return True
