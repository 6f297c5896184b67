"""Shared pytest fixtures: an in-memory stand-in for the ClickUp service."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any

import pytest

from clickup_time.errors import UpstreamError

UTC = timezone.utc

# Wednesday 2026-10-21 15:30 UTC
NOW = datetime(2026, 10, 21, 15, 30, tzinfo=UTC)


def ms(*args: int) -> int:
    """Epoch ms of a UTC wall-clock datetime."""
    return round(datetime(*args, tzinfo=UTC).timestamp() * 1000)


class FakeService:
    """Records calls and answers from canned data, like TimeTrackingService."""

    team_id = "team-1"

    def __init__(
        self,
        spaces: list[dict] | None = None,
        tasks_by_list: dict[str, list[dict]] | None = None,
        task_details: dict[str, dict] | None = None,
        entries_by_task: dict[str, list[dict]] | None = None,
        report: dict | None = None,
        current: dict | None = None,
        stopped: dict | None = None,
        history: list[dict] | None = None,
    ):
        self.spaces = spaces or []
        self.tasks_by_list = tasks_by_list or {}
        self.task_details = task_details or {}
        self.entries_by_task = entries_by_task or {}
        self.report = report if report is not None else {"data": []}
        self.current = current
        self.stopped = stopped
        self.history = history or []
        self.calls: list[tuple[str, Any]] = []
        self._lock = threading.Lock()

    def _record(self, name: str, *args: Any) -> None:
        with self._lock:
            self.calls.append((name, args))

    def called(self, name: str) -> list[tuple]:
        return [args for n, args in self.calls if n == name]

    # hierarchy
    def get_spaces(self) -> list[dict]:
        self._record("get_spaces")
        return [{"id": s["id"], "name": s["name"]} for s in self.spaces]

    def get_folderless_lists(self, space_id: str) -> list[dict]:
        self._record("get_folderless_lists", space_id)
        space = next(s for s in self.spaces if s["id"] == space_id)
        return space.get("lists", [])

    def get_folders(self, space_id: str) -> list[dict]:
        self._record("get_folders", space_id)
        space = next(s for s in self.spaces if s["id"] == space_id)
        return space.get("folders", [])

    def get_tasks(self, list_id: str) -> list[dict]:
        self._record("get_tasks", list_id)
        return list(self.tasks_by_list.get(list_id, []))

    # reports
    def get_task(self, task_id: str) -> dict:
        self._record("get_task", task_id)
        if task_id not in self.task_details:
            raise UpstreamError(f"Failed to get task {task_id}: API 404", status=404)
        return self.task_details[task_id]

    def get_time_entries(self, task_id=None, time_range=None, **filters) -> list[dict]:
        self._record("get_time_entries", task_id, time_range)
        if task_id is None:
            return list(self.history)
        return list(self.entries_by_task.get(task_id, []))

    def get_time_report(self, time_range, **filters) -> dict:
        self._record("get_time_report", time_range, filters)
        return self.report

    # timers
    def get_current_timer(self):
        self._record("get_current_timer")
        return self.current

    def start_timer(self, task_id, options=None) -> dict:
        self._record("start_timer", task_id, options)
        return {
            "id": "te-new",
            "task": {"id": task_id, "name": f"Task {task_id}"},
            "start": str(ms(2026, 10, 21, 15, 30)),
            "tags": [{"name": t} for t in (options.tags if options else [])],
        }

    def stop_timer(self):
        self._record("stop_timer")
        return self.stopped

    def add_time_entry(self, task_id, start, duration, options=None) -> dict:
        self._record("add_time_entry", task_id, start, duration, options)
        return {"id": "te-added", "task": {"id": task_id}}

    def delete_time_entry(self, entry_id) -> bool:
        self._record("delete_time_entry", entry_id)
        return True


@pytest.fixture
def make_service():
    """Factory for FakeService instances."""
    return FakeService


@pytest.fixture
def workspace_service() -> FakeService:
    """
    Two spaces. "Engineering" holds a folderless list "Backlog" and a folder
    "Product" with lists "Sprint 1" and "Sprint 2"; "Ops" holds list "Backlog".
    Task "Fix Bug" exists in both "Backlog" (eng) and "Sprint 2".
    """
    return FakeService(
        spaces=[
            {
                "id": "s1",
                "name": "Engineering",
                "lists": [{"id": "l-backlog", "name": "Backlog"}],
                "folders": [
                    {
                        "id": "f1",
                        "name": "Product",
                        "lists": [
                            {"id": "l-s1", "name": "Sprint 1"},
                            {"id": "l-s2", "name": "Sprint 2"},
                        ],
                    }
                ],
            },
            {
                "id": "s2",
                "name": "Ops",
                "lists": [{"id": "l-ops", "name": "Backlog"}],
                "folders": [],
            },
        ],
        tasks_by_list={
            "l-backlog": [
                {"id": "t-fix-1", "name": "Fix Bug"},
                {"id": "t-docs", "name": "Write docs"},
            ],
            "l-s1": [{"id": "t-login", "name": "Login page"}],
            "l-s2": [{"id": "t-fix-2", "name": "Fix Bug"}],
            "l-ops": [{"id": "t-deploy", "name": "Deploy"}],
        },
    )
