"""Tests for TimeTrackingService against a scripted ClickUp client."""

from __future__ import annotations

import pytest

from clickup_time.errors import UpstreamError
from clickup_time.time_helpers import TimeRange
from clickup_time.time_tracking import (
    CreateTimeEntryParams,
    StartTimerOptions,
    TimeTrackingService,
    tag_names,
)


class ScriptedClient:
    """Answers ``(data, err)`` tuples keyed by (verb, endpoint)."""

    def __init__(self, responses: dict | None = None, team_id: str | None = "team-1"):
        self.responses = responses or {}
        self.team_id = team_id
        self.requests: list[tuple] = []

    def get_team_id(self):
        return self.team_id

    def _answer(self, verb: str, endpoint: str, **kwargs):
        self.requests.append((verb, endpoint, kwargs))
        answer = self.responses.get((verb, endpoint), (None, "API 404: not scripted"))
        return answer(**kwargs) if callable(answer) else answer

    def get(self, endpoint, params=None, timeout=30):
        return self._answer("GET", endpoint, params=params)

    def post(self, endpoint, payload=None, params=None, timeout=30):
        return self._answer("POST", endpoint, payload=payload)

    def delete(self, endpoint, timeout=30):
        return self._answer("DELETE", endpoint)


RANGE = TimeRange(1000, 2000)


class TestUnwrap:
    def test_api_status_is_parsed(self) -> None:
        client = ScriptedClient({("GET", "/task/x"): (None, 'API 404: {"err":"Task not found"}')})
        with pytest.raises(UpstreamError) as info:
            TimeTrackingService(client).get_task("x")
        assert info.value.status == 404
        assert "get task x" in str(info.value)
        assert info.value.error_type == "upstream_error"

    def test_transport_error_has_no_status(self) -> None:
        client = ScriptedClient({("GET", "/team/team-1/space"): (None, "Connection refused")})
        with pytest.raises(UpstreamError) as info:
            TimeTrackingService(client).get_spaces()
        assert info.value.status is None

    def test_missing_team_id(self) -> None:
        with pytest.raises(UpstreamError, match="team"):
            TimeTrackingService(ScriptedClient(team_id=None)).get_spaces()

    def test_missing_key_is_upstream_error(self) -> None:
        client = ScriptedClient({("GET", "/space/s1/folder"): ({"unexpected": []}, None)})
        with pytest.raises(UpstreamError, match="Invalid API response"):
            TimeTrackingService(client).get_folders("s1")


class TestHierarchy:
    def test_spaces_folders_lists(self) -> None:
        client = ScriptedClient(
            {
                ("GET", "/team/team-1/space"): ({"spaces": [{"id": "s1"}]}, None),
                ("GET", "/space/s1/folder"): ({"folders": [{"id": "f1"}]}, None),
                ("GET", "/space/s1/list"): ({"lists": [{"id": "l1"}]}, None),
            }
        )
        service = TimeTrackingService(client)
        assert service.get_spaces() == [{"id": "s1"}]
        assert service.get_folders("s1") == [{"id": "f1"}]
        assert service.get_folderless_lists("s1") == [{"id": "l1"}]

    def test_tasks_are_paginated(self) -> None:
        pages = {
            0: [{"id": f"a{i}"} for i in range(100)],
            1: [{"id": "b0"}, {"id": "b1"}],
        }

        def tasks_page(params):
            return {"tasks": pages[params["page"]]}, None

        client = ScriptedClient({("GET", "/list/l1/task"): tasks_page})
        tasks = TimeTrackingService(client).get_tasks("l1")

        assert len(tasks) == 102
        assert tasks[-1] == {"id": "b1"}
        sent = [r[2]["params"] for r in client.requests]
        assert [p["page"] for p in sent] == [0, 1]
        assert all(p["include_closed"] == "true" and p["subtasks"] == "true" for p in sent)

    def test_last_page_flag_stops_paging(self) -> None:
        def tasks_page(params):
            return {"tasks": [{"id": str(i)} for i in range(100)], "last_page": True}, None

        client = ScriptedClient({("GET", "/list/l1/task"): tasks_page})
        assert len(TimeTrackingService(client).get_tasks("l1")) == 100
        assert len(client.requests) == 1

    def test_task_without_id_is_rejected(self) -> None:
        client = ScriptedClient({("GET", "/task/t1"): ({"name": "?"}, None)})
        with pytest.raises(UpstreamError):
            TimeTrackingService(client).get_task("t1")


class TestReports:
    def test_report_query(self) -> None:
        report = {"data": [{"user": {"id": 1}, "time": 5, "tasks": {"t1": {"id": "t1", "time": 5}}}]}
        client = ScriptedClient({("GET", "/team/team-1/time_tracking/report"): (report, None)})
        service = TimeTrackingService(client)

        assert service.get_time_report(RANGE, list_id="l1", task_id=None) == report
        params = client.requests[0][2]["params"]
        assert params == {"start_date": 1000, "end_date": 2000, "list_id": "l1"}

    def test_report_data_must_be_a_list(self) -> None:
        client = ScriptedClient(
            {("GET", "/team/team-1/time_tracking/report"): ({"data": "oops"}, None)}
        )
        with pytest.raises(UpstreamError, match="Invalid API response"):
            TimeTrackingService(client).get_time_report(RANGE)

    def test_total_time_tracked_sums_tasks(self) -> None:
        report = {
            "data": [
                {"time": 1, "tasks": {"t1": {"id": "t1", "time": 300}}},
                {"time": 1, "tasks": {"t1": {"id": "t1", "time": 200}, "t2": {"id": "t2", "time": 50}}},
            ]
        }
        client = ScriptedClient({("GET", "/team/team-1/time_tracking/report"): (report, None)})
        service = TimeTrackingService(client)
        assert service.get_total_time_tracked(RANGE) == 550
        assert service.get_task_time_tracked("t1", RANGE) == 500

    def test_time_entries_filters(self) -> None:
        client = ScriptedClient(
            {("GET", "/team/team-1/time_entries"): ({"data": [{"id": "e1"}]}, None)}
        )
        entries = TimeTrackingService(client).get_time_entries(task_id="t1", time_range=RANGE)
        assert entries == [{"id": "e1"}]
        assert client.requests[0][2]["params"] == {
            "start_date": 1000,
            "end_date": 2000,
            "task_id": "t1",
        }


class TestTimers:
    def test_no_current_timer(self) -> None:
        client = ScriptedClient({("GET", "/team/team-1/time_entries/current"): ({"data": None}, None)})
        assert TimeTrackingService(client).get_current_timer() is None

    def test_current_timer(self) -> None:
        entry = {"id": "e1", "start": "1000"}
        client = ScriptedClient({("GET", "/team/team-1/time_entries/current"): ({"data": entry}, None)})
        assert TimeTrackingService(client).get_current_timer() == entry

    def test_start_payload(self) -> None:
        client = ScriptedClient(
            {("POST", "/team/team-1/time_entries/start"): ({"data": {"id": "e1"}}, None)}
        )
        options = StartTimerOptions(description="focus", billable=True, tags=["a", "b", "a", " "])
        assert TimeTrackingService(client).start_timer("t1", options) == {"id": "e1"}

        payload = client.requests[0][2]["payload"]
        assert payload == {
            "tid": "t1",
            "description": "focus",
            "billable": True,
            "tags": [{"name": "a"}, {"name": "b"}],
        }

    def test_stop_without_timer(self) -> None:
        client = ScriptedClient({("POST", "/team/team-1/time_entries/stop"): ({}, None)})
        assert TimeTrackingService(client).stop_timer() is None

    def test_add_entry(self) -> None:
        client = ScriptedClient({("POST", "/team/team-1/time_entries"): ({"data": {"id": "e9"}}, None)})
        created = TimeTrackingService(client).add_time_entry("t1", 1000, 60_000)
        assert created == {"id": "e9"}
        assert client.requests[0][2]["payload"] == {
            "tid": "t1",
            "start": 1000,
            "duration": 60_000,
            "description": "",
            "billable": False,
            "tags": [],
        }

    def test_delete_entry(self) -> None:
        client = ScriptedClient({("DELETE", "/team/team-1/time_entries/e1"): ({}, None)})
        assert TimeTrackingService(client).delete_time_entry("e1") is True

    def test_delete_missing_entry(self) -> None:
        client = ScriptedClient({("DELETE", "/team/team-1/time_entries/e1"): (None, "API 404: gone")})
        with pytest.raises(UpstreamError) as info:
            TimeTrackingService(client).delete_time_entry("e1")
        assert info.value.status == 404


def test_create_params_payload() -> None:
    params = CreateTimeEntryParams("t1", "1000", 5, StartTimerOptions(tags=["x"]))
    assert params.payload()["start"] == 1000
    assert params.payload()["tags"] == [{"name": "x"}]


def test_tag_names_accepts_objects_and_strings() -> None:
    assert tag_names({"tags": [{"name": "a"}, "b", {"name": ""}]}) == ["a", "b"]
    assert tag_names({}) == []
