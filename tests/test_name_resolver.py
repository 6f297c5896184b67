"""Tests for task / list name resolution."""

from __future__ import annotations

import pytest

from clickup_time.errors import NotFoundError
from clickup_time.name_resolver import NameResolver


class TestResolveListId:
    def test_case_insensitive(self, workspace_service) -> None:
        assert NameResolver(workspace_service).resolve_list_id("sprint 2") == "l-s2"

    def test_duplicate_list_names_use_first_space(self, workspace_service) -> None:
        assert NameResolver(workspace_service).resolve_list_id("Backlog") == "l-backlog"

    def test_missing_list(self, workspace_service) -> None:
        with pytest.raises(NotFoundError, match='List "Nope" not found'):
            NameResolver(workspace_service).resolve_list_id("Nope")


class TestResolveTaskId:
    def test_case_insensitive(self, workspace_service) -> None:
        resolver = NameResolver(workspace_service)
        assert resolver.resolve_task_id("login PAGE") == "t-login"

    def test_duplicate_task_first_in_traversal_order(self, workspace_service) -> None:
        resolver = NameResolver(workspace_service)
        assert resolver.resolve_task_id("fix bug") == "t-fix-1"

    def test_result_is_deterministic_with_concurrency(self, workspace_service) -> None:
        results = {
            NameResolver(workspace_service, max_workers=w).resolve_task_id("Fix Bug")
            for w in (1, 2, 8)
        }
        assert results == {"t-fix-1"}

    def test_without_list_searches_every_list(self, workspace_service) -> None:
        NameResolver(workspace_service).resolve_task_id("Deploy")
        searched = sorted(args[0] for args in workspace_service.called("get_tasks"))
        assert searched == ["l-backlog", "l-ops", "l-s1", "l-s2"]

    def test_list_name_narrows_search(self, workspace_service) -> None:
        resolver = NameResolver(workspace_service)
        assert resolver.resolve_task_id("Fix Bug", list_name="Sprint 2") == "t-fix-2"
        assert workspace_service.called("get_tasks") == [("l-s2",)]

    def test_missing_list(self, workspace_service) -> None:
        with pytest.raises(NotFoundError, match="List"):
            NameResolver(workspace_service).resolve_task_id("Fix Bug", "Nope")
        assert workspace_service.called("get_tasks") == []

    def test_missing_task_in_list(self, workspace_service) -> None:
        with pytest.raises(NotFoundError, match='not found in list "Sprint 1"'):
            NameResolver(workspace_service).resolve_task_id("Deploy", "Sprint 1")

    def test_missing_task(self, workspace_service) -> None:
        with pytest.raises(NotFoundError, match='Task "Nothing" not found'):
            NameResolver(workspace_service).resolve_task_id("Nothing")

    def test_trailing_space_in_task_name(self, make_service) -> None:
        service = make_service(
            spaces=[{"id": "s1", "name": "S", "lists": [{"id": "l1", "name": "L"}]}],
            tasks_by_list={"l1": [{"id": "t-pad", "name": "Fix Bug "}]},
        )
        assert NameResolver(service).resolve_task_id("Fix Bug ") == "t-pad"
        with pytest.raises(NotFoundError):
            NameResolver(service).resolve_task_id("Fix Bug")

    def test_padded_query_is_not_trimmed(self, workspace_service) -> None:
        with pytest.raises(NotFoundError):
            NameResolver(workspace_service).resolve_task_id("  Deploy  ")

    def test_partial_names_do_not_match(self, workspace_service) -> None:
        with pytest.raises(NotFoundError):
            NameResolver(workspace_service).resolve_task_id("Fix")


class TestResolveTask:
    def test_id_wins_without_lookups(self, workspace_service) -> None:
        resolver = NameResolver(workspace_service)
        assert resolver.resolve_task(task_id="abc", task_name="Fix Bug") == "abc"
        assert workspace_service.calls == []

    def test_name_lookup(self, workspace_service) -> None:
        assert NameResolver(workspace_service).resolve_task(task_name="Deploy") == "t-deploy"

    def test_neither_given(self, workspace_service) -> None:
        with pytest.raises(ValueError, match="task_id or task_name"):
            NameResolver(workspace_service).resolve_task()
