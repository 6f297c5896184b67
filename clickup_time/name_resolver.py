"""
Task / list name -> id resolution over a fresh workspace hierarchy snapshot.

Matching is case-insensitive and exact. When several tasks or lists share a
name the first one in traversal order wins and the others are logged.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

from clickup_time.errors import NotFoundError
from clickup_time.workspace import HierarchyIndex, fetch_workspace_hierarchy

logger = logging.getLogger(__name__)


class NameResolver:
    """
    Resolves human-readable names through the time-tracking service.

    Without a list name, every list in the workspace is fetched (one request
    per list), which is expensive for big workspaces.
    """

    def __init__(self, service, max_workers: int = 10):
        self.service = service
        self.max_workers = max_workers

    def _index(self) -> HierarchyIndex:
        return HierarchyIndex(fetch_workspace_hierarchy(self.service))

    def resolve_list_id(self, list_name: str) -> str:
        node = self._index().find_by_name(list_name, "list")
        if node is None:
            raise NotFoundError(f'List "{list_name}" not found')
        return node.id

    def resolve_task_id(self, task_name: str, list_name: Optional[str] = None) -> str:
        if list_name:
            list_ids = [self.resolve_list_id(list_name)]
        else:
            list_ids = [n.id for n in self._index().lists()]

        tasks = self._tasks_in_lists(list_ids)
        wanted = (task_name or "").lower()
        matches = [t for t in tasks if str(t.get("name", "")).lower() == wanted]

        if not wanted or not matches:
            where = f' in list "{list_name}"' if list_name else ""
            raise NotFoundError(f'Task "{task_name}" not found{where}')

        if len(matches) > 1:
            logger.warning(
                "%d tasks named %r; using first match %s (other ids: %s)",
                len(matches),
                task_name,
                matches[0]["id"],
                ", ".join(str(m["id"]) for m in matches[1:]),
            )
        return str(matches[0]["id"])

    def resolve_task(
        self,
        task_id: Optional[str] = None,
        task_name: Optional[str] = None,
        list_name: Optional[str] = None,
    ) -> str:
        """An explicit id wins; otherwise resolve ``task_name`` (optionally within ``list_name``)."""
        if task_id:
            return str(task_id)
        if task_name:
            return self.resolve_task_id(task_name, list_name)
        raise ValueError("Either task_id or task_name must be provided")

    def _tasks_in_lists(self, list_ids: List[str]) -> List[Dict]:
        """Tasks of every list, concatenated in ``list_ids`` order."""
        if not list_ids:
            return []
        if len(list_ids) == 1:
            return self.service.get_tasks(list_ids[0])

        logger.info("Searching %d lists for a task name", len(list_ids))
        workers = min(self.max_workers, len(list_ids))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields results in submission order
            per_list = list(executor.map(self.service.get_tasks, list_ids))
        return [t for tasks in per_list for t in tasks]
