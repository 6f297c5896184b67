"""
Time Tracking Tools for the ClickUp MCP Server
==============================================
1. get_time_tracking_report : per-task breakdown for a period
2. get_time_tracking_summary: grouped by task | list | space | day
3. start_timer / stop_timer / get_current_timer
4. get_time_history         : recent time entries
5. add_time_entry / delete_time_entry

Period-based tools support:
  today | yesterday | this_week | last_week | this_month | last_month |
  custom (+start_date/end_date as ISO-8601 or epoch ms)

Custom bounds are instants: a date-only end_date such as "2026-10-31" means
midnight at the START of that day, so pass "2026-10-31T23:59:59.999" to
include the whole day.
"""

import logging
from typing import List, Optional

from fastmcp import FastMCP

from clickup_time.operations import TimeTrackingOperations

logger = logging.getLogger(__name__)


def register_time_tracking_tools(mcp: FastMCP, ops: TimeTrackingOperations):
    @mcp.tool()
    def get_time_tracking_report(
        period: str = "today",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> dict:
        """
        Time tracking report for a period: how time was spent across tasks.

        Args:
            period:     today | yesterday | this_week | last_week |
                        this_month | last_month | custom
            start_date: ISO-8601 or epoch ms (required when period="custom")
            end_date:   ISO-8601 or epoch ms (required when period="custom").
                        A date-only value is midnight at the start of that
                        day; use "YYYY-MM-DDT23:59:59.999" to include it.

        Returns:
            { status, period, date_range, total_time, total_time_formatted,
              tasks: [{task_id, task_name, time, time_formatted, percentage}],
              formatted_output }
        """
        logger.info("Time report: %s", period)
        return ops.get_time_tracking_report(period, start_date, end_date)

    @mcp.tool()
    def get_time_tracking_summary(
        period: str = "this_week",
        group_by: str = "task",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        task_id: Optional[str] = None,
        task_name: Optional[str] = None,
        list_name: Optional[str] = None,
    ) -> dict:
        """
        Tracked time grouped by task, list, space or day, with percentages.

        Grouping by list/space/day fetches every task in the report
        individually, so it is slower than group_by="task".

        Args:
            period:     today | yesterday | this_week | last_week |
                        this_month | last_month | custom
            group_by:   task | list | space | day
            start_date: ISO-8601 or epoch ms (custom period only)
            end_date:   ISO-8601 or epoch ms (custom period only). A
                        date-only value is midnight at the start of that day.
            task_id:    Restrict to one task (preferred over task_name)
            task_name:  Restrict to one task by name (case-insensitive)
            list_name:  List containing task_name, or a list to restrict to
        """
        logger.info("Time summary: %s by %s", period, group_by)
        return ops.get_time_tracking_summary(
            period=period,
            group_by=group_by,
            start_date=start_date,
            end_date=end_date,
            task_id=task_id,
            task_name=task_name,
            list_name=list_name,
        )

    @mcp.tool()
    def start_timer(
        task_id: Optional[str] = None,
        task_name: Optional[str] = None,
        list_name: Optional[str] = None,
        description: str = "",
        billable: bool = False,
        tags: Optional[List[str]] = None,
    ) -> dict:
        """
        Start a timer on a task.

        Use task_id when you have it; task names may not be unique and the
        first match wins. list_name narrows a task_name search.
        If another timer is running the result has status="not_started" and
        the running timer, so it can be stopped first.
        """
        return ops.start_timer(
            task_id=task_id,
            task_name=task_name,
            list_name=list_name,
            description=description,
            billable=billable,
            tags=tags,
        )

    @mcp.tool()
    def stop_timer() -> dict:
        """Stop the currently running timer."""
        return ops.stop_timer()

    @mcp.tool()
    def get_current_timer() -> dict:
        """Information about the currently running timer, if any."""
        return ops.get_current_timer()

    @mcp.tool()
    def get_time_history(count: int = 10) -> dict:
        """Most recent time tracking entries (default 10)."""
        return ops.get_time_history(count)

    @mcp.tool()
    def add_time_entry(
        start: str,
        duration_minutes: float,
        task_id: Optional[str] = None,
        task_name: Optional[str] = None,
        list_name: Optional[str] = None,
        description: str = "",
        billable: bool = False,
        tags: Optional[List[str]] = None,
    ) -> dict:
        """
        Add a completed time entry to a task manually.

        Args:
            start:            ISO-8601 or epoch ms
            duration_minutes: Length of the entry in minutes
            task_id / task_name / list_name: target task (id preferred)
        """
        return ops.add_time_entry(
            start=start,
            duration_minutes=duration_minutes,
            task_id=task_id,
            task_name=task_name,
            list_name=list_name,
            description=description,
            billable=billable,
            tags=tags,
        )

    @mcp.tool()
    def delete_time_entry(entry_id: str) -> dict:
        """Delete a time entry by id."""
        return ops.delete_time_entry(entry_id)
