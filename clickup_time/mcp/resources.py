"""
Time tracking resources: markdown views an assistant can read as context.

URIs: clickup://timetracking/{today,yesterday,week,month,current,history}
"""

from typing import Optional

from fastmcp import FastMCP

from clickup_time.operations import TimeTrackingOperations

RESOURCES = [
    {
        "uri": "clickup://timetracking/today",
        "name": "Today's Time Tracking",
        "description": "Time tracking report for today",
    },
    {
        "uri": "clickup://timetracking/yesterday",
        "name": "Yesterday's Time Tracking",
        "description": "Time tracking report for yesterday",
    },
    {
        "uri": "clickup://timetracking/week",
        "name": "This Week's Time Tracking",
        "description": "Time tracking report for the current week",
    },
    {
        "uri": "clickup://timetracking/month",
        "name": "This Month's Time Tracking",
        "description": "Time tracking report for the current month",
    },
    {
        "uri": "clickup://timetracking/current",
        "name": "Current Timer",
        "description": "Information about the currently running timer",
    },
    {
        "uri": "clickup://timetracking/history",
        "name": "Time Tracking History",
        "description": "Recent time tracking entries",
    },
]

_REPORT_PERIODS = {
    "today": "today",
    "yesterday": "yesterday",
    "week": "this_week",
    "month": "this_month",
}


def read_resource_impl(ops: TimeTrackingOperations, uri: str) -> Optional[str]:
    """Markdown for a ``clickup://timetracking/...`` URI, None when unknown."""
    scheme, sep, path = uri.partition("://")
    if scheme != "clickup" or not sep:
        return None
    parts = path.split("/")
    if len(parts) != 2 or parts[0] != "timetracking":
        return None

    name = parts[1]
    if name in _REPORT_PERIODS:
        return ops.report_markdown(_REPORT_PERIODS[name])
    if name == "current":
        return ops.current_timer_markdown()
    if name == "history":
        return ops.history_markdown()
    return None


def register_time_tracking_resources(mcp: FastMCP, ops: TimeTrackingOperations):
    def _register(meta: dict):
        uri = meta["uri"]

        def _read() -> str:
            return read_resource_impl(ops, uri)

        mcp.resource(
            uri,
            name=meta["name"],
            description=meta["description"],
            mime_type="text/markdown",
        )(_read)

    for meta in RESOURCES:
        _register(meta)
