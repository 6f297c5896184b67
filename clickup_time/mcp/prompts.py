"""
Time tracking prompt templates.

Prompts: analyze_time_usage, manage_timer, time_tracking_recommendations.
Each has an ``*_impl`` function testable without a running server.
"""

from fastmcp import FastMCP

PERIOD_TEXT = {
    "today": "today",
    "yesterday": "yesterday",
    "this_week": "this week so far",
    "last_week": "last week",
    "this_month": "this month so far",
    "last_month": "last month",
}

# periods that have a matching report resource
PERIOD_RESOURCE = {
    "today": "clickup://timetracking/today",
    "yesterday": "clickup://timetracking/yesterday",
    "this_week": "clickup://timetracking/week",
    "this_month": "clickup://timetracking/month",
}


def analyze_time_usage_impl(period: str) -> str:
    text = (
        f"Please analyze my time usage for {PERIOD_TEXT.get(period, period)}. "
        "Show me which tasks took the most time, identify any patterns or "
        "insights in how I'm spending my time, and suggest ways I could be "
        "more efficient."
    )
    if period in PERIOD_RESOURCE:
        return f"{text}\n\nUse the report in resource {PERIOD_RESOURCE[period]}."
    return (
        f"{text}\n\nCall get_time_tracking_summary with period=\"{period}\" "
        "and group_by=\"task\" to get the data."
    )


def manage_timer_impl(action: str, task_name: str = "") -> str:
    action = (action or "").strip().lower()
    if action == "start":
        if not task_name:
            raise ValueError("Task name is required for starting a timer")
        return (
            f'Please start a timer for the task "{task_name}". Let me know when '
            "the timer is started, and confirm what task it's tracking time for."
        )
    if action == "stop":
        return (
            "Please stop the current timer if there is one running. Let me know "
            "how much time was tracked and for which task."
        )
    if action == "check":
        return (
            "Please check if I have a timer currently running. If so, tell me "
            "which task it's for and how long it's been running.\n\n"
            "Use the resource clickup://timetracking/current."
        )
    raise ValueError(f"Unknown action: {action}")


def time_tracking_recommendations_impl() -> str:
    return (
        "Based on my time tracking history, please provide recommendations for "
        "how I could improve my time tracking habits and productivity. Analyze "
        "patterns in how I use my time and suggest concrete improvements.\n\n"
        "Use the resource clickup://timetracking/history."
    )


def register_time_tracking_prompts(mcp: FastMCP):
    @mcp.prompt()
    def analyze_time_usage(period: str) -> str:
        """Analyze how time has been spent over a specific period."""
        return analyze_time_usage_impl(period)

    @mcp.prompt()
    def manage_timer(action: str, task_name: str = "") -> str:
        """Start, stop, or check the current timer."""
        return manage_timer_impl(action, task_name)

    @mcp.prompt()
    def time_tracking_recommendations() -> str:
        """Get recommendations for improving time tracking and productivity."""
        return time_tracking_recommendations_impl()
