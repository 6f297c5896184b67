"""
Period, Timestamp and Duration Helpers

- resolve_date_range: period token -> exact [start, end] epoch-ms boundaries
- parse_timestamp:    ISO-8601 / epoch-ms input -> epoch ms
- format_duration:    ms -> "1d 2h 5m" (report / summary output)
- format_duration_hms: ms -> "1h 2m 3s" (timer output)

All calendar arithmetic happens on wall-clock (naive) datetimes in the
resolver's zone and is converted to epoch ms only at the end, so DST days
keep their real length.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

from clickup_time.errors import InvalidPeriodError

PERIODS = (
    "today",
    "yesterday",
    "this_week",
    "last_week",
    "this_month",
    "last_month",
    "custom",
)

PERIOD_LABELS = {
    "today": "Today",
    "yesterday": "Yesterday",
    "this_week": "This Week",
    "last_week": "Last Week",
    "this_month": "This Month",
    "last_month": "Last Month",
    "custom": "Custom Period",
}

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000
MS_PER_DAY = 86_400_000

_DIGITS = re.compile(r"^-?\d+$")


@dataclass(frozen=True)
class TimeRange:
    """Inclusive [start, end] window in epoch milliseconds."""

    start: int
    end: int

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "start_iso": ms_to_iso(self.start),
            "end_iso": ms_to_iso(self.end),
        }


# ============================================================================
# WALL-CLOCK <-> EPOCH
# ============================================================================


def _wall_clock_now(now: Optional[datetime], tz) -> datetime:
    """Current instant as a naive wall-clock datetime in ``tz`` (or host local)."""
    if now is None:
        now = datetime.now(tz) if tz is not None else datetime.now()
    if now.tzinfo is not None:
        now = now.astimezone(tz) if tz is not None else now.astimezone()
        now = now.replace(tzinfo=None)
    return now


def _to_ms(wall: datetime, tz) -> int:
    if tz is not None:
        wall = wall.replace(tzinfo=tz)
    return round(wall.timestamp() * 1000)


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59, 999000))


def ms_to_datetime(ms: int, tz=None) -> datetime:
    """Epoch ms -> aware datetime in ``tz`` (host local zone when None)."""
    dt = datetime.fromtimestamp(int(ms) / 1000, tz=timezone.utc)
    return dt.astimezone(tz) if tz is not None else dt.astimezone()


def ms_to_iso(ms: int) -> str:
    """Epoch ms -> UTC ISO-8601 with millisecond precision."""
    dt = datetime.fromtimestamp(int(ms) / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def day_key(ms: int, tz=None) -> str:
    """Local calendar day of ``ms`` as an unpadded ``YYYY-M-D`` key."""
    d = ms_to_datetime(ms, tz)
    return f"{d.year}-{d.month}-{d.day}"


def format_timestamp(ms, tz=None) -> str:
    """
    Human-readable local timestamp for markdown payloads.

    Example:
        format_timestamp(1738410840000, ZoneInfo("Asia/Kolkata"))
        -> "Sat, Feb 1, 2025 5:24 PM"
    """
    try:
        dt = ms_to_datetime(int(ms), tz)
    except (TypeError, ValueError, OverflowError, OSError):
        return "Invalid date"
    hour = dt.strftime("%I").lstrip("0") or "12"
    return f"{dt.strftime('%a, %b')} {dt.day}, {dt.year} {hour}:{dt.strftime('%M %p')}"


# ============================================================================
# TIMESTAMP PARSING
# ============================================================================


def parse_timestamp(value: Union[str, int, float], tz=None) -> int:
    """
    Normalize an ISO-8601 string or an epoch-ms number/digit-string to epoch ms.

    Naive ISO values are read as wall-clock time in ``tz`` (host local when
    None). Raises ValueError for anything else, including instants outside
    the range a datetime can represent.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    try:
        ms = _parse_ms(value, tz)
        # reject instants datetime cannot represent
        datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        raise ValueError(f"Invalid timestamp: {value!r}") from None
    return ms


def _parse_ms(value, tz) -> int:
    if isinstance(value, (int, float)):
        return int(value)

    text = str(value).strip()
    if _DIGITS.match(text):
        return int(text)

    dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return _to_ms(dt, tz)
    return round(dt.timestamp() * 1000)


# ============================================================================
# PERIOD -> RANGE
# ============================================================================


def resolve_date_range(
    period: str,
    start=None,
    end=None,
    *,
    now: Optional[datetime] = None,
    tz=None,
) -> TimeRange:
    """
    Convert a period token into exact millisecond boundaries.

    Weeks start on Sunday. Closed periods end at 23:59:59.999 of their last
    day; ``yesterday`` ends one millisecond before today's midnight, so an
    entry stamped exactly at midnight belongs to today. Open periods
    (today / this_week / this_month) end at the current instant.

    Args:
        period: today | yesterday | this_week | last_week | this_month |
                last_month | custom
        start:  custom lower bound (ISO-8601 string or epoch ms)
        end:    custom upper bound (ISO-8601 string or epoch ms)
        now:    override for the current instant (tests)
        tz:     ZoneInfo whose calendar defines days; host local when None

    Raises:
        InvalidPeriodError: unknown token, missing/unparsable custom bound,
            or a custom range whose start is after its end.
    """
    key = (period or "").strip().lower()

    if key == "custom":
        if start in (None, "") or end in (None, ""):
            raise InvalidPeriodError(
                "Custom period requires both start_date and end_date"
            )
        try:
            start_ms = parse_timestamp(start, tz)
            end_ms = parse_timestamp(end, tz)
        except ValueError as e:
            raise InvalidPeriodError(str(e)) from None
        if start_ms > end_ms:
            raise InvalidPeriodError(
                f"Custom period start ({start}) is after its end ({end})"
            )
        return TimeRange(start_ms, end_ms)

    wall_now = _wall_clock_now(now, tz)
    today = wall_now.date()
    now_ms = _to_ms(wall_now, tz)
    today_ms = _to_ms(_midnight(today), tz)

    # Python weekday(): Monday=0 .. Sunday=6 -> days since Sunday
    since_sunday = (today.weekday() + 1) % 7
    sunday = today - timedelta(days=since_sunday)

    if key == "today":
        return TimeRange(today_ms, now_ms)

    if key == "yesterday":
        yesterday = today - timedelta(days=1)
        return TimeRange(_to_ms(_midnight(yesterday), tz), today_ms - 1)

    if key == "this_week":
        return TimeRange(_to_ms(_midnight(sunday), tz), now_ms)

    if key == "last_week":
        last_sunday = sunday - timedelta(days=7)
        last_saturday = sunday - timedelta(days=1)
        return TimeRange(
            _to_ms(_midnight(last_sunday), tz),
            _to_ms(_end_of_day(last_saturday), tz),
        )

    if key == "this_month":
        return TimeRange(_to_ms(_midnight(today.replace(day=1)), tz), now_ms)

    if key == "last_month":
        # "day 0" of this month is the last day of the previous one
        last_day = today.replace(day=1) - timedelta(days=1)
        return TimeRange(
            _to_ms(_midnight(last_day.replace(day=1)), tz),
            _to_ms(_end_of_day(last_day), tz),
        )

    raise InvalidPeriodError(
        f"Invalid period: {period!r}. Expected one of: {', '.join(PERIODS)}"
    )


# ============================================================================
# FORMATTING
# ============================================================================


def format_duration(ms) -> str:
    """
    Format milliseconds as days/hours/minutes, dropping seconds.

    Rendering starts at the highest non-zero unit and always runs down to
    minutes, so the result is never empty.

    Example:
        format_duration(0)        -> "0m"
        format_duration(90000)    -> "1m"
        format_duration(3600000)  -> "1h 0m"
        format_duration(90000000) -> "1d 1h 0m"
    """
    if not ms:
        return "0m"
    ms = max(0, int(ms))
    days, rest = divmod(ms, MS_PER_DAY)
    hours, rest = divmod(rest, MS_PER_HOUR)
    minutes = rest // MS_PER_MINUTE

    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_duration_hms(ms) -> str:
    """Format milliseconds as '1h 2m 3s' / '2m 3s' / '3s'. Used for timers."""
    if not ms:
        return "0s"
    seconds = max(0, int(ms)) // 1000
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    if hours:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def percentage(part, whole) -> int:
    """round(100 * part / whole), halves rounded up; 0 when ``whole`` is 0."""
    part = int(part or 0)
    whole = int(whole or 0)
    if whole == 0:
        return 0
    return (200 * part + whole) // (2 * whole)
