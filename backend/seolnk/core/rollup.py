"""
Analytics rollups.

Pure functions that reduce raw analytics events (page views, clicks,
rotator clicks, unlocks) into the numbers shown on analytics pages:
summary counters, device breakdown, leaderboards, a gap-filled daily
series and a recent-activity slice.

Nothing here touches the database or reads the clock. Callers capture
`now` once and pass the same value to every function of one report.
Naive datetimes are treated as UTC.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from .classify import DEVICE_RULES, DEFAULT_DEVICE, classify_device, country_label, normalize_referrer
from .exceptions import InvalidArgument

logger = logging.getLogger(__name__)

DEVICE_CATEGORIES = ("mobile", "tablet", "desktop")


@dataclass(frozen=True)
class Event:
    """Single raw event as recorded by the tracking endpoint"""
    occurred_at: datetime
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    subject_id: Any = None
    country_code: Optional[str] = None


@dataclass(frozen=True)
class Subject:
    """Entity an event is about (bio link, rotator destination)"""
    id: Any
    label: str
    total_count: Optional[int] = None


@dataclass(frozen=True)
class MetricSummary:
    total_all_time: int
    in_window: int


@dataclass(frozen=True)
class EngagementSummary:
    views: MetricSummary
    clicks: MetricSummary
    click_rate: float


@dataclass(frozen=True)
class DeviceBreakdown:
    mobile: int = 0
    tablet: int = 0
    desktop: int = 0

    @property
    def total(self) -> int:
        return self.mobile + self.tablet + self.desktop

    def percentages(self) -> Dict[str, float]:
        """Share of each bucket, all zeros when nothing was classified"""
        total = self.total
        return {
            "mobile": share(self.mobile, total),
            "tablet": share(self.tablet, total),
            "desktop": share(self.desktop, total),
        }


@dataclass(frozen=True)
class GroupCount:
    label: Hashable
    count: int


@dataclass(frozen=True)
class SubjectCount:
    id: Any
    label: str
    count: int
    bar_width: float


@dataclass(frozen=True)
class DailyPoint:
    date: date
    count: int
    label: str


@dataclass(frozen=True)
class RollupReport:
    """Everything one analytics page needs, computed against a single `now`"""
    now: datetime
    summary: MetricSummary
    last_7_days: int
    devices: DeviceBreakdown
    top_referrers: List[GroupCount]
    top_countries: List[GroupCount]
    subjects: List[SubjectCount]
    daily: List[DailyPoint]
    recent: List[Event]


# --- Argument checks ---


def _check_events(events: Any, name: str = "events") -> Sequence[Any]:
    if not isinstance(events, (list, tuple)):
        raise InvalidArgument(f"{name} must be a list, got {type(events).__name__}")
    return events


def _check_days(value: Any, name: str, integral: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value) or value < 0:
        raise InvalidArgument(f"{name} must be a finite non-negative number, got {value!r}")
    if integral and value != int(value):
        raise InvalidArgument(f"{name} must be a whole number of days, got {value!r}")


def _check_limit(limit: Any) -> None:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise InvalidArgument(f"limit must be a non-negative integer, got {limit!r}")


# --- Time helpers ---


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _reporting_zone(now: datetime) -> tzinfo:
    return now.tzinfo or timezone.utc


def _local_date(ts: datetime, zone: tzinfo) -> date:
    return _as_utc(ts).astimezone(zone).date()


def month_day_label(day: date) -> str:
    """Short chart label, e.g. "Jan 5" """
    return f"{day:%b} {day.day}"


def weekday_label(day: date) -> str:
    """Weekday chart label, e.g. "Mon" """
    return f"{day:%a}"


def share(count: int, total: int) -> float:
    """Percentage of total rounded to one decimal, 0 for an empty total"""
    if total <= 0:
        return 0.0
    return round(count / total * 100, 1)


def click_rate(clicks: int, views: int) -> float:
    """Clicks per 100 views; a zero view count is treated as one"""
    return round(clicks / max(views, 1) * 100, 1)


# --- Summary ---


def summarize(
    events: Sequence[Event],
    all_time_total: Optional[int],
    window_days: float,
    now: datetime
) -> MetricSummary:
    """
    Count events all-time and inside the trailing window.

    Args:
        events: Full event list, not filtered by time
        all_time_total: Denormalized counter; wins over len(events) when not None
        window_days: Window length in days
        now: Current time, end of the window (inclusive)

    Returns:
        MetricSummary with all-time and in-window counts

    Raises:
        InvalidArgument: For a non-list event collection or a bad window
    """
    events = _check_events(events)
    _check_days(window_days, "window_days")

    total = all_time_total if all_time_total is not None else len(events)

    return MetricSummary(total_all_time=total, in_window=len(in_window(events, window_days, now)))


def in_window(
    events: Sequence[Event],
    window_days: float,
    now: datetime,
    strict_start: bool = False
) -> List[Event]:
    """
    Events inside the trailing window ending at `now` (inclusive).

    With strict_start an event stamped exactly `window_days` ago is left
    out, which is how the "last 7 days" trend figure counts.
    """
    events = _check_events(events)
    _check_days(window_days, "window_days")

    if window_days <= 0:
        return []

    end = _as_utc(now)
    start = end - timedelta(days=window_days)

    if strict_start:
        return [event for event in events if start < _as_utc(event.occurred_at) <= end]
    return [event for event in events if start <= _as_utc(event.occurred_at) <= end]


def summarize_engagement(
    views: Sequence[Event],
    clicks: Sequence[Event],
    *,
    window_days: float,
    now: datetime,
    total_views: Optional[int] = None,
    total_clicks: Optional[int] = None
) -> EngagementSummary:
    """Views and clicks side by side; the click rate always uses in-window counts"""
    view_summary = summarize(views, total_views, window_days, now)
    click_summary = summarize(clicks, total_clicks, window_days, now)

    return EngagementSummary(
        views=view_summary,
        clicks=click_summary,
        click_rate=click_rate(click_summary.in_window, view_summary.in_window)
    )


# --- Breakdowns and leaderboards ---


def device_breakdown(
    events: Sequence[Event],
    rules: Sequence[Tuple[str, Sequence[str]]] = DEVICE_RULES
) -> DeviceBreakdown:
    """Classify every event into exactly one of mobile, tablet or desktop"""
    events = _check_events(events)
    for category, _needles in rules:
        if category not in DEVICE_CATEGORIES:
            raise InvalidArgument(f"Unknown device category in rules: {category!r}")

    counts = Counter(classify_device(event.user_agent, rules, DEFAULT_DEVICE) for event in events)

    return DeviceBreakdown(
        mobile=counts["mobile"],
        tablet=counts["tablet"],
        desktop=counts["desktop"]
    )


def referrer_key(event: Event) -> str:
    return normalize_referrer(event.referrer)


def country_key(event: Event) -> str:
    return country_label(event.country_code)


def subject_key(event: Event) -> Any:
    return event.subject_id


def top_groups(
    events: Sequence[Event],
    key: Callable[[Event], Hashable],
    limit: Optional[int] = None
) -> List[GroupCount]:
    """
    Group events by key and rank the groups by size.

    Ties keep the order in which their first event appears in the input.
    A limit of None returns every group.
    """
    events = _check_events(events)
    if limit is not None:
        _check_limit(limit)

    # Counter keeps first-seen order, sorted() is stable
    counts = Counter(key(event) for event in events)
    ranked = sorted(counts.items(), key=lambda item: -item[1])

    if limit is not None:
        ranked = ranked[:limit]

    return [GroupCount(label=label, count=count) for label, count in ranked]


def per_subject_leaderboard(
    subjects: Sequence[Subject],
    events: Sequence[Event]
) -> List[SubjectCount]:
    """
    Count events per subject and rank subjects by count.

    A subject with no raw events falls back to its denormalized
    total_count when it has one. bar_width is relative to the top count.
    """
    subjects = _check_events(subjects, "subjects")
    events = _check_events(events)

    raw = Counter(event.subject_id for event in events)

    counted = []
    for subject in subjects:
        count = raw.get(subject.id, 0)
        if count == 0 and subject.total_count is not None:
            count = subject.total_count
        counted.append((subject, count))

    counted.sort(key=lambda item: -item[1])
    max_count = max(counted[0][1] if counted else 0, 1)

    return [
        SubjectCount(
            id=subject.id,
            label=subject.label,
            count=count,
            bar_width=round(count / max_count * 100, 1)
        )
        for subject, count in counted
    ]


# --- Time series ---


def daily_series(
    events: Sequence[Event],
    days: int,
    now: datetime,
    label: Callable[[date], str] = month_day_label
) -> List[DailyPoint]:
    """
    Per-day event counts for the last `days` calendar days, oldest first.

    The series always has exactly `days` entries and ends on the calendar
    date of `now`. Days without events are present with a zero count.
    Dates are taken in now's timezone (UTC when `now` is naive) for both
    the generated days and the event timestamps.
    """
    events = _check_events(events)
    _check_days(days, "days", integral=True)
    days = int(days)

    zone = _reporting_zone(now)
    today = _local_date(now, zone)
    first = today - timedelta(days=days - 1)

    counts: Counter = Counter()
    for event in events:
        day = _local_date(event.occurred_at, zone)
        if first <= day <= today:
            counts[day] += 1

    series = []
    for offset in range(days):
        day = first + timedelta(days=offset)
        series.append(DailyPoint(date=day, count=counts[day], label=label(day)))

    return series


def recent_activity(events: Sequence[Event], limit: int = 10) -> List[Event]:
    """Newest events first; events with equal timestamps keep input order"""
    events = _check_events(events)
    _check_limit(limit)

    ordered = sorted(events, key=lambda event: _as_utc(event.occurred_at), reverse=True)
    return ordered[:limit]


# --- Full report ---


def build_report(
    events: Sequence[Event],
    *,
    now: datetime,
    window_days: float,
    chart_days: int,
    all_time_total: Optional[int] = None,
    subjects: Optional[Sequence[Subject]] = None,
    top_limit: int = 5,
    recent_limit: int = 10,
    label: Callable[[date], str] = month_day_label
) -> RollupReport:
    """
    Run every rollup over one event list against the same `now`.

    Args:
        events: Full event list for the parent entity
        now: Current time, captured once by the caller
        window_days: Length of the in-period window
        chart_days: Number of entries in the daily series
        all_time_total: Optional denormalized all-time counter
        subjects: Optional subjects for the per-subject leaderboard
        top_limit: Size of the referrer and country leaderboards
        recent_limit: Size of the recent-activity slice
        label: Formatter for daily series labels

    Returns:
        RollupReport
    """
    events = _check_events(events)

    report = RollupReport(
        now=now,
        summary=summarize(events, all_time_total, window_days, now),
        last_7_days=len(in_window(events, 7, now, strict_start=True)),
        devices=device_breakdown(events),
        top_referrers=top_groups(events, referrer_key, top_limit),
        top_countries=top_groups(events, country_key, top_limit),
        subjects=per_subject_leaderboard(subjects, events) if subjects is not None else [],
        daily=daily_series(events, chart_days, now, label),
        recent=recent_activity(events, recent_limit)
    )

    logger.debug(
        "Built rollup over %d events (window=%s days, chart=%s days)",
        len(events), window_days, chart_days
    )
    return report
