import logging
from datetime import datetime, timezone, tzinfo
from typing import Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ..config import settings
from ..core import rollup
from ..core.classify import classify_device, normalize_referrer
from ..models import BioEvent, BioPage, Link, LinkEvent

logger = logging.getLogger(__name__)

# Which event stream drives charts and breakdowns for each link kind
PRIMARY_EVENT = {
    "preview": "view",
    "protected": "unlock",
}
METRIC_NAMES = {"view": "views", "click": "clicks", "unlock": "unlocks"}


def reporting_zone() -> tzinfo:
    """Timezone used to bucket events into calendar days"""
    name = settings.REPORT_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def report_now() -> datetime:
    """Current time in the reporting timezone, captured once per report"""
    return datetime.now(reporting_zone())


def to_rollup_event(row, subject_id=None, country_code: Optional[str] = None) -> rollup.Event:
    """Convert a stored event row into an engine record"""
    return rollup.Event(
        occurred_at=row.occurred_at,
        referrer=row.referrer,
        user_agent=row.user_agent,
        subject_id=subject_id,
        country_code=country_code
    )


def _counter(value: Optional[int]) -> Optional[int]:
    # A zero counter means "not tracked"; fall back to the raw event count
    return value or None


def _metric_stats(summary: rollup.MetricSummary) -> dict:
    return {
        "total_all_time": summary.total_all_time,
        "in_window": summary.in_window
    }


def _device_stats(devices: rollup.DeviceBreakdown) -> dict:
    percentages = devices.percentages()
    return {
        "mobile": devices.mobile,
        "tablet": devices.tablet,
        "desktop": devices.desktop,
        "total": devices.total,
        "mobile_percentage": percentages["mobile"],
        "tablet_percentage": percentages["tablet"],
        "desktop_percentage": percentages["desktop"]
    }


def _group_stats(groups: Sequence[rollup.GroupCount], total: int) -> List[dict]:
    return [
        {
            "label": str(group.label),
            "count": group.count,
            "percentage": rollup.share(group.count, total)
        }
        for group in groups
    ]


def _subject_stats(subjects: Sequence[rollup.SubjectCount]) -> List[dict]:
    total = sum(subject.count for subject in subjects)
    return [
        {
            "id": subject.id,
            "label": subject.label,
            "count": subject.count,
            "percentage": rollup.share(subject.count, total),
            "bar_width": subject.bar_width
        }
        for subject in subjects
    ]


def _daily_stats(points: Sequence[rollup.DailyPoint]) -> List[dict]:
    return [
        {"date": point.date, "count": point.count, "label": point.label}
        for point in points
    ]


def _recent(events: Sequence[rollup.Event]) -> List[dict]:
    return [
        {
            "occurred_at": event.occurred_at,
            "referrer": normalize_referrer(event.referrer),
            "device": classify_device(event.user_agent),
            "country": event.country_code
        }
        for event in events
    ]


def get_link_analytics(
    db: Session,
    link: Link,
    days: int,
    chart_days: int,
    now: Optional[datetime] = None
) -> dict:
    """Get complete analytics for a preview, alias, protected or expiring link"""
    now = now or report_now()

    rows = db.query(LinkEvent).filter(
        LinkEvent.link_id == link.id
    ).order_by(LinkEvent.occurred_at, LinkEvent.id).all()

    streams: Dict[str, List[rollup.Event]] = {"view": [], "click": [], "unlock": []}
    for row in rows:
        if row.event_type in streams:
            streams[row.event_type].append(to_rollup_event(row))

    primary = PRIMARY_EVENT.get(link.kind, "click")
    totals = {
        "view": _counter(link.views_count),
        "click": _counter(link.clicks_count),
        "unlock": None
    }

    engagement = rollup.summarize_engagement(
        streams["view"],
        streams["click"],
        window_days=days,
        now=now,
        total_views=totals["view"],
        total_clicks=totals["click"]
    )
    unlocks = rollup.summarize(streams["unlock"], None, days, now)

    report = rollup.build_report(
        streams[primary],
        now=now,
        window_days=days,
        chart_days=chart_days,
        all_time_total=totals[primary],
        top_limit=settings.TOP_LIMIT,
        recent_limit=settings.RECENT_LIMIT
    )

    weekly = None
    if link.kind == "alias":
        weekly = _daily_stats(rollup.daily_series(streams["click"], 7, now, label=rollup.weekday_label))

    logger.debug("Link analytics for %s: %d %s events", link.slug, len(streams[primary]), primary)

    return {
        "slug": link.slug,
        "kind": link.kind,
        "title": link.title,
        "days": days,
        "primary_metric": METRIC_NAMES[primary],
        "views": _metric_stats(engagement.views),
        "clicks": _metric_stats(engagement.clicks),
        "unlocks": _metric_stats(unlocks),
        "click_rate": engagement.click_rate,
        "last_7_days": report.last_7_days,
        "devices": _device_stats(report.devices),
        "top_referrers": _group_stats(report.top_referrers, len(streams[primary])),
        "daily": _daily_stats(report.daily),
        "weekly": weekly,
        "recent": _recent(report.recent)
    }


def get_rotator_analytics(
    db: Session,
    link: Link,
    days: int,
    now: Optional[datetime] = None
) -> dict:
    """Get clicks per destination, countries, referrers and devices for a rotator"""
    now = now or report_now()

    rows = db.query(LinkEvent).filter(
        LinkEvent.link_id == link.id,
        LinkEvent.event_type == "click"
    ).order_by(LinkEvent.occurred_at, LinkEvent.id).all()

    clicks = [
        to_rollup_event(row, subject_id=row.destination_id, country_code=row.country_code)
        for row in rows
    ]
    subjects = [
        rollup.Subject(id=destination.id, label=destination.url, total_count=_counter(destination.clicks_count))
        for destination in link.destinations
    ]

    report = rollup.build_report(
        clicks,
        now=now,
        window_days=days,
        chart_days=days,
        subjects=subjects,
        top_limit=settings.TOP_LIMIT,
        recent_limit=settings.RECENT_LIMIT
    )

    logger.debug("Rotator analytics for %s: %d clicks", link.slug, len(clicks))

    return {
        "slug": link.slug,
        "title": link.title,
        "days": days,
        "clicks": _metric_stats(report.summary),
        "last_7_days": report.last_7_days,
        "devices": _device_stats(report.devices),
        "destinations": _subject_stats(report.subjects),
        "top_countries": _group_stats(report.top_countries, len(clicks)),
        "top_referrers": _group_stats(report.top_referrers, len(clicks)),
        "daily": _daily_stats(report.daily),
        "recent": _recent(report.recent)
    }


def get_bio_analytics(
    db: Session,
    page: BioPage,
    days: int,
    now: Optional[datetime] = None
) -> dict:
    """Get page views vs. link clicks for a bio page"""
    now = now or report_now()

    rows = db.query(BioEvent).filter(
        BioEvent.bio_page_id == page.id
    ).order_by(BioEvent.occurred_at, BioEvent.id).all()

    views = [to_rollup_event(row) for row in rows if row.event_type == "page_view"]
    clicks = [
        to_rollup_event(row, subject_id=row.bio_link_id)
        for row in rows
        if row.event_type == "link_click"
    ]

    total_clicks = sum(link.clicks_count or 0 for link in page.links)
    engagement = rollup.summarize_engagement(
        views,
        clicks,
        window_days=days,
        now=now,
        total_views=_counter(page.views_count),
        total_clicks=_counter(total_clicks)
    )

    # Breakdowns and recent lists follow the selected period; the per-link
    # leaderboard stays all-time
    period_views = rollup.in_window(views, days, now)
    period_clicks = rollup.in_window(clicks, days, now)

    view_report = rollup.build_report(
        period_views,
        now=now,
        window_days=days,
        chart_days=days,
        top_limit=settings.TOP_LIMIT,
        recent_limit=settings.BIO_RECENT_LIMIT
    )

    subjects = [
        rollup.Subject(id=link.id, label=link.title, total_count=_counter(link.clicks_count))
        for link in page.links
    ]
    links = _subject_stats(rollup.per_subject_leaderboard(subjects, clicks))

    logger.debug("Bio analytics for %s: %d views, %d clicks", page.username, len(views), len(clicks))

    return {
        "bio_page_id": page.id,
        "username": page.username,
        "days": days,
        "summary": {
            "views": _metric_stats(engagement.views),
            "clicks": _metric_stats(engagement.clicks),
            "click_rate": engagement.click_rate
        },
        "top_link": links[0] if links else None,
        "links": links,
        "devices": _device_stats(view_report.devices),
        "top_referrers": _group_stats(view_report.top_referrers, len(period_views)),
        "daily_views": _daily_stats(view_report.daily),
        "recent_views": _recent(view_report.recent),
        "recent_clicks": _recent(rollup.recent_activity(period_clicks, settings.BIO_RECENT_LIMIT))
    }
