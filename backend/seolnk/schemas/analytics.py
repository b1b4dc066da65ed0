from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel


class MetricStats(BaseModel):
    """All-time and in-period count of one metric"""
    total_all_time: int
    in_window: int


class DeviceStats(BaseModel):
    """Device breakdown with percentages of the classified total"""
    mobile: int
    tablet: int
    desktop: int
    total: int
    mobile_percentage: float
    tablet_percentage: float
    desktop_percentage: float


class GroupStats(BaseModel):
    """Leaderboard row (referrer, country)"""
    label: str
    count: int
    percentage: float


class SubjectStats(BaseModel):
    """Per-subject leaderboard row (bio link, rotator destination)"""
    id: int
    label: str
    count: int
    percentage: float
    bar_width: float


class DailyStats(BaseModel):
    """Single day of the chart series"""
    date: date
    count: int
    label: str


class RecentEvent(BaseModel):
    """Recent activity entry"""
    occurred_at: datetime
    referrer: str
    device: str
    country: Optional[str] = None


class LinkAnalytics(BaseModel):
    """Analytics for a preview, alias, protected or expiring link"""
    slug: str
    kind: str
    title: Optional[str]
    days: int
    primary_metric: str  # "views", "clicks" or "unlocks"
    views: MetricStats
    clicks: MetricStats
    unlocks: MetricStats
    click_rate: float
    last_7_days: int
    devices: DeviceStats
    top_referrers: List[GroupStats]
    daily: List[DailyStats]
    weekly: Optional[List[DailyStats]] = None  # alias links only
    recent: List[RecentEvent]


class RotatorAnalytics(BaseModel):
    """Analytics for a URL rotator"""
    slug: str
    title: Optional[str]
    days: int
    clicks: MetricStats
    last_7_days: int
    devices: DeviceStats
    destinations: List[SubjectStats]
    top_countries: List[GroupStats]
    top_referrers: List[GroupStats]
    daily: List[DailyStats]
    recent: List[RecentEvent]


class BioSummary(BaseModel):
    """Views vs. clicks for a bio page"""
    views: MetricStats
    clicks: MetricStats
    click_rate: float


class BioAnalytics(BaseModel):
    """Analytics for a link-in-bio page"""
    bio_page_id: int
    username: str
    days: int
    summary: BioSummary
    top_link: Optional[SubjectStats]
    links: List[SubjectStats]
    devices: DeviceStats
    top_referrers: List[GroupStats]
    daily_views: List[DailyStats]
    recent_views: List[RecentEvent]
    recent_clicks: List[RecentEvent]
