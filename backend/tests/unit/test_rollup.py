import math
from datetime import date, datetime, timedelta, timezone

import pytest

from seolnk.core.exceptions import InvalidArgument
from seolnk.core.rollup import (
    DailyPoint,
    DeviceBreakdown,
    Event,
    GroupCount,
    Subject,
    build_report,
    click_rate,
    country_key,
    daily_series,
    device_breakdown,
    in_window,
    per_subject_leaderboard,
    recent_activity,
    referrer_key,
    share,
    subject_key,
    summarize,
    summarize_engagement,
    top_groups,
    weekday_label,
)

MOBILE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0"
TABLET_UA = "Tablet; iPad"

DAY_0 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
NOW = DAY_0 + timedelta(days=6)


def at(days: float, **fields) -> Event:
    return Event(occurred_at=DAY_0 + timedelta(days=days), **fields)


@pytest.fixture
def scenario():
    """Three events over a week: two on day 0, one on day 3"""
    return [
        at(0, user_agent=MOBILE_UA, referrer=""),
        at(0, user_agent=DESKTOP_UA, referrer="https://twitter.com/x"),
        at(3, user_agent=TABLET_UA, referrer="unknown"),
    ]


class TestScenario:

    def test_summary(self, scenario):
        summary = summarize(scenario, None, 7, NOW)
        assert summary.total_all_time == 3
        assert summary.in_window == 3

    def test_devices(self, scenario):
        assert device_breakdown(scenario) == DeviceBreakdown(mobile=1, tablet=1, desktop=1)

    def test_referrers(self, scenario):
        assert top_groups(scenario, referrer_key) == [
            GroupCount(label="Direct", count=2),
            GroupCount(label="twitter.com", count=1),
        ]

    def test_daily_series(self, scenario):
        series = daily_series(scenario, 7, NOW)
        assert [point.count for point in series] == [2, 0, 0, 1, 0, 0, 0]
        assert series[0].date == date(2024, 6, 1)
        assert series[-1].date == date(2024, 6, 7)


class TestSummarize:

    def test_empty(self):
        summary = summarize([], None, 30, NOW)
        assert summary.total_all_time == 0
        assert summary.in_window == 0

    def test_counter_wins_when_given(self):
        assert summarize([at(5)], 50, 7, NOW).total_all_time == 50

    def test_zero_counter_is_still_a_counter(self):
        assert summarize([at(5)], 0, 7, NOW).total_all_time == 0

    def test_window_excludes_older_events(self):
        events = [at(-10), at(-1), at(5)]
        summary = summarize(events, None, 7, NOW)
        assert summary.total_all_time == 3
        assert summary.in_window == 2

    def test_window_start_is_inclusive(self):
        assert summarize([Event(occurred_at=NOW - timedelta(days=7))], None, 7, NOW).in_window == 1

    def test_future_events_are_not_in_window(self):
        assert summarize([Event(occurred_at=NOW + timedelta(hours=1))], None, 7, NOW).in_window == 0

    def test_zero_window(self):
        assert summarize([Event(occurred_at=NOW)], None, 0, NOW).in_window == 0

    def test_fractional_window(self):
        events = [Event(occurred_at=NOW - timedelta(hours=6)), Event(occurred_at=NOW - timedelta(hours=18))]
        assert summarize(events, None, 0.5, NOW).in_window == 1

    def test_naive_timestamps_are_utc(self):
        naive = datetime(2024, 6, 6, 12, 0)
        assert summarize([Event(occurred_at=naive)], None, 7, NOW).in_window == 1

    def test_input_order_does_not_matter(self, scenario):
        forward = summarize(scenario, None, 4, NOW)
        backward = summarize(list(reversed(scenario)), None, 4, NOW)
        assert forward == backward

    @pytest.mark.parametrize("window", [-1, math.inf, math.nan, "7", None, True])
    def test_bad_window_rejected(self, window):
        with pytest.raises(InvalidArgument):
            summarize([], None, window, NOW)

    @pytest.mark.parametrize("events", [None, "abc", {"a": 1}, 5])
    def test_non_list_events_rejected(self, events):
        with pytest.raises(InvalidArgument):
            summarize(events, None, 7, NOW)

    def test_invalid_argument_is_value_error(self):
        with pytest.raises(ValueError):
            summarize([], None, -3, NOW)


class TestClickRate:

    def test_rate(self):
        assert click_rate(1, 3) == 33.3

    def test_zero_views(self):
        assert click_rate(0, 0) == 0.0

    def test_clicks_without_views_use_one_as_denominator(self):
        assert click_rate(2, 0) == 200.0

    def test_engagement_uses_in_window_counts(self):
        views = [at(5), at(5), at(5), at(5), at(-30)]
        clicks = [at(5), at(-30)]
        engagement = summarize_engagement(views, clicks, window_days=7, now=NOW, total_views=100)
        assert engagement.views.total_all_time == 100
        assert engagement.views.in_window == 4
        assert engagement.clicks.total_all_time == 2
        assert engagement.click_rate == 25.0

    def test_empty_engagement(self):
        engagement = summarize_engagement([], [], window_days=30, now=NOW)
        assert engagement.click_rate == 0.0
        assert not math.isnan(engagement.click_rate)


class TestDeviceBreakdown:

    def test_buckets_sum_to_total(self):
        events = [at(0, user_agent=ua) for ua in (MOBILE_UA, TABLET_UA, DESKTOP_UA, None, "", "bot")]
        devices = device_breakdown(events)
        assert devices.total == len(events)
        assert devices.desktop == 4

    def test_empty_percentages_are_zero(self):
        devices = device_breakdown([])
        assert devices.total == 0
        assert devices.percentages() == {"mobile": 0.0, "tablet": 0.0, "desktop": 0.0}

    def test_percentages(self):
        devices = DeviceBreakdown(mobile=1, tablet=0, desktop=2)
        assert devices.percentages() == {"mobile": 33.3, "tablet": 0.0, "desktop": 66.7}

    def test_unknown_category_in_rules_rejected(self):
        with pytest.raises(InvalidArgument):
            device_breakdown([], rules=(("watch", ("watch",)),))


class TestTopGroups:

    def test_limit(self):
        events = [at(0, referrer=f"https://site{i}.com/") for i in range(8)]
        assert len(top_groups(events, referrer_key, 5)) == 5

    def test_sorted_non_increasing(self):
        events = [at(0, referrer=ref) for ref in ("a", "b", "b", "c", "c", "c")]
        counts = [group.count for group in top_groups(events, referrer_key)]
        assert counts == sorted(counts, reverse=True)

    def test_ties_keep_first_seen_order(self):
        events = [at(0, referrer=ref) for ref in ("b", "a", "a", "b", "c")]
        assert [group.label for group in top_groups(events, referrer_key)] == ["b", "a", "c"]

    def test_countries(self):
        events = [at(0, country_code=code) for code in ("US", None, "us", "")]
        assert top_groups(events, country_key) == [
            GroupCount(label="US", count=2),
            GroupCount(label="Unknown", count=2),
        ]

    def test_by_subject(self):
        events = [at(0, subject_id=1), at(0, subject_id=2), at(0, subject_id=2)]
        assert top_groups(events, subject_key)[0] == GroupCount(label=2, count=2)

    def test_empty(self):
        assert top_groups([], referrer_key, 5) == []

    def test_zero_limit(self):
        assert top_groups([at(0)], referrer_key, 0) == []

    def test_negative_limit_rejected(self):
        with pytest.raises(InvalidArgument):
            top_groups([], referrer_key, -1)


class TestPerSubjectLeaderboard:

    def test_counts_and_order(self):
        subjects = [Subject(id=1, label="a"), Subject(id=2, label="b")]
        events = [at(0, subject_id=2), at(0, subject_id=2), at(0, subject_id=1)]
        board = per_subject_leaderboard(subjects, events)
        assert [(row.id, row.count) for row in board] == [(2, 2), (1, 1)]
        assert board[0].bar_width == 100.0
        assert board[1].bar_width == 50.0

    def test_counter_used_when_no_raw_events(self):
        subjects = [Subject(id=1, label="a", total_count=50)]
        assert per_subject_leaderboard(subjects, [])[0].count == 50

    def test_raw_events_win_over_counter(self):
        subjects = [Subject(id=1, label="a", total_count=50)]
        assert per_subject_leaderboard(subjects, [at(0, subject_id=1)])[0].count == 1

    def test_all_zero_does_not_divide_by_zero(self):
        subjects = [Subject(id=1, label="a"), Subject(id=2, label="b")]
        board = per_subject_leaderboard(subjects, [])
        assert [row.bar_width for row in board] == [0.0, 0.0]

    def test_events_for_unknown_subjects_ignored(self):
        board = per_subject_leaderboard([Subject(id=1, label="a")], [at(0, subject_id=99)])
        assert board[0].count == 0

    def test_no_subjects(self):
        assert per_subject_leaderboard([], [at(0, subject_id=1)]) == []


class TestDailySeries:

    @pytest.mark.parametrize("events", [
        [],
        [at(5)],
        [at(offset / 3) for offset in range(30)],
    ])
    def test_fixed_length_consecutive_days(self, events):
        series = daily_series(events, 14, NOW)
        assert len(series) == 14
        assert series[-1].date == NOW.date()
        for previous, current in zip(series, series[1:]):
            assert current.date - previous.date == timedelta(days=1)

    def test_zero_days_filled(self):
        series = daily_series([], 3, NOW)
        assert series == [
            DailyPoint(date=date(2024, 6, 5), count=0, label="Jun 5"),
            DailyPoint(date=date(2024, 6, 6), count=0, label="Jun 6"),
            DailyPoint(date=date(2024, 6, 7), count=0, label="Jun 7"),
        ]

    def test_events_outside_range_ignored(self):
        series = daily_series([at(-20), at(6)], 7, NOW)
        assert sum(point.count for point in series) == 1

    def test_deterministic(self, scenario):
        assert daily_series(scenario, 14, NOW) == daily_series(scenario, 14, NOW)

    def test_zero_days(self):
        assert daily_series([at(0)], 0, NOW) == []

    def test_buckets_in_now_timezone(self):
        tokyo = timezone(timedelta(hours=9))
        now = datetime(2024, 6, 2, 10, 0, tzinfo=tokyo)
        # 20:00 UTC on June 1st is already June 2nd in Tokyo
        event = Event(occurred_at=datetime(2024, 6, 1, 20, 0, tzinfo=timezone.utc))
        series = daily_series([event], 2, now)
        assert [(point.date, point.count) for point in series] == [
            (date(2024, 6, 1), 0),
            (date(2024, 6, 2), 1),
        ]

    def test_naive_now_is_utc(self):
        now = datetime(2024, 6, 2, 1, 0)
        event = Event(occurred_at=datetime(2024, 6, 1, 23, 0, tzinfo=timezone.utc))
        series = daily_series([event], 2, now)
        assert series[0].count == 1

    def test_weekday_labels(self):
        series = daily_series([], 2, NOW, label=weekday_label)
        assert [point.label for point in series] == ["Thu", "Fri"]

    @pytest.mark.parametrize("days", [-1, 2.5, math.inf, None])
    def test_bad_days_rejected(self, days):
        with pytest.raises(InvalidArgument):
            daily_series([], days, NOW)


class TestRecentActivity:

    def test_newest_first(self):
        events = [at(1), at(3), at(2)]
        assert [e.occurred_at for e in recent_activity(events, 2)] == [at(3).occurred_at, at(2).occurred_at]

    def test_ties_keep_input_order(self):
        first = at(1, referrer="first")
        second = at(1, referrer="second")
        assert recent_activity([first, second]) == [first, second]

    def test_does_not_mutate_input(self):
        events = [at(1), at(3)]
        recent_activity(events)
        assert events == [at(1), at(3)]


class TestBuildReport:

    def test_report(self, scenario):
        subjects = [Subject(id="x", label="X", total_count=4)]
        report = build_report(scenario, now=NOW, window_days=7, chart_days=14, subjects=subjects)
        assert report.now == NOW
        assert report.summary.in_window == 3
        assert report.last_7_days == 3
        assert report.devices.total == 3
        assert report.top_referrers[0] == GroupCount(label="Direct", count=2)
        assert report.top_countries == [GroupCount(label="Unknown", count=3)]
        assert report.subjects[0].count == 4
        assert len(report.daily) == 14
        assert report.recent[0].occurred_at == at(3).occurred_at

    def test_empty_report(self):
        report = build_report([], now=NOW, window_days=30, chart_days=14)
        assert report.summary.total_all_time == 0
        assert report.devices.total == 0
        assert report.top_referrers == []
        assert report.subjects == []
        assert all(point.count == 0 for point in report.daily)
        assert report.recent == []

    def test_last_7_days_excludes_event_exactly_a_week_old(self):
        events = [Event(occurred_at=NOW - timedelta(days=7)), Event(occurred_at=NOW - timedelta(days=6))]
        report = build_report(events, now=NOW, window_days=7, chart_days=7)
        assert report.last_7_days == 1
        assert report.summary.in_window == 2


def test_in_window_bounds():
    oldest = Event(occurred_at=NOW - timedelta(days=7))
    inside = Event(occurred_at=NOW)
    future = Event(occurred_at=NOW + timedelta(seconds=1))
    events = [oldest, inside, future]
    assert in_window(events, 7, NOW) == [oldest, inside]
    assert in_window(events, 7, NOW, strict_start=True) == [inside]
    assert in_window(events, 0, NOW) == []


def test_share():
    assert share(1, 4) == 25.0
    assert share(3, 0) == 0.0
