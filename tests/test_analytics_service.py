"""Tests for activity rollups, trends and dashboard analytics."""

from datetime import UTC, datetime, timedelta

import pytest

from app.core.analytics_service import (
    AnalyticsService,
    apply_activity,
    calculate_focus_score,
    calculate_trend,
    day_bucket,
    month_bucket,
    parse_duration,
    round_half_up,
    sort_insights,
    week_bucket,
)
from app.core.schemas_analytics import Insight, ProductivityMetrics
from app.db import keys
from tests.fakes.fake_kv import InMemoryKVStore

USER_ID = "user-1"
MOMENT = datetime(2024, 12, 30, 15, 30, tzinfo=UTC)


class TestTrend:
    def test_up(self):
        assert calculate_trend([10, 10, 10, 10, 10, 10, 20, 20, 20]) == "up"

    def test_down(self):
        assert calculate_trend([10, 10, 10, 20, 20, 20, 10, 10, 10]) == "down"

    def test_baseline_is_previous_three_points(self):
        assert calculate_trend([100, 0, 0, 0, 10, 10, 10]) == "up"
        assert calculate_trend([0, 10, 10, 10, 10, 10, 10]) == "stable"

    def test_constant_is_stable(self):
        assert calculate_trend([5, 5, 5, 5, 5, 5, 5]) == "stable"

    def test_short_series_is_stable(self):
        assert calculate_trend([]) == "stable"
        assert calculate_trend([3]) == "stable"

    def test_short_series_uses_available_history(self):
        assert calculate_trend([10, 20]) == "up"
        assert calculate_trend([0, 0, 0]) == "stable"

    def test_within_threshold_is_stable(self):
        assert calculate_trend([100, 100, 100, 105, 105, 105]) == "stable"


class TestBuckets:
    def test_buckets_use_iso_week(self):
        assert day_bucket(MOMENT) == "2024-12-30"
        assert week_bucket(MOMENT) == "2025-W01"
        assert month_bucket(MOMENT) == "2024-12"


class TestDuration:
    @pytest.mark.parametrize(
        "metadata,expected",
        [
            ({"duration": 90}, 90.0),
            ({"duration": "45"}, 45.0),
            ({"duration": "abc"}, 0.0),
            ({"duration": -5}, 0.0),
            ({"duration": float("nan")}, 0.0),
            ({"duration": True}, 0.0),
            ({}, 0.0),
            (None, 0.0),
            ("garbage", 0.0),
            ([1, 2], 0.0),
        ],
    )
    def test_parse_duration(self, metadata, expected):
        assert parse_duration(metadata) == expected


class TestFocusScore:
    def test_zero_without_time(self):
        assert calculate_focus_score(ProductivityMetrics()) == 0

    def test_half_rounds_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(-2.5) == -2
        assert round_half_up(12.49) == 12

    def test_blend(self):
        metrics = ProductivityMetrics(deep_work_time=60, meeting_time=40, tasks_completed=1, tasks_created=2)
        # 0.6 * 0.6 + 0.5 * 0.4
        assert calculate_focus_score(metrics) == 56

    def test_only_focus_sessions_refresh_score(self):
        metrics = ProductivityMetrics()
        apply_activity(metrics, "focus_session", {"duration": 60})
        assert metrics.focus_score == 60

        apply_activity(metrics, "meeting", {"duration": 600})
        assert metrics.meeting_time == 600
        assert metrics.focus_score == 60


class TestRecordActivity:
    def test_updates_all_three_rollups(self):
        store = InMemoryKVStore()
        service = AnalyticsService(store)

        service.record_activity(USER_ID, "task_complete", timestamp=MOMENT.isoformat())

        for period, bucket in (("daily", "2024-12-30"), ("weekly", "2025-W01"), ("monthly", "2024-12")):
            assert store.get(keys.metrics_key(USER_ID, period, bucket))["tasks_completed"] == 1

    def test_tasks_created_is_never_incremented(self):
        store = InMemoryKVStore()
        service = AnalyticsService(store)
        for activity in ("task_complete", "capture", "focus_session", "meeting", "integration_sync"):
            service.record_activity(USER_ID, activity, {"duration": 10}, MOMENT.isoformat())

        daily = store.get(keys.metrics_key(USER_ID, "daily", "2024-12-30"))
        assert daily["tasks_created"] == 0
        assert daily["capture_count"] == 1
        assert daily["deep_work_time"] == 10
        assert daily["meeting_time"] == 10

    def test_hourly_patterns_and_integration_usage(self):
        store = InMemoryKVStore()
        service = AnalyticsService(store)

        service.record_activity(USER_ID, "integration_sync", {"service": "gmail"}, MOMENT.isoformat())
        service.record_activity(USER_ID, "integration_sync", {"service": "gmail"}, MOMENT.isoformat())

        assert service.get_hourly_patterns(USER_ID) == {"15": {"count": 2, "types": {"integration_sync": 2}}}
        assert service.get_integration_usage(USER_ID) == {"gmail": 2}

    @pytest.mark.parametrize(
        "metadata",
        [None, "text", 42, [1, 2], {"duration": "soon"}, {"duration": None}, {"service": 7}, {"duration": {"a": 1}}],
    )
    def test_malformed_metadata_never_raises(self, metadata):
        service = AnalyticsService(InMemoryKVStore())
        for activity in ("focus_session", "meeting", "integration_sync", "unknown_type"):
            service.record_activity(USER_ID, activity, metadata)

    def test_store_failure_never_raises(self):
        store = InMemoryKVStore()
        store.fail_on.update({"mget", "get", "set", "mset"})
        AnalyticsService(store).record_activity(USER_ID, "capture")

    def test_bad_timestamp_uses_now(self):
        store = InMemoryKVStore()
        service = AnalyticsService(store)
        service.record_activity(USER_ID, "capture", timestamp="not a date")
        assert service.get_period_metrics(USER_ID, "daily").capture_count == 1


class TestDashboard:
    def _seed_week(self, store: InMemoryKVStore, completed: list[int], focus: list[int]) -> None:
        today = datetime.now(UTC)
        for offset, (done, score) in enumerate(zip(reversed(completed), reversed(focus))):
            day = today - timedelta(days=offset)
            store.set(
                keys.metrics_key(USER_ID, "daily", day_bucket(day)),
                ProductivityMetrics(tasks_completed=done, focus_score=score).model_dump(),
            )

    def test_empty_dashboard(self):
        dashboard = AnalyticsService(InMemoryKVStore()).get_dashboard(USER_ID)

        assert dashboard.summary.today_tasks == 0
        assert dashboard.summary.total_captures == 0
        assert dashboard.trends.focus_trend == "stable"
        assert dashboard.insights == []
        assert dashboard.recent_activity == []

    def test_summary_and_trends(self):
        store = InMemoryKVStore()
        self._seed_week(store, completed=[1, 1, 1, 1, 3, 3, 4], focus=[40, 40, 40, 40, 80, 80, 80])
        store.set(keys.project_key(USER_ID, "p1"), {"id": "p1", "status": "active", "name": "Apollo"})
        store.set(keys.project_key(USER_ID, "p2"), {"id": "p2", "status": "archived", "name": "Old"})
        store.set(keys.capture_key(USER_ID, "c1"), {"id": "c1", "raw_content": "hi", "timestamp": "2024-01-01T00:00:00+00:00"})

        dashboard = AnalyticsService(store).get_dashboard(USER_ID)

        assert dashboard.summary.today_tasks == 4
        assert dashboard.summary.weekly_focus == 57
        assert dashboard.summary.total_captures == 1
        assert dashboard.summary.active_projects == 1
        assert dashboard.trends.focus_trend == "up"
        assert dashboard.trends.productivity_trend == "up"
        assert dashboard.recent_activity[0].title == "hi..."

    def test_recent_activity_merges_and_orders(self):
        store = InMemoryKVStore()
        store.set(
            keys.capture_key(USER_ID, "c1"),
            {"id": "c1", "processed": {"summary": "Older capture"}, "timestamp": "2024-01-01T00:00:00+00:00"},
        )
        store.set(keys.task_key(USER_ID, "t1"), {"id": "t1", "title": "Newer task", "created": "2024-02-01T00:00:00+00:00"})

        activity = AnalyticsService(store).get_recent_activity(USER_ID)

        assert [(a.type, a.title) for a in activity] == [("task", "Newer task"), ("capture", "Older capture")]


class TestInsights:
    def test_sort_by_priority_then_confidence(self):
        insights = [
            Insight(type="a", title="low", description="", priority="low", confidence=0.99),
            Insight(type="b", title="high-weak", description="", priority="high", confidence=0.5),
            Insight(type="c", title="high-strong", description="", priority="high", confidence=0.9),
        ]
        assert [i.title for i in sort_insights(insights, 2)] == ["high-strong", "high-weak"]

    def test_peak_window_from_hourly_patterns(self):
        store = InMemoryKVStore()
        store.set(keys.hourly_patterns_key(USER_ID), {"9": {"count": 8, "types": {}}, "14": {"count": 2, "types": {}}})

        insights = AnalyticsService(store).build_insights(USER_ID)

        assert insights[0].title == "Peak Performance Window Identified"
        assert "80%" in insights[0].description
        assert "09:00 and 10:00" in insights[0].description
        assert insights[0].priority == "high"


class TestProductivity:
    def test_week_over_week_and_patterns(self):
        store = InMemoryKVStore()
        today = datetime.now(UTC)
        store.set(
            keys.metrics_key(USER_ID, "daily", day_bucket(today)),
            ProductivityMetrics(tasks_completed=14).model_dump(),
        )
        store.set(
            keys.metrics_key(USER_ID, "daily", day_bucket(today - timedelta(days=7))),
            ProductivityMetrics(tasks_completed=7).model_dump(),
        )
        store.set(keys.hourly_patterns_key(USER_ID), {"10": {"count": 3, "types": {}}})

        productivity = AnalyticsService(store).get_productivity(USER_ID)

        assert len(productivity.weekly_data) == 7
        assert productivity.weekly_data[-1].completed == 14
        assert productivity.comparisons["week_over_week"].current == 2
        assert productivity.comparisons["week_over_week"].previous == 1
        assert productivity.comparisons["week_over_week"].change == 100
        assert productivity.patterns["peak_hours"] == ["10:00"]
        assert productivity.patterns["productive_days"] == [today.strftime("%a")]
        assert any("10:00" in r for r in productivity.recommendations)
