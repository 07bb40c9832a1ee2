"""Activity rollups, trends and dashboard analytics.

Activity events are folded into daily, ISO-weekly and monthly rollup
documents. Rollups are only ever incremented; nothing recomputes them from
the underlying captures or tasks, so they drift if an event is missed.
"""

import math
from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import Any

from app.core.ids import parse_timestamp, utc_now
from app.core.logging import get_logger
from app.core.schemas_analytics import (
    DashboardAnalytics,
    DashboardSummary,
    DashboardTrends,
    DayMetrics,
    Insight,
    ProductivityAnalytics,
    ProductivityMetrics,
    RecentActivity,
    Trend,
    WeekComparison,
)
from app.core.schemas_tasks import PRIORITY_ORDER
from app.db import keys
from app.db.kv_store import KeyValueStore

logger = get_logger(__name__)

TREND_WINDOW = 3
TREND_THRESHOLD = 0.1
WEEK_DAYS = 7
DASHBOARD_INSIGHTS = 3
RECENT_PER_SOURCE = 5
RECENT_TOTAL = 10
FOCUS_TARGET = 70
COMPLETION_TARGET = 0.8


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, unlike builtin round()."""
    return math.floor(value + 0.5)


def day_bucket(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


def week_bucket(moment: datetime) -> str:
    iso_year, iso_week, _ = moment.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def month_bucket(moment: datetime) -> str:
    return moment.strftime("%Y-%m")


ROLLUP_BUCKETS = (("daily", day_bucket), ("weekly", week_bucket), ("monthly", month_bucket))


def parse_duration(metadata: Any) -> float:
    """Read ``metadata["duration"]`` leniently; anything unusable counts as 0."""
    if not isinstance(metadata, dict):
        return 0.0
    value = metadata.get("duration")
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        duration = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(duration) or duration < 0:
        return 0.0
    return duration


def calculate_focus_score(metrics: ProductivityMetrics) -> int:
    """
    Blend of deep-work share (60%) and task completion ratio (40%), 0-100.

    Returns 0 when no deep work or meeting time has been recorded.
    """
    total_time = metrics.deep_work_time + metrics.meeting_time
    if total_time <= 0:
        return 0
    focus_ratio = metrics.deep_work_time / total_time
    task_ratio = metrics.tasks_completed / max(metrics.tasks_created, 1)
    return round_half_up((focus_ratio * 0.6 + task_ratio * 0.4) * 100)


def apply_activity(metrics: ProductivityMetrics, activity_type: str, metadata: Any) -> ProductivityMetrics:
    """Apply one event's increment rules to a rollup bucket in place."""
    if activity_type == "task_complete":
        metrics.tasks_completed += 1
    elif activity_type == "capture":
        metrics.capture_count += 1
    elif activity_type == "focus_session":
        metrics.deep_work_time += parse_duration(metadata)
        # Only focus sessions refresh the score; other events leave it stale
        metrics.focus_score = calculate_focus_score(metrics)
    elif activity_type == "meeting":
        metrics.meeting_time += parse_duration(metadata)
    return metrics


def calculate_trend(values: list[float]) -> Trend:
    """
    Classify a series (oldest first) as up, down or stable.

    The mean of the last three points is compared with the mean of the three
    before them. Series shorter than six points take whatever precedes the
    recent window as the baseline. A move of more than 10% either way is a
    trend.
    """
    if len(values) < 2:
        return "stable"

    split = max(len(values) - TREND_WINDOW, 1)
    recent_values = values[split:]
    previous_values = values[max(split - TREND_WINDOW, 0) : split]
    recent = sum(recent_values) / len(recent_values)
    previous = sum(previous_values) / len(previous_values)

    if recent > previous * (1 + TREND_THRESHOLD):
        return "up"
    if recent < previous * (1 - TREND_THRESHOLD):
        return "down"
    return "stable"


def sort_insights(insights: list[Insight], limit: int) -> list[Insight]:
    """Highest priority first, then highest confidence."""
    ranked = sorted(
        insights,
        key=lambda insight: (-PRIORITY_ORDER.get(insight.priority, 0), -insight.confidence),
    )
    return ranked[:limit]


def _timestamp_sort_key(value: str | None) -> datetime:
    return parse_timestamp(value) or datetime.min.replace(tzinfo=UTC)


class AnalyticsService:
    """Records activity events and derives dashboard and productivity views."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    # =========================================================================
    # Recording
    # =========================================================================

    def record_activity(
        self,
        user_id: str,
        activity_type: str,
        metadata: Any = None,
        timestamp: str | None = None,
    ) -> None:
        """
        Fold one activity event into the rollups.

        Never raises: the event is advisory and must not fail the caller's
        primary operation. Unknown types and malformed metadata are tolerated.
        """
        try:
            moment = (parse_timestamp(timestamp) or utc_now()).astimezone(UTC)
            self._update_rollups(user_id, moment, activity_type, metadata)
            self._update_hourly_patterns(user_id, moment.hour, activity_type)
            if activity_type == "integration_sync":
                self._update_integration_usage(user_id, metadata)
        except Exception:
            logger.exception(
                "Failed to record activity",
                extra={"user_id": user_id, "activity_type": activity_type},
            )

    def _update_rollups(self, user_id: str, moment: datetime, activity_type: str, metadata: Any) -> None:
        bucket_keys = [keys.metrics_key(user_id, period, bucket(moment)) for period, bucket in ROLLUP_BUCKETS]
        stored = self.store.mget(bucket_keys)

        updated: dict[str, Any] = {}
        for key, document in zip(bucket_keys, stored):
            metrics = ProductivityMetrics(**(document or {}))
            apply_activity(metrics, activity_type, metadata)
            updated[key] = metrics.model_dump()

        self.store.mset(updated)

    def _update_hourly_patterns(self, user_id: str, hour: int, activity_type: str) -> None:
        key = keys.hourly_patterns_key(user_id)
        patterns = self.store.get(key) or {}
        slot = patterns.setdefault(str(hour), {"count": 0, "types": {}})
        slot["count"] += 1
        slot["types"][activity_type] = slot["types"].get(activity_type, 0) + 1
        self.store.set(key, patterns)

    def _update_integration_usage(self, user_id: str, metadata: Any) -> None:
        service = metadata.get("service") if isinstance(metadata, dict) else None
        if not isinstance(service, str) or not service:
            return
        key = keys.integration_usage_key(user_id)
        usage = self.store.get(key) or {}
        usage[service] = usage.get(service, 0) + 1
        self.store.set(key, usage)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_daily_metrics(self, user_id: str, days: list[datetime]) -> list[ProductivityMetrics]:
        bucket_keys = [keys.metrics_key(user_id, "daily", day_bucket(day)) for day in days]
        return [ProductivityMetrics(**(doc or {})) for doc in self.store.mget(bucket_keys)]

    def get_period_metrics(self, user_id: str, period: str, moment: datetime | None = None) -> ProductivityMetrics:
        """Rollup for the day, ISO week or month containing ``moment`` (now by default)."""
        bucket = dict(ROLLUP_BUCKETS)[period]
        document = self.store.get(keys.metrics_key(user_id, period, bucket(moment or utc_now())))
        return ProductivityMetrics(**(document or {}))

    def get_week_data(self, user_id: str, end: datetime | None = None) -> list[DayMetrics]:
        """The seven days ending at ``end`` (today by default), oldest first."""
        end = end or utc_now()
        days = [end - timedelta(days=offset) for offset in range(WEEK_DAYS - 1, -1, -1)]
        metrics = self.get_daily_metrics(user_id, days)
        return [
            DayMetrics(
                date=day_bucket(day),
                day=day.strftime("%a"),
                tasks=m.tasks_created,
                completed=m.tasks_completed,
                focus=m.focus_score,
            )
            for day, m in zip(days, metrics)
        ]

    def get_current_focus_score(self, user_id: str) -> int:
        """Today's focus score, 0 when nothing was recorded."""
        try:
            document = self.store.get(keys.metrics_key(user_id, "daily", day_bucket(utc_now())))
        except Exception:
            logger.exception("Failed to read focus score", extra={"user_id": user_id})
            return 0
        return ProductivityMetrics(**(document or {})).focus_score

    def get_hourly_patterns(self, user_id: str) -> dict[str, Any]:
        return self.store.get(keys.hourly_patterns_key(user_id)) or {}

    def get_integration_usage(self, user_id: str) -> dict[str, int]:
        return self.store.get(keys.integration_usage_key(user_id)) or {}

    # =========================================================================
    # Dashboard
    # =========================================================================

    def get_dashboard(self, user_id: str) -> DashboardAnalytics:
        week = self.get_week_data(user_id)
        today = week[-1]

        summary = DashboardSummary(
            today_tasks=today.completed,
            weekly_focus=round_half_up(sum(d.focus for d in week) / len(week)),
            total_captures=len(self.store.get_by_prefix(keys.captures_prefix(user_id))),
            active_projects=self._count_active_projects(user_id),
        )
        trends = DashboardTrends(
            completion_rate=round_half_up(_completion_rate(week) * 100),
            focus_trend=calculate_trend([d.focus for d in week]),
            productivity_trend=calculate_trend([d.completed for d in week]),
        )

        return DashboardAnalytics(
            summary=summary,
            trends=trends,
            insights=sort_insights(self.build_insights(user_id, week), DASHBOARD_INSIGHTS),
            recent_activity=self.get_recent_activity(user_id),
        )

    def _count_active_projects(self, user_id: str) -> int:
        projects = self.store.get_by_prefix(keys.projects_prefix(user_id))
        return sum(1 for p in projects if p.get("status") == "active")

    def get_recent_activity(self, user_id: str) -> list[RecentActivity]:
        """Newest captures and tasks, merged, at most ten entries."""
        captures = sorted(
            self.store.get_by_prefix(keys.captures_prefix(user_id)),
            key=lambda c: _timestamp_sort_key(c.get("timestamp")),
            reverse=True,
        )[:RECENT_PER_SOURCE]
        tasks = sorted(
            self.store.get_by_prefix(keys.tasks_prefix(user_id)),
            key=lambda t: _timestamp_sort_key(t.get("created")),
            reverse=True,
        )[:RECENT_PER_SOURCE]

        activities = [
            RecentActivity(type="capture", title=_capture_title(c), timestamp=c.get("timestamp"))
            for c in captures
        ]
        activities.extend(
            RecentActivity(type="task", title=t.get("title") or "Untitled Task", timestamp=t.get("created"))
            for t in tasks
        )
        activities.sort(key=lambda a: _timestamp_sort_key(a.timestamp), reverse=True)
        return activities[:RECENT_TOTAL]

    def build_insights(self, user_id: str, week: list[DayMetrics] | None = None) -> list[Insight]:
        """Productivity insights derived from stored rollups, patterns and projects."""
        week = week or self.get_week_data(user_id)
        insights: list[Insight] = []

        peak = _peak_hours(self.get_hourly_patterns(user_id), limit=1)
        if peak:
            hour, count, total = peak[0]
            share = round_half_up(100 * count / total)
            insights.append(
                Insight(
                    type="productivity",
                    title="Peak Performance Window Identified",
                    description=f"{share}% of your recorded activity happens between {hour:02d}:00 and {(hour + 1) % 24:02d}:00",
                    action="Schedule deep work during this window",
                    priority="high" if total >= 10 else "medium",
                    confidence=round(min(0.5 + total / 100, 0.95), 2),
                )
            )

        focus_days = [d.focus for d in week if d.focus > 0]
        if focus_days:
            average_focus = round_half_up(sum(focus_days) / len(focus_days))
            if average_focus < FOCUS_TARGET:
                insights.append(
                    Insight(
                        type="productivity",
                        title="Focus Score Below Target",
                        description=f"Your average focus score this week is {average_focus}",
                        action="Block more uninterrupted time for deep work",
                        priority="medium",
                        confidence=0.8,
                    )
                )

        projects = [
            p
            for p in self.store.get_by_prefix(keys.projects_prefix(user_id))
            if p.get("status") == "active" and p.get("task_ids")
        ]
        if projects:
            leader = max(projects, key=lambda p: p.get("progress", 0))
            insights.append(
                Insight(
                    type="pattern",
                    title="Project Momentum",
                    description=f"{leader.get('name', 'Your project')} is {leader.get('progress', 0)}% complete",
                    priority="low",
                    confidence=0.7,
                )
            )

        return insights

    # =========================================================================
    # Productivity
    # =========================================================================

    def get_productivity(self, user_id: str) -> ProductivityAnalytics:
        now = utc_now()
        week = self.get_week_data(user_id, now)
        previous_week = self.get_week_data(user_id, now - timedelta(days=WEEK_DAYS))
        hourly = self.get_hourly_patterns(user_id)

        patterns = {
            "peak_hours": [f"{hour:02d}:00" for hour, _, _ in _peak_hours(hourly, limit=3)],
            "productive_days": [
                d.day for d in sorted(week, key=lambda d: d.completed, reverse=True) if d.completed > 0
            ],
            "hourly": hourly,
            "integration_usage": self.get_integration_usage(user_id),
        }

        return ProductivityAnalytics(
            weekly_data=week,
            patterns=patterns,
            comparisons={"week_over_week": _compare_weeks(week, previous_week)},
            recommendations=_recommendations(week, patterns["peak_hours"]),
        )


def _capture_title(capture: dict[str, Any]) -> str:
    summary = (capture.get("processed") or {}).get("summary")
    if summary:
        return summary
    return (capture.get("raw_content") or "")[:50] + "..."


def _completion_rate(week: list[DayMetrics]) -> float:
    return sum(d.completed / max(d.tasks, 1) for d in week) / len(week)


def _peak_hours(hourly: dict[str, Any], limit: int) -> list[tuple[int, int, int]]:
    """Busiest hours as (hour, count, total events), busiest first."""
    counts: Counter[int] = Counter()
    for hour, slot in hourly.items():
        try:
            counts[int(hour)] += int(slot.get("count", 0))
        except (TypeError, ValueError, AttributeError):
            continue
    total = sum(counts.values())
    if total == 0:
        return []
    return [(hour, count, total) for hour, count in counts.most_common(limit) if count > 0]


def _compare_weeks(current: list[DayMetrics], previous: list[DayMetrics]) -> WeekComparison:
    current_avg = sum(d.completed for d in current) / len(current)
    previous_avg = sum(d.completed for d in previous) / len(previous)
    change = round_half_up((current_avg - previous_avg) / previous_avg * 100) if previous_avg else 0
    return WeekComparison(current=round_half_up(current_avg), previous=round_half_up(previous_avg), change=change)


def _recommendations(week: list[DayMetrics], peak_hours: list[str]) -> list[str]:
    recommendations = []
    average_focus = sum(d.focus for d in week) / len(week)
    if average_focus < FOCUS_TARGET:
        recommendations.append("Consider blocking more time for deep work to improve focus")
    if _completion_rate(week) < COMPLETION_TARGET:
        recommendations.append("Break down larger tasks into smaller, manageable chunks")
    if peak_hours:
        recommendations.append(
            f"Schedule your most important tasks around {peak_hours[0]} when you're most active"
        )
    return recommendations
