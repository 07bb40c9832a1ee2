"""Pydantic schemas for analytics rollups and dashboards."""

from typing import Any, Literal

from pydantic import BaseModel, Field

ActivityType = Literal["task_complete", "capture", "focus_session", "meeting", "integration_sync"]
Trend = Literal["up", "down", "stable"]


class ProductivityMetrics(BaseModel):
    """Counters accumulated for one day, ISO week or month."""

    tasks_completed: int = 0
    tasks_created: int = 0
    focus_score: int = 0
    capture_count: int = 0
    active_projects: int = 0
    meeting_time: float = 0
    deep_work_time: float = 0


class ActivityRequest(BaseModel):
    """Request body for recording an activity event."""

    type: ActivityType
    metadata: dict[str, Any] | None = None
    timestamp: str | None = None


class DayMetrics(BaseModel):
    """One day of the 7-day window shown on the dashboard."""

    date: str
    day: str
    tasks: int = 0
    completed: int = 0
    focus: int = 0


class DashboardSummary(BaseModel):
    today_tasks: int
    weekly_focus: int
    total_captures: int
    active_projects: int


class DashboardTrends(BaseModel):
    completion_rate: int
    focus_trend: Trend
    productivity_trend: Trend


class Insight(BaseModel):
    type: str
    title: str
    description: str
    action: str | None = None
    priority: Literal["high", "medium", "low"] = "medium"
    confidence: float = 0.5


class RecentActivity(BaseModel):
    type: str
    title: str
    timestamp: str | None = None


class DashboardAnalytics(BaseModel):
    summary: DashboardSummary
    trends: DashboardTrends
    insights: list[Insight] = Field(default_factory=list)
    recent_activity: list[RecentActivity] = Field(default_factory=list)


class WeekComparison(BaseModel):
    current: int
    previous: int
    change: int


class ProductivityAnalytics(BaseModel):
    weekly_data: list[DayMetrics]
    patterns: dict[str, Any] = Field(default_factory=dict)
    comparisons: dict[str, WeekComparison] = Field(default_factory=dict)
    recommendations: list[str] = Field(default_factory=list)
