"""Pydantic schemas for projects."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from app.core.schemas_captures import Priority
from app.core.schemas_tasks import Task, TaskInput

ProjectStatus = Literal["active", "completed", "paused", "archived"]


class CreateProjectRequest(BaseModel):
    """Request body for creating a new project."""

    name: str = Field("Untitled Project", max_length=200, description="Project name")
    description: str = Field("", description="Project description")
    status: ProjectStatus = "active"
    priority: Priority = "medium"
    team: list[str] = Field(default_factory=list)
    deadline: str | None = None
    tags: list[str] = Field(default_factory=list, description="Tags for categorization")
    metadata: dict[str, Any] = Field(default_factory=dict)


class UpdateProjectRequest(BaseModel):
    """Shallow update of a project. Supplying ``tasks`` replaces the task set."""

    name: str | None = Field(None, max_length=200)
    description: str | None = None
    status: ProjectStatus | None = None
    priority: Priority | None = None
    team: list[str] | None = None
    deadline: str | None = None
    tags: list[str] | None = None
    metadata: dict[str, Any] | None = None
    tasks: list[TaskInput] | None = None


class TemplateProjectRequest(BaseModel):
    """Request body for creating a project from a named template."""

    template: str = Field(..., description="Template name: ai-project, web-app, research")
    name: str | None = None
    description: str | None = None
    team: list[str] | None = None
    deadline: str | None = None
    tags: list[str] | None = None


class Project(BaseModel):
    """A project document.

    ``task_ids`` is the stored reference list; ``tasks`` and ``progress`` are
    derived from the task store whenever the project is read.
    """

    id: str
    user_id: str
    name: str
    description: str = ""
    status: ProjectStatus = "active"
    priority: Priority = "medium"
    progress: int = 0
    task_ids: list[str] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    team: list[str] = Field(default_factory=list)
    deadline: str | None = None
    created: str
    updated: str
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProjectResponse(BaseModel):
    project: Project


class ProjectListResponse(BaseModel):
    projects: list[Project]


class ProgressInsight(BaseModel):
    percentage: int
    tasks_completed: int
    total_tasks: int
    tasks_in_progress: int


class TimelineInsight(BaseModel):
    created: str
    deadline: str | None = None
    days_remaining: int | None = None


class TeamInsight(BaseModel):
    size: int
    task_distribution: dict[str, int] = Field(default_factory=dict)


class ProjectInsights(BaseModel):
    """Derived health report for one project."""

    progress: ProgressInsight
    timeline: TimelineInsight
    team: TeamInsight
    risks: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
