"""Pydantic schemas for tasks."""

from typing import Literal

from pydantic import BaseModel, Field

from app.core.schemas_captures import Priority

TaskStatus = Literal["pending", "in_progress", "completed", "blocked"]

# Sort weight for active/overdue task queries (higher first)
PRIORITY_ORDER: dict[str, int] = {"high": 3, "medium": 2, "low": 1}


class TaskBase(BaseModel):
    """Base task fields."""

    title: str = "Untitled Task"
    description: str | None = None
    status: TaskStatus = "pending"
    priority: Priority = "medium"
    assignee: str | None = None
    due_date: str | None = None
    estimated_hours: float | None = None
    actual_hours: float = 0
    dependencies: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class TaskCreate(TaskBase):
    """Schema for creating a task inside a project."""


class TaskInput(TaskBase):
    """Task entry in a wholesale replacement of a project's task set.

    Entries carrying an existing id update that task; entries without one
    create a new task.
    """

    id: str | None = None


class TaskUpdate(BaseModel):
    """Schema for updating a task; only provided fields change."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: Priority | None = None
    assignee: str | None = None
    due_date: str | None = None
    estimated_hours: float | None = None
    actual_hours: float | None = None
    dependencies: list[str] | None = None
    tags: list[str] | None = None


class Task(TaskBase):
    """Full task schema; stored once under ``task:{id}``."""

    id: str
    user_id: str
    project_id: str | None = None
    source: str | None = None
    created: str
    updated: str


class TaskListResponse(BaseModel):
    tasks: list[Task]
