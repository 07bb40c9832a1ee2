"""Projects and tasks over the key-value store.

Each task is stored exactly once, under ``task:{id}``. A project document
keeps only the ids of its tasks; the ``tasks`` list and ``progress`` are
derived from the task store on every read. ``progress`` is also written back
to the project document whenever its task set changes so that list views and
prefix scans see a current value.
"""

import math
from datetime import datetime
from functools import cmp_to_key
from typing import Any

from app.core.analytics_service import AnalyticsService, round_half_up
from app.core.errors import NotFoundError
from app.core.ids import generate_id, parse_timestamp, utc_now, utc_now_iso
from app.core.logging import get_logger
from app.core.schemas_projects import (
    CreateProjectRequest,
    ProgressInsight,
    Project,
    ProjectInsights,
    TeamInsight,
    TemplateProjectRequest,
    TimelineInsight,
    UpdateProjectRequest,
)
from app.core.schemas_tasks import PRIORITY_ORDER, Task, TaskCreate, TaskInput, TaskUpdate
from app.db import keys
from app.db.kv_store import KeyValueStore

logger = get_logger(__name__)

ACTIVE_TASK_LIMIT = 10
ACTION_LOG_LIMIT = 100
SECONDS_PER_DAY = 60 * 60 * 24

PROJECT_TEMPLATES: dict[str, dict[str, Any]] = {
    "ai-project": {
        "name": "AI Project Template",
        "description": "Template for AI/ML projects",
        "tags": ["ai", "machine-learning"],
        "tasks": [
            {"title": "Data Collection", "priority": "high", "estimated_hours": 16},
            {"title": "Model Training", "priority": "high", "estimated_hours": 24},
            {"title": "Testing & Validation", "priority": "medium", "estimated_hours": 8},
            {"title": "Deployment", "priority": "high", "estimated_hours": 12},
        ],
    },
    "web-app": {
        "name": "Web Application Template",
        "description": "Template for web application development",
        "tags": ["web", "development"],
        "tasks": [
            {"title": "UI/UX Design", "priority": "high", "estimated_hours": 20},
            {"title": "Frontend Development", "priority": "high", "estimated_hours": 40},
            {"title": "Backend Development", "priority": "high", "estimated_hours": 32},
            {"title": "Testing", "priority": "medium", "estimated_hours": 16},
            {"title": "Deployment", "priority": "high", "estimated_hours": 8},
        ],
    },
    "research": {
        "name": "Research Project Template",
        "description": "Template for research projects",
        "tags": ["research", "analysis"],
        "tasks": [
            {"title": "Literature Review", "priority": "high", "estimated_hours": 24},
            {"title": "Data Gathering", "priority": "high", "estimated_hours": 16},
            {"title": "Analysis", "priority": "high", "estimated_hours": 32},
            {"title": "Report Writing", "priority": "medium", "estimated_hours": 20},
        ],
    },
}


def calculate_progress(tasks: list[Task]) -> int:
    """Percentage of completed tasks, 0 for an empty project."""
    if not tasks:
        return 0
    completed = sum(1 for task in tasks if task.status == "completed")
    return round_half_up(100 * completed / len(tasks))


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def compare_tasks(a: Task, b: Task) -> int:
    """
    Ordering for active and overdue task lists.

    Priority descending first. When both tasks have a due date the earlier
    one wins; if either lacks one, creation time decides.
    """
    priority_a = PRIORITY_ORDER.get(a.priority, 0)
    priority_b = PRIORITY_ORDER.get(b.priority, 0)
    if priority_a != priority_b:
        return priority_b - priority_a

    due_a = parse_timestamp(a.due_date)
    due_b = parse_timestamp(b.due_date)
    if due_a and due_b:
        return _cmp(due_a, due_b)

    created_a = parse_timestamp(a.created)
    created_b = parse_timestamp(b.created)
    if created_a and created_b:
        return _cmp(created_a, created_b)
    return 0


def is_overdue(task: Task, now: datetime | None = None) -> bool:
    if task.status == "completed":
        return False
    due = parse_timestamp(task.due_date)
    return due is not None and due < (now or utc_now())


def days_until(deadline: str | None) -> int | None:
    moment = parse_timestamp(deadline)
    if moment is None:
        return None
    return math.ceil((moment - utc_now()).total_seconds() / SECONDS_PER_DAY)


class ProjectService:
    """CRUD for projects and their tasks, plus templates and insights."""

    def __init__(self, store: KeyValueStore, analytics: AnalyticsService):
        self.store = store
        self.analytics = analytics

    # =========================================================================
    # Loading
    # =========================================================================

    def _load_record(self, user_id: str, project_id: str) -> dict[str, Any]:
        record = self.store.get(keys.project_key(user_id, project_id))
        if not record:
            raise NotFoundError("project", project_id)
        return record

    def _load_tasks(self, user_id: str, task_ids: list[str]) -> list[Task]:
        documents = self.store.mget([keys.task_key(user_id, task_id) for task_id in task_ids])
        return [Task.model_validate(doc) for doc in documents if doc]

    def _hydrate(self, record: dict[str, Any], tasks: list[Task]) -> Project:
        """Attach tasks to a stored project and derive its progress from them."""
        project = Project.model_validate({**record, "tasks": [], "progress": 0})
        project.tasks = tasks
        project.progress = calculate_progress(tasks)
        return project

    def _save(self, project: Project) -> None:
        record = project.model_dump(mode="json", exclude={"tasks"})
        self.store.set(keys.project_key(project.user_id, project.id), record)

    def _log_action(self, user_id: str, project_id: str, action: str) -> None:
        """Append to the per-project action log, keeping the newest 100 entries."""
        try:
            key = keys.project_analytics_key(user_id, project_id)
            log = self.store.get(key) or {"project_id": project_id, "created": utc_now_iso(), "actions": []}
            log["actions"].append({"action": action, "timestamp": utc_now_iso()})
            log["actions"] = log["actions"][-ACTION_LOG_LIMIT:]
            self.store.set(key, log)
        except Exception:
            logger.exception(
                "Failed to log project action",
                extra={"user_id": user_id, "project_id": project_id, "action": action},
            )

    def _record_completion(self, task: Task, previous_status: str | None) -> None:
        if task.status == "completed" and previous_status != "completed":
            self.analytics.record_activity(
                task.user_id,
                "task_complete",
                metadata={"task_id": task.id, "project_id": task.project_id, "priority": task.priority},
            )

    # =========================================================================
    # Projects
    # =========================================================================

    def list_projects(self, user_id: str) -> list[Project]:
        """All of a user's projects, archived included, most recently updated first."""
        records = self.store.get_by_prefix(keys.projects_prefix(user_id))
        all_tasks = {
            task.id: task
            for task in (Task.model_validate(doc) for doc in self.store.get_by_prefix(keys.tasks_prefix(user_id)))
        }

        projects = [
            self._hydrate(record, [all_tasks[tid] for tid in record.get("task_ids", []) if tid in all_tasks])
            for record in records
        ]
        projects.sort(key=lambda p: parse_timestamp(p.updated) or utc_now(), reverse=True)
        return projects

    def get_project(self, user_id: str, project_id: str) -> Project:
        record = self._load_record(user_id, project_id)
        return self._hydrate(record, self._load_tasks(user_id, record.get("task_ids", [])))

    def create_project(self, user_id: str, request: CreateProjectRequest) -> Project:
        now = utc_now_iso()
        project = Project(
            id=generate_id("project"),
            user_id=user_id,
            created=now,
            updated=now,
            **request.model_dump(),
        )
        self._save(project)
        self._log_action(user_id, project.id, "created")

        logger.info(f"Created project {project.id}", extra={"user_id": user_id, "project_id": project.id})
        return project

    def update_project(self, user_id: str, project_id: str, request: UpdateProjectRequest) -> Project:
        """
        Shallow-merge the provided fields into a project.

        Supplying ``tasks`` replaces the whole task set: entries with a known id
        update that task, entries without one create a task, and tasks left out
        are deleted. Progress is recomputed only in that case.
        """
        project = self.get_project(user_id, project_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True, exclude={"tasks"})

        updated = project.model_copy(update={**changes, "id": project_id, "user_id": user_id, "updated": utc_now_iso()})
        if request.tasks is not None:
            updated.tasks = self._replace_tasks(user_id, project_id, project.tasks, request.tasks)
            updated.task_ids = [task.id for task in updated.tasks]
        updated.progress = calculate_progress(updated.tasks)

        self._save(updated)
        self._log_action(user_id, project_id, "updated")
        return updated

    def _replace_tasks(
        self,
        user_id: str,
        project_id: str,
        current: list[Task],
        entries: list[TaskInput],
    ) -> list[Task]:
        existing = {task.id: task for task in current}
        now = utc_now_iso()
        replaced: list[Task] = []

        for entry in entries:
            fields = entry.model_dump(exclude={"id"})
            previous = existing.get(entry.id) if entry.id else None
            if previous:
                task = previous.model_copy(update={**fields, "updated": now})
            else:
                task = Task(
                    id=generate_id("task"),
                    user_id=user_id,
                    project_id=project_id,
                    created=now,
                    updated=now,
                    **fields,
                )
            replaced.append(task)
            if previous:
                self._record_completion(task, previous.status)

        kept = {task.id for task in replaced}
        self.store.mset({keys.task_key(user_id, task.id): task.model_dump(mode="json") for task in replaced})
        dropped = [keys.task_key(user_id, tid) for tid in existing if tid not in kept]
        if dropped:
            self.store.mdelete(dropped)
        return replaced

    def delete_project(self, user_id: str, project_id: str) -> Project:
        """Archive a project. The record and its tasks are kept."""
        project = self.get_project(user_id, project_id)
        project.status = "archived"
        project.updated = utc_now_iso()
        self._save(project)
        self._log_action(user_id, project_id, "archived")
        return project

    def create_project_from_template(self, user_id: str, request: TemplateProjectRequest) -> Project:
        template = PROJECT_TEMPLATES.get(request.template)
        if template is None:
            raise NotFoundError("template", request.template)

        overrides = request.model_dump(exclude={"template"}, exclude_none=True)
        project = self.create_project(
            user_id,
            CreateProjectRequest(
                name=overrides.get("name", template["name"]),
                description=overrides.get("description", template["description"]),
                tags=overrides.get("tags", template["tags"]),
                team=overrides.get("team", []),
                deadline=overrides.get("deadline"),
                metadata={"template": request.template},
            ),
        )
        for task_template in template["tasks"]:
            self.create_task(user_id, project.id, TaskCreate(**task_template))
        return self.get_project(user_id, project.id)

    def get_project_insights(self, user_id: str, project_id: str) -> ProjectInsights:
        project = self.get_project(user_id, project_id)
        tasks = project.tasks

        distribution: dict[str, int] = {}
        for task in tasks:
            if task.assignee:
                distribution[task.assignee] = distribution.get(task.assignee, 0) + 1

        return ProjectInsights(
            progress=ProgressInsight(
                percentage=project.progress,
                tasks_completed=sum(1 for t in tasks if t.status == "completed"),
                total_tasks=len(tasks),
                tasks_in_progress=sum(1 for t in tasks if t.status == "in_progress"),
            ),
            timeline=TimelineInsight(
                created=project.created,
                deadline=project.deadline,
                days_remaining=days_until(project.deadline),
            ),
            team=TeamInsight(size=len(project.team), task_distribution=distribution),
            risks=_identify_risks(project),
            recommendations=_recommend(project),
        )

    # =========================================================================
    # Tasks
    # =========================================================================

    def create_task(self, user_id: str, project_id: str, request: TaskCreate) -> Task:
        record = self._load_record(user_id, project_id)
        now = utc_now_iso()
        task = Task(
            id=generate_id("task"),
            user_id=user_id,
            project_id=project_id,
            created=now,
            updated=now,
            **request.model_dump(),
        )
        self.store.set(keys.task_key(user_id, task.id), task.model_dump(mode="json"))

        project = self._hydrate(record, self._load_tasks(user_id, record.get("task_ids", [])))
        project.task_ids.append(task.id)
        project.tasks.append(task)
        project.progress = calculate_progress(project.tasks)
        project.updated = now
        self._save(project)
        return task

    def create_standalone_task(
        self,
        user_id: str,
        title: str,
        priority: str = "medium",
        source: str | None = None,
    ) -> Task:
        """Create a task that belongs to no project (e.g. extracted from a capture)."""
        now = utc_now_iso()
        task = Task(
            id=generate_id("task"),
            user_id=user_id,
            title=title,
            priority=priority,
            source=source,
            created=now,
            updated=now,
        )
        self.store.set(keys.task_key(user_id, task.id), task.model_dump(mode="json"))
        return task

    def update_task(self, user_id: str, project_id: str, task_id: str, request: TaskUpdate) -> Task:
        """
        Apply a partial update to one task of a project.

        A transition into ``completed`` records exactly one ``task_complete``
        activity; re-completing an already completed task records nothing.
        """
        record = self._load_record(user_id, project_id)
        task_ids = record.get("task_ids", [])
        if task_id not in task_ids:
            raise NotFoundError("task", task_id)

        tasks = self._load_tasks(user_id, task_ids)
        current = next((t for t in tasks if t.id == task_id), None)
        if current is None:
            raise NotFoundError("task", task_id)

        now = utc_now_iso()
        updated = current.model_copy(
            update={**request.model_dump(exclude_unset=True, exclude_none=True), "id": task_id, "project_id": project_id, "updated": now}
        )
        self.store.set(keys.task_key(user_id, task_id), updated.model_dump(mode="json"))

        tasks = [updated if t.id == task_id else t for t in tasks]
        project = self._hydrate(record, tasks)
        project.updated = now
        self._save(project)

        self._record_completion(updated, current.status)
        return updated

    def _all_tasks(self, user_id: str) -> list[Task]:
        return [Task.model_validate(doc) for doc in self.store.get_by_prefix(keys.tasks_prefix(user_id))]

    def get_active_tasks(self, user_id: str, limit: int = ACTIVE_TASK_LIMIT) -> list[Task]:
        """Open tasks across all projects, most pressing first."""
        open_tasks = [task for task in self._all_tasks(user_id) if task.status != "completed"]
        return sorted(open_tasks, key=cmp_to_key(compare_tasks))[:limit]

    def get_overdue_tasks(self, user_id: str) -> list[Task]:
        now = utc_now()
        overdue = [task for task in self._all_tasks(user_id) if is_overdue(task, now)]
        return sorted(overdue, key=cmp_to_key(compare_tasks))


def _identify_risks(project: Project) -> list[str]:
    risks = []
    remaining = days_until(project.deadline)
    if remaining is not None and remaining < 7 and project.progress < 80:
        risks.append("Project may miss deadline due to low completion rate")

    now = utc_now()
    overdue = sum(1 for task in project.tasks if is_overdue(task, now))
    if overdue:
        risks.append(f"{overdue} tasks are overdue")

    blocked = sum(1 for task in project.tasks if task.status == "blocked")
    if blocked:
        risks.append(f"{blocked} tasks are blocked")
    return risks


def _recommend(project: Project) -> list[str]:
    recommendations = []
    if project.progress < 25 and len(project.tasks) > 10:
        recommendations.append("Consider breaking down large tasks into smaller, manageable chunks")

    open_high = [t for t in project.tasks if t.priority == "high" and t.status != "completed"]
    if len(open_high) > 3:
        recommendations.append("Focus on completing high-priority tasks first")

    if len(project.team) > 1 and any(not t.assignee and t.status != "completed" for t in project.tasks):
        recommendations.append("Assign ownership to unassigned tasks")
    return recommendations
