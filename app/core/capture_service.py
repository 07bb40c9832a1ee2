"""Capture pipeline: analysis, persistence and follow-up side effects.

Every capture gets a heuristic analysis. The language model is asked as
well, and its answer wins field by field wherever it is present and valid;
anything missing or malformed falls back to the heuristic value for that
field only.
"""

from typing import Any

from app.chains.classify_capture import CaptureClassifier
from app.core import content_analyzer
from app.core.analytics_service import AnalyticsService, day_bucket
from app.core.errors import NotFoundError
from app.core.ids import generate_id, parse_timestamp, utc_now
from app.core.logging import get_logger
from app.core.project_service import ProjectService
from app.core.schemas_captures import (
    CATEGORIES,
    PRIORITIES,
    Capture,
    CaptureCreate,
    CaptureUpdate,
    ExtractedEntities,
    ProcessedContent,
)
from app.db import keys
from app.db.kv_store import KeyValueStore
from app.graphs.capture_graph import CaptureState, build_capture_graph, check_max_steps

logger = get_logger(__name__)

RECENT_LIMIT = 10
SUMMARY_LIMIT = content_analyzer.SUMMARY_MAX_CHARS + len(content_analyzer.ELLIPSIS)


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _string_list(value: Any) -> list[str] | None:
    """Non-empty list of non-blank strings, else None."""
    if not isinstance(value, list):
        return None
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return items or None


def _cap_summary(summary: str) -> str:
    if len(summary) <= SUMMARY_LIMIT:
        return summary
    return summary[: content_analyzer.SUMMARY_MAX_CHARS] + content_analyzer.ELLIPSIS


def merge_analysis(
    gateway: dict[str, Any],
    baseline: ProcessedContent,
    content: str,
) -> ProcessedContent:
    """
    Combine a model reply with the heuristic baseline, field by field.

    Args:
        gateway: Parsed model reply (empty when the call failed)
        baseline: Heuristic analysis of the same content
        content: Raw capture text, used for the urgent-keyword check

    Returns:
        ProcessedContent with every field populated
    """
    summary = _text(gateway.get("summary"))
    category = gateway.get("category") if gateway.get("category") in CATEGORIES else None
    actions = _string_list(gateway.get("actions"))

    if gateway.get("priority") in PRIORITIES:
        priority = gateway["priority"]
    else:
        priority = baseline.priority
    if content_analyzer.has_urgent_keyword(content):
        priority = "high"

    entities = ExtractedEntities(
        people=(_string_list(gateway.get("people")) or baseline.entities.people)[: content_analyzer.MAX_PEOPLE],
        dates=(_string_list(gateway.get("dates")) or baseline.entities.dates)[: content_analyzer.MAX_DATES],
        projects=_string_list(gateway.get("projects")) or baseline.entities.projects,
        tasks=(_string_list(gateway.get("tasks")) or baseline.entities.tasks)[: content_analyzer.MAX_TASKS],
    )

    return ProcessedContent(
        summary=_cap_summary(summary or baseline.summary),
        category=category or baseline.category,
        priority=priority,
        suggested_actions=(actions or baseline.suggested_actions)[: content_analyzer.MAX_ACTIONS],
        entities=entities,
    )


class CapturePipeline:
    """Turns raw user input into a persisted, tagged capture."""

    def __init__(
        self,
        store: KeyValueStore,
        classifier: CaptureClassifier,
        analytics: AnalyticsService,
        projects: ProjectService,
        list_limit: int = 50,
    ):
        self.store = store
        self.classifier = classifier
        self.analytics = analytics
        self.projects = projects
        self.list_limit = list_limit
        self.graph = build_capture_graph(self._analyze, self._persist, self._dispatch)

    async def process_capture(self, user_id: str, request: CaptureCreate) -> Capture:
        """
        Analyze, persist and dispatch side effects for one capture.

        Args:
            user_id: Owner of the capture
            request: Raw capture input

        Returns:
            The persisted capture

        Raises:
            Exception: If the capture cannot be persisted
        """
        final_state = await self.graph.ainvoke(CaptureState(user_id=user_id, request=request))
        capture = final_state["capture"]

        logger.info(
            f"Processed capture {capture.id}",
            extra={
                "user_id": user_id,
                "capture_id": capture.id,
                "llm_status": final_state["llm_status"],
                "side_effects": final_state["side_effects"],
            },
        )
        return capture

    # =========================================================================
    # Graph nodes
    # =========================================================================

    async def _analyze(self, state: CaptureState) -> dict[str, Any]:
        step_count = check_max_steps(state)
        request = state.request

        baseline = content_analyzer.analyze(request.content, request.type)
        result = await self.classifier.classify(request.content)
        if not result.ok:
            logger.info(
                f"Using heuristic analysis ({result.status.value})",
                extra={"user_id": state.user_id, "error": result.error},
            )

        processed = merge_analysis(result.data, baseline, request.content)
        return {"processed": processed, "llm_status": result.status.value, "step_count": step_count}

    def _persist(self, state: CaptureState) -> dict[str, Any]:
        step_count = check_max_steps(state)
        request = state.request
        processed = state.processed
        metadata = dict(request.metadata)
        if request.priority:
            # Recorded only; analysis ignores it
            metadata.setdefault("declared_priority", request.priority)

        capture = Capture(
            id=generate_id(),
            user_id=state.user_id,
            type=request.type,
            raw_content=request.content,
            source=request.source,
            metadata=metadata,
            processed=processed,
            tags=content_analyzer.generate_tags(request.content, processed.category, processed.priority),
            timestamp=utc_now().isoformat(),
        )
        self.store.set(keys.capture_key(state.user_id, capture.id), capture.model_dump(mode="json"))
        return {"capture": capture, "step_count": step_count}

    def _dispatch(self, state: CaptureState) -> dict[str, Any]:
        """Run each follow-up independently; one failing never stops the rest."""
        step_count = check_max_steps(state)
        capture = state.capture
        entities = capture.processed.entities

        outcomes = {
            "stats": self._run_side_effect("stats", self._update_stats, capture),
            "activity": self._run_side_effect("activity", self._record_activity, capture),
        }
        if capture.processed.category == "meeting" and entities.dates:
            outcomes["calendar"] = self._run_side_effect("calendar", self._create_calendar_event, capture)
        if entities.tasks:
            outcomes["tasks"] = self._run_side_effect("tasks", self._create_tasks, capture)
        if entities.projects:
            outcomes["projects"] = self._run_side_effect("projects", self._link_projects, capture)

        return {"side_effects": outcomes, "step_count": step_count}

    def _run_side_effect(self, name: str, effect, capture: Capture) -> bool:
        try:
            effect(capture)
            return True
        except Exception:
            logger.exception(
                f"Capture side effect '{name}' failed",
                extra={"user_id": capture.user_id, "capture_id": capture.id},
            )
            return False

    # =========================================================================
    # Side effects
    # =========================================================================

    def _update_stats(self, capture: Capture) -> None:
        key = keys.capture_stats_key(capture.user_id)
        stats = self.store.get(key) or {"total": 0, "by_type": {}, "by_day": {}}
        today = day_bucket(utc_now())

        stats["total"] = stats.get("total", 0) + 1
        stats.setdefault("by_type", {})[capture.type] = stats["by_type"].get(capture.type, 0) + 1
        stats.setdefault("by_day", {})[today] = stats["by_day"].get(today, 0) + 1
        self.store.set(key, stats)

    def _record_activity(self, capture: Capture) -> None:
        self.analytics.record_activity(
            capture.user_id,
            "capture",
            metadata={"capture_id": capture.id, "type": capture.type},
            timestamp=capture.timestamp,
        )

    def _create_calendar_event(self, capture: Capture) -> None:
        # No calendar provider is wired up yet
        logger.info(
            "Calendar event requested for meeting capture",
            extra={"user_id": capture.user_id, "capture_id": capture.id, "dates": capture.processed.entities.dates},
        )

    def _create_tasks(self, capture: Capture) -> None:
        for title in capture.processed.entities.tasks:
            self.projects.create_standalone_task(
                capture.user_id,
                title=title,
                priority=capture.processed.priority,
                source=f"capture:{capture.id}",
            )

    def _link_projects(self, capture: Capture) -> None:
        logger.info(
            "Project link requested for capture",
            extra={
                "user_id": capture.user_id,
                "capture_id": capture.id,
                "projects": capture.processed.entities.projects,
            },
        )

    # =========================================================================
    # Read-back
    # =========================================================================

    def list_by_user(self, user_id: str, limit: int | None = None) -> list[Capture]:
        """Newest captures first."""
        captures = [
            Capture.model_validate(doc) for doc in self.store.get_by_prefix(keys.captures_prefix(user_id))
        ]
        captures.sort(key=lambda c: parse_timestamp(c.timestamp) or utc_now(), reverse=True)
        return captures[: limit or self.list_limit]

    def get_recent(self, user_id: str, limit: int = RECENT_LIMIT) -> list[Capture]:
        return self.list_by_user(user_id, limit)

    def get_by_id(self, user_id: str, capture_id: str) -> Capture:
        document = self.store.get(keys.capture_key(user_id, capture_id))
        if not document:
            raise NotFoundError("capture", capture_id)
        return Capture.model_validate(document)

    def update(self, user_id: str, capture_id: str, request: CaptureUpdate) -> Capture:
        """Shallow-merge the provided fields; id, owner and content never change."""
        existing = self.get_by_id(user_id, capture_id)
        updated = Capture.model_validate(
            {
                **existing.model_dump(mode="json"),
                **request.model_dump(mode="json", exclude_unset=True, exclude_none=True),
                "id": capture_id,
                "user_id": user_id,
            }
        )
        self.store.set(keys.capture_key(user_id, capture_id), updated.model_dump(mode="json"))
        return updated

    def delete(self, user_id: str, capture_id: str) -> None:
        """Hard delete."""
        self.get_by_id(user_id, capture_id)
        self.store.delete(keys.capture_key(user_id, capture_id))
