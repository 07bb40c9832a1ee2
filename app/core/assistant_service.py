"""Assistant chat, cross-source insights and search over a user's data."""

from typing import Any

from app.chains.assistant_reply import AssistantReplier, build_system_prompt
from app.core.analytics_service import AnalyticsService, round_half_up, sort_insights
from app.core.ids import utc_now_iso
from app.core.logging import get_logger
from app.core.schemas_analytics import Insight
from app.core.schemas_assistant import ChatMessage, ChatResponse, QuickAction, SearchResponse
from app.db import keys
from app.db.kv_store import KeyValueStore

logger = get_logger(__name__)

CONTEXT_MESSAGES = 10
INSIGHT_LIMIT = 5
SEARCH_LIMIT = 10
EMAIL_CAPTURE_MIN = 20
EMAIL_SHARE_THRESHOLD = 30

FALLBACK_REPLIES: list[tuple[tuple[str, ...], str]] = [
    (
        ("schedule", "calendar"),
        "I can help you optimize your schedule. Based on your patterns, I recommend blocking "
        "your most focused hours for deep work.",
    ),
    (
        ("task", "todo"),
        "I've analyzed your task completion patterns. Consider breaking larger tasks into smaller "
        "chunks and tackling high-priority items during your peak energy hours.",
    ),
    (
        ("project",),
        "Your active projects show good progress. I can help you identify dependencies and suggest "
        "optimal work sequences based on your productivity patterns.",
    ),
]
DEFAULT_REPLY = (
    "I'm here to help you optimize your productivity and workflow. Feel free to ask about your "
    "schedule, tasks, projects, or any insights about your work patterns."
)


def fallback_reply(message: str) -> str:
    """Canned reply chosen by keyword, used when the model is unavailable."""
    lowered = message.lower()
    for words, reply in FALLBACK_REPLIES:
        if any(word in lowered for word in words):
            return reply
    return DEFAULT_REPLY


def suggest_followups(message: str) -> list[str]:
    lowered = message.lower()
    suggestions = []
    if "project" in lowered:
        suggestions.extend(["Show project timeline", "Update project status", "Add team member"])
    if "schedule" in lowered:
        suggestions.extend(["Optimize schedule", "Block focus time", "Review conflicts"])
    return suggestions


def quick_actions(message: str) -> list[QuickAction]:
    lowered = message.lower()
    actions = []
    if "meeting" in lowered:
        actions.append(QuickAction(label="Create Calendar Event", type="calendar"))
    if "task" in lowered or "todo" in lowered:
        actions.append(QuickAction(label="Add to Task List", type="task"))
    actions.append(QuickAction(label="Save as Note", type="note"))
    return actions


def _model_messages(history: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Recent turns in the shape the Messages API expects, starting with a user turn."""
    recent = [{"role": m["role"], "content": m["content"]} for m in history[-CONTEXT_MESSAGES:]]
    while recent and recent[0]["role"] != "user":
        recent.pop(0)
    return recent


def _contains(value: Any, query: str) -> bool:
    return isinstance(value, str) and query in value.lower()


class AssistantService:
    """Conversational assistant backed by stored user context."""

    def __init__(
        self,
        store: KeyValueStore,
        replier: AssistantReplier,
        analytics: AnalyticsService,
        history_limit: int = 20,
    ):
        self.store = store
        self.replier = replier
        self.analytics = analytics
        self.history_limit = history_limit

    async def process_message(self, user_id: str, message: str, context: dict[str, Any] | None = None) -> ChatResponse:
        """
        Answer one chat message and append both turns to the stored conversation.

        The model sees the last ten turns; the stored conversation keeps the
        last twenty. A failed model call falls back to a canned reply.
        """
        key = keys.conversation_key(user_id)
        conversation: list[dict[str, Any]] = self.store.get(key) or []
        conversation.append(ChatMessage(role="user", content=message, timestamp=utc_now_iso()).model_dump())

        result = await self.replier.reply(self._system_prompt(user_id, context), _model_messages(conversation))
        if result.ok:
            content = result.text
        else:
            logger.info(
                f"Using fallback assistant reply ({result.status.value})",
                extra={"user_id": user_id, "error": result.error},
            )
            content = fallback_reply(message)

        reply = ChatMessage(role="assistant", content=content, timestamp=utc_now_iso())
        conversation.append(reply.model_dump())
        self.store.set(key, conversation[-self.history_limit :])

        return ChatResponse(message=reply, suggestions=suggest_followups(message), actions=quick_actions(message))

    def _system_prompt(self, user_id: str, context: dict[str, Any] | None = None) -> str:
        profile = self.store.get(keys.profile_key(user_id)) or {}
        captures = self.store.get_by_prefix(keys.captures_prefix(user_id))
        projects = self.store.get_by_prefix(keys.projects_prefix(user_id))
        return build_system_prompt(
            name=profile.get("name", "User"),
            captures=[c.get("raw_content", "") for c in captures[:5] if c.get("raw_content")],
            projects=[p.get("name", "") for p in projects if p.get("status") == "active"][:3],
            extra=context,
        )

    # =========================================================================
    # Insights
    # =========================================================================

    def generate_insights(self, user_id: str) -> list[Insight]:
        """Top five insights across productivity, captures and schedule."""
        insights = self.analytics.build_insights(user_id)
        insights.extend(self._capture_insights(user_id))
        insights.extend(self._schedule_insights(user_id))
        return sort_insights(insights, INSIGHT_LIMIT)

    def _capture_insights(self, user_id: str) -> list[Insight]:
        captures = self.store.get_by_prefix(keys.captures_prefix(user_id))
        if len(captures) <= EMAIL_CAPTURE_MIN:
            return []

        email_share = 100 * sum(1 for c in captures if c.get("type") == "email") / len(captures)
        if email_share <= EMAIL_SHARE_THRESHOLD:
            return []
        return [
            Insight(
                type="pattern",
                title="High Email Processing Time",
                description=f"Email processing takes {round_half_up(email_share)}% of your capture time",
                action="Consider batch processing emails at specific times",
                priority="medium",
                confidence=0.89,
            )
        ]

    def _schedule_insights(self, user_id: str) -> list[Insight]:
        week = self.analytics.get_period_metrics(user_id, "weekly")
        if week.meeting_time <= 0 or week.meeting_time <= week.deep_work_time:
            return []
        return [
            Insight(
                type="schedule",
                title="Meeting Optimization Opportunity",
                description=(
                    f"Meetings took {round_half_up(week.meeting_time)} minutes this week against "
                    f"{round_half_up(week.deep_work_time)} minutes of deep work"
                ),
                action="Add buffer time between meetings and protect focus blocks",
                priority="low",
                confidence=0.76,
            )
        ]

    # =========================================================================
    # Search
    # =========================================================================

    def search_user_data(self, user_id: str, query: str, filters: dict[str, Any] | None = None) -> SearchResponse:
        """
        Case-insensitive substring search over captures, projects and tasks.

        ``filters["type"]`` narrows the response to one result group.
        """
        needle = query.lower()
        captures = self.store.get_by_prefix(keys.captures_prefix(user_id))
        projects = self.store.get_by_prefix(keys.projects_prefix(user_id))
        tasks = self.store.get_by_prefix(keys.tasks_prefix(user_id))

        results: dict[str, list[dict[str, Any]]] = {
            "captures": [
                c
                for c in captures
                if _contains(c.get("raw_content"), needle)
                or _contains((c.get("processed") or {}).get("summary"), needle)
            ][:SEARCH_LIMIT],
            "projects": [
                p for p in projects if _contains(p.get("name"), needle) or _contains(p.get("description"), needle)
            ][:SEARCH_LIMIT],
            "tasks": [
                t for t in tasks if _contains(t.get("title"), needle) or _contains(t.get("description"), needle)
            ][:SEARCH_LIMIT],
        }

        group = (filters or {}).get("type")
        if group in results:
            results = {group: results[group]}

        for group_items in results.values():
            for item in group_items:
                item.pop("credentials", None)

        return SearchResponse(
            results=results,
            query=query,
            total=sum(len(items) for items in results.values()),
        )
