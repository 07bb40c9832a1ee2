"""Synthetic item feeds for connected services.

No third-party API is called. Each feed returns the captures a real sync
would have produced, so the ingestion path is exercised end to end.
"""

from collections.abc import Callable
from datetime import timedelta

from app.core.ids import utc_now, utc_now_iso
from app.core.schemas_captures import CaptureCreate

SLACK_KEYWORDS = ("task", "todo", "deadline", "meeting", "review", "help", "question", "urgent")


def gmail_feed() -> list[CaptureCreate]:
    emails = [
        {
            "id": "email1",
            "subject": "Project Update Meeting",
            "from": "john@company.com",
            "content": "Can we schedule a meeting to discuss the Q1 project updates?",
        },
        {
            "id": "email2",
            "subject": "Design Review Feedback",
            "from": "sarah@company.com",
            "content": "The new design looks great! A few minor suggestions attached.",
        },
    ]
    return [
        CaptureCreate(
            type="email",
            content=f"From: {email['from']}\nSubject: {email['subject']}\n\n{email['content']}",
            source="gmail",
            metadata={"email_id": email["id"], "from": email["from"], "subject": email["subject"]},
        )
        for email in emails
    ]


def google_calendar_feed() -> list[CaptureCreate]:
    now = utc_now()
    events = [
        {"id": "event1", "title": "Team Standup", "start": now + timedelta(hours=2), "duration": 30},
        {"id": "event2", "title": "Client Presentation", "start": now + timedelta(hours=4), "duration": 60},
    ]
    return [
        CaptureCreate(
            type="note",
            content=f"Upcoming meeting: {event['title']} at {event['start']:%H:%M}",
            source="google-calendar",
            metadata={
                "event_id": event["id"],
                "start": event["start"].isoformat(),
                "duration": event["duration"],
            },
        )
        for event in events
    ]


def is_actionable_message(content: str) -> bool:
    """Only chat messages that look like work items are captured."""
    lowered = content.lower()
    return any(keyword in lowered for keyword in SLACK_KEYWORDS)


def slack_feed() -> list[CaptureCreate]:
    messages = [
        {
            "id": "msg1",
            "channel": "#general",
            "user": "alice",
            "content": "The new feature deployment is scheduled for tomorrow",
        },
        {
            "id": "msg2",
            "channel": "#design",
            "user": "bob",
            "content": "Can someone review the latest mockups in Figma?",
        },
    ]
    return [
        CaptureCreate(
            type="note",
            content=f"Slack {message['channel']}: {message['content']}",
            source="slack",
            metadata={"message_id": message["id"], "channel": message["channel"], "user": message["user"]},
        )
        for message in messages
        if is_actionable_message(message["content"])
    ]


def github_feed() -> list[CaptureCreate]:
    commits = [
        {"id": "commit1", "message": "Add AI assistant chat interface", "repository": "ai-os"},
        {"id": "commit2", "message": "Fix universal capture processing bug", "repository": "ai-os"},
    ]
    return [
        CaptureCreate(
            type="note",
            content=f"GitHub commit in {commit['repository']}: {commit['message']}",
            source="github",
            metadata={"commit_id": commit["id"], "repository": commit["repository"], "author": "developer"},
        )
        for commit in commits
    ]


def notion_feed() -> list[CaptureCreate]:
    title = "Product Roadmap Q1"
    return [
        CaptureCreate(
            type="note",
            content=f"Notion page: {title}\nKey features planned for Q1 include AI assistant improvements...",
            source="notion",
            metadata={"page_id": "page1", "title": title, "last_modified": utc_now_iso()},
        )
    ]


FEEDS: dict[str, Callable[[], list[CaptureCreate]]] = {
    "gmail": gmail_feed,
    "google-calendar": google_calendar_feed,
    "slack": slack_feed,
    "github": github_feed,
    "notion": notion_feed,
}
