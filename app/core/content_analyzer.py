"""Rule-based analysis of captured text.

Derives a summary, category, priority, suggested actions and entities from raw
content with keyword and regex matching. Used as the baseline for every
capture and as the per-field fallback when the language model is unavailable
or returns nothing usable.

All functions here are pure and never raise.
"""

import re

from app.core.schemas_captures import ExtractedEntities, ProcessedContent

SUMMARY_MAX_CHARS = 100
ELLIPSIS = "..."

URGENT_WORDS = ("urgent", "asap", "deadline", "critical", "important", "priority")
ELEVATED_WORDS = ("meeting", "client", "project", "due")

# Declared capture types that decide the category on their own
TYPE_CATEGORIES = {
    "email": "communication",
    "task": "task",
    "idea": "idea",
}

# Checked in order; first hit wins
KEYWORD_CATEGORIES: list[tuple[tuple[str, ...], str]] = [
    (("meeting", "call"), "meeting"),
    (("research", "study"), "research"),
    (("plan", "strategy"), "planning"),
]

TYPE_ACTIONS = {
    "email": ["Reply to email", "Add to calendar", "Create task"],
    "idea": ["Create project", "Add to research list", "Schedule brainstorm"],
    "task": ["Set deadline", "Assign priority", "Add to project"],
}

KEYWORD_ACTIONS: list[tuple[str, str]] = [
    ("meeting", "Schedule meeting"),
    ("research", "Create research project"),
    ("follow up", "Set reminder"),
]

MAX_ACTIONS = 3
MAX_PEOPLE = 5
MAX_DATES = 3
MAX_TASKS = 3
MAX_TAGS = 5

TAG_VOCABULARY = ("work", "personal", "urgent", "project", "meeting", "research", "idea", "follow-up")

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PERSON_PATTERN = re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b")
_DATE_PATTERNS = [
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),
    re.compile(r"\b\d{1,2}-\d{1,2}-\d{4}\b"),
    re.compile(r"\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+\d{1,2}\b", re.IGNORECASE),
    re.compile(r"\b(?:today|tomorrow|next week|next month)\b", re.IGNORECASE),
]
_TASK_PATTERN = re.compile(r"(?:todo|task|need to|should|must|have to)[\s:]+[^.!?]+", re.IGNORECASE)
_TASK_LEAD = re.compile(r"(?:todo|task|need to|should|must|have to)[\s:]+", re.IGNORECASE)


def _dedupe(items: list[str]) -> list[str]:
    """Drop repeats, keeping first-seen order."""
    return list(dict.fromkeys(items))


def summarize(content: str) -> str:
    """
    First sentence of the content, never longer than 103 characters.

    An ellipsis marks that more sentences follow or that the sentence was cut.
    Content without any sentence text falls back to its first 100 characters.
    """
    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(content) if s.strip()]
    if not sentences:
        return content[:SUMMARY_MAX_CHARS] + ELLIPSIS

    first = sentences[0]
    if len(first) > SUMMARY_MAX_CHARS:
        return first[:SUMMARY_MAX_CHARS] + ELLIPSIS
    return first + (ELLIPSIS if len(sentences) > 1 else "")


def categorize(content: str, capture_type: str) -> str:
    """Category from the declared type, else from keywords, else ``general``."""
    if capture_type in TYPE_CATEGORIES:
        return TYPE_CATEGORIES[capture_type]

    lowered = content.lower()
    for keywords, category in KEYWORD_CATEGORIES:
        if any(word in lowered for word in keywords):
            return category
    return "general"


def has_urgent_keyword(content: str) -> bool:
    lowered = content.lower()
    return any(word in lowered for word in URGENT_WORDS)


def determine_priority(content: str) -> str:
    """Urgent words give ``high``, elevated words ``medium``, anything else ``low``."""
    if has_urgent_keyword(content):
        return "high"
    lowered = content.lower()
    if any(word in lowered for word in ELEVATED_WORDS):
        return "medium"
    return "low"


def suggest_actions(content: str, capture_type: str) -> list[str]:
    """Type seed actions plus keyword-triggered ones, capped at three."""
    actions = list(TYPE_ACTIONS.get(capture_type, []))
    lowered = content.lower()
    for keyword, action in KEYWORD_ACTIONS:
        if keyword in lowered:
            actions.append(action)
    return actions[:MAX_ACTIONS]


def extract_people(content: str) -> list[str]:
    """Capitalized word pairs, e.g. ``Sarah Connor``."""
    return _dedupe(_PERSON_PATTERN.findall(content))[:MAX_PEOPLE]


def extract_dates(content: str) -> list[str]:
    """Numeric dates, month-day mentions and relative day phrases."""
    found: list[str] = []
    for pattern in _DATE_PATTERNS:
        found.extend(match.group(0) for match in pattern.finditer(content))
    return _dedupe(found)[:MAX_DATES]


def extract_tasks(content: str) -> list[str]:
    """Clauses introduced by todo/task/need to/should/must/have to."""
    tasks = [_TASK_LEAD.sub("", match.group(0)).strip() for match in _TASK_PATTERN.finditer(content)]
    return tasks[:MAX_TASKS]


def extract_entities(content: str) -> ExtractedEntities:
    # Projects are never inferred heuristically; only the model fills them
    return ExtractedEntities(
        people=extract_people(content),
        dates=extract_dates(content),
        projects=[],
        tasks=extract_tasks(content),
    )


def analyze(content: str, capture_type: str) -> ProcessedContent:
    """
    Full heuristic analysis of one capture.

    Args:
        content: Raw captured text
        capture_type: Declared capture type (email, note, task, ...)

    Returns:
        ProcessedContent with every field populated
    """
    return ProcessedContent(
        summary=summarize(content),
        category=categorize(content, capture_type),
        priority=determine_priority(content),
        suggested_actions=suggest_actions(content, capture_type),
        entities=extract_entities(content),
    )


def generate_tags(content: str, category: str, priority: str) -> list[str]:
    """Category, priority and any vocabulary words present, at most five."""
    tags = [category, priority]
    lowered = content.lower()
    tags.extend(word for word in TAG_VOCABULARY if word in lowered)
    return _dedupe(tags)[:MAX_TAGS]
