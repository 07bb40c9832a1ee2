"""Key layout for per-user documents in the key-value store."""


def user_prefix(user_id: str) -> str:
    return f"user:{user_id}:"


def capture_key(user_id: str, capture_id: str) -> str:
    return f"user:{user_id}:capture:{capture_id}"


def captures_prefix(user_id: str) -> str:
    return f"user:{user_id}:capture:"


def capture_stats_key(user_id: str) -> str:
    return f"user:{user_id}:stats:captures"


def project_key(user_id: str, project_id: str) -> str:
    return f"user:{user_id}:project:{project_id}"


def projects_prefix(user_id: str) -> str:
    return f"user:{user_id}:project:"


def project_analytics_key(user_id: str, project_id: str) -> str:
    return f"user:{user_id}:project_analytics:{project_id}"


def task_key(user_id: str, task_id: str) -> str:
    return f"user:{user_id}:task:{task_id}"


def tasks_prefix(user_id: str) -> str:
    return f"user:{user_id}:task:"


def integration_key(user_id: str, integration_id: str) -> str:
    return f"user:{user_id}:integration:{integration_id}"


def integrations_prefix(user_id: str) -> str:
    return f"user:{user_id}:integration:"


def metrics_key(user_id: str, period: str, bucket: str) -> str:
    """Rollup bucket key; period is daily, weekly or monthly."""
    return f"user:{user_id}:metrics:{period}:{bucket}"


def hourly_patterns_key(user_id: str) -> str:
    return f"user:{user_id}:patterns:hourly"


def integration_usage_key(user_id: str) -> str:
    return f"user:{user_id}:patterns:integrations"


def conversation_key(user_id: str) -> str:
    return f"user:{user_id}:conversation"


def settings_key(user_id: str) -> str:
    return f"user:{user_id}:settings"


def notifications_key(user_id: str) -> str:
    return f"user:{user_id}:notifications"


def profile_key(user_id: str) -> str:
    return f"user:{user_id}:profile"
