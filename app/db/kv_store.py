"""Key-value document store backed by a Supabase table.

Every record the backend keeps is a JSON document stored under a string key
in a single table:

    create table kv_store (key text primary key, value jsonb not null);

Keys are namespaced per user (see ``app.db.keys``). The store trusts the
caller-supplied user id; there is no tenancy check beyond the key prefix.
"""

from typing import Any, Protocol

from supabase import Client

from app.core.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    """Interface shared by the Supabase store and the in-memory test store."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def mget(self, keys: list[str]) -> list[Any | None]: ...

    def mset(self, items: dict[str, Any]) -> None: ...

    def mdelete(self, keys: list[str]) -> None: ...

    def get_by_prefix(self, prefix: str) -> list[Any]: ...


def _escape_like(prefix: str) -> str:
    """Escape LIKE wildcards so a prefix only matches literally."""
    return prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SupabaseKVStore:
    """KeyValueStore implementation over a Supabase (PostgREST) table."""

    def __init__(self, client: Client, table: str = "kv_store"):
        self.client = client
        self.table = table

    def get(self, key: str) -> Any | None:
        """Return the document stored under ``key`` or None."""
        result = (
            self.client.table(self.table)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if result.data:
            return result.data[0]["value"]
        return None

    def set(self, key: str, value: Any) -> None:
        """Insert or replace the document under ``key``."""
        self.client.table(self.table).upsert({"key": key, "value": value}).execute()

    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""
        self.client.table(self.table).delete().eq("key", key).execute()

    def mget(self, keys: list[str]) -> list[Any | None]:
        """Fetch several keys at once, aligned with ``keys`` (None when missing)."""
        if not keys:
            return []
        result = (
            self.client.table(self.table)
            .select("key, value")
            .in_("key", keys)
            .execute()
        )
        found = {row["key"]: row["value"] for row in result.data or []}
        return [found.get(key) for key in keys]

    def mset(self, items: dict[str, Any]) -> None:
        """Upsert several documents in one request."""
        if not items:
            return
        rows = [{"key": key, "value": value} for key, value in items.items()]
        self.client.table(self.table).upsert(rows).execute()

    def mdelete(self, keys: list[str]) -> None:
        """Remove several keys in one request."""
        if not keys:
            return
        self.client.table(self.table).delete().in_("key", keys).execute()

    def get_by_prefix(self, prefix: str) -> list[Any]:
        """Return every document whose key starts with ``prefix``."""
        result = (
            self.client.table(self.table)
            .select("key, value")
            .like("key", f"{_escape_like(prefix)}%")
            .execute()
        )
        rows = result.data or []
        logger.debug(f"Prefix scan {prefix} returned {len(rows)} rows")
        return [row["value"] for row in rows]
