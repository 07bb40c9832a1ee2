"""In-memory key-value store for service and API tests."""

import copy
from typing import Any


class InMemoryKVStore:
    """Dict-backed KeyValueStore.

    Values are deep-copied on the way in and out, the same isolation a JSON
    round trip through the database gives.
    """

    def __init__(self, data: dict[str, Any] | None = None):
        self.data: dict[str, Any] = copy.deepcopy(data) if data else {}
        self.fail_on: set[str] = set()

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RuntimeError(f"store {operation} failed")

    def get(self, key: str) -> Any | None:
        self._check("get")
        return copy.deepcopy(self.data.get(key))

    def set(self, key: str, value: Any) -> None:
        self._check("set")
        self.data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._check("delete")
        self.data.pop(key, None)

    def mget(self, keys: list[str]) -> list[Any | None]:
        self._check("mget")
        return [copy.deepcopy(self.data.get(key)) for key in keys]

    def mset(self, items: dict[str, Any]) -> None:
        self._check("mset")
        for key, value in items.items():
            self.data[key] = copy.deepcopy(value)

    def mdelete(self, keys: list[str]) -> None:
        self._check("mdelete")
        for key in keys:
            self.data.pop(key, None)

    def get_by_prefix(self, prefix: str) -> list[Any]:
        self._check("get_by_prefix")
        return [copy.deepcopy(value) for key, value in self.data.items() if key.startswith(prefix)]

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return [key for key in self.data if key.startswith(prefix)]
