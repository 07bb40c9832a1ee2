"""Tests for the Supabase-backed key-value store (mocked client)."""

from unittest.mock import MagicMock

from app.db.kv_store import SupabaseKVStore


def _mock_supabase(data=None):
    """Supabase mock with a chained query builder returning ``data``."""
    sb = MagicMock()
    chain = MagicMock()
    chain.execute.return_value = MagicMock(data=data if data is not None else [])
    for method in ("select", "eq", "in_", "like", "limit", "upsert", "delete"):
        getattr(chain, method).return_value = chain
    sb.table.return_value = chain
    return sb, chain


class TestSupabaseKVStore:
    def test_get_returns_value(self):
        sb, chain = _mock_supabase([{"value": {"a": 1}}])
        store = SupabaseKVStore(sb, table="kv")

        assert store.get("k") == {"a": 1}
        sb.table.assert_called_with("kv")
        chain.eq.assert_called_with("key", "k")

    def test_get_missing_returns_none(self):
        sb, _ = _mock_supabase([])
        assert SupabaseKVStore(sb).get("k") is None

    def test_set_upserts(self):
        sb, chain = _mock_supabase()
        SupabaseKVStore(sb).set("k", {"a": 1})
        chain.upsert.assert_called_once_with({"key": "k", "value": {"a": 1}})

    def test_mget_aligns_with_keys(self):
        sb, chain = _mock_supabase([{"key": "b", "value": 2}, {"key": "a", "value": 1}])

        assert SupabaseKVStore(sb).mget(["a", "missing", "b"]) == [1, None, 2]
        chain.in_.assert_called_once_with("key", ["a", "missing", "b"])

    def test_empty_batches_skip_the_database(self):
        sb, _ = _mock_supabase()
        store = SupabaseKVStore(sb)

        assert store.mget([]) == []
        store.mset({})
        store.mdelete([])

        sb.table.assert_not_called()

    def test_mset_sends_one_request(self):
        sb, chain = _mock_supabase()
        SupabaseKVStore(sb).mset({"a": 1, "b": 2})
        chain.upsert.assert_called_once_with([{"key": "a", "value": 1}, {"key": "b", "value": 2}])

    def test_delete_and_mdelete(self):
        sb, chain = _mock_supabase()
        store = SupabaseKVStore(sb)

        store.delete("a")
        chain.eq.assert_called_with("key", "a")

        store.mdelete(["a", "b"])
        chain.in_.assert_called_with("key", ["a", "b"])

    def test_prefix_scan_escapes_wildcards(self):
        sb, chain = _mock_supabase([{"key": "user:u_1:capture:x", "value": {"id": "x"}}])

        assert SupabaseKVStore(sb).get_by_prefix("user:u_1:capture:") == [{"id": "x"}]
        chain.like.assert_called_once_with("key", "user:u\\_1:capture:%")
