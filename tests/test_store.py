import json

from production_dashboard.cache import MemoryCache
from production_dashboard.config import CACHE_KEYS, DEFAULT_USERS, MAX_ACTIVITY_LOGS
from production_dashboard.models import ActivityLog
from production_dashboard.store import RecordStore

from conftest import make_entry


def test_fresh_store_seeds_defaults():
    cache = MemoryCache()
    with RecordStore(cache) as store:
        assert len(store.get_users()) == len(DEFAULT_USERS)
        assert store.get_off_days()
        assert store.get_entries()
        assert store.get_logs() == []
        assert all(e.date not in {od.date for od in store.get_off_days()} for e in store.get_entries())


def test_seeding_does_not_overwrite_existing_collections():
    cache = MemoryCache({CACHE_KEYS["entries"]: "[]"})
    with RecordStore(cache) as store:
        assert store.get_entries() == []


def test_uninitialised_collections_are_empty(store):
    assert store.get_entries() == []
    assert store.get_users() == []
    assert store.get_session() is None


def test_save_replaces_whole_collection(store):
    store.save_entries([make_entry(id="1"), make_entry(id="2")])
    store.save_entries([make_entry(id="3")])
    assert [e.id for e in store.get_entries()] == ["3"]


def test_save_without_endpoint_resolves_false(store):
    future = store.save_entries([make_entry()])
    assert future.result(timeout=1) is False


def test_delete_entry_matches_numeric_ids_as_strings(cache, store):
    cache.set(CACHE_KEYS["entries"], json.dumps([
        dict(make_entry(id="x").to_dict(), id=1736063000000),
        make_entry(id="keep").to_dict(),
    ]))
    original = store.get_entries()[0]

    updated, deleted = store.delete_entry(1736063000000)

    assert deleted == original
    assert [e.id for e in updated] == ["keep"]
    assert all(e.id != "1736063000000" for e in store.get_entries())


def test_delete_missing_entry_reports_none(store):
    store.save_entries([make_entry(id="1")])
    updated, deleted = store.delete_entry("nope")
    assert deleted is None
    assert [e.id for e in updated] == ["1"]


def test_add_log_prepends_with_id_and_timestamp(store):
    first = store.add_log("1", "Admin", "ADD_PLAN", "one")
    second = store.add_log("1", "Admin", "ADD_PLAN", "two")

    logs = store.get_logs()
    assert [log.details for log in logs] == ["two", "one"]
    assert first.id != second.id
    assert second.timestamp.endswith("Z")


def test_add_log_caps_at_limit(cache, store):
    existing = [
        ActivityLog(id=str(i), user_id="1", user_name="A", action="X", details=str(i), timestamp="t").to_dict()
        for i in range(MAX_ACTIVITY_LOGS)
    ]
    cache.set(CACHE_KEYS["logs"], json.dumps(existing))

    new = store.add_log("1", "A", "NEW", "latest")
    logs = store.get_logs()

    assert len(logs) == MAX_ACTIVITY_LOGS
    assert logs[0].id == new.id
    assert logs[-1].id == str(MAX_ACTIVITY_LOGS - 2)
    assert str(MAX_ACTIVITY_LOGS - 1) not in {log.id for log in logs}


def test_subscribers_notified_until_unsubscribed(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.save_entries([make_entry()])
    store.add_log("1", "A", "X", "d")
    unsubscribe()
    store.save_off_days([])

    assert seen == ["entries", "logs"]


def test_failing_listener_does_not_block_write(store):
    def boom(resource):
        raise RuntimeError("listener broke")

    store.subscribe(boom)
    store.save_entries([make_entry()])
    assert len(store.get_entries()) == 1


def test_session_round_trip(store, admin):
    store.set_session(admin)
    assert store.get_session() == admin
    store.set_session(None)
    assert store.get_session() is None


def test_corrupt_cache_entry_reads_as_empty(cache, store):
    cache.set(CACHE_KEYS["entries"], "{not json")
    assert store.get_entries() == []


def test_endpoint_override_persists(cache):
    with RecordStore(cache, seed=False) as store:
        assert not store.adapter.is_enabled()
        store.set_endpoint("https://sheets.example.test/exec")
        assert store.adapter.is_enabled()

    with RecordStore(cache, seed=False) as reopened:
        assert reopened.adapter.url == "https://sheets.example.test/exec"
        reopened.set_endpoint("")
        assert not reopened.adapter.is_enabled()
