import asyncio
import json

import httpx

from production_dashboard.config import CACHE_KEYS
from production_dashboard.sheets import SheetsAdapter
from production_dashboard.store import RecordStore

from conftest import SHEET_URL, FakeSheet, make_entry


def adapter_for(sheet: FakeSheet) -> SheetsAdapter:
    return SheetsAdapter(SHEET_URL, timeout=5, transport=httpx.MockTransport(sheet))


def test_disabled_adapter_does_nothing():
    adapter = SheetsAdapter(None)
    assert not adapter.is_enabled()
    assert asyncio.run(adapter.fetch("getProduction")) is None
    assert asyncio.run(adapter.push("saveProduction", [])) is False


def test_fetch_sends_action_and_cache_buster():
    sheet = FakeSheet({"getOffDays": [{"date": "2025-01-01", "description": "NY"}]})
    payload = asyncio.run(adapter_for(sheet).fetch("getOffDays"))

    assert payload == [{"date": "2025-01-01", "description": "NY"}]
    params = sheet.requests[0].url.params
    assert params["action"] == "getOffDays"
    assert params["_t"].isdigit()


def test_fetch_returns_none_on_http_error():
    sheet = FakeSheet({"getProduction": httpx.Response(500, text="boom")})
    assert asyncio.run(adapter_for(sheet).fetch("getProduction")) is None


def test_fetch_returns_none_on_bad_json():
    sheet = FakeSheet({"getProduction": httpx.Response(200, text="<html>login</html>")})
    assert asyncio.run(adapter_for(sheet).fetch("getProduction")) is None


def test_fetch_returns_none_on_undecodable_bytes():
    sheet = FakeSheet({"getProduction": httpx.Response(200, content=b"\xff\xfe\xfa[]")})
    assert asyncio.run(adapter_for(sheet).fetch("getProduction")) is None


def test_fetch_returns_none_on_network_error():
    sheet = FakeSheet({"getProduction": httpx.ConnectError("unreachable")})
    assert asyncio.run(adapter_for(sheet).fetch("getProduction")) is None


def test_push_body_and_unobserved_status():
    sheet = FakeSheet()
    assert asyncio.run(adapter_for(sheet).push("saveUsers", [{"id": "1"}])) is True

    body = sheet.posted()[0]
    assert body["action"] == "saveUsers"
    assert body["data"] == [{"id": "1"}]
    assert body["timestamp"].endswith("Z")

    rejecting = adapter_for(lambda request: httpx.Response(403, text="denied"))
    assert asyncio.run(rejecting.push("saveUsers", [])) is True


def test_push_network_error_is_false():
    def unreachable(request):
        raise httpx.ConnectError("down")

    assert asyncio.run(adapter_for(unreachable).push("saveUsers", [])) is False


def test_save_mirrors_to_endpoint(remote_store, fake_sheet):
    future = remote_store.save_entries([make_entry()])

    assert future.result(timeout=5) is True
    body = fake_sheet.posted()[0]
    assert body["action"] == "saveProduction"
    assert body["data"][0]["productName"] == "Gel 50g"


def test_logs_and_session_are_not_mirrored(remote_store, fake_sheet, admin):
    remote_store.add_log("1", "A", "X", "d")
    remote_store.set_session(admin)
    assert fake_sheet.requests == []


def test_sync_overwrites_both_collections(remote_store, fake_sheet):
    remote_store.save_entries([make_entry(id="local")]).result(timeout=5)
    fake_sheet.responses.update({
        "getProduction": [make_entry(id="remote").to_dict()],
        "getOffDays": [{"date": "2025-05-01", "description": "Labour Day"}],
    })

    result = asyncio.run(remote_store.sync())

    assert result.entries and result.off_days
    assert [e.id for e in remote_store.get_entries()] == ["remote"]
    assert remote_store.get_off_days()[0].description == "Labour Day"


def test_sync_with_empty_remote_list_clears_local(remote_store, fake_sheet):
    remote_store.save_entries([make_entry(id="local")]).result(timeout=5)
    fake_sheet.responses["getProduction"] = []

    result = asyncio.run(remote_store.sync())

    assert result.entries is True
    assert remote_store.get_entries() == []


def test_failed_pull_leaves_local_bytes_unchanged(cache, remote_store, fake_sheet):
    remote_store.save_entries([make_entry(id="1"), make_entry(id="2")]).result(timeout=5)
    before = cache.get(CACHE_KEYS["entries"])
    fake_sheet.responses.update({
        "getProduction": httpx.ConnectError("down"),
        "getOffDays": [{"date": "2025-05-01", "description": "Labour Day"}],
    })

    result = asyncio.run(remote_store.sync())

    assert result.entries is False
    assert result.off_days is True
    assert cache.get(CACHE_KEYS["entries"]) == before


def test_non_list_payload_is_treated_as_failed_pull(cache, remote_store, fake_sheet):
    remote_store.save_entries([make_entry(id="1")]).result(timeout=5)
    before = cache.get(CACHE_KEYS["entries"])
    fake_sheet.responses["getProduction"] = {"error": "sheet missing"}

    assert asyncio.run(remote_store.sync()).entries is False
    assert cache.get(CACHE_KEYS["entries"]) == before


def test_sync_disabled_is_noop(cache, store):
    store.save_entries([make_entry()])
    before = cache.get(CACHE_KEYS["entries"])

    result = asyncio.run(store.sync())

    assert not result.any
    assert cache.get(CACHE_KEYS["entries"]) == before


def test_sync_notifies_listeners(remote_store, fake_sheet):
    seen = []
    remote_store.subscribe(seen.append)
    fake_sheet.responses["getProduction"] = [make_entry().to_dict()]

    asyncio.run(remote_store.sync())

    assert seen == ["entries"]
    assert remote_store.get_entries()[0].id == "e1"


def test_sync_tolerates_out_of_range_quantity_cells(remote_store, fake_sheet):
    row = make_entry(id="big").to_dict()
    row["planQuantity"] = "1e999"
    fake_sheet.responses["getProduction"] = [row]

    result = asyncio.run(remote_store.sync())

    assert result.entries is True
    assert remote_store.get_entries()[0].plan_quantity == 0


def test_mirror_pushes_reach_endpoint_in_save_order(cache):
    arrived = []

    async def slow_first(request):
        body = json.loads(request.content)
        if body["data"][0]["id"] == "older":
            await asyncio.sleep(0.2)
        arrived.append(body["data"][0]["id"])
        return httpx.Response(200, text="ok")

    adapter = SheetsAdapter(SHEET_URL, timeout=5, transport=httpx.MockTransport(slow_first))
    with RecordStore(cache, adapter, seed=False) as store:
        first = store.save_entries([make_entry(id="older")])
        second = store.save_entries([make_entry(id="newer")])
        assert first.result(timeout=5) is True
        assert second.result(timeout=5) is True

    assert arrived == ["older", "newer"]
