"""Tests for modelcurl.storage - JSON persistence."""

import json

import pytest

from modelcurl.config import Endpoint, PerformanceMetrics, RequestHistoryItem
from modelcurl.storage import (
    JsonEndpointStore,
    JsonHistoryStore,
    MemoryEndpointStore,
    _write_json_list,
)


def make_history_item(item_id: str) -> RequestHistoryItem:
    return RequestHistoryItem(
        id=item_id,
        timestamp=1700000000000,
        endpoint_name="Local",
        model="llama-3.2-3b-instruct",
        prompt="Hi",
        response="Hello",
        metrics=PerformanceMetrics(ttft_ms=10, total_latency_ms=50, total_tokens=2),
        stream=True,
    )


class TestJsonEndpointStore:

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonEndpointStore(tmp_path).get_saved_endpoints() == []

    def test_save_and_reload(self, tmp_path):
        store = JsonEndpointStore(tmp_path)
        endpoint = Endpoint(
            id="e1", name="Local", url="http://x/v1", api_key="k",
            headers=[("X-A", "1"), ("X-A", "2")], model="m",
        )

        store.save_endpoint(endpoint)

        assert JsonEndpointStore(tmp_path).get_saved_endpoints() == [endpoint]

    def test_file_uses_api_key_alias(self, tmp_path):
        store = JsonEndpointStore(tmp_path)
        store.save_endpoint(Endpoint(id="e1", name="Local", url="http://x", api_key="k"))

        data = json.loads((tmp_path / "endpoints.json").read_text())
        assert data[0]["apiKey"] == "k"

    def test_upsert_preserves_order(self, tmp_path):
        store = JsonEndpointStore(tmp_path)
        store.save_endpoint(Endpoint(id="a", name="A", url="http://a"))
        store.save_endpoint(Endpoint(id="b", name="B", url="http://b"))
        store.save_endpoint(Endpoint(id="a", name="A2", url="http://a"))

        names = [e.name for e in store.get_saved_endpoints()]
        assert names == ["A2", "B"]

    def test_delete(self, tmp_path):
        store = JsonEndpointStore(tmp_path)
        store.save_endpoint(Endpoint(id="a", name="A", url="http://a"))
        store.delete_endpoint("a")
        assert store.get_saved_endpoints() == []

    def test_defaults_to_config_dir(self, config_dir):
        assert JsonEndpointStore().path == config_dir / "endpoints.json"

    def test_corrupt_file_raises(self, tmp_path):
        (tmp_path / "endpoints.json").write_text('{"not": "a list"}')
        with pytest.raises(ValueError):
            JsonEndpointStore(tmp_path).get_saved_endpoints()

    def test_save_leaves_no_temp_files(self, tmp_path):
        store = JsonEndpointStore(tmp_path)
        store.save_endpoint(Endpoint(id="a", name="A", url="http://a"))
        store.save_endpoint(Endpoint(id="b", name="B", url="http://b"))

        assert [p.name for p in tmp_path.iterdir()] == ["endpoints.json"]

    def test_failed_write_keeps_previous_file(self, tmp_path):
        path = tmp_path / "endpoints.json"
        _write_json_list(path, [{"id": "a"}])

        with pytest.raises(TypeError):
            _write_json_list(path, [{"id": object()}])

        assert json.loads(path.read_text()) == [{"id": "a"}]
        assert [p.name for p in tmp_path.iterdir()] == ["endpoints.json"]


class TestMemoryEndpointStore:

    def test_returns_copies(self):
        store = MemoryEndpointStore([Endpoint(id="a", name="A", url="http://a")])
        store.get_saved_endpoints()[0].name = "mutated"
        assert store.get_saved_endpoints()[0].name == "A"


class TestJsonHistoryStore:

    def test_append_and_read(self, tmp_path):
        store = JsonHistoryStore(tmp_path)
        store.add_history_item(make_history_item("1"))
        store.add_history_item(make_history_item("2"))

        assert [i.id for i in store.get_request_history()] == ["1", "2"]

    def test_max_items_keeps_newest(self, tmp_path):
        store = JsonHistoryStore(tmp_path, max_items=2)
        for i in range(3):
            store.add_history_item(make_history_item(str(i)))

        assert [i.id for i in store.get_request_history()] == ["1", "2"]

    def test_clear(self, tmp_path):
        store = JsonHistoryStore(tmp_path)
        store.add_history_item(make_history_item("1"))
        store.clear_history()
        assert store.get_request_history() == []
