"""
Tests for the JSON dedup store.
"""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from deal_notifier.exceptions import StoreError
from deal_notifier.services.dedup_store import JsonDedupStore


@pytest.fixture
def state_file(temp_dir):
    return temp_dir / "data" / "seen_deals.json"


@pytest.fixture
def store(state_file):
    return JsonDedupStore(str(state_file))


class TestJsonDedupStore:
    """Test cases for JsonDedupStore."""

    def test_new_store_is_empty(self, store, state_file):
        assert store.count() == 0
        assert store.exists("4321987") is False
        assert not state_file.exists()

    def test_record_and_lookup(self, store, sample_deal):
        store.record(sample_deal, "steam deck")

        assert store.exists("4321987") is True
        record = store.get("4321987")
        assert record.search_term == "steam deck"
        assert record.title == sample_deal.title
        assert record.price == "£40"

    def test_record_never_overwrites(self, store, make_deal):
        store.record(make_deal("1", title="Original"), "first term")
        store.record(make_deal("1", title="Changed"), "second term")

        record = store.get("1")
        assert record.title == "Original"
        assert record.search_term == "first term"
        assert store.count() == 1

    def test_state_file_format(self, store, state_file, sample_deal):
        store.record(sample_deal, "steam deck")

        data = json.loads(state_file.read_text(encoding="utf-8"))

        assert set(data) == {"deals", "last_updated"}
        assert data["deals"]["4321987"]["search_term"] == "steam deck"
        assert data["deals"]["4321987"]["link"] == sample_deal.link

    def test_records_survive_reload(self, store, state_file, make_deal):
        store.record(make_deal("1"), "laptop")
        store.record(make_deal("2"), "laptop")

        reloaded = JsonDedupStore(str(state_file))

        assert reloaded.count() == 2
        assert reloaded.exists("1") and reloaded.exists("2")

    def test_corrupt_file_raises(self, state_file):
        state_file.parent.mkdir(parents=True)
        state_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreError, match="Could not load"):
            JsonDedupStore(str(state_file))

    def test_malformed_record_skipped(self, state_file):
        state_file.parent.mkdir(parents=True)
        state_file.write_text(
            json.dumps(
                {
                    "deals": {
                        "1": {"search_term": "a", "title": "t", "link": "https://x/1"},
                        "2": "not a record",
                    }
                }
            ),
            encoding="utf-8",
        )

        store = JsonDedupStore(str(state_file))

        assert store.exists("1")
        assert not store.exists("2")

    def test_failed_save_rolls_back(self, store, sample_deal):
        with patch(
            "deal_notifier.services.dedup_store.os.replace",
            side_effect=OSError("read-only file system"),
        ):
            with pytest.raises(StoreError, match="Could not save"):
                store.record(sample_deal, "steam deck")

        assert store.exists(sample_deal.deal_id) is False
        assert list(store.state_file.parent.glob("*.tmp")) == []

    def test_prune_removes_old_records(self, store, state_file, make_deal):
        store.record(make_deal("old"), "laptop")
        store.record(make_deal("new"), "laptop")
        old_millis = int(
            (datetime.now(timezone.utc) - timedelta(days=45)).timestamp() * 1000
        )
        store.get("old").timestamp = old_millis

        removed = store.prune(30)

        assert removed == 1
        assert not store.exists("old")
        assert store.exists("new")
        assert JsonDedupStore(str(state_file)).count() == 1

    def test_prune_nothing_to_remove(self, store, make_deal):
        store.record(make_deal("1"), "laptop")

        assert store.prune(30) == 0
        assert store.count() == 1
