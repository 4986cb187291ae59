"""Tests for the volatile page cache and the durable page store."""

import json
import threading
from datetime import datetime, timezone

import pytest

from trackpage.errors import PageStoreError
from trackpage.page_cache import PageCache
from trackpage.page_store import PageStore

from .conftest import make_status_page


class TestPageCache:
    def test_unsaved_page_expires(self, monotonic):
        cache = PageCache(ttl=60, clock=monotonic)
        cache.put(make_status_page())
        monotonic.value += 59
        assert cache.get("abc123") is not None
        monotonic.value += 1
        assert cache.get("abc123") is None
        assert "abc123" not in cache

    def test_saved_page_does_not_expire(self, monotonic):
        cache = PageCache(ttl=60, clock=monotonic)
        cache.put(make_status_page())
        assert cache.mark_saved("abc123").saved is True
        monotonic.value += 10_000
        assert cache.get("abc123") is not None

    def test_overwrite_keeps_expiry(self, monotonic):
        cache = PageCache(ttl=60, clock=monotonic)
        cache.put(make_status_page())
        monotonic.value += 50
        cache.put(make_status_page())
        monotonic.value += 10
        assert cache.get("abc123") is None

    def test_sweep(self, monotonic):
        cache = PageCache(ttl=60, clock=monotonic)
        cache.put(make_status_page("old"))
        cache.put(make_status_page("kept", saved=True))
        monotonic.value += 30
        cache.put(make_status_page("new"))
        monotonic.value += 30

        assert cache.sweep() == ["old"]
        assert len(cache) == 2
        assert "new" in cache

    def test_concurrent_puts_during_sweep(self, monotonic):
        cache = PageCache(ttl=60, clock=monotonic)
        for i in range(500):
            cache.put(make_status_page(f"old{i}"))
        monotonic.value += 60

        errors = []

        def writer():
            try:
                for i in range(5000):
                    cache.put(make_status_page(f"new{i}"))
            except Exception as e:
                errors.append(e)

        thread = threading.Thread(target=writer)
        thread.start()
        swept = []
        while thread.is_alive():
            swept.extend(cache.sweep())
        thread.join()
        swept.extend(cache.sweep())

        assert errors == []
        assert sorted(swept) == sorted(f"old{i}" for i in range(500))
        assert len(cache) == 5000


class TestPageStore:
    def test_save_and_get(self, temp_dir):
        store = PageStore(temp_dir)
        page = make_status_page(saved=True)
        page.saved_at = "2025-03-14T15:05:00Z"
        store.save(page)

        path = temp_dir / "status_pages" / "abc123.json"
        data = json.loads(path.read_text())
        assert data["carrierCode"] == "UPS"
        assert data["savedAt"] == "2025-03-14T15:05:00Z"

        loaded = store.get("abc123")
        assert loaded == page

    def test_get_missing(self, temp_dir):
        assert PageStore(temp_dir).get("nothing") is None

    def test_corrupted_file(self, temp_dir):
        store = PageStore(temp_dir)
        store.pages_dir.mkdir(parents=True)
        (store.pages_dir / "broken.json").write_text("{not json")
        with pytest.raises(PageStoreError):
            store.get("broken")

    @pytest.mark.parametrize("page_id", ["../etc/passwd", "a/b", "", "a.b"])
    def test_invalid_ids(self, temp_dir, page_id):
        with pytest.raises(PageStoreError):
            PageStore(temp_dir).get(page_id)

    def test_no_temp_files_left(self, temp_dir):
        store = PageStore(temp_dir)
        store.save(make_status_page())
        store.update(make_status_page())
        assert [p.name for p in store.pages_dir.iterdir()] == ["abc123.json"]

    def test_list_newest_first_skips_corrupt(self, temp_dir):
        store = PageStore(temp_dir)
        store.save(make_status_page("a", created_at="2025-03-01T00:00:00Z"))
        store.save(make_status_page("b", created_at="2025-03-10T00:00:00Z"))
        (store.pages_dir / "junk.json").write_text("[]")

        assert [p.id for p in store.list_pages()] == ["b", "a"]

    def test_delete(self, temp_dir):
        store = PageStore(temp_dir)
        store.save(make_status_page())
        assert store.delete("abc123") is True
        assert store.delete("abc123") is False

    def test_prune(self, temp_dir):
        store = PageStore(temp_dir)
        store.save(make_status_page("old", created_at="2025-01-01T00:00:00Z"))
        store.save(make_status_page("new", created_at="2025-03-10T00:00:00Z"))
        store.save(make_status_page("odd", created_at="not a date"))

        removed = store.prune(datetime(2025, 2, 1, tzinfo=timezone.utc))
        assert removed == 1
        assert {p.id for p in store.list_pages()} == {"new", "odd"}
