"""
Unit tests for the Entry model and parameter validation.
Merge rules decide what a union or intersection writes, so they are pinned down here.
"""
import pytest
from datetime import datetime, timezone

from dedupset.core.models import (
    Entry, IndexParams, IndexStats, MaterializeParams, SetOperation, SetParams, StoreConfig)
from conftest import make_entry


class TestEntryMerge:
    """Test path and attachment merging between entries for the same hash."""

    def test_merge_unions_paths(self):
        entry = make_entry("/a/1.txt")
        entry.merge(make_entry("/b/1.txt"))
        assert entry.paths == {"/a/1.txt", "/b/1.txt"}

    def test_merge_overwrites_colliding_attachments(self):
        """Attachments with the same extension are taken from the merged-in entry."""
        entry = make_entry("/a/1.jpg", attachments={".json": "/a/1.jpg.json", ".xmp": "/a/1.xmp"})
        entry.merge(make_entry("/b/1.jpg", attachments={".json": "/b/1.jpg.json"}))
        assert entry.attachments == {".json": "/b/1.jpg.json", ".xmp": "/a/1.xmp"}

    def test_merge_keeps_descriptive_fields(self):
        """Size, timestamp and content type of the receiving entry are never revised."""
        first = make_entry("/a", size=10, content_type="image/png",
                           timestamp=datetime(2001, 1, 1, tzinfo=timezone.utc))
        second = make_entry("/b", size=99, content_type="text/plain",
                            timestamp=datetime(2022, 1, 1, tzinfo=timezone.utc))
        first.merge(second)
        assert first.size == 10
        assert first.content_type == "image/png"
        assert first.timestamp == datetime(2001, 1, 1, tzinfo=timezone.utc)

    def test_merge_does_not_modify_other(self):
        first = make_entry("/a")
        second = make_entry("/b")
        first.merge(second)
        assert second.paths == {"/b"}

    def test_merge_with_none_is_noop(self):
        entry = make_entry("/a")
        entry.merge(None)
        assert entry.paths == {"/a"}


class TestEntryHelpers:

    def test_representative_path_is_lexicographic_minimum(self):
        entry = make_entry("/z/file.png", "/a/file.jpg", "/m/file")
        assert entry.representative_path == "/a/file.jpg"

    def test_representative_path_requires_paths(self):
        with pytest.raises(ValueError):
            Entry().representative_path

    def test_naive_timestamp_is_treated_as_utc(self):
        entry = Entry(paths={"/a"}, timestamp=datetime(2020, 5, 1))
        assert entry.timestamp.tzinfo is timezone.utc

    def test_is_duplicate(self):
        assert not make_entry("/a").is_duplicate()
        assert make_entry("/a", "/b").is_duplicate()


class TestIndexStats:

    def test_add_accumulates_counts(self):
        stats = IndexStats()
        stats.add(make_entry("/a", "/b", size=10, content_type="image/png"))
        stats.add(make_entry("/c", size=5, content_type="text/plain"))
        stats.add(make_entry("/d", size=1, content_type="image/png"))

        assert stats.hash_count == 3
        assert stats.file_count == 4
        assert stats.duplicate_hash_count == 1
        assert stats.total_bytes == 16
        assert stats.content_types == {"image/png": 2, "text/plain": 1}
        assert stats.print_summary() == "3 hashes for 4 files (1 hashes with duplicates); 16 bytes total"


class TestParams:
    """Parameter DTOs validate themselves on construction."""

    def test_store_config_rejects_empty_path(self):
        with pytest.raises(ValueError, match="Store path cannot be empty"):
            StoreConfig(path="")

    def test_store_config_from_env(self, monkeypatch):
        monkeypatch.setenv("DEDUPSET_DB", "/tmp/env.db")
        assert StoreConfig.from_env().path == "/tmp/env.db"
        assert StoreConfig.from_env("/tmp/explicit.db").path == "/tmp/explicit.db"

    def test_store_config_default_path(self, monkeypatch):
        monkeypatch.delenv("DEDUPSET_DB", raising=False)
        assert StoreConfig.from_env().path == "dedupset.db"

    @pytest.mark.parametrize("target,a,b", [("", "a", "b"), ("t", "", "b"), ("t", "a", "")])
    def test_set_params_reject_empty_names(self, target, a, b):
        with pytest.raises(ValueError):
            SetParams(SetOperation.UNION, target, a, b)

    def test_index_and_materialize_params_reject_empty_fields(self):
        with pytest.raises(ValueError):
            IndexParams(index_name="", root_dir="/tmp")
        with pytest.raises(ValueError):
            MaterializeParams(index_name="x", root_dir="")
