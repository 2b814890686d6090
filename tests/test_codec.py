"""
Tests for entry serialization.
Stored bytes must decode to an equal entry, and corrupt bytes must never decode silently.
"""
import msgpack
import pytest
from datetime import datetime, timezone

from dedupset.core.codec import decode, encode
from dedupset.core.errors import DecodeError, InvalidEntryError
from dedupset.core.models import Entry
from conftest import make_entry


class TestEncodeDecode:

    def test_round_trip_preserves_all_fields(self):
        entry = make_entry(
            "/photos/b.jpg", "/photos/a.jpg",
            size=123456,
            content_type="image/jpeg",
            attachments={".json": "/photos/a.jpg.json"},
            timestamp=datetime(2019, 7, 4, 12, 30, 15, 250000, tzinfo=timezone.utc),
        )
        decoded = decode(encode(entry))

        assert decoded.paths == entry.paths
        assert decoded.attachments == entry.attachments
        assert decoded.size == entry.size
        assert decoded.timestamp == entry.timestamp
        assert decoded.content_type == entry.content_type

    def test_timestamps_before_epoch_survive(self):
        entry = make_entry("/old", timestamp=datetime(1960, 2, 3, tzinfo=timezone.utc))
        assert decode(encode(entry)).timestamp == entry.timestamp

    def test_encoding_is_independent_of_set_order(self):
        first = make_entry("/a", "/b", "/c")
        second = make_entry("/c", "/b", "/a")
        assert encode(first) == encode(second)

    def test_entry_without_paths_is_refused(self):
        with pytest.raises(InvalidEntryError):
            encode(Entry())


class TestDecodeErrors:

    def test_empty_input(self):
        with pytest.raises(DecodeError, match="empty"):
            decode(b"")

    def test_garbage_input(self):
        with pytest.raises(DecodeError):
            decode(b"\xc1\xc1\xc1")

    def test_truncated_input(self):
        data = encode(make_entry("/a/very/long/path/to/a/file.txt"))
        with pytest.raises(DecodeError):
            decode(data[: len(data) // 2])

    def test_non_map_payload(self):
        with pytest.raises(DecodeError, match="Expected a map"):
            decode(msgpack.packb([1, 2, 3]))

    def test_missing_fields(self):
        with pytest.raises(DecodeError, match="missing fields"):
            decode(msgpack.packb({"paths": ["/a"]}))

    def test_empty_path_list(self):
        payload = msgpack.unpackb(encode(make_entry("/a")), timestamp=3)
        payload["paths"] = []
        data = msgpack.packb({**payload, "timestamp": msgpack.Timestamp.from_datetime(payload["timestamp"])})
        with pytest.raises(DecodeError, match="must not be empty"):
            decode(data)

    def test_timestamp_out_of_datetime_range(self):
        payload = msgpack.unpackb(encode(make_entry("/a")), timestamp=3)
        payload["timestamp"] = msgpack.Timestamp(2 ** 40, 0)
        with pytest.raises(DecodeError):
            decode(msgpack.packb(payload))
