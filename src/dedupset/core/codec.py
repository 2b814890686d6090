"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/codec.py
Binary serialization of index entries using msgpack.

Entries are stored as a msgpack map:
    paths        - sorted list of str (sets are serialized as lists)
    attachments  - list of [extension, path] pairs, sorted by extension
    size         - int
    timestamp    - msgpack Timestamp extension type
    content_type - str
"""

from datetime import datetime, timezone
import msgpack

from dedupset.core.errors import DecodeError, InvalidEntryError
from dedupset.core.models import Entry

_FIELDS = ("paths", "attachments", "size", "timestamp", "content_type")


def encode(entry: Entry) -> bytes:
    """Serializes an entry; entries without paths are refused."""
    if not entry.paths:
        raise InvalidEntryError("Entry with an empty path set cannot be persisted")

    timestamp = entry.timestamp
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    payload = {
        "paths": sorted(entry.paths),
        "attachments": [[ext, path] for ext, path in sorted(entry.attachments.items())],
        "size": int(entry.size),
        "timestamp": msgpack.Timestamp.from_datetime(timestamp),
        "content_type": entry.content_type,
    }
    return msgpack.packb(payload, use_bin_type=True)


def decode(data: bytes) -> Entry:
    """
    Deserializes entry bytes.
    Raises DecodeError on empty, truncated or structurally invalid input.
    """
    if not data:
        raise DecodeError("Cannot decode empty data")

    try:
        payload = msgpack.unpackb(bytes(data), raw=False, timestamp=3)
    except (ValueError, TypeError, OverflowError, msgpack.UnpackException) as e:
        raise DecodeError(f"Failed to decode entry: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError(f"Expected a map, got {type(payload).__name__}")
    missing = [name for name in _FIELDS if name not in payload]
    if missing:
        raise DecodeError(f"Entry is missing fields: {', '.join(missing)}")

    paths = payload["paths"]
    if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
        raise DecodeError("Field 'paths' must be a list of strings")
    if not paths:
        raise DecodeError("Field 'paths' must not be empty")

    attachments = {}
    raw_attachments = payload["attachments"]
    if not isinstance(raw_attachments, list):
        raise DecodeError("Field 'attachments' must be a list of pairs")
    for pair in raw_attachments:
        if (not isinstance(pair, list) or len(pair) != 2
                or not all(isinstance(part, str) for part in pair)):
            raise DecodeError(f"Invalid attachment pair: {pair!r}")
        attachments[pair[0]] = pair[1]

    size = payload["size"]
    if not isinstance(size, int) or isinstance(size, bool):
        raise DecodeError("Field 'size' must be an integer")

    timestamp = payload["timestamp"]
    if not isinstance(timestamp, datetime):
        raise DecodeError("Field 'timestamp' must be a timestamp")

    content_type = payload["content_type"]
    if not isinstance(content_type, str):
        raise DecodeError("Field 'content_type' must be a string")

    return Entry(
        paths=set(paths),
        attachments=attachments,
        size=size,
        timestamp=timestamp,
        content_type=content_type,
    )
