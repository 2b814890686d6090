"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/takeout.py
Reads capture timestamps from Google Photos Takeout metadata sidecars.

A Takeout archive stores "IMG_0001.jpg" next to "IMG_0001.jpg.json"; the JSON
carries {"photoTakenTime": {"timestamp": "<unix seconds>"}}.
"""

from datetime import datetime, timezone
import json

from dedupset.core.interfaces import TimestampExtractor

METADATA_EXTENSION = ".json"


class TakeoutTimestampExtractor(TimestampExtractor):
    """Extracts photoTakenTime from a Takeout sidecar as an aware UTC datetime."""

    def extract(self, path: str) -> datetime:
        if not path:
            raise ValueError("Metadata path cannot be empty")

        with open(path, "r", encoding="utf-8") as f:
            try:
                meta = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Failed to decode metadata JSON: {e}") from e

        taken = meta.get("photoTakenTime") if isinstance(meta, dict) else None
        raw = taken.get("timestamp") if isinstance(taken, dict) else None
        if not raw:
            raise ValueError("Photo taken timestamp is empty in metadata")

        try:
            seconds = int(raw)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Failed to parse timestamp {raw!r}") from e

        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Timestamp {raw!r} out of range") from e


def sidecar_path(path: str) -> str:
    """'photo.jpg' -> 'photo.jpg.json'"""
    return path + METADATA_EXTENSION


def companion_path(path: str) -> str:
    """'photo.jpg.json' -> 'photo.jpg'"""
    return path[:-len(METADATA_EXTENSION)]
