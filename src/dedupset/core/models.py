"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for content-hash indexes: entries, set operations, parameters and statistics.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set
import os


DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_STORE_PATH = "dedupset.db"
HASHES_NAMESPACE = "hashes"


# =============================
# Enums
# =============================

class TxMode(Enum):
    """Transaction mode for the index store."""
    READ = "read"
    WRITE = "write"

    def __repr__(self) -> str:
        return self.value


class IndexMode(Enum):
    """
    How files are turned into entries while indexing a directory tree.
    """
    FILES = "files"
    TAKEOUT = "takeout"

    @property
    def display_name(self) -> str:
        """Human-readable name for UI display."""
        mapping = {
            IndexMode.FILES: "Plain files",
            IndexMode.TAKEOUT: "Google Photos Takeout",
        }
        return mapping.get(self, self.value)

    @property
    def description(self) -> str:
        """Detailed description for help text."""
        mapping = {
            IndexMode.FILES:
                "Every regular file becomes (part of) an entry",
            IndexMode.TAKEOUT:
                "Like files, but <name>.json sidecars set the timestamp and are attached",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


class SetOperation(Enum):
    """
    Set algebra operations between two indexes.
    """
    UNION = "union"
    INTERSECTION = "intersection"
    DIFFERENCE = "difference"

    @property
    def symbol(self) -> str:
        mapping = {
            SetOperation.UNION: "∪",
            SetOperation.INTERSECTION: "∩",
            SetOperation.DIFFERENCE: "−",
        }
        return mapping[self]

    @property
    def description(self) -> str:
        """Detailed description for help text."""
        mapping = {
            SetOperation.UNION: "Entries in A or B (entries in both are merged)",
            SetOperation.INTERSECTION: "Entries in both A and B (merged)",
            SetOperation.DIFFERENCE: "Entries in A but not in B (copied from A)",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


# ======================
#  Core Data Models
# ======================

@dataclass
class Entry:
    """
    One record per unique content hash.
    Every path in `paths` hashes byte-for-byte to the key the entry is stored under.
    """
    paths: Set[str] = field(default_factory=set)
    attachments: Dict[str, str] = field(default_factory=dict)  # extension -> sidecar path
    size: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.fromtimestamp(0, tz=timezone.utc))
    content_type: str = DEFAULT_CONTENT_TYPE

    def __post_init__(self):
        if self.timestamp.tzinfo is None:
            self.timestamp = self.timestamp.replace(tzinfo=timezone.utc)

    def merge(self, other: Optional["Entry"]) -> None:
        """
        Adds the locations and attachments of `other` to this entry.
        Attachments present in both are taken from `other`.
        Size, timestamp and content type of this entry are never revised.
        """
        if other is None:
            return
        self.paths.update(other.paths)
        self.attachments.update(other.attachments)

    def add_path(self, path: str) -> None:
        self.paths.add(path)

    def sorted_paths(self) -> List[str]:
        return sorted(self.paths)

    @property
    def representative_path(self) -> str:
        """Lexicographically first path; independent of walk or set order."""
        if not self.paths:
            raise ValueError("Entry has no paths")
        return min(self.paths)

    def is_duplicate(self) -> bool:
        """True if this content is known at two or more locations."""
        return len(self.paths) >= 2

    def __repr__(self):
        return f"<Entry size={self.size}, paths={len(self.paths)}, type={self.content_type}>"


@dataclass
class IndexRow:
    """A display row for one entry of an index."""
    hash_hex: str
    size: int
    timestamp: datetime
    content_type: str
    paths: List[str]


@dataclass
class IndexStats:
    """
    Aggregate statistics over one index.
    """
    hash_count: int = 0
    file_count: int = 0
    duplicate_hash_count: int = 0
    total_bytes: int = 0
    content_types: Dict[str, int] = field(default_factory=dict)

    def add(self, entry: Entry) -> None:
        self.hash_count += 1
        self.file_count += len(entry.paths)
        self.total_bytes += entry.size
        if entry.is_duplicate():
            self.duplicate_hash_count += 1
        self.content_types[entry.content_type] = self.content_types.get(entry.content_type, 0) + 1

    def print_summary(self) -> str:
        return (f"{self.hash_count} hashes for {self.file_count} files "
                f"({self.duplicate_hash_count} hashes with duplicates); {self.total_bytes} bytes total")


@dataclass
class IndexingStats:
    """Counters collected while adding a directory tree to an index."""
    files_indexed: int = 0
    new_hashes: int = 0
    sidecars_skipped: int = 0
    skipped_non_regular: int = 0
    total_time: float = 0.0


@dataclass
class MaterializeStats:
    """Counters collected during one materialization pass."""
    written: int = 0
    skipped: int = 0
    attachments: int = 0
    total_time: float = 0.0


# ======================
#  Parameters (DTOs)
# ======================

@dataclass
class StoreConfig:
    """
    Location of the index store.
    Threaded explicitly through every operation instead of a global path.
    """
    path: str = DEFAULT_STORE_PATH
    file_mode: int = 0o600
    busy_timeout: float = 5.0

    def __post_init__(self):
        if not self.path:
            raise ValueError("Store path cannot be empty")
        if self.busy_timeout < 0:
            raise ValueError("Busy timeout cannot be negative")
        self.path = os.fspath(self.path)

    @staticmethod
    def from_env(path: Optional[str] = None) -> "StoreConfig":
        """Explicit path first, then DEDUPSET_DB, then the default file in the working directory."""
        return StoreConfig(path=path or os.environ.get("DEDUPSET_DB") or DEFAULT_STORE_PATH)


@dataclass
class IndexParams:
    """Parameters for adding a directory tree to an index."""
    index_name: str
    root_dir: str
    mode: IndexMode = IndexMode.FILES
    count_first: bool = False

    def __post_init__(self):
        if not self.index_name:
            raise ValueError("Index name cannot be empty")
        if not self.root_dir:
            raise ValueError("Root directory cannot be empty")


@dataclass
class SetParams:
    """Parameters for a set operation: target = a <op> b."""
    operation: SetOperation
    target: str
    index_a: str
    index_b: str

    def __post_init__(self):
        if not self.target:
            raise ValueError("Target index name cannot be empty")
        if not self.index_a:
            raise ValueError("Index A name cannot be empty")
        if not self.index_b:
            raise ValueError("Index B name cannot be empty")


@dataclass
class MaterializeParams:
    """Parameters for materializing an index into a directory."""
    index_name: str
    root_dir: str

    def __post_init__(self):
        if not self.index_name:
            raise ValueError("Index name cannot be empty")
        if not self.root_dir:
            raise ValueError("Root directory cannot be empty")
