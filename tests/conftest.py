"""
Shared fixtures for dedupset tests.
Creates isolated stores and temporary directory trees with controlled file contents.
"""
import hashlib
import pytest
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

from dedupset.core.models import Entry, StoreConfig, TxMode
from dedupset.core.store import IndexStore


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def make_entry(*paths: str, size: int = 100, content_type: str = "text/plain",
               attachments: Dict[str, str] = None,
               timestamp: datetime = datetime(2020, 1, 1, tzinfo=timezone.utc)) -> Entry:
    return Entry(
        paths=set(paths),
        attachments=dict(attachments or {}),
        size=size,
        timestamp=timestamp,
        content_type=content_type,
    )


def fill_index(store: IndexStore, index_name: str, entries: Dict[bytes, Entry]) -> None:
    with store.transaction(TxMode.WRITE) as tx:
        namespace = tx.namespace(index_name)
        for digest, entry in entries.items():
            namespace.put(digest, entry)


def read_index(store: IndexStore, index_name: str) -> Dict[bytes, Entry]:
    with store.transaction(TxMode.READ) as tx:
        return dict(tx.namespace(index_name).items())


@pytest.fixture
def store_config(tmp_path) -> StoreConfig:
    """Store file inside the test's temporary directory (never the working directory)."""
    return StoreConfig(path=str(tmp_path / "test.db"))


@pytest.fixture
def store(store_config):
    """Freshly initialized, open store; closed after the test."""
    s = IndexStore.initialize(store_config)
    yield s
    s.close()


@pytest.fixture
def test_files(tmp_path) -> Dict[str, Path]:
    """
    Creates a controlled tree for indexing scenarios:
    - 2 identical small text files (duplicates, < 512 bytes)
    - 1 duplicate of them in a subdirectory
    - 1 unique PNG-like file large enough to be sniffed
    - 1 unique plain-text file large enough to be sniffed
    - 1 empty file
    """
    root = tmp_path / "photos"
    root.mkdir()
    files = {}

    content_a = b"A" * 100
    files["dup_a"] = root / "dup_a.txt"
    files["dup_b"] = root / "dup_b.txt"
    files["dup_a"].write_bytes(content_a)
    files["dup_b"].write_bytes(content_a)

    subdir = root / "subdir"
    subdir.mkdir()
    files["sub_dup"] = subdir / "dup_in_subdir.txt"
    files["sub_dup"].write_bytes(content_a)

    files["png"] = root / "image.png"
    files["png"].write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 1024)

    files["text"] = root / "notes.md"
    files["text"].write_bytes(b"hello world\n" * 100)

    files["empty"] = root / "empty.bin"
    files["empty"].write_bytes(b"")

    return files
