"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) for the collaborators the indexer and
materializer are built from. Structural typing keeps the hash function, the
content sniffer and the sidecar timestamp source swappable in tests.

Key Components:
---------------
- HashAlgorithm: Incremental cryptographic hash factory (e.g., SHA-256).
- Hasher: Interface for hashing whole files as a byte stream.
- ContentSniffer: Classifies content from a bounded byte prefix.
- TimestampExtractor: Reads a capture timestamp from a metadata sidecar.
- ProgressCallback: (stage, current, total) observer used for progress display.
"""

from datetime import datetime
from typing import BinaryIO, Callable, Optional, Protocol


ProgressCallback = Callable[[str, int, Optional[int]], None]


class HashState(Protocol):
    """Running hash state, as returned by hashlib constructors."""
    def update(self, data: bytes) -> None: ...
    def digest(self) -> bytes: ...


class HashAlgorithm(Protocol):
    """
    Interface for incremental hash algorithms.

    Allows plugging in a different cryptographic digest without affecting
    the indexer or the materializer.
    """
    digest_size: int

    def new(self) -> HashState:
        """Returns a fresh hash state."""
        ...


class Hasher(Protocol):
    """Interface for hashing whole files."""
    def compute_full_hash(self, path: str) -> bytes: ...
    def hash_stream(self, stream: BinaryIO, sink: Optional[BinaryIO] = None) -> bytes: ...


class ContentSniffer(Protocol):
    """Interface for content-type classification over a byte prefix."""
    def detect(self, head: bytes) -> str: ...


class TimestampExtractor(Protocol):
    """Interface for reading a capture timestamp out of a metadata sidecar file."""
    def extract(self, path: str) -> datetime: ...
