"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Implements file hashing using pluggable hash algorithms.

Files are read as a stream in fixed-size chunks, so hashing never loads a whole
file into memory. The same routine can tee the bytes into a sink while hashing,
which the materializer uses to copy and verify in a single pass.
"""

import hashlib
from typing import BinaryIO, Optional

from dedupset.core.interfaces import HashAlgorithm, HashState

DEFAULT_CHUNK_SIZE = 256 * 1024  # 256KB


# Use the same way to implement and use any other hashing algorithm
class Sha256AlgorithmImpl(HashAlgorithm):
    digest_size = 32

    def new(self) -> HashState:
        return hashlib.sha256()


class HasherImpl:
    """
    A hasher implementation that supports any algorithm via the HashAlgorithm interface.
    Errors while opening or reading propagate to the caller unchanged.
    """

    def __init__(self, algorithm: Optional[HashAlgorithm] = None, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.algorithm = algorithm or Sha256AlgorithmImpl()
        self.chunk_size = chunk_size

    @property
    def digest_size(self) -> int:
        return self.algorithm.digest_size

    def compute_full_hash(self, path: str) -> bytes:
        """Computes the digest of the entire file content."""
        with open(path, "rb") as f:
            return self.hash_stream(f)

    def hash_stream(self, stream: BinaryIO, sink: Optional[BinaryIO] = None) -> bytes:
        """
        Hashes a stream until EOF.
        When `sink` is given, every chunk is also written to it.
        """
        state = self.algorithm.new()
        while True:
            chunk = stream.read(self.chunk_size)
            if not chunk:
                break
            state.update(chunk)
            if sink is not None:
                sink.write(chunk)
        return state.digest()
