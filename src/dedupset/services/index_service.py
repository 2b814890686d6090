"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/index_service.py
Maintenance operations on whole indexes: list, show, chunk, delete and stats.
All functions run inside a transaction owned by the caller.
"""
from typing import Iterator, List
import logging

from dedupset.core.errors import IndexNotFoundError, TargetAlreadyExistsError
from dedupset.core.models import IndexRow, IndexStats
from dedupset.core.store import Transaction

logger = logging.getLogger(__name__)


class IndexService:
    """Stateless helpers over a store transaction."""

    @staticmethod
    def list_indexes(tx: Transaction) -> List[str]:
        """Names of all indexes, in ascending order."""
        return tx.index_names()

    @staticmethod
    def show_index(tx: Transaction, index_name: str) -> Iterator[IndexRow]:
        """Yields one display row per entry, in hash order, with sorted paths."""
        namespace = tx.namespace(index_name)
        for digest, entry in namespace.items():
            yield IndexRow(
                hash_hex=digest.hex(),
                size=entry.size,
                timestamp=entry.timestamp,
                content_type=entry.content_type,
                paths=entry.sorted_paths(),
            )

    @staticmethod
    def chunk_name(prefix: str, number: int) -> str:
        return f"{prefix}-{number}"

    @classmethod
    def chunk_index(cls, tx: Transaction, index_name: str, prefix: str, chunk_size: int) -> int:
        """
        Splits an index into "<prefix>-0", "<prefix>-1", ... with at most chunk_size entries each.
        Entries are copied byte for byte in hash order. Returns the number of chunks written.
        """
        if not index_name:
            raise ValueError("Index name cannot be empty")
        if not prefix:
            raise ValueError("Target index prefix cannot be empty")
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        tx.check_writable()

        if not tx.exists(index_name):
            raise IndexNotFoundError(index_name)
        source = tx.namespace(index_name)

        total = len(source)
        chunks = max(1, -(-total // chunk_size))
        for number in range(chunks):
            name = cls.chunk_name(prefix, number)
            if tx.exists(name):
                raise TargetAlreadyExistsError(name)

        count = 0
        target = tx.namespace(cls.chunk_name(prefix, 0))
        for digest, value in source.raw_items():
            if count and count % chunk_size == 0:
                target = tx.namespace(cls.chunk_name(prefix, count // chunk_size))
            target.put_raw(digest, value)
            count += 1

        logger.info(f"Index '{index_name}' chunked into {chunks} chunks ({count} entries)")
        return chunks

    @staticmethod
    def delete_index(tx: Transaction, index_name: str) -> None:
        tx.delete(index_name)
        logger.info(f"Index deleted: '{index_name}'")

    @staticmethod
    def index_stats(tx: Transaction, index_name: str) -> IndexStats:
        """Aggregates hash, file, duplicate and byte counts plus the content-type distribution."""
        stats = IndexStats()
        for _, entry in tx.namespace(index_name).items():
            stats.add(entry)
        return stats
