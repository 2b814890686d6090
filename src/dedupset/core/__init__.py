"""
Core engine — entry model, store, indexer, set algebra and materializer.

This package contains the foundation of dedupset:
- Entry / codec: per-hash record and its msgpack serialization
- IndexStore: SQLite-backed, single-writer/multi-reader container of indexes
- IndexerImpl: directory walk + SHA-256 hashing + content sniffing
- setalgebra: union / intersection / difference into a new index
- MaterializerImpl: hash-verified, content-addressed copy of an index

All components are pure Python with no UI dependencies.
"""

from .errors import (
    DedupsetError, StoreError, NotInitializedError, StoreAlreadyExistsError,
    ReadOnlyTransactionError, IndexNotFoundError, IndexMalformedError,
    TargetAlreadyExistsError, DecodeError, InvalidEntryError, IndexingError,
    MaterializeError, StaleIndexError)
from .models import (
    Entry, IndexRow, IndexStats, IndexingStats, MaterializeStats,
    TxMode, IndexMode, SetOperation,
    StoreConfig, IndexParams, SetParams, MaterializeParams)
from .codec import encode, decode
from .hasher import HasherImpl, Sha256AlgorithmImpl
from .sniffer import SignatureSnifferImpl
from .takeout import TakeoutTimestampExtractor
from .store import IndexStore, Transaction, Namespace
from .indexer import IndexerImpl
from .materializer import MaterializerImpl
from . import setalgebra

__all__ = [
    "DedupsetError",
    "StoreError",
    "NotInitializedError",
    "StoreAlreadyExistsError",
    "ReadOnlyTransactionError",
    "IndexNotFoundError",
    "IndexMalformedError",
    "TargetAlreadyExistsError",
    "DecodeError",
    "InvalidEntryError",
    "IndexingError",
    "MaterializeError",
    "StaleIndexError",
    "Entry",
    "IndexRow",
    "IndexStats",
    "IndexingStats",
    "MaterializeStats",
    "TxMode",
    "IndexMode",
    "SetOperation",
    "StoreConfig",
    "IndexParams",
    "SetParams",
    "MaterializeParams",
    "encode",
    "decode",
    "HasherImpl",
    "Sha256AlgorithmImpl",
    "SignatureSnifferImpl",
    "TakeoutTimestampExtractor",
    "IndexStore",
    "Transaction",
    "Namespace",
    "IndexerImpl",
    "MaterializerImpl",
    "setalgebra",
]
