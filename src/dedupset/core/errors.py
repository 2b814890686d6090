"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Exception taxonomy shared by the store, indexer, set algebra and materializer.
Every error aborts the current top-level operation; nothing here is retried.
"""


class DedupsetError(Exception):
    """Base class for all dedupset errors."""


class StoreError(DedupsetError):
    """The index store could not be created, opened or used."""


class NotInitializedError(StoreError):
    """Raised when opening a store file that does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Store has not been initialized: {path}")
        self.path = path


class StoreAlreadyExistsError(StoreError):
    """Raised when initializing a store over an existing file."""

    def __init__(self, path: str):
        super().__init__(f"Store already exists: {path}")
        self.path = path


class ReadOnlyTransactionError(StoreError):
    """Raised on an attempt to write inside a read transaction."""


class IndexNotFoundError(DedupsetError):
    """Raised when a read path names an index that does not exist."""

    def __init__(self, index_name: str):
        super().__init__(f"Index does not exist: '{index_name}'")
        self.index_name = index_name


class IndexMalformedError(DedupsetError):
    """Raised when an index exists but one of its namespaces is missing."""

    def __init__(self, index_name: str, namespace: str):
        super().__init__(f"Index '{index_name}' is not well-formed: missing namespace '{namespace}'")
        self.index_name = index_name
        self.namespace = namespace


class TargetAlreadyExistsError(DedupsetError):
    """Raised when an operation that creates a new index names an existing one."""

    def __init__(self, index_name: str):
        super().__init__(f"Target index already exists: '{index_name}'")
        self.index_name = index_name


class DecodeError(DedupsetError):
    """Raised when stored entry bytes are empty or corrupt."""


class InvalidEntryError(DedupsetError):
    """Raised when an entry violates its invariants (e.g. has no paths)."""


class IndexingError(DedupsetError):
    """Raised when a file or directory cannot be indexed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to index '{path}': {reason}")
        self.path = path


class MaterializeError(DedupsetError):
    """Raised when an entry cannot be copied into the materialized tree."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to materialize '{path}': {reason}")
        self.path = path


class StaleIndexError(MaterializeError):
    """
    Raised when a source file no longer hashes to the key it was indexed under.
    The index itself is left untouched; re-index the source to recover.
    """

    def __init__(self, path: str, expected: str, actual: str):
        super().__init__(path, f"hash mismatch (expected {expected}, got {actual}): index is stale")
        self.expected = expected
        self.actual = actual
