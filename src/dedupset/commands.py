"""
Unified command orchestrator for index operations.
This is the SINGLE source of truth for business logic, used by the CLI and by library callers.
Each command opens the store, runs exactly one transaction and closes the store again.
"""
from typing import List, Optional
import logging

from dedupset.core.indexer import IndexerImpl
from dedupset.core.interfaces import ProgressCallback
from dedupset.core.materializer import MaterializerImpl
from dedupset.core.models import (
    IndexingStats, IndexParams, IndexRow, IndexStats, MaterializeParams,
    MaterializeStats, SetParams, StoreConfig, TxMode)
from dedupset.core.store import IndexStore
from dedupset.core import setalgebra
from dedupset.services.index_service import IndexService

logger = logging.getLogger(__name__)


class StoreCommands:
    """
    Orchestrates every top-level operation against one store:
    1. Initialize the store file
    2. Add directory trees to indexes (plain files or Takeout)
    3. Inspect, chunk and delete indexes
    4. Combine indexes with set algebra
    5. Materialize an index into a content-addressed tree

    Usage:
        commands = StoreCommands(StoreConfig(path="photos.db"))
        commands.initialize()
        commands.add_files(IndexParams(index_name="laptop", root_dir="~/Pictures"))
        commands.set_operation(SetParams(SetOperation.DIFFERENCE, "todo", "laptop", "nas"))
        commands.materialize(MaterializeParams(index_name="todo", root_dir="/mnt/export"))
    """

    def __init__(self, config: Optional[StoreConfig] = None,
                 indexer: Optional[IndexerImpl] = None,
                 materializer: Optional[MaterializerImpl] = None):
        self.config = config or StoreConfig()
        self._indexer = indexer or IndexerImpl()
        self._materializer = materializer or MaterializerImpl()

    def initialize(self) -> None:
        """Creates a new, empty store. Raises StoreAlreadyExistsError if one exists."""
        IndexStore.initialize(self.config).close()

    def add_files(
            self,
            params: IndexParams,
            progress_callback: Optional[ProgressCallback] = None,
    ) -> IndexingStats:
        """
        Adds params.root_dir to params.index_name in one write transaction.

        Raises:
            NotInitializedError: if the store does not exist
            IndexingError: if any file or directory cannot be read (nothing is committed)
        """
        with IndexStore.open(self.config) as store:
            total = None
            if params.count_first:
                total = self._indexer.count_files(params.root_dir)
            with store.transaction(TxMode.WRITE) as tx:
                namespace = tx.namespace(params.index_name)
                return self._indexer.add_files(
                    namespace,
                    params.root_dir,
                    mode=params.mode,
                    progress_callback=progress_callback,
                    total=total,
                )

    def list_indexes(self) -> List[str]:
        with IndexStore.open(self.config) as store:
            return store.run(TxMode.READ, IndexService.list_indexes)

    def show_index(self, index_name: str) -> List[IndexRow]:
        with IndexStore.open(self.config) as store:
            return store.run(TxMode.READ, lambda tx: list(IndexService.show_index(tx, index_name)))

    def chunk_index(self, index_name: str, prefix: str, chunk_size: int) -> int:
        with IndexStore.open(self.config) as store:
            return store.run(
                TxMode.WRITE,
                lambda tx: IndexService.chunk_index(tx, index_name, prefix, chunk_size),
            )

    def delete_index(self, index_name: str) -> None:
        with IndexStore.open(self.config) as store:
            store.run(TxMode.WRITE, lambda tx: IndexService.delete_index(tx, index_name))

    def index_stats(self, index_name: str) -> IndexStats:
        with IndexStore.open(self.config) as store:
            return store.run(TxMode.READ, lambda tx: IndexService.index_stats(tx, index_name))

    def set_operation(self, params: SetParams) -> int:
        """
        Computes params.target = params.index_a <op> params.index_b.
        Returns the number of entries in the new target index.
        """
        with IndexStore.open(self.config) as store:
            return store.run(
                TxMode.WRITE,
                lambda tx: setalgebra.apply(
                    tx, params.operation, params.target, params.index_a, params.index_b),
            )

    def materialize(
            self,
            params: MaterializeParams,
            progress_callback: Optional[ProgressCallback] = None,
    ) -> MaterializeStats:
        """Materializes an index from a read-only snapshot of the store."""
        with IndexStore.open(self.config) as store:
            with store.transaction(TxMode.READ) as tx:
                namespace = tx.namespace(params.index_name)
                return self._materializer.materialize(
                    namespace, params.root_dir, progress_callback=progress_callback)
