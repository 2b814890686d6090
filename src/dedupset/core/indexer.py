"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/indexer.py
Walks a directory tree, hashes every regular file and merges it into an index.

Features:
- Deterministic traversal (directories and files visited in sorted order)
- One entry per content hash; repeated content only adds a path
- Pluggable per-file strategies (plain files, Google Photos Takeout)
- Any unreadable file or walk error aborts the whole run
"""

from datetime import datetime, timezone
from typing import Iterator, Optional, Tuple
import logging
import os
import stat
import time

from dedupset.core.errors import IndexingError
from dedupset.core.hasher import HasherImpl
from dedupset.core.interfaces import ContentSniffer, Hasher, ProgressCallback, TimestampExtractor
from dedupset.core.models import DEFAULT_CONTENT_TYPE, Entry, IndexingStats, IndexMode
from dedupset.core.sniffer import SNIFF_LENGTH, SignatureSnifferImpl, strip_parameters
from dedupset.core.store import Namespace
from dedupset.core.takeout import (
    METADATA_EXTENSION,
    TakeoutTimestampExtractor,
    companion_path,
    sidecar_path,
)

logger = logging.getLogger(__name__)


def _raise_walk_error(error: OSError) -> None:
    raise IndexingError(error.filename or "<unknown>", f"walk error: {error}") from error


def walk_files(root_dir: str) -> Iterator[Tuple[str, os.stat_result]]:
    """
    Yields (path, lstat result) for every non-directory below root_dir, in sorted order.
    Symbolic links are reported, never followed.
    """
    for dirpath, dirnames, filenames in os.walk(root_dir, onerror=_raise_walk_error):
        dirnames.sort()
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            try:
                st = os.lstat(path)
            except OSError as e:
                raise IndexingError(path, f"walk error: {e}") from e
            yield path, st


class PlainFileStrategy:
    """
    Base class for turning one file into an index update.
    Subclasses may skip files or decorate the entry before it is written.
    """

    name = "files"

    def __init__(self, hasher: Hasher, sniffer: ContentSniffer):
        self.hasher = hasher
        self.sniffer = sniffer

    def should_skip(self, path: str) -> bool:
        return False

    def index_file(self, namespace: Namespace, path: str, st: os.stat_result) -> bool:
        """Merges `path` into the namespace. Returns True if a new hash was created."""
        digest, entry, is_new = self.make_entry(namespace, path, st)
        namespace.put(digest, entry)
        return is_new

    def make_entry(self, namespace: Namespace, path: str, st: os.stat_result) -> Tuple[bytes, Entry, bool]:
        """
        Hashes the file and returns (digest, entry, is_new).
        An existing entry keeps its size, timestamp and content type; only the path is added.
        """
        try:
            with open(path, "rb") as f:
                digest = self.hasher.hash_stream(f)
                entry = namespace.get(digest)
                is_new = entry is None
                if is_new:
                    entry = Entry(
                        size=st.st_size,
                        timestamp=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                        content_type=self._detect_content_type(f, st.st_size),
                    )
        except OSError as e:
            raise IndexingError(path, str(e)) from e

        entry.add_path(path)
        return digest, entry, is_new

    def _detect_content_type(self, f, size: int) -> str:
        # Too little data to classify reliably
        if size < SNIFF_LENGTH:
            return DEFAULT_CONTENT_TYPE
        f.seek(0)
        head = f.read(SNIFF_LENGTH)
        return strip_parameters(self.sniffer.detect(head))


class TakeoutFileStrategy(PlainFileStrategy):
    """
    Google Photos Takeout layout: "photo.jpg" plus an optional "photo.jpg.json".
    The sidecar supplies the capture time and is attached under ".json".
    """

    name = "takeout"

    def __init__(self, hasher: Hasher, sniffer: ContentSniffer,
                 extractor: Optional[TimestampExtractor] = None):
        super().__init__(hasher, sniffer)
        self.extractor = extractor or TakeoutTimestampExtractor()

    def should_skip(self, path: str) -> bool:
        # Sidecars with a companion are handled together with that companion
        if path.endswith(METADATA_EXTENSION):
            companion = companion_path(path)
            if os.path.exists(companion):
                logger.debug(f"Skipping metadata file {path} (companion: {companion})")
                return True
        return False

    def index_file(self, namespace: Namespace, path: str, st: os.stat_result) -> bool:
        digest, entry, is_new = self.make_entry(namespace, path, st)

        metadata = sidecar_path(path)
        if os.path.exists(metadata):
            try:
                entry.timestamp = self.extractor.extract(metadata)
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to extract timestamp from {metadata}: {e}")
            else:
                entry.attachments[METADATA_EXTENSION] = metadata

        namespace.put(digest, entry)
        return is_new


class IndexerImpl:
    """
    Adds directory trees to an index namespace.
    The caller owns the write transaction, so a failure leaves the index untouched.
    """

    def __init__(
            self,
            hasher: Optional[Hasher] = None,
            sniffer: Optional[ContentSniffer] = None,
            extractor: Optional[TimestampExtractor] = None,
    ):
        self.hasher = hasher or HasherImpl()
        self.sniffer = sniffer or SignatureSnifferImpl()
        self.extractor = extractor

    def strategy_for(self, mode: IndexMode) -> PlainFileStrategy:
        if mode is IndexMode.TAKEOUT:
            return TakeoutFileStrategy(self.hasher, self.sniffer, self.extractor)
        return PlainFileStrategy(self.hasher, self.sniffer)

    @staticmethod
    def count_files(root_dir: str) -> int:
        """
        Pre-count for progress display only.
        The tree may change before the indexing walk; the count is then just inaccurate.
        """
        return sum(1 for _ in walk_files(root_dir))

    def add_files(
            self,
            namespace: Namespace,
            root_dir: str,
            mode: IndexMode = IndexMode.FILES,
            progress_callback: Optional[ProgressCallback] = None,
            total: Optional[int] = None,
    ) -> IndexingStats:
        """
        Indexes every regular file below root_dir into `namespace`.

        Raises:
            IndexingError: if the root is missing, or any file or directory cannot be read
        """
        if not os.path.isdir(root_dir):
            raise IndexingError(root_dir, "not a directory")

        root_dir = os.path.abspath(root_dir)
        strategy = self.strategy_for(mode)
        stats = IndexingStats()
        start_time = time.time()
        processed = 0

        logger.debug(f"Indexing {root_dir} into '{namespace.index_name}' (mode: {strategy.name})")

        for path, st in walk_files(root_dir):
            processed += 1
            if not stat.S_ISREG(st.st_mode):
                logger.debug(f"Skipping non-regular file: {path}")
                stats.skipped_non_regular += 1
            elif strategy.should_skip(path):
                stats.sidecars_skipped += 1
            else:
                if strategy.index_file(namespace, path, st):
                    stats.new_hashes += 1
                stats.files_indexed += 1

            if progress_callback:
                progress_callback("indexing", processed, total)

        stats.total_time = time.time() - start_time
        logger.info(
            f"Indexed {stats.files_indexed} files ({stats.new_hashes} new hashes) "
            f"into '{namespace.index_name}' in {stats.total_time:.2f}s"
        )
        return stats
