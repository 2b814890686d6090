"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/materializer.py
Renders an index as a deduplicated, content-addressed directory tree.

Layout:
    <root>/<hex(h[0])>/<hex(h[1])>/<hexhash><ext>             primary content
    <root>/<hex(h[0])>/<hex(h[1])>/<hexhash><attachment ext>  metadata sidecars

Every file is written to a temporary name in its shard directory and renamed
into place, so a destination path either holds a complete file or nothing.
Primary content is re-hashed while it is copied; a mismatch means the source
changed after indexing and aborts the pass with StaleIndexError.
"""

from datetime import datetime
from typing import Optional
import logging
import os
import tempfile
import time

from dedupset.core.errors import MaterializeError, StaleIndexError
from dedupset.core.hasher import HasherImpl
from dedupset.core.interfaces import Hasher, ProgressCallback
from dedupset.core.models import Entry, MaterializeStats
from dedupset.core.store import Namespace

logger = logging.getLogger(__name__)

DIR_MODE = 0o755
FILE_MODE = 0o644
TEMP_PREFIX = ".dedupset-tmp-"


def file_extension(path: str) -> str:
    """
    Extension of the final path element, including the dot.
    'a/b.tar.gz' -> '.gz', 'a/.bashrc' -> '.bashrc', 'a/b.' -> '', 'a/b' -> ''
    """
    name = os.path.basename(path)
    idx = name.rfind(".")
    if idx < 0:
        return ""
    ext = name[idx:]
    return "" if ext == "." else ext


def shard_dir(root_dir: str, digest: bytes) -> str:
    """Two-level shard directory from the first two bytes of the hash."""
    return os.path.join(root_dir, f"{digest[0]:02x}", f"{digest[1]:02x}")


class MaterializerImpl:
    """
    Copies one representative file per entry into the content-addressed tree.
    Re-running over the same root only fills in what is missing.
    """

    def __init__(self, hasher: Optional[Hasher] = None):
        self.hasher = hasher or HasherImpl()

    def materialize(
            self,
            namespace: Namespace,
            root_dir: str,
            progress_callback: Optional[ProgressCallback] = None,
    ) -> MaterializeStats:
        """
        Materializes every entry of `namespace` under root_dir, in ascending hash order.

        Raises:
            StaleIndexError: if a source no longer matches its recorded hash
            MaterializeError: on any filesystem failure
        """
        stats = MaterializeStats()
        start_time = time.time()
        total = len(namespace) if progress_callback else None
        processed = 0

        for digest, entry in namespace.items():
            written, attachments = self.materialize_entry(digest, entry, root_dir)
            if written:
                stats.written += 1
                stats.attachments += attachments
            else:
                stats.skipped += 1

            processed += 1
            if progress_callback:
                progress_callback("materializing", processed, total)

        stats.total_time = time.time() - start_time
        logger.info(
            f"Materialized '{namespace.index_name}' into {root_dir}: {stats.written} written, "
            f"{stats.skipped} already present, {stats.attachments} attachments"
        )
        return stats

    def materialize_entry(self, digest: bytes, entry: Entry, root_dir: str):
        """
        Materializes a single entry.
        Returns (written, attachment_count); written is False if the destination already existed.
        """
        directory = shard_dir(root_dir, digest)
        try:
            os.makedirs(directory, mode=DIR_MODE, exist_ok=True)
        except OSError as e:
            raise MaterializeError(directory, f"failed to create directory: {e}") from e

        src = entry.representative_path
        hex_digest = digest.hex()
        dst = os.path.join(directory, hex_digest + file_extension(src))

        if os.path.lexists(dst):
            logger.debug(f"Skipping existing file {dst} (source: {src})")
            return False, 0

        self.copy_verified(digest, src, dst, entry.timestamp)

        attachments = 0
        for ext, attachment_src in sorted(entry.attachments.items()):
            attachment_dst = os.path.join(directory, hex_digest + ext)
            if attachment_dst == dst:
                # Never replace the verified content with a sidecar
                logger.debug(f"Skipping attachment {attachment_src}: same name as {dst}")
                continue
            copy_atomic(attachment_src, attachment_dst)
            attachments += 1

        logger.debug(f"Materialized {src} -> {dst}")
        return True, attachments

    def copy_verified(self, digest: bytes, src: str, dst: str, timestamp: datetime) -> None:
        """
        Streams src into a temporary file while hashing it, then renames it to dst.
        The temporary file is removed on any failure, including a hash mismatch.
        """
        if not digest:
            raise ValueError("Hash cannot be empty")

        def _write(tmp, stream):
            return self.hasher.hash_stream(stream, sink=tmp)

        actual = _copy_via_temp(src, dst, _write, expected=digest)

        # Preserve the timestamp recorded in the index
        ts = timestamp.timestamp()
        try:
            os.utime(dst, (ts, ts))
        except OSError as e:
            raise MaterializeError(dst, f"failed to set file times: {e}") from e
        logger.debug(f"Verified {actual.hex()} for {dst}")


def copy_atomic(src: str, dst: str) -> None:
    """Unverified temp-then-rename copy, used for attachments."""

    def _write(tmp, stream):
        while True:
            chunk = stream.read(256 * 1024)
            if not chunk:
                return None
            tmp.write(chunk)

    _copy_via_temp(src, dst, _write)


def _copy_via_temp(src: str, dst: str, write, expected: Optional[bytes] = None):
    if not src:
        raise ValueError("Source path cannot be empty")
    if not dst:
        raise ValueError("Destination path cannot be empty")

    directory = os.path.dirname(dst)
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=directory)
    except OSError as e:
        raise MaterializeError(dst, f"failed to create temporary file: {e}") from e

    success = False
    try:
        try:
            with os.fdopen(fd, "wb") as tmp, open(src, "rb") as stream:
                result = write(tmp, stream)
        except OSError as e:
            raise MaterializeError(src, f"failed to copy to {dst}: {e}") from e

        if expected is not None and result != expected:
            raise StaleIndexError(src, expected.hex(), result.hex())

        try:
            os.chmod(tmp_name, FILE_MODE)
            os.replace(tmp_name, dst)
        except OSError as e:
            raise MaterializeError(dst, f"failed to rename temporary file: {e}") from e
        success = True
        return result
    finally:
        if not success:
            try:
                os.remove(tmp_name)
            except FileNotFoundError:
                pass
