"""
dedupset — content-hash indexes of file collections.

Core features:
- Named indexes keyed by SHA-256 content hash, stored in a single SQLite file
- Set algebra between indexes: union, intersection, difference
- Materialization into a deduplicated, content-addressed directory tree
  with hash verification and atomic writes
- Google Photos Takeout support (sidecar timestamps and attachments)
- CLI interface for headless/server usage
"""

# Get version
from importlib.metadata import PackageNotFoundError, version as _version

try:
    __version__ = _version("dedupset")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API: only what users should import directly
from dedupset.commands import StoreCommands
from dedupset.core import (
    Entry, IndexMode, SetOperation, TxMode,
    StoreConfig, IndexParams, SetParams, MaterializeParams,
    IndexStore, DedupsetError)
from dedupset.services import IndexService
from dedupset.utils.convert_utils import ConvertUtils

__all__ = [
    "StoreCommands",
    "Entry",
    "IndexMode",
    "SetOperation",
    "TxMode",
    "StoreConfig",
    "IndexParams",
    "SetParams",
    "MaterializeParams",
    "IndexStore",
    "DedupsetError",
    "IndexService",
    "ConvertUtils",
    "__version__",
]
