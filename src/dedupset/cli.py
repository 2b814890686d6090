#!/usr/bin/env python3
"""
dedupset CLI — Command line interface for content-hash indexes.
Thin layer over StoreCommands: parses arguments, prints results, maps errors to exit codes.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import List, NoReturn, Optional

logging.basicConfig(
    level=logging.ERROR,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

from dedupset.aliases import (
    EPILOG_TEXT,
    INDEX_MODE_ALIASES, INDEX_MODE_CHOICES, INDEX_MODE_HELP_TEXT,
    SET_OPERATION_ALIASES, SET_OPERATION_CHOICES, SET_OPERATION_HELP_TEXT,
)
from dedupset.commands import StoreCommands
from dedupset.core.errors import DedupsetError
from dedupset.core.models import IndexMode, IndexParams, MaterializeParams, SetParams, StoreConfig
from dedupset.utils.convert_utils import ConvertUtils


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.commands: Optional[StoreCommands] = None

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="dedupset",
            description="dedupset — content-hash indexes, set algebra and deduplicated export",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )
        parser.add_argument(
            "--db",
            default=None,
            type=str,
            metavar="PATH",
            help="Store file. Default: $DEDUPSET_DB or ./dedupset.db"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show progress and informational log messages"
        )
        parser.add_argument(
            "--debug",
            action="store_true",
            help="Show debug log messages"
        )

        commands = parser.add_subparsers(dest="command", metavar="COMMAND")
        commands.required = True

        commands.add_parser("init", help="Create a new store")

        index = commands.add_parser("index", help="Add to, inspect, chunk or delete indexes")
        index_commands = index.add_subparsers(dest="index_command", metavar="ACTION")
        index_commands.required = True

        add = index_commands.add_parser(
            "add", help="Add all files below a directory to an index",
            formatter_class=argparse.RawTextHelpFormatter)
        add.add_argument("index_name", help="Index to add to (created if missing)")
        add.add_argument("root", help="Directory to walk")
        add.add_argument(
            "--mode",
            choices=INDEX_MODE_CHOICES,
            default="files",
            type=str,
            help=INDEX_MODE_HELP_TEXT
        )

        index_commands.add_parser("list", help="List all indexes")

        show = index_commands.add_parser("show", help="Show every entry of an index")
        show.add_argument("index_name")

        stats = index_commands.add_parser("stats", help="Show statistics of an index")
        stats.add_argument("index_name")

        chunk = index_commands.add_parser("chunk", help="Split an index into fixed-size chunks")
        chunk.add_argument("index_name", help="Index to split")
        chunk.add_argument("prefix", help="Chunks are named <prefix>-0, <prefix>-1, ...")
        chunk.add_argument("chunk_size", type=int, help="Maximum entries per chunk")

        delete = index_commands.add_parser("delete", help="Delete an index")
        delete.add_argument("index_name")

        set_parser = commands.add_parser(
            "set", help="Combine two indexes into a new one",
            formatter_class=argparse.RawTextHelpFormatter)
        set_parser.add_argument("operation", choices=SET_OPERATION_CHOICES, help=SET_OPERATION_HELP_TEXT)
        set_parser.add_argument("target", help="New index to create")
        set_parser.add_argument("index_a")
        set_parser.add_argument("index_b")

        materialize = commands.add_parser(
            "materialize", help="Copy one file per hash into a content-addressed tree")
        materialize.add_argument("index_name")
        materialize.add_argument("root", help="Destination directory")

        return parser.parse_args(args)

    def configure_logging(self, args: argparse.Namespace) -> None:
        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        elif args.verbose:
            logging.getLogger().setLevel(logging.INFO)

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(
                f"\r  [{stage}] {current}/{total} ({percent:.1f}%)"
            )
            sys.stderr.flush()
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files processed...")
            sys.stderr.flush()

    def end_progress(self) -> None:
        if self.verbose:
            sys.stderr.write("\n")

    def info(self, message: str) -> None:
        if not self.quiet:
            print(message)

    # ----- handlers -----

    def cmd_init(self, args: argparse.Namespace) -> None:
        self.commands.initialize()
        self.info(f"✅ Store initialized: {self.commands.config.path}")

    def cmd_index_add(self, args: argparse.Namespace) -> None:
        root = Path(args.root).expanduser()
        if not root.is_dir():
            self.error_exit(f"Directory not found: {args.root}")

        params = IndexParams(
            index_name=args.index_name,
            root_dir=str(root.resolve()),
            mode=INDEX_MODE_ALIASES.get(args.mode, IndexMode.FILES),
            count_first=self.verbose,
        )
        self.info(f"Indexing {params.root_dir} into '{params.index_name}' ({params.mode.display_name})...")
        stats = self.commands.add_files(params, progress_callback=self.progress_callback)
        self.end_progress()
        self.info(f"✅ Indexed {stats.files_indexed} files ({stats.new_hashes} new hashes)")
        if self.verbose:
            print(f"   Skipped sidecars: {stats.sidecars_skipped}, "
                  f"non-regular files: {stats.skipped_non_regular}")

    def cmd_index_list(self, args: argparse.Namespace) -> None:
        for name in self.commands.list_indexes():
            print(name)

    def cmd_index_show(self, args: argparse.Namespace) -> None:
        rows = [["SHA-256", "Bytes", "Timestamp", "Content Type", "Path(s)"]]
        for row in self.commands.show_index(args.index_name):
            rows.append([
                row.hash_hex,
                str(row.size),
                ConvertUtils.timestamp_to_str(row.timestamp),
                row.content_type,
                ",".join(row.paths),
            ])
        print(ConvertUtils.format_columns(rows))

    def cmd_index_stats(self, args: argparse.Namespace) -> None:
        stats = self.commands.index_stats(args.index_name)
        rows = [["File Type", "Hash Count"]]
        rows.extend([content_type, str(count)] for content_type, count in sorted(stats.content_types.items()))
        print(ConvertUtils.format_columns(rows))
        print()
        print(f"{stats.print_summary()} ({ConvertUtils.bytes_to_human(stats.total_bytes)})")

    def cmd_index_chunk(self, args: argparse.Namespace) -> None:
        if args.chunk_size <= 0:
            self.error_exit("Chunk size must be positive")
        chunks = self.commands.chunk_index(args.index_name, args.prefix, args.chunk_size)
        self.info(f"✅ Split '{args.index_name}' into {chunks} chunks ({args.prefix}-0 ... {args.prefix}-{chunks - 1})")

    def cmd_index_delete(self, args: argparse.Namespace) -> None:
        self.commands.delete_index(args.index_name)
        self.info(f"✅ Index deleted: {args.index_name}")

    def cmd_set(self, args: argparse.Namespace) -> None:
        params = SetParams(
            operation=SET_OPERATION_ALIASES[args.operation],
            target=args.target,
            index_a=args.index_a,
            index_b=args.index_b,
        )
        count = self.commands.set_operation(params)
        self.info(f"✅ {params.target} = {params.index_a} {params.operation.symbol} {params.index_b} "
                  f"({count} entries)")

    def cmd_materialize(self, args: argparse.Namespace) -> None:
        params = MaterializeParams(
            index_name=args.index_name,
            root_dir=str(Path(args.root).expanduser().resolve()),
        )
        self.info(f"Materializing '{params.index_name}' into {params.root_dir}...")
        stats = self.commands.materialize(params, progress_callback=self.progress_callback)
        self.end_progress()
        self.info(f"✅ {stats.written} files written, {stats.skipped} already present, "
                  f"{stats.attachments} attachments")

    def dispatch(self, args: argparse.Namespace) -> None:
        handlers = {
            "init": self.cmd_init,
            "set": self.cmd_set,
            "materialize": self.cmd_materialize,
        }
        index_handlers = {
            "add": self.cmd_index_add,
            "list": self.cmd_index_list,
            "show": self.cmd_index_show,
            "stats": self.cmd_index_stats,
            "chunk": self.cmd_index_chunk,
            "delete": self.cmd_index_delete,
        }
        if args.command == "index":
            index_handlers[args.index_command](args)
        else:
            handlers[args.command](args)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Main entry point."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        self.configure_logging(args)
        self.commands = StoreCommands(StoreConfig.from_env(args.db))

        try:
            self.dispatch(args)
        except (DedupsetError, ValueError) as e:
            if os.environ.get("DEBUG"):
                raise
            self.error_exit(str(e))

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds")


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run()
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
