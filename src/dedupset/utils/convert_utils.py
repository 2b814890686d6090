"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
"""
from datetime import datetime
from typing import List, Sequence


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """
        Convert bytes to human-readable string (e.g., 1.50KB, 3.20MB).
        """
        if size_bytes < 0:
            return "0B"

        units = ["B", "KB", "MB", "GB", "TB", "PB"]
        for unit in units:
            if size_bytes < 1024:
                return f"{size_bytes:.2f}{unit}"
            size_bytes /= 1024
        return f"{size_bytes:.2f}EB"

    @staticmethod
    def timestamp_to_str(timestamp: datetime) -> str:
        """RFC 3339 with second precision, e.g. 2021-05-01T12:30:00Z."""
        text = timestamp.replace(microsecond=0).isoformat()
        return text.replace("+00:00", "Z")

    @staticmethod
    def format_columns(rows: Sequence[Sequence[str]], gap: int = 2) -> str:
        """
        Left-aligns rows of cells into columns separated by `gap` spaces.
        The last column is never padded.
        """
        if not rows:
            return ""
        widths: List[int] = []
        for row in rows:
            for i, cell in enumerate(row):
                if i >= len(widths):
                    widths.append(0)
                widths[i] = max(widths[i], len(cell))

        lines = []
        for row in rows:
            cells = [
                cell if i == len(row) - 1 else cell.ljust(widths[i] + gap)
                for i, cell in enumerate(row)
            ]
            lines.append("".join(cells))
        return "\n".join(lines)
