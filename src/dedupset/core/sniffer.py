"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/sniffer.py
Content-type classification from the first bytes of a file.

Follows the byte-signature rules of the WHATWG MIME Sniffing standard
(markup, documents, images, audio/video, fonts, archives, then a
binary-vs-text check). Only the MIME type is returned; parameters such
as "; charset=utf-8" are dropped.
"""

import logging
from typing import List, Optional, Tuple

from dedupset.core.interfaces import ContentSniffer
from dedupset.core.models import DEFAULT_CONTENT_TYPE

logger = logging.getLogger(__name__)

SNIFF_LENGTH = 512

_WHITESPACE = b"\t\n\x0c\r "
_TAG_TERMINATORS = b" >"

# HTML tags matched case-insensitively after leading whitespace
_HTML_PREFIXES = [
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1", b"<DIV",
    b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B", b"<BODY", b"<BR", b"<P",
    b"<!--",
]

# (mask, pattern, content type); None mask means exact prefix match
_MASKED_SIGNATURES: List[Tuple[Optional[bytes], bytes, str]] = [
    (None, b"%PDF-", "application/pdf"),
    (None, b"%!PS-Adobe-", "application/postscript"),
    (None, b"\xfe\xff", "text/plain"),  # UTF-16BE BOM
    (None, b"\xff\xfe", "text/plain"),  # UTF-16LE BOM
    (None, b"\xef\xbb\xbf", "text/plain"),  # UTF-8 BOM
    (None, b"\x00\x00\x01\x00", "image/x-icon"),
    (None, b"\x00\x00\x02\x00", "image/x-icon"),
    (None, b"BM", "image/bmp"),
    (None, b"GIF87a", "image/gif"),
    (None, b"GIF89a", "image/gif"),
    (b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff\xff\xff",
     b"RIFF\x00\x00\x00\x00WEBPVP", "image/webp"),
    (None, b"\x89PNG\r\n\x1a\n", "image/png"),
    (None, b"\xff\xd8\xff", "image/jpeg"),
    (b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
     b"FORM\x00\x00\x00\x00AIFF", "audio/aiff"),
    (None, b"ID3", "audio/mpeg"),
    (None, b"OggS\x00", "application/ogg"),
    (None, b"MThd\x00\x00\x00\x06", "audio/midi"),
    (b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
     b"RIFF\x00\x00\x00\x00AVI ", "video/avi"),
    (b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
     b"RIFF\x00\x00\x00\x00WAVE", "audio/wave"),
    (None, b"\x1aE\xdf\xa3", "video/webm"),
    (None, b"wOFF", "font/woff"),
    (None, b"wOF2", "font/woff2"),
    (None, b"\x00\x01\x00\x00", "font/ttf"),
    (None, b"OTTO", "font/otf"),
    (None, b"ttcf", "font/collection"),
    (None, b"\x1f\x8b\x08", "application/x-gzip"),
    (None, b"PK\x03\x04", "application/zip"),
    (None, b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    (None, b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    (None, b"\x00asm", "application/wasm"),
]

# Control bytes that mark content as binary
_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20))
)


def strip_parameters(content_type: str) -> str:
    """'text/plain; charset=utf-8' -> 'text/plain'"""
    return content_type.split(";", 1)[0].strip()


class SignatureSnifferImpl(ContentSniffer):
    """Classifies content by byte signatures over at most SNIFF_LENGTH bytes."""

    def detect(self, head: bytes) -> str:
        data = head[:SNIFF_LENGTH]

        markup = self._detect_markup(data)
        if markup:
            return markup

        for mask, pattern, content_type in _MASKED_SIGNATURES:
            if self._matches(data, mask, pattern):
                return content_type

        if self._is_mp4(data):
            return "video/mp4"

        if not any(b in _BINARY_BYTES for b in data):
            return "text/plain"

        return DEFAULT_CONTENT_TYPE

    @staticmethod
    def _detect_markup(data: bytes) -> Optional[str]:
        stripped = data.lstrip(_WHITESPACE)
        upper = stripped[:16].upper()
        for prefix in _HTML_PREFIXES:
            if not upper.startswith(prefix):
                continue
            # Tag must be terminated by a space or '>'
            if len(stripped) > len(prefix) and stripped[len(prefix)] in _TAG_TERMINATORS:
                return "text/html"
        if stripped.startswith(b"<?xml"):
            return "text/xml"
        return None

    @staticmethod
    def _matches(data: bytes, mask: Optional[bytes], pattern: bytes) -> bool:
        if len(data) < len(pattern):
            return False
        if mask is None:
            return data.startswith(pattern)
        return all((data[i] & mask[i]) == pattern[i] for i in range(len(pattern)))

    @staticmethod
    def _is_mp4(data: bytes) -> bool:
        """ISO base media file with an 'mp4' major or compatible brand."""
        if len(data) < 12:
            return False
        box_size = int.from_bytes(data[0:4], "big")
        if len(data) < box_size or box_size % 4 != 0:
            return False
        if data[4:8] != b"ftyp":
            return False
        for offset in range(8, box_size, 4):
            if offset == 12:
                continue  # minor version
            if data[offset:offset + 3] == b"mp4":
                return True
        return False
