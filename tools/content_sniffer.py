#!/usr/bin/env python3
"""
content_sniffer.py

Detects the real content type of a file from its leading bytes instead of
trusting the file extension.

Core behavior:

    detect_content_type(fh) -> str

    - reads at most SNIFF_LENGTH bytes from the current file object
    - rewinds the file to offset 0 so decoders see the whole stream
    - runs the standard magic-byte sniffing table (the WHATWG MIME sniffing
      rules used by browsers and HTTP servers) over that prefix
    - returns a MIME string, "application/octet-stream" when nothing matches

    is_jpeg(fh) / is_png(fh) -> bool

    Convenience checks used by the format converters. A read failure counts
    as "unknown content" and makes both return False.

Usage:
    python tools/content_sniffer.py <file> [<file> ...]
"""

import logging
import sys
from dataclasses import dataclass
from typing import BinaryIO, List, Optional, Sequence


def _configure_logger() -> logging.Logger:
    """Configure a simple logger for this module."""
    logger = logging.getLogger(__name__)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


LOGGER = _configure_logger()

# Number of leading bytes considered by the sniffing algorithm.
SNIFF_LENGTH = 512

CONTENT_TYPE_JPEG = "image/jpeg"
CONTENT_TYPE_PNG = "image/png"
CONTENT_TYPE_OTHER = "application/octet-stream"
CONTENT_TYPE_TEXT = "text/plain; charset=utf-8"

_WHITESPACE = b"\t\n\x0c\r "
_TAG_TERMINATORS = b" >"


def _first_non_whitespace(data: bytes) -> int:
    idx = 0
    while idx < len(data) and data[idx] in _WHITESPACE:
        idx += 1
    return idx


def _is_binary_byte(value: int) -> bool:
    return value <= 0x08 or value == 0x0B or 0x0E <= value <= 0x1A or 0x1C <= value <= 0x1F


@dataclass(frozen=True)
class ExactSignature:
    pattern: bytes
    content_type: str

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        if data.startswith(self.pattern):
            return self.content_type
        return None


@dataclass(frozen=True)
class MaskedSignature:
    """Signature where only the bits set in mask take part in the comparison."""

    pattern: bytes
    mask: bytes
    content_type: str
    skip_whitespace: bool = False

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        if self.skip_whitespace:
            data = data[first_non_ws:]
        if len(data) < len(self.mask):
            return None
        for idx, mask_byte in enumerate(self.mask):
            if data[idx] & mask_byte != self.pattern[idx]:
                return None
        return self.content_type


@dataclass(frozen=True)
class HtmlSignature:
    """Case-insensitive HTML tag, followed by a space or '>'."""

    tag: bytes

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        data = data[first_non_ws:]
        if len(data) < len(self.tag) + 1:
            return None
        for idx, expected in enumerate(self.tag):
            actual = data[idx]
            if ord("A") <= expected <= ord("Z"):
                actual &= 0xDF
            if actual != expected:
                return None
        if data[len(self.tag)] not in _TAG_TERMINATORS:
            return None
        return "text/html; charset=utf-8"


@dataclass(frozen=True)
class Mp4Signature:
    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        if len(data) < 12:
            return None
        box_size = int.from_bytes(data[:4], "big")
        if len(data) < box_size or box_size % 4 != 0:
            return None
        if data[4:8] != b"ftyp":
            return None
        for start in range(8, box_size, 4):
            if start == 12:
                # Skip the minor version field.
                continue
            if data[start:start + 3] == b"mp4":
                return "video/mp4"
        return None


@dataclass(frozen=True)
class TextSignature:
    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        for value in data[first_non_ws:]:
            if _is_binary_byte(value):
                return None
        return CONTENT_TYPE_TEXT


def _masked(pattern: bytes, content_type: str) -> MaskedSignature:
    """RIFF/FORM container: bytes 4..7 hold the chunk size and are ignored."""
    mask = bytes(0x00 if 4 <= idx < 8 else 0xFF for idx in range(len(pattern)))
    return MaskedSignature(pattern, mask, content_type)


# Order matters, the first match wins.
SIGNATURES: Sequence = (
    HtmlSignature(b"<!DOCTYPE HTML"),
    HtmlSignature(b"<HTML"),
    HtmlSignature(b"<HEAD"),
    HtmlSignature(b"<SCRIPT"),
    HtmlSignature(b"<IFRAME"),
    HtmlSignature(b"<H1"),
    HtmlSignature(b"<DIV"),
    HtmlSignature(b"<FONT"),
    HtmlSignature(b"<TABLE"),
    HtmlSignature(b"<A"),
    HtmlSignature(b"<STYLE"),
    HtmlSignature(b"<TITLE"),
    HtmlSignature(b"<B"),
    HtmlSignature(b"<BODY"),
    HtmlSignature(b"<BR"),
    HtmlSignature(b"<P"),
    HtmlSignature(b"<!--"),
    MaskedSignature(b"<?xml", b"\xff\xff\xff\xff\xff", "text/xml; charset=utf-8", skip_whitespace=True),
    ExactSignature(b"%PDF-", "application/pdf"),
    ExactSignature(b"%!PS-Adobe-", "application/postscript"),
    # Byte order marks.
    MaskedSignature(b"\xfe\xff\x00\x00", b"\xff\xff\x00\x00", "text/plain; charset=utf-16be"),
    MaskedSignature(b"\xff\xfe\x00\x00", b"\xff\xff\x00\x00", "text/plain; charset=utf-16le"),
    MaskedSignature(b"\xef\xbb\xbf\x00", b"\xff\xff\xff\x00", CONTENT_TYPE_TEXT),
    # Images.
    ExactSignature(b"\x00\x00\x01\x00", "image/x-icon"),
    ExactSignature(b"\x00\x00\x02\x00", "image/x-icon"),
    ExactSignature(b"BM", "image/bmp"),
    ExactSignature(b"GIF87a", "image/gif"),
    ExactSignature(b"GIF89a", "image/gif"),
    _masked(b"RIFF\x00\x00\x00\x00WEBPVP", "image/webp"),
    ExactSignature(b"\xff\xd8\xff", CONTENT_TYPE_JPEG),
    ExactSignature(b"\x89PNG\r\n\x1a\n", CONTENT_TYPE_PNG),
    # Audio and video.
    _masked(b"FORM\x00\x00\x00\x00AIFF", "audio/aiff"),
    ExactSignature(b"ID3", "audio/mpeg"),
    ExactSignature(b"OggS\x00", "application/ogg"),
    ExactSignature(b"MThd\x00\x00\x00\x06", "audio/midi"),
    _masked(b"RIFF\x00\x00\x00\x00AVI ", "video/avi"),
    _masked(b"RIFF\x00\x00\x00\x00WAVE", "audio/wave"),
    Mp4Signature(),
    ExactSignature(b"\x1a\x45\xdf\xa3", "video/webm"),
    # Fonts.
    ExactSignature(b"OTTO", "font/otf"),
    ExactSignature(b"ttcf", "font/collection"),
    ExactSignature(b"wOFF", "font/woff"),
    ExactSignature(b"wOF2", "font/woff2"),
    # Archives.
    ExactSignature(b"\x1f\x8b\x08", "application/x-gzip"),
    ExactSignature(b"PK\x03\x04", "application/zip"),
    ExactSignature(b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    ExactSignature(b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    ExactSignature(b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed"),
    ExactSignature(b"\x00\x61\x73\x6d", "application/wasm"),
    TextSignature(),
)


def sniff(data: bytes) -> str:
    """Return the MIME type for a byte prefix. Only the first SNIFF_LENGTH bytes are used."""
    data = bytes(data[:SNIFF_LENGTH])
    first_non_ws = _first_non_whitespace(data)
    for signature in SIGNATURES:
        content_type = signature.match(data, first_non_ws)
        if content_type:
            return content_type
    return CONTENT_TYPE_OTHER


def detect_content_type(fh: BinaryIO) -> str:
    """
    Sniff the content type of an open binary file.

    The file is always rewound to the start afterwards, even when the read
    fails. Read errors propagate to the caller.
    """
    try:
        prefix = fh.read(SNIFF_LENGTH)
    finally:
        fh.seek(0)
    return sniff(prefix)


def _has_content_type(fh: BinaryIO, expected: str) -> bool:
    try:
        content_type = detect_content_type(fh)
    except OSError as exc:
        LOGGER.debug("Could not read %s for sniffing: %s", getattr(fh, "name", fh), exc)
        return False
    return content_type == expected


def is_jpeg(fh: BinaryIO) -> bool:
    return _has_content_type(fh, CONTENT_TYPE_JPEG)


def is_png(fh: BinaryIO) -> bool:
    return _has_content_type(fh, CONTENT_TYPE_PNG)


def main(argv: Optional[List[str]] = None) -> int:
    paths = sys.argv[1:] if argv is None else argv
    if not paths:
        print("Usage: python content_sniffer.py <file> [<file> ...]", file=sys.stderr)
        return 1
    status = 0
    for path in paths:
        try:
            with open(path, "rb") as fh:
                print(f"{path}: {detect_content_type(fh)}")
        except OSError as exc:
            LOGGER.error("%s: %s", path, exc)
            status = 1
    return status


__all__ = [
    "CONTENT_TYPE_JPEG",
    "CONTENT_TYPE_OTHER",
    "CONTENT_TYPE_PNG",
    "CONTENT_TYPE_TEXT",
    "SIGNATURES",
    "SNIFF_LENGTH",
    "detect_content_type",
    "is_jpeg",
    "is_png",
    "sniff",
]


if __name__ == "__main__":
    sys.exit(main())
