#!/usr/bin/env python3
"""
Format specific converters: JPEG -> PNG and PNG -> JPEG.

Each converter receives an already opened FilePair, checks the sniffed
content type of the source, decodes it with Pillow and writes the re-encoded
image into the destination. Cleaning up a half written destination is the
caller's job.
"""

from dataclasses import dataclass
from typing import BinaryIO, Callable, Dict, Optional, Tuple

from PIL import Image

from content_sniffer import (
    CONTENT_TYPE_JPEG,
    CONTENT_TYPE_PNG,
    detect_content_type,
    is_jpeg,
    is_png,
)
from conversion_errors import ContentMismatchError, DecodeError

EXTENSION_JPEG = ".jpg"
EXTENSION_PNG = ".png"

# Pillow's default, kept explicit so output quality does not drift with library updates.
JPEG_QUALITY = 75

# Pillow modes for 16-bit grayscale PNGs.
SIXTEEN_BIT_MODES = ("I", "I;16", "I;16B", "I;16L")


@dataclass(frozen=True)
class FilePair:
    """Source opened for reading and destination opened for writing."""

    source: BinaryIO
    destination: BinaryIO


def _sniffed_or_none(fh: BinaryIO) -> Optional[str]:
    try:
        return detect_content_type(fh)
    except OSError:
        return None


def _decode(fh: BinaryIO, pil_format: str) -> Image.Image:
    """Fully decode fh with the single Pillow plugin named by pil_format."""
    name = getattr(fh, "name", None)
    try:
        img = Image.open(fh, formats=[pil_format])
        # Image.open is lazy; force the pixel data so corrupt streams fail here.
        img.load()
    except (OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"invalid {pil_format} data: {exc}", path=name) from exc
    return img


def _prepare_for_png(img: Image.Image) -> Image.Image:
    if img.mode == "CMYK":
        return img.convert("RGB")
    return img


def _flatten_alpha(img: Image.Image, mode: str) -> Image.Image:
    """Composite img onto black, the same result as dropping premultiplied alpha."""
    background = Image.new(mode, img.size, 0)
    background.paste(img.convert(mode), mask=img.getchannel("A"))
    return background


def _prepare_for_jpeg(img: Image.Image) -> Image.Image:
    if img.mode in ("L", "RGB"):
        return img
    if img.mode in SIXTEEN_BIT_MODES:
        # Keep the high byte of each sample: 0..65535 -> 0..255.
        return img.convert("I").point(lambda v: v * (1 / 256)).convert("L")
    # JPEG has no alpha channel or palette.
    if img.mode == "P" and "transparency" in img.info:
        img = img.convert("RGBA")
    if img.mode == "LA":
        return _flatten_alpha(img, "L")
    if img.mode == "RGBA":
        return _flatten_alpha(img, "RGB")
    return img.convert("RGB")


def jpeg_to_png(pair: FilePair) -> None:
    if not is_jpeg(pair.source):
        raise ContentMismatchError(CONTENT_TYPE_JPEG, _sniffed_or_none(pair.source))

    with _decode(pair.source, "JPEG") as img:
        _prepare_for_png(img).save(pair.destination, format="PNG")


def png_to_jpeg(pair: FilePair) -> None:
    if not is_png(pair.source):
        raise ContentMismatchError(CONTENT_TYPE_PNG, _sniffed_or_none(pair.source))

    with _decode(pair.source, "PNG") as img:
        _prepare_for_jpeg(img).save(pair.destination, format="JPEG", quality=JPEG_QUALITY)


CONVERTERS: Dict[Tuple[str, str], Callable[[FilePair], None]] = {
    (EXTENSION_JPEG, EXTENSION_PNG): jpeg_to_png,
    (EXTENSION_PNG, EXTENSION_JPEG): png_to_jpeg,
}


__all__ = [
    "CONVERTERS",
    "EXTENSION_JPEG",
    "EXTENSION_PNG",
    "FilePair",
    "JPEG_QUALITY",
    "jpeg_to_png",
    "png_to_jpeg",
]
