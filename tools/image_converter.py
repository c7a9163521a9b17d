#!/usr/bin/env python3
"""
Recursively convert images between JPEG and PNG.

Usage:
    python tools/image_converter.py [-d DIR] [-f EXT] [-t EXT] [-v]

Arguments:
    -d, --dir       Directory to walk (default: current directory).
    -f, --from      Extension of the files to convert (default: .jpg).
    -t, --to        Extension of the files to create (default: .png).
    -v, --verbose   Also log files that are skipped.

Every file under DIR whose path ends with the source extension gets a sibling
file with the target extension. Originals are left in place. The real content
type of each source is sniffed before decoding, so a PNG renamed to .jpg is
rejected instead of silently converted.

The walk stops at the first failure and the error is reported. Files that
were converted before that point stay on disk; the output of the failing file
is removed.
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Union

import content_sniffer
from conversion_errors import ConversionError, InvalidRequestError, UnsupportedConversionError
from image_formats import CONVERTERS, EXTENSION_JPEG, EXTENSION_PNG, FilePair


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

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class ConversionRequest:
    dest_dir: Path
    ext_from: str
    ext_to: str

    def validate(self) -> None:
        if self.ext_from == self.ext_to:
            raise InvalidRequestError("specified extensions must be distinct")

    def matches(self, path: Path) -> bool:
        return str(path).endswith(self.ext_from)


def destination_path(path: PathLike, ext_from: str, ext_to: str) -> Path:
    """Replace the trailing ext_from of path with ext_to."""
    text = os.fspath(path)
    if text.endswith(ext_from):
        text = text[: len(text) - len(ext_from)]
    return Path(text + ext_to)


def _walk_directory(directory: Path) -> Iterator[Path]:
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda entry: entry.name)
    for entry in entries:
        path = directory / entry.name
        if entry.is_dir(follow_symlinks=False):
            yield from _walk_directory(path)
        elif entry.is_file():
            yield path


def iter_files(root: PathLike) -> Iterator[Path]:
    """
    Yield every regular file under root, depth first, in lexical order.

    Symlinked directories are not descended into, root included. Errors
    from listing a directory are raised when the walk reaches it.
    """
    root_path = Path(root)
    if root_path.is_dir() and not root_path.is_symlink():
        yield from _walk_directory(root_path)
    elif root_path.is_file():
        yield root_path
    else:
        # Surface the same error an lstat of a missing path would.
        os.lstat(root_path)


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except OSError as exc:
        LOGGER.debug("Could not remove partial output %s: %s", path, exc)


def convert_file(path: PathLike, ext_from: str, ext_to: str) -> Path:
    """
    Convert one file and return the path of the file written.

    The source is opened first, then the destination is created, then the
    converter for (ext_from, ext_to) runs. If the converter fails the
    destination is closed and removed before the error propagates. Failing to
    open either file raises OSError and leaves nothing to clean up.
    """
    source_path = Path(path)
    target_path = destination_path(source_path, ext_from, ext_to)

    with open(source_path, "rb") as source:
        destination = open(target_path, "wb")
        try:
            with destination:
                converter = CONVERTERS.get((ext_from, ext_to))
                if converter is None:
                    raise UnsupportedConversionError(ext_from, ext_to)
                converter(FilePair(source, destination))
        except Exception:
            _remove_quietly(target_path)
            raise

    LOGGER.info("Converted: %s -> %s", source_path, target_path)
    return target_path


def convert_images(dest_dir: PathLike, ext_from: str, ext_to: str) -> List[Path]:
    """
    Convert every file under dest_dir ending in ext_from into a sibling ending in ext_to.

    Returns the written paths in walk order. The first error stops the walk
    and is raised unchanged.
    """
    request = ConversionRequest(Path(dest_dir), ext_from, ext_to)
    request.validate()

    written: List[Path] = []
    for path in iter_files(request.dest_dir):
        if not request.matches(path):
            LOGGER.debug("Skipping %s", path)
            continue
        written.append(convert_file(path, request.ext_from, request.ext_to))
    return written


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert JPEG images to PNG or PNG images to JPEG, recursively.",
    )
    parser.add_argument("-d", "--dir", dest="dest_dir", default=".", help="Directory to convert")
    parser.add_argument(
        "-f",
        "--from",
        dest="ext_from",
        default=EXTENSION_JPEG,
        help=f"Extension to convert from (default: {EXTENSION_JPEG})",
    )
    parser.add_argument(
        "-t",
        "--to",
        dest="ext_to",
        default=EXTENSION_PNG,
        help=f"Extension to convert to (default: {EXTENSION_PNG})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log skipped files too")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        LOGGER.setLevel(logging.DEBUG)
        content_sniffer.LOGGER.setLevel(logging.DEBUG)

    try:
        written = convert_images(args.dest_dir, args.ext_from, args.ext_to)
    except (ConversionError, OSError) as exc:
        LOGGER.error("%s", exc)
        return 1

    LOGGER.info("Done. Converted %d file(s) under %s.", len(written), args.dest_dir)
    return 0


__all__ = [
    "ConversionRequest",
    "convert_file",
    "convert_images",
    "destination_path",
    "iter_files",
    "main",
]


if __name__ == "__main__":
    sys.exit(main())
