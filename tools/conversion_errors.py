#!/usr/bin/env python3
"""
conversion_errors.py

Exceptions raised by the image conversion tools.

Filesystem failures (missing files, permission problems) are not wrapped and
surface as the usual OSError subclasses.
"""

from typing import Optional


class ConversionError(Exception):
    """Base class for errors raised by the converter itself."""


class InvalidRequestError(ConversionError, ValueError):
    """Source and target extensions are the same."""


class ContentMismatchError(ConversionError):
    """Sniffed content type does not match the format the extension implies."""

    def __init__(self, expected: str, actual: Optional[str] = None) -> None:
        self.expected = expected
        self.actual = actual
        message = f"content type of the original file is not {expected}"
        if actual:
            message += f" (detected {actual})"
        super().__init__(message)


class DecodeError(ConversionError):
    """Bytes are not a valid instance of the claimed image format."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class UnsupportedConversionError(ConversionError):
    def __init__(self, ext_from: str, ext_to: str) -> None:
        self.ext_from = ext_from
        self.ext_to = ext_to
        super().__init__(
            f"unsupported extension combination to convert from: {ext_from} to: {ext_to}"
        )


__all__ = [
    "ContentMismatchError",
    "ConversionError",
    "DecodeError",
    "InvalidRequestError",
    "UnsupportedConversionError",
]
