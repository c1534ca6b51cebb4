"""Error hierarchy for the overlay engine.

Every failure carries an ``ErrorKind`` so callers can branch on the kind
instead of parsing messages. Batch callers skip ``CORRUPT_SOURCE``.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Coarse classification of overlay failures."""

    INVALID_INPUT = "invalid_input"
    CORRUPT_SOURCE = "corrupt_source"
    UNSUPPORTED_FORMAT = "unsupported_format"
    DECODE_FAILURE = "decode_failure"
    FONT_UNAVAILABLE = "font_unavailable"
    IO_FAILURE = "io_failure"
    ENCODE_FAILURE = "encode_failure"


class OverlayError(Exception):
    """Base exception for overlay errors."""

    kind: ErrorKind = ErrorKind.DECODE_FAILURE


class InvalidInputError(OverlayError):
    """Raised when an overlay request fails validation."""

    kind = ErrorKind.INVALID_INPUT


class CorruptSourceError(OverlayError):
    """Raised when a source is recognized as a malformed JPEG."""

    kind = ErrorKind.CORRUPT_SOURCE


class UnsupportedFormatError(OverlayError):
    """Raised for an unrecognized extension or codec."""

    kind = ErrorKind.UNSUPPORTED_FORMAT


class DecodeFailureError(OverlayError):
    """Raised when an image fails to decode for any other reason."""

    kind = ErrorKind.DECODE_FAILURE


class FontUnavailableError(OverlayError):
    """Raised when no candidate typeface could be loaded."""

    kind = ErrorKind.FONT_UNAVAILABLE


class IOFailureError(OverlayError):
    """Raised on filesystem read, write or directory creation errors."""

    kind = ErrorKind.IO_FAILURE


class EncodeFailureError(OverlayError):
    """Raised when an image cannot be encoded."""

    kind = ErrorKind.ENCODE_FAILURE
