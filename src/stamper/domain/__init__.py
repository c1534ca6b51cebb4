"""Domain models for the text overlay engine."""

from stamper.domain.errors import (
    CorruptSourceError,
    DecodeFailureError,
    EncodeFailureError,
    ErrorKind,
    FontUnavailableError,
    InvalidInputError,
    IOFailureError,
    OverlayError,
    UnsupportedFormatError,
)
from stamper.domain.models import (
    BatchItem,
    BatchReport,
    ImageDimensions,
    OverlayRequest,
    OverlayResult,
    SafeOrigin,
    TextBox,
)

__all__ = [
    "BatchItem",
    "BatchReport",
    "ImageDimensions",
    "OverlayRequest",
    "OverlayResult",
    "SafeOrigin",
    "TextBox",
    "ErrorKind",
    "OverlayError",
    "InvalidInputError",
    "CorruptSourceError",
    "UnsupportedFormatError",
    "DecodeFailureError",
    "FontUnavailableError",
    "IOFailureError",
    "EncodeFailureError",
]
