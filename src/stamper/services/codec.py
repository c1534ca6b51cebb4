"""Image codec service.

Provides functionality to:
- Decode source images into RGB/RGBA canvases
- Classify decode failures by inspecting the file (not the error text)
- Encode canvases to files or base64 data URIs
- Downscale previews and build the placeholder thumbnail
"""

from __future__ import annotations

import base64
import io
from pathlib import Path

import numpy as np
from loguru import logger
from PIL import Image

from stamper.domain.errors import (
    CorruptSourceError,
    DecodeFailureError,
    EncodeFailureError,
    IOFailureError,
    OverlayError,
    UnsupportedFormatError,
)

FORMAT_BY_EXTENSION = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".bmp": "BMP",
    ".gif": "GIF",
    ".webp": "WEBP",
}

SUPPORTED_EXTENSIONS = frozenset(FORMAT_BY_EXTENSION)

MIME_BY_FORMAT = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "BMP": "image/bmp",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}

JPEG_EXTENSIONS = frozenset({".jpg", ".jpeg"})
JPEG_SOI_MARKER = b"\xff\xd8"

RESAMPLE_FILTERS = {
    "lanczos": Image.Resampling.LANCZOS,
    "bilinear": Image.Resampling.BILINEAR,
}

_DECODE_ERRORS = (OSError, SyntaxError, ValueError, Image.DecompressionBombError)


def format_for_path(path: str | Path) -> str:
    """Return the Pillow format name for a path's extension.

    Raises:
        UnsupportedFormatError: for a missing or unrecognized extension
    """
    suffix = Path(path).suffix.lower()
    if not suffix:
        raise UnsupportedFormatError(f"File has no extension: {path}")
    try:
        return FORMAT_BY_EXTENSION[suffix]
    except KeyError:
        raise UnsupportedFormatError(f"Unsupported image format: {suffix}") from None


def classify_decode_failure(path: Path, error: BaseException) -> OverlayError:
    """Map a failed decode onto an error kind.

    The decision uses the file itself: an empty file is a plain decode
    failure; a non-empty JPEG (by extension or SOI marker) is a corrupt
    source; an unrecognized extension is unsupported.

    Args:
        path: File that failed to decode
        error: Exception raised by Pillow

    Returns:
        The OverlayError to raise
    """
    try:
        with path.open("rb") as f:
            head = f.read(len(JPEG_SOI_MARKER))
    except OSError as e:
        return IOFailureError(f"Failed to read image {path}: {e}")

    suffix = path.suffix.lower()
    if not head:
        return DecodeFailureError(f"Failed to load image {path}: file is empty")
    if suffix in JPEG_EXTENSIONS or head == JPEG_SOI_MARKER:
        return CorruptSourceError(f"Corrupted JPEG skipped: {path}")
    if suffix not in SUPPORTED_EXTENSIONS:
        return UnsupportedFormatError(f"Unsupported image format: {path}")
    return DecodeFailureError(f"Failed to load image {path}: {error}")


def to_canvas(image: Image.Image) -> Image.Image:
    """Convert a decoded image to an RGB or RGBA canvas."""
    has_alpha = image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )
    return image.convert("RGBA" if has_alpha else "RGB")


def decode_image(path: str | Path) -> Image.Image:
    """Fully decode ``path`` into a canvas detached from the file.

    Raises:
        IOFailureError: if the file is missing or unreadable
        CorruptSourceError: for a malformed JPEG
        UnsupportedFormatError: for an unrecognized format
        DecodeFailureError: for any other decode failure
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            canvas = to_canvas(img)
    except (FileNotFoundError, PermissionError, IsADirectoryError) as e:
        raise IOFailureError(f"Failed to read image {path}: {e}") from e
    except _DECODE_ERRORS as e:
        raise classify_decode_failure(path, e) from e

    logger.debug(f"Decoded {path.name}: {canvas.width}x{canvas.height} {canvas.mode}")
    return canvas


def encode_image(image: Image.Image, fmt: str, quality: int | None = None) -> bytes:
    """Encode a canvas to bytes in the specified format.

    Args:
        image: Canvas to encode
        fmt: Pillow format name (JPEG, PNG, BMP, GIF, WEBP)
        quality: Quality for JPEG (encoder default when omitted)

    Returns:
        Encoded image data

    Raises:
        EncodeFailureError: if the encoder fails
    """
    # JPEG doesn't support alpha; flatten onto white
    if fmt == "JPEG" and image.mode == "RGBA":
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[-1])
        image = background
    elif fmt == "JPEG" and image.mode != "RGB":
        image = image.convert("RGB")

    buffer = io.BytesIO()
    try:
        if fmt == "JPEG" and quality is not None:
            image.save(buffer, format=fmt, quality=quality)
        else:
            image.save(buffer, format=fmt)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeFailureError(f"Failed to encode {fmt} image: {e}") from e
    return buffer.getvalue()


def to_data_uri(data: bytes, fmt: str) -> str:
    """Wrap encoded bytes in a base64 data URI."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{MIME_BY_FORMAT[fmt]};base64,{encoded}"


def save_image(
    image: Image.Image, output_path: Path, fmt: str, quality: int | None = None
) -> None:
    """Encode and write a canvas, creating parent directories.

    Raises:
        EncodeFailureError: if encoding fails
        IOFailureError: if the directory or file cannot be written
    """
    data = encode_image(image, fmt, quality)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
    except OSError as e:
        raise IOFailureError(f"Failed to write {output_path}: {e}") from e


def downscale(
    image: Image.Image, max_size: int, resample: str = "lanczos"
) -> tuple[Image.Image, float]:
    """Shrink an image so its longest edge is at most ``max_size``.

    Returns:
        Tuple of (image, scale factor); the input itself and 1.0 when no
        resize is needed
    """
    width, height = image.size
    if width <= max_size and height <= max_size:
        return image, 1.0

    factor = max_size / max(width, height)
    new_size = (max(1, int(width * factor)), max(1, int(height * factor)))
    resized = image.resize(new_size, RESAMPLE_FILTERS[resample])
    return resized, factor


def placeholder_thumbnail(
    size: int,
    fill: tuple[int, int, int],
    cross: tuple[int, int, int],
) -> Image.Image:
    """Solid square with both diagonals drawn, shown for unreadable files."""
    pixels = np.empty((size, size, 3), dtype=np.uint8)
    pixels[:, :] = fill
    idx = np.arange(size)
    pixels[idx, idx] = cross
    pixels[idx, size - 1 - idx] = cross
    return Image.fromarray(pixels)
