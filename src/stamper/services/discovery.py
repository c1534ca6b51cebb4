"""Image discovery within a folder (non-recursive)."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from stamper.domain.errors import IOFailureError
from stamper.services.codec import SUPPORTED_EXTENSIONS


def is_supported_image(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def list_images(folder_path: str | Path) -> list[Path]:
    """List regular files in ``folder_path`` with a recognized image extension.

    Extensions match case-insensitively. Entries are returned sorted by name
    so repeated listings are stable.

    Raises:
        IOFailureError: if the folder cannot be read
    """
    folder = Path(folder_path)
    try:
        entries = sorted(folder.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise IOFailureError(f"Failed to read folder {folder}: {e}") from e

    images = [path for path in entries if path.is_file() and is_supported_image(path)]
    logger.debug(f"Found {len(images)} images in {folder}")
    return images
