"""Collect JPEG files from a directory for the command-line converter."""

from __future__ import annotations

import logging
from pathlib import Path

from .assembler import EmptyInputError, Jpg2PdfError, SourceImage

logger = logging.getLogger(__name__)

JPEG_SUFFIXES = (".jpg", ".jpeg")

_DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024


class InputDirectoryError(Jpg2PdfError):
    """Raised when the input directory cannot be read."""


class FileTooLargeError(Jpg2PdfError):
    """Raised when an input file exceeds the per-file size ceiling."""


def is_jpeg_name(name: str) -> bool:
    """Return True if *name* has a ``.jpg`` or ``.jpeg`` extension."""
    return Path(name).suffix.lower() in JPEG_SUFFIXES


def collect_images(
    input_dir: Path | str,
    *,
    max_file_bytes: int | None = _DEFAULT_MAX_FILE_BYTES,
) -> list[SourceImage]:
    """Read every JPEG in *input_dir*, sorted by file name.

    Subdirectories and files with other extensions are ignored.

    Args:
        input_dir: Directory to scan (not recursive).
        max_file_bytes: Reject files larger than this.  ``None`` disables
            the check.

    Returns:
        The images in alphabetical order of their file names.

    Raises:
        InputDirectoryError: If *input_dir* is missing or not a directory.
        EmptyInputError: If no JPEG files are found.
        FileTooLargeError: If a file exceeds *max_file_bytes*.
    """
    input_dir = Path(input_dir)
    if not input_dir.is_dir():
        raise InputDirectoryError(f"Input directory not found: {input_dir}")

    paths = sorted(
        (p for p in input_dir.iterdir() if p.is_file() and is_jpeg_name(p.name)),
        key=lambda p: p.name,
    )
    if not paths:
        raise EmptyInputError(f"No JPG files found in {input_dir}")

    logger.info("Found %d JPG files in %s", len(paths), input_dir)

    images = []
    for order, path in enumerate(paths):
        size = path.stat().st_size
        if max_file_bytes is not None and size > max_file_bytes:
            raise FileTooLargeError(
                f"{path.name} is {size} bytes, over the limit of {max_file_bytes} bytes"
            )
        images.append(SourceImage(filename=path.name, data=path.read_bytes(), order=order))

    return images
