"""JPEG recompression and the fixed ladder of compression strategies."""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from PIL import Image

if TYPE_CHECKING:
    from .assembler import SourceImage

logger = logging.getLogger(__name__)

# Modes Pillow can write as JPEG without conversion.
_JPEG_MODES = ("RGB", "L", "CMYK")


@dataclass(frozen=True)
class CompressionStrategy:
    """One rung of the compression ladder.

    A missing cap leaves that axis unbounded.
    """

    quality: int
    max_width: int | None = None
    max_height: int | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.quality <= 100:
            raise ValueError(f"quality must be between 1 and 100, got {self.quality}")
        for cap in (self.max_width, self.max_height):
            if cap is not None and cap <= 0:
                raise ValueError(f"dimension caps must be positive, got {cap}")

    @property
    def resizes(self) -> bool:
        return self.max_width is not None or self.max_height is not None

    def describe(self) -> str:
        """Return a short human-readable label, e.g. ``quality 40, max 2048x2048``."""
        label = f"quality {self.quality}"
        if self.resizes:
            width = self.max_width or "any"
            height = self.max_height or "any"
            label += f", max {width}x{height}"
        return label


STRATEGY_LADDER: tuple[CompressionStrategy, ...] = (
    CompressionStrategy(quality=70),
    CompressionStrategy(quality=60),
    CompressionStrategy(quality=50),
    CompressionStrategy(quality=40, max_width=2048, max_height=2048),
    CompressionStrategy(quality=35, max_width=1920, max_height=1920),
    CompressionStrategy(quality=30, max_width=1600, max_height=1600),
    CompressionStrategy(quality=25, max_width=1200, max_height=1200),
    CompressionStrategy(quality=20, max_width=1024, max_height=1024),
    CompressionStrategy(quality=15, max_width=800, max_height=800),
)


def _encode(data: bytes, strategy: CompressionStrategy) -> tuple[bytes, tuple[int, int]]:
    with Image.open(io.BytesIO(data)) as img:
        original_size = img.size
        img.load()

        if img.mode not in _JPEG_MODES:
            img = img.convert("RGB")

        if strategy.resizes:
            # thumbnail() fits inside the box and never enlarges.
            bound = (
                strategy.max_width or img.width,
                strategy.max_height or img.height,
            )
            img.thumbnail(bound, Image.Resampling.LANCZOS)

        buf = io.BytesIO()
        img.save(buf, "JPEG", quality=strategy.quality, optimize=True)

    return buf.getvalue(), original_size


def recompress(image: SourceImage, strategy: CompressionStrategy) -> bytes:
    """Re-encode one JPEG according to *strategy*.

    The image is resized to fit inside the strategy's caps (aspect ratio kept,
    never upscaled) and saved at the strategy's quality.

    If the image cannot be re-encoded, a warning is logged and the original
    bytes are returned unchanged so that the rest of the batch can proceed.

    Args:
        image: Source image to recompress.
        strategy: Quality and optional dimension caps to apply.

    Returns:
        The re-encoded JPEG bytes, or ``image.data`` on failure.
    """
    try:
        encoded, (width, height) = _encode(image.data, strategy)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning(
            "Could not recompress %s (%s); keeping the original image",
            image.filename,
            exc,
        )
        return image.data

    reduction = round((1 - len(encoded) / len(image.data)) * 100) if image.data else 0
    logger.debug(
        "Recompressed %s (%dx%d): %d -> %d bytes (%d%% reduction)",
        image.filename,
        width,
        height,
        len(image.data),
        len(encoded),
        reduction,
    )
    return encoded


def recompress_all(
    images: Sequence[SourceImage], strategy: CompressionStrategy
) -> list[SourceImage]:
    """Apply :func:`recompress` to every image, keeping names and order."""
    logger.info("Compressing %d images with %s", len(images), strategy.describe())
    return [replace(image, data=recompress(image, strategy)) for image in images]
