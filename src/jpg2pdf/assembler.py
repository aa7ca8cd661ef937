"""Assemble JPEG images into a single PDF, optionally under a size budget."""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import NoReturn

import img2pdf
from PIL import Image

from .compressor import STRATEGY_LADDER, CompressionStrategy, recompress_all

logger = logging.getLogger(__name__)

# Pillow reports multi-picture camera JPEGs as MPO.
_JPEG_FORMATS = ("JPEG", "MPO")

# At 72 dpi one image pixel becomes one PDF point.
_LAYOUT = img2pdf.get_fixed_dpi_layout_fun((72, 72))


class Jpg2PdfError(Exception):
    """Base exception for jpg2pdf errors."""


class EmptyInputError(Jpg2PdfError):
    """Raised when there are no images to assemble."""


class ImageDecodeError(Jpg2PdfError):
    """Raised when an input image is not a readable JPEG."""

    def __init__(self, filename: str, position: int, reason: str = "") -> None:
        self.filename = filename
        self.position = position
        message = f"Image {position} ({filename}) is not a valid JPEG"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class PageLayoutError(Jpg2PdfError):
    """Raised when an image cannot be laid out as a PDF page."""

    def __init__(self, filename: str, position: int, reason: str = "") -> None:
        self.filename = filename
        self.position = position
        message = f"Image {position} ({filename}) cannot be placed on a PDF page"
        if reason:
            message += f": {reason}"
        super().__init__(message)


@dataclass(frozen=True)
class SourceImage:
    """A JPEG supplied by the caller, in the order it should appear."""

    filename: str
    data: bytes
    order: int = 0


@dataclass
class AssemblyResult:
    """Outcome of :func:`assemble`.

    ``strategy_index`` is ``None`` when the original images were used.
    """

    pdf_bytes: bytes
    page_count: int
    budget_met: bool = True
    strategy_index: int | None = None
    strategy: CompressionStrategy | None = None

    @property
    def size(self) -> int:
        return len(self.pdf_bytes)


def _check_jpeg(image: SourceImage, position: int) -> tuple[int, int]:
    """Fully decode *image* and return its pixel dimensions."""
    try:
        with Image.open(io.BytesIO(image.data)) as img:
            if img.format not in _JPEG_FORMATS:
                raise ImageDecodeError(
                    image.filename, position, f"found {img.format} data"
                )
            img.load()
            return img.size
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(image.filename, position, str(exc)) from exc


def render_pdf(images: Sequence[SourceImage]) -> bytes:
    """Lay out one page per image at native resolution.

    Page *i* has exactly the pixel dimensions of image *i* (one point per
    pixel) and shows the JPEG stream as-is, with no margin, scaling or
    rotation.

    Raises:
        EmptyInputError: If *images* is empty.
        ImageDecodeError: If any image is not a decodable JPEG.
        PageLayoutError: If an image is too large or small for a PDF page.
    """
    if not images:
        raise EmptyInputError("No images provided")

    for position, image in enumerate(images, start=1):
        width, height = _check_jpeg(image, position)
        logger.debug("Page %d: %s (%dx%d)", position, image.filename, width, height)

    try:
        return _convert(images)
    except (ValueError, img2pdf.PdfTooLargeError) as exc:
        _raise_layout_error(images, exc)


def _convert(images: Sequence[SourceImage]) -> bytes:
    # The internal engine accepts pages under 3pt; pages over 14400pt are
    # scaled down with /UserUnit.
    return img2pdf.convert(
        [image.data for image in images],
        layout_fun=_LAYOUT,
        rotation=img2pdf.Rotation.none,
        first_frame_only=True,
        allow_oversized=True,
        engine=img2pdf.Engine.internal,
    )


def _raise_layout_error(images: Sequence[SourceImage], exc: Exception) -> NoReturn:
    """Find the image that *exc* came from and raise a positioned error."""
    for position, image in enumerate(images, start=1):
        try:
            _convert([image])
        except (ValueError, img2pdf.PdfTooLargeError) as single_exc:
            raise PageLayoutError(image.filename, position, str(single_exc)) from exc
    raise Jpg2PdfError(f"Could not assemble PDF: {exc}") from exc


def _mb(num_bytes: int) -> str:
    return f"{num_bytes / (1024 * 1024):.2f} MB"


def assemble(
    images: Sequence[SourceImage],
    max_size_bytes: int | None = None,
    *,
    ladder: Sequence[CompressionStrategy] = STRATEGY_LADDER,
    on_attempt: Callable[[str, int], None] | None = None,
) -> AssemblyResult:
    """Build a PDF from *images*, recompressing only if it exceeds the budget.

    The original images are rendered first.  If the result is over
    *max_size_bytes*, each strategy of *ladder* is tried in order, always
    recompressing the original images, and the first PDF that fits is
    returned.  If none fits, the last (most compressed) attempt is returned
    with ``budget_met`` set to ``False``.

    Args:
        images: Images in page order.
        max_size_bytes: Optional budget for the PDF size in bytes.
        ladder: Strategies to try, least aggressive first.
        on_attempt: Called with a label and the PDF size after each pass.

    Returns:
        An :class:`AssemblyResult` holding the PDF bytes.

    Raises:
        EmptyInputError: If *images* is empty.
        ImageDecodeError: If any image is not a decodable JPEG.
        PageLayoutError: If an image is too large or small for a PDF page.
        ValueError: If *max_size_bytes* is not a positive integer.
    """
    if not images:
        raise EmptyInputError("No images provided")
    if max_size_bytes is not None and max_size_bytes <= 0:
        raise ValueError(f"max_size_bytes must be positive, got {max_size_bytes}")

    def _report(label: str, size: int) -> None:
        if on_attempt is not None:
            on_attempt(label, size)

    logger.info(
        "Creating PDF from %d images: %s",
        len(images),
        ", ".join(image.filename for image in images),
    )

    pdf_bytes = render_pdf(images)
    _report("original", len(pdf_bytes))

    if max_size_bytes is None or len(pdf_bytes) <= max_size_bytes:
        return AssemblyResult(pdf_bytes=pdf_bytes, page_count=len(images))

    logger.info(
        "PDF size %s exceeds limit of %s, applying compression",
        _mb(len(pdf_bytes)),
        _mb(max_size_bytes),
    )

    result = AssemblyResult(
        pdf_bytes=pdf_bytes, page_count=len(images), budget_met=False
    )
    for index, strategy in enumerate(ladder):
        compressed = recompress_all(images, strategy)
        attempt = render_pdf(compressed)
        logger.info("%s: PDF size %s", strategy.describe(), _mb(len(attempt)))
        _report(strategy.describe(), len(attempt))

        result = AssemblyResult(
            pdf_bytes=attempt,
            page_count=len(images),
            budget_met=len(attempt) <= max_size_bytes,
            strategy_index=index,
            strategy=strategy,
        )
        if result.budget_met:
            logger.info("Size target achieved with %s", strategy.describe())
            return result

    logger.warning(
        "Could not reach %s; using the most compressed result (%s)",
        _mb(max_size_bytes),
        _mb(result.size),
    )
    return result
