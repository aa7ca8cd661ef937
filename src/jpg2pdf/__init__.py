"""jpg2pdf: Combine JPEG images into a single PDF, optionally under a size limit."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .assembler import (
    AssemblyResult,
    EmptyInputError,
    ImageDecodeError,
    Jpg2PdfError,
    PageLayoutError,
    SourceImage,
    assemble,
    render_pdf,
)
from .compressor import STRATEGY_LADDER, CompressionStrategy, recompress
from .naming import AIService, AIServiceError, probe_ai_service, sanitize_filename
from .sources import FileTooLargeError, InputDirectoryError, collect_images

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "AIService",
    "AIServiceError",
    "AssemblyResult",
    "CompressionStrategy",
    "ConversionResult",
    "EmptyInputError",
    "FileTooLargeError",
    "ImageDecodeError",
    "InputDirectoryError",
    "Jpg2PdfError",
    "PageLayoutError",
    "STRATEGY_LADDER",
    "SourceImage",
    "assemble",
    "collect_images",
    "convert_directory",
    "probe_ai_service",
    "recompress",
    "render_pdf",
    "sanitize_filename",
]

DEFAULT_OUTPUT_DIR = "output"
DEFAULT_PDF_NAME = "output.pdf"


@dataclass
class ConversionResult:
    """Result of converting a directory of JPEGs to a PDF file."""

    output_path: Path
    page_count: int
    source_bytes: int
    pdf_size: int
    strategy: CompressionStrategy | None
    budget_met: bool


def _resolve_pdf_path(
    *,
    output: Path | str | None,
    pdf_name: str = DEFAULT_PDF_NAME,
) -> Path:
    """Resolve the output PDF file path.

    Rules:
        - ``None`` → ``{cwd}/output/{pdf_name}``
        - Ends in ``.pdf`` → treated as literal file path
        - Otherwise → treated as directory: ``{path}/{pdf_name}``
    """
    if output is None:
        return (Path(DEFAULT_OUTPUT_DIR) / pdf_name).resolve()

    output = Path(output)
    if output.suffix.lower() == ".pdf":
        return output.resolve()

    return (output / pdf_name).resolve()


def write_pdf(result: AssemblyResult, output_path: Path) -> int:
    """Write *result* to *output_path*, creating parent directories."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.pdf_bytes)
    return result.size


def convert_directory(
    input_dir: Path | str,
    output: Path | str | None = None,
    *,
    max_size_bytes: int | None = None,
) -> ConversionResult:
    """Convert every JPEG in a directory into one PDF file.

    Images are taken in alphabetical order of their file names, one page
    each.

    Args:
        input_dir: Directory holding ``.jpg``/``.jpeg`` files.
        output: Output path.  Omit for ``output/output.pdf`` in the CWD, pass a
            ``.pdf`` path to use it literally, or pass a directory to save
            ``output.pdf`` inside it.
        max_size_bytes: Optional PDF size budget; images are recompressed
            until the PDF fits or the strategy ladder runs out.

    Returns:
        A :class:`ConversionResult` summarizing the outcome.

    Raises:
        InputDirectoryError: If *input_dir* does not exist.
        EmptyInputError: If no JPEG files are found.
        ImageDecodeError: If a file is not a valid JPEG.

    Example::

        from jpg2pdf import convert_directory

        result = convert_directory("scans", "out/scans.pdf", max_size_bytes=5_000_000)
        print(f"Saved {result.page_count} pages to {result.output_path}")
    """
    images = collect_images(input_dir)
    result = assemble(images, max_size_bytes)

    pdf_path = _resolve_pdf_path(output=output)
    write_pdf(result, pdf_path)

    return ConversionResult(
        output_path=pdf_path,
        page_count=result.page_count,
        source_bytes=sum(len(image.data) for image in images),
        pdf_size=result.size,
        strategy=result.strategy,
        budget_met=result.budget_met,
    )
