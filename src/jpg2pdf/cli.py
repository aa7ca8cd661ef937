"""Command-line interface for jpg2pdf."""

from __future__ import annotations

import argparse
import asyncio
import logging
import math
import os
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from . import DEFAULT_OUTPUT_DIR, DEFAULT_PDF_NAME, _resolve_pdf_path, write_pdf
from .assembler import Jpg2PdfError, SourceImage, assemble
from .naming import DEFAULT_AI_URL, AIServiceError, probe_ai_service
from .sources import collect_images

logger = logging.getLogger(__name__)

EXIT_BUDGET_UNMET = 2


def _format_size(num_bytes: int) -> str:
    """Format a byte count as a human-readable string."""
    value = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(value) < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


def _megabytes(value: str) -> int:
    """Parse a positive size in megabytes into a byte count."""
    try:
        megabytes = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not math.isfinite(megabytes) or megabytes <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    num_bytes = int(megabytes * 1024 * 1024)
    if num_bytes < 1:
        raise argparse.ArgumentTypeError(f"must be at least one byte: {value!r}")
    return num_bytes


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jpg2pdf",
        description=(
            "Combine the JPG files of a directory, in alphabetical order,"
            " into a single PDF with one page per image."
        ),
    )
    parser.add_argument(
        "input_dir",
        nargs="?",
        type=Path,
        default=Path("input"),
        help="Directory containing .jpg/.jpeg files (default: ./input)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help=(
            "Output path: a .pdf file path, a directory, or omit for"
            f" {DEFAULT_OUTPUT_DIR}/{DEFAULT_PDF_NAME} in CWD."
        ),
    )
    parser.add_argument(
        "--max-size-mb",
        type=_megabytes,
        default=None,
        dest="max_size_bytes",
        metavar="MB",
        help="Recompress images until the PDF is at most this many megabytes",
    )
    parser.add_argument(
        "--ai-name",
        action="store_true",
        default=False,
        help="Ask an AI service to name the PDF after its contents",
    )
    parser.add_argument(
        "--ai-url",
        default=os.environ.get("LM_STUDIO_URL", DEFAULT_AI_URL),
        help=(
            "Base URL of the OpenAI-compatible AI service"
            f" (default: $LM_STUDIO_URL or {DEFAULT_AI_URL})"
        ),
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Log every compression pass and image",
    )
    return parser


def _configure_logging(*, console: Console, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


async def _suggest_pdf_name(*, images: Sequence[SourceImage], ai_url: str) -> str | None:
    """Ask the AI service for a file name, or return None if it cannot help."""
    async with httpx.AsyncClient() as client:
        service = await probe_ai_service(client, ai_url)
        if service is None:
            logger.warning("AI service at %s is not available", ai_url)
            return None

        data = [image.data for image in images]
        try:
            summary = await service.summarize(data)
            return await service.suggest_filename(
                summary=summary, page_count=len(images)
            )
        except AIServiceError as exc:
            logger.warning("%s", exc)
            return None


def _run(args: argparse.Namespace, console: Console) -> int:
    start_time = time.monotonic()

    images = collect_images(args.input_dir)
    console.print(f"Found {len(images)} JPG files in [bold]{args.input_dir}[/bold]")

    with console.status("[bold blue]Assembling PDF...") as status:
        result = assemble(
            images,
            args.max_size_bytes,
            on_attempt=lambda label, size: status.update(
                f"[bold blue]Assembling PDF ({label}: {_format_size(size)})..."
            ),
        )

    pdf_name = DEFAULT_PDF_NAME
    if args.ai_name:
        with console.status("[bold blue]Asking AI service for a file name..."):
            suggested = asyncio.run(
                _suggest_pdf_name(images=images, ai_url=args.ai_url)
            )
        if suggested and suggested != ".pdf":
            pdf_name = suggested

    pdf_path = _resolve_pdf_path(output=args.output, pdf_name=pdf_name)
    pdf_size = write_pdf(result, pdf_path)

    elapsed = time.monotonic() - start_time
    source_bytes = sum(len(image.data) for image in images)

    summary_lines = [
        f"[bold]Pages:[/bold] {result.page_count}",
        f"[bold]Source size:[/bold] {_format_size(source_bytes)}",
        f"[bold]PDF size:[/bold] {_format_size(pdf_size)}",
    ]
    if args.max_size_bytes is not None:
        summary_lines.append(
            f"[bold]Size limit:[/bold] {_format_size(args.max_size_bytes)}"
        )
        strategy = result.strategy.describe() if result.strategy else "original images"
        summary_lines.append(f"[bold]Compression:[/bold] {strategy}")
        if not result.budget_met:
            summary_lines.append(
                "[bold yellow]Size limit not reached;"
                " kept the most compressed result[/bold yellow]"
            )
    summary_lines.append(f"[bold]Output:[/bold] {pdf_path}")

    console.print(Panel(
        "\n".join(summary_lines),
        title=f"[bold green]Done in {elapsed:.1f}s[/bold green]",
        border_style="green" if result.budget_met else "yellow",
    ))

    return 0 if result.budget_met else EXIT_BUDGET_UNMET


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the ``jpg2pdf`` CLI command."""
    console = Console()
    err_console = Console(stderr=True)
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(console=err_console, verbose=args.verbose)

    try:
        exit_code = _run(args, console)
    except Jpg2PdfError as exc:
        err_console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        err_console.print("\n[dim]Interrupted.[/dim]")
        sys.exit(130)

    if exit_code:
        sys.exit(exit_code)
