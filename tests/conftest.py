"""Shared fixtures: Pillow-generated JPEG images."""

from __future__ import annotations

import io
import random

import pytest
from PIL import Image

from jpg2pdf.assembler import SourceImage


def make_jpeg(
    *,
    width: int = 64,
    height: int = 48,
    quality: int = 95,
    mode: str = "RGB",
    seed: int = 0,
) -> bytes:
    """Encode a noisy image as JPEG.

    Noise compresses poorly, so the byte size tracks the quality setting.
    """
    channels = len(mode)
    rng = random.Random(seed)
    pixels = rng.randbytes(width * height * channels)
    img = Image.frombytes(mode, (width, height), pixels)
    buf = io.BytesIO()
    img.save(buf, "JPEG", quality=quality)
    return buf.getvalue()


def make_png(*, width: int = 32, height: int = 32) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (255, 0, 0)).save(buf, "PNG")
    return buf.getvalue()


@pytest.fixture
def source_images() -> list[SourceImage]:
    """Three JPEGs with distinct sizes, in page order."""
    dims = [(120, 80), (60, 90), (100, 100)]
    return [
        SourceImage(
            filename=f"page_{i + 1:02d}.jpg",
            data=make_jpeg(width=w, height=h, seed=i),
            order=i,
        )
        for i, (w, h) in enumerate(dims)
    ]


def make_mpo(*, width: int = 80, height: int = 60) -> bytes:
    """Encode a two-frame MPO, as stereo and multi-shot cameras write."""
    first = Image.frombytes("RGB", (width, height), random.Random(1).randbytes(width * height * 3))
    second = Image.new("RGB", (width, height), (0, 0, 255))
    buf = io.BytesIO()
    first.save(buf, "MPO", save_all=True, append_images=[second])
    return buf.getvalue()
