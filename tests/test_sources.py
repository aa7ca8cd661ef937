"""Unit tests for reading JPEGs from a directory."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import make_jpeg
from jpg2pdf.assembler import EmptyInputError
from jpg2pdf.sources import (
    FileTooLargeError,
    InputDirectoryError,
    collect_images,
    is_jpeg_name,
)


class TestIsJpegName:
    @pytest.mark.parametrize("name", ["a.jpg", "a.jpeg", "A.JPG", "scan.Jpeg"])
    def test_accepted(self, name):
        assert is_jpeg_name(name)

    @pytest.mark.parametrize("name", ["a.png", "a.jpg.txt", "jpg", "a.pdf"])
    def test_rejected(self, name):
        assert not is_jpeg_name(name)


class TestCollectImages:
    def test_sorted_by_name(self, tmp_path: Path):
        for name in ("c.jpg", "a.jpeg", "b.JPG"):
            (tmp_path / name).write_bytes(make_jpeg())

        images = collect_images(tmp_path)

        assert [i.filename for i in images] == ["a.jpeg", "b.JPG", "c.jpg"]
        assert [i.order for i in images] == [0, 1, 2]

    def test_ignores_other_files_and_directories(self, tmp_path: Path):
        (tmp_path / "page.jpg").write_bytes(make_jpeg())
        (tmp_path / "notes.txt").write_text("hello")
        (tmp_path / "nested.jpg").mkdir()

        images = collect_images(tmp_path)

        assert [i.filename for i in images] == ["page.jpg"]

    def test_reads_file_contents(self, tmp_path: Path):
        data = make_jpeg(seed=7)
        (tmp_path / "page.jpg").write_bytes(data)

        assert collect_images(tmp_path)[0].data == data

    def test_missing_directory_raises(self, tmp_path: Path):
        with pytest.raises(InputDirectoryError):
            collect_images(tmp_path / "missing")

    def test_no_jpegs_raises(self, tmp_path: Path):
        (tmp_path / "image.png").write_bytes(b"png")

        with pytest.raises(EmptyInputError, match="No JPG files"):
            collect_images(tmp_path)

    def test_file_over_limit_raises(self, tmp_path: Path):
        (tmp_path / "huge.jpg").write_bytes(b"\x00" * 2048)

        with pytest.raises(FileTooLargeError, match="huge.jpg"):
            collect_images(tmp_path, max_file_bytes=1024)

    def test_limit_can_be_disabled(self, tmp_path: Path):
        (tmp_path / "huge.jpg").write_bytes(b"\x00" * 2048)

        assert len(collect_images(tmp_path, max_file_bytes=None)) == 1
