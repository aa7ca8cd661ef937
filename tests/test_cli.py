"""Unit tests for the command-line interface."""

from __future__ import annotations

import argparse
from pathlib import Path

import pytest

from conftest import make_jpeg
from jpg2pdf import cli


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    src = tmp_path / "input"
    src.mkdir()
    for i in range(2):
        (src / f"page_{i + 1}.jpg").write_bytes(make_jpeg(width=150, height=100, seed=i))
    return src


class TestParser:
    def test_defaults(self):
        args = cli._build_parser().parse_args([])
        assert args.input_dir == Path("input")
        assert args.output is None
        assert args.max_size_bytes is None
        assert not args.ai_name

    def test_max_size_in_megabytes(self):
        args = cli._build_parser().parse_args(["--max-size-mb", "1.5"])
        assert args.max_size_bytes == 1572864

    @pytest.mark.parametrize("value", ["0", "-2", "big", "0.0000001", "nan", "inf"])
    def test_invalid_max_size(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            cli._megabytes(value)


class TestFormatSize:
    def test_bytes(self):
        assert cli._format_size(512) == "512.0 B"

    def test_megabytes(self):
        assert cli._format_size(3 * 1024 * 1024) == "3.0 MB"


class TestMain:
    def test_writes_pdf(self, input_dir: Path, tmp_path: Path):
        out = tmp_path / "result.pdf"

        cli.main([str(input_dir), "--output", str(out)])

        assert out.read_bytes()[:5] == b"%PDF-"

    def test_budget_unmet_exits_two(self, input_dir: Path, tmp_path: Path):
        with pytest.raises(SystemExit) as excinfo:
            cli.main([str(input_dir), "--output", str(tmp_path), "--max-size-mb", "0.0001"])

        assert excinfo.value.code == cli.EXIT_BUDGET_UNMET
        assert (tmp_path / "output.pdf").exists()

    def test_sub_byte_size_is_a_usage_error(self, input_dir: Path, tmp_path: Path):
        with pytest.raises(SystemExit) as excinfo:
            cli.main([str(input_dir), "--output", str(tmp_path), "--max-size-mb", "0.0000001"])

        assert excinfo.value.code == 2
        assert not (tmp_path / "output.pdf").exists()

    def test_default_output_directory(self, input_dir: Path, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        cli.main([str(input_dir)])

        assert (tmp_path / "output" / "output.pdf").exists()

    def test_missing_directory_exits_one(self, tmp_path: Path):
        with pytest.raises(SystemExit) as excinfo:
            cli.main([str(tmp_path / "missing")])

        assert excinfo.value.code == 1

    def test_corrupt_image_exits_one(self, input_dir: Path, tmp_path: Path):
        (input_dir / "page_3.jpg").write_bytes(b"broken")

        with pytest.raises(SystemExit) as excinfo:
            cli.main([str(input_dir), "--output", str(tmp_path / "x.pdf")])

        assert excinfo.value.code == 1
        assert not (tmp_path / "x.pdf").exists()

    def test_ai_name_used_for_output(self, input_dir: Path, tmp_path: Path, monkeypatch):
        async def _fake_suggest(*, images, ai_url):
            assert len(images) == 2
            return "Scanned letter.pdf"

        monkeypatch.setattr(cli, "_suggest_pdf_name", _fake_suggest)

        cli.main([str(input_dir), "--output", str(tmp_path), "--ai-name"])

        assert (tmp_path / "Scanned letter.pdf").exists()

    def test_ai_unavailable_keeps_default_name(self, input_dir: Path, tmp_path: Path, monkeypatch):
        async def _fake_suggest(*, images, ai_url):
            return None

        monkeypatch.setattr(cli, "_suggest_pdf_name", _fake_suggest)

        cli.main([str(input_dir), "--output", str(tmp_path), "--ai-name"])

        assert (tmp_path / "output.pdf").exists()
