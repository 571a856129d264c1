"""CLI smoke tests driven through click's test runner."""

from pathlib import Path

import pytest
from click.testing import CliRunner
from PIL import Image

from main import cli


@pytest.fixture()
def picture(tmp_path, image_bytes) -> Path:
    path = tmp_path / "photo.png"
    path.write_bytes(image_bytes((400, 300)))
    return path


def test_info_reports_fitted_size(picture):
    result = CliRunner().invoke(
        cli, ["info", "--input-path", str(picture), "--max-width", "200"]
    )
    assert result.exit_code == 0, result.output
    assert "200x150 image/png" in result.output


def test_resize_writes_payload(picture, tmp_path):
    out = tmp_path / "out"
    result = CliRunner().invoke(
        cli,
        ["resize", "--input-path", str(picture), "--output-dir", str(out), "--width", "100"],
    )
    assert result.exit_code == 0, result.output
    with Image.open(out / "photo.png") as written:
        assert written.size == (100, 75)


def test_crop_with_negative_origin_fails(picture, tmp_path):
    result = CliRunner().invoke(
        cli,
        [
            "crop",
            "--input-path", str(picture),
            "--output-dir", str(tmp_path / "out"),
            "--top", "0",
            "--left", "-5",
            "--width", "10",
            "--height", "10",
        ],
    )
    assert result.exit_code == 1
    assert "outside" in result.output


def test_crop_writes_trimmed_region(picture, tmp_path):
    out = tmp_path / "out"
    result = CliRunner().invoke(
        cli,
        [
            "crop",
            "--input-path", str(picture),
            "--output-dir", str(out),
            "--top", "200",
            "--left", "350",
            "--width", "100",
            "--height", "100",
        ],
    )
    assert result.exit_code == 0, result.output
    with Image.open(out / "photo.png") as written:
        assert written.size == (50, 100)


def test_prepare_rejects_large_files(picture, tmp_path):
    result = CliRunner().invoke(
        cli,
        [
            "prepare",
            "--input-path", str(picture),
            "--output-dir", str(tmp_path / "out"),
            "--max-file-size", "10",
        ],
    )
    assert result.exit_code == 1
    assert "exceeds the maximum limit" in result.output
