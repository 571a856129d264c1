"""CLI for image sessions.

Commands:
  - info: Load an image under the configured limits and print its state
  - resize: Resize with optional aspect preservation and step-down scaling
  - crop: Crop a rectangle from the (limit-fitted) image
  - prepare: Write the upload payload for the image as loaded
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click
from config import CONFIG, Limits
from src.imaging.errors import ImageSessionError
from src.imaging.io_utils import ensure_dir, read_image_file
from src.imaging.session import ImageSession


def _open_session(
    input_path: Path,
    max_file_size: Optional[int],
    max_width: Optional[int],
    max_height: Optional[int],
    resample: str,
) -> ImageSession:
    limits = Limits(
        max_file_size=max_file_size, max_width=max_width, max_height=max_height
    )
    session = ImageSession(limits, resample=resample)
    data, size, mime = read_image_file(input_path)
    session.select_image(data, declared_size=size, mime_type=mime)
    return session


def _write_upload(session: ImageSession, output_dir: Path, stem: str) -> Path:
    blob, filename = session.prepare_upload()
    ensure_dir(output_dir)
    dest = output_dir / f"{stem}{Path(filename).suffix}"
    dest.write_bytes(blob)
    click.echo(f"{dest} ({session.selected.width}x{session.selected.height})")
    return dest


def limit_options(func):
    """Attach the shared session-limit and I/O options to a command."""

    options = [
        click.option(
            "--input-path",
            type=click.Path(path_type=Path, exists=True, dir_okay=False),
            required=True,
            help="Image file",
        ),
        click.option("--max-file-size", type=click.IntRange(min=1), default=None),
        click.option("--max-width", type=click.IntRange(min=1), default=None),
        click.option("--max-height", type=click.IntRange(min=1), default=None),
        click.option(
            "--resample",
            type=click.Choice(
                ["nearest", "bilinear", "bicubic", "lanczos"], case_sensitive=False
            ),
            default=CONFIG.behavior.resample,
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def output_option(func):
    return click.option(
        "--output-dir",
        type=click.Path(path_type=Path, file_okay=False),
        required=True,
        help="Output directory",
    )(func)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Image session toolkit."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="info")
@limit_options
def cmd_info(
    input_path: Path,
    max_file_size: Optional[int],
    max_width: Optional[int],
    max_height: Optional[int],
    resample: str,
) -> None:
    """Load an image and print its size and format after limit fitting."""

    try:
        session = _open_session(input_path, max_file_size, max_width, max_height, resample)
    except ImageSessionError as exc:
        raise click.ClickException(str(exc)) from exc
    selected = session.selected
    click.echo(f"{input_path.name}: {selected.width}x{selected.height} {session.output_format}")


@cli.command(name="resize")
@limit_options
@output_option
@click.option("--width", type=click.IntRange(min=1), default=None)
@click.option("--height", type=click.IntRange(min=1), default=None)
@click.option("--keep-aspect/--no-keep-aspect", default=True)
def cmd_resize(
    input_path: Path,
    max_file_size: Optional[int],
    max_width: Optional[int],
    max_height: Optional[int],
    resample: str,
    output_dir: Path,
    width: Optional[int],
    height: Optional[int],
    keep_aspect: bool,
) -> None:
    """Resize an image, stepping down by halves for large reductions."""

    try:
        session = _open_session(input_path, max_file_size, max_width, max_height, resample)
        session.resize_image(width=width, height=height, maintain_aspect_ratio=keep_aspect)
        _write_upload(session, output_dir, input_path.stem)
    except ImageSessionError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command(name="crop")
@limit_options
@output_option
@click.option("--top", type=int, required=True)
@click.option("--left", type=int, required=True)
@click.option("--width", type=click.IntRange(min=1), required=True)
@click.option("--height", type=click.IntRange(min=1), required=True)
def cmd_crop(
    input_path: Path,
    max_file_size: Optional[int],
    max_width: Optional[int],
    max_height: Optional[int],
    resample: str,
    output_dir: Path,
    top: int,
    left: int,
    width: int,
    height: int,
) -> None:
    """Crop a rectangle; it is trimmed to the image bounds."""

    try:
        session = _open_session(input_path, max_file_size, max_width, max_height, resample)
        session.crop_image(top=top, left=left, width=width, height=height)
        _write_upload(session, output_dir, input_path.stem)
    except ImageSessionError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command(name="prepare")
@limit_options
@output_option
def cmd_prepare(
    input_path: Path,
    max_file_size: Optional[int],
    max_width: Optional[int],
    max_height: Optional[int],
    resample: str,
    output_dir: Path,
) -> None:
    """Write the upload payload for an image fitted to the limits."""

    try:
        session = _open_session(input_path, max_file_size, max_width, max_height, resample)
        _write_upload(session, output_dir, input_path.stem)
    except ImageSessionError as exc:
        raise click.ClickException(str(exc)) from exc


if __name__ == "__main__":
    cli()
