"""I/O utilities and helpers for image processing.

This module provides the raster codec used by image sessions (decode raw bytes,
encode to a mime type with optional EXIF preservation), mime and extension
bookkeeping, file acquisition for the CLI, and the mapping from resampling
method names to Pillow constants.
"""

from __future__ import annotations

import base64
import io
import logging
import struct
from pathlib import Path
from typing import Optional, Tuple

import piexif
from PIL import Image, ImageOps, UnidentifiedImageError

from config import CONFIG, IMAGE_EXTENSIONS
from .errors import DecodeError, EncodeError
from .raster import Raster

logger = logging.getLogger(__name__)

# Pillow formats that accept an ``exif=`` save parameter.
_EXIF_FORMATS = {"JPEG", "WEBP", "PNG"}
# Pillow formats without an alpha channel.
_OPAQUE_FORMATS = {"JPEG", "BMP"}
# Pillow formats decoded from files that are written back as another format.
_FORMAT_ALIASES = {"MPO": "JPEG"}


def format_for_mime(mime: str) -> str:
    """Return the Pillow format name for a mime type.

    Parameters
    ----------
    mime
        Mime type such as ``"image/png"``.

    Returns
    -------
    str
        Pillow format name.

    Raises
    ------
    EncodeError
        If the mime type has no known Pillow encoder.
    """

    try:
        return CONFIG.mime_formats[mime.lower()][0]
    except KeyError:
        raise EncodeError(f"Unsupported image format: {mime}") from None


def extension_for_mime(mime: Optional[str]) -> str:
    """Return the preferred file extension (without dot) for a mime type."""

    mime = (mime or CONFIG.behavior.default_format).lower()
    if mime in CONFIG.mime_formats:
        return CONFIG.mime_formats[mime][1]
    # image/x-foo -> foo
    return mime.rsplit("/", 1)[-1].removeprefix("x-") or "bin"


def mime_for_format(pil_format: Optional[str]) -> Optional[str]:
    """Return the mime type for a Pillow format name, if known."""

    if not pil_format:
        return None
    pil_format = _FORMAT_ALIASES.get(pil_format.upper(), pil_format)
    for mime, (name, _) in CONFIG.mime_formats.items():
        if name == pil_format.upper():
            return mime
    return Image.MIME.get(pil_format.upper())


def guess_mime(path: Path) -> Optional[str]:
    """Guess a mime type from a file suffix."""

    suffix = Path(path).suffix.lower().lstrip(".")
    if suffix == "jpeg":
        suffix = "jpg"
    for mime, (_, ext) in CONFIG.mime_formats.items():
        if ext == suffix:
            return mime
    return None


def read_image_file(image_path: Path) -> Tuple[bytes, int, Optional[str]]:
    """Read a file the way a file picker would hand it to a session.

    Parameters
    ----------
    image_path
        Path to the image file.

    Returns
    -------
    tuple
        A tuple of (raw bytes, declared size in bytes, mime type or None).
    """

    path = Path(image_path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    if path.suffix.lower() not in IMAGE_EXTENSIONS:
        logger.warning("Unrecognized image extension for %s", path)
    data = path.read_bytes()
    return data, path.stat().st_size, guess_mime(path)


def decode_raster(data: bytes, mime: Optional[str] = None) -> Raster:
    """Decode raw bytes into a raster.

    Parameters
    ----------
    data
        Encoded image bytes.
    mime
        Declared mime type. When omitted, the decoded format is used.

    Returns
    -------
    Raster
        Fully loaded raster, upright per its EXIF orientation, tagged with
        its mime type and EXIF bytes.

    Raises
    ------
    DecodeError
        If Pillow cannot identify or read the data.
    """

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        pil_format = img.format
        # bake the EXIF orientation into the pixels; the returned EXIF drops the tag
        img = ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise DecodeError(f"Cannot decode image data: {exc}") from exc

    if img.width < 1 or img.height < 1:
        raise DecodeError(f"Decoded image has an empty size: {img.size}")

    exif_bytes = img.info.get("exif") or None
    return Raster(image=img, format=mime or mime_for_format(pil_format), exif=exif_bytes)


def _exif_for_size(exif_bytes: bytes, size: Tuple[int, int]) -> Optional[bytes]:
    """Rewrite EXIF pixel dimension tags for a resized raster.

    Thumbnails are dropped since they no longer match the pixels.
    """

    try:
        exif_dict = piexif.load(exif_bytes)
        exif_dict["Exif"][piexif.ExifIFD.PixelXDimension] = size[0]
        exif_dict["Exif"][piexif.ExifIFD.PixelYDimension] = size[1]
        exif_dict["thumbnail"] = None
        exif_dict["1st"] = {}
        return piexif.dump(exif_dict)
    except (piexif.InvalidImageDataError, ValueError, OSError, struct.error) as exc:
        logger.warning("Dropping unreadable EXIF metadata: %s", exc)
        return None


def encode_raster(
    raster: Raster,
    mime: Optional[str] = None,
    keep_metadata: Optional[bool] = None,
    quality: Optional[int] = None,
) -> bytes:
    """Encode a raster to bytes in the given mime type.

    Parameters
    ----------
    raster
        Raster to encode.
    mime
        Target mime type. Defaults to the raster's own format, then to
        ``CONFIG.behavior.default_format``.
    keep_metadata
        Whether to re-attach EXIF metadata. Defaults to
        ``CONFIG.behavior.keep_metadata``.
    quality
        Encoder quality for lossy formats.

    Returns
    -------
    bytes
        Encoded image.

    Raises
    ------
    EncodeError
        If the format is unsupported or Pillow fails to write it.
    """

    mime = mime or raster.format or CONFIG.behavior.default_format
    pil_format = format_for_mime(mime)
    if keep_metadata is None:
        keep_metadata = CONFIG.behavior.keep_metadata

    image = raster.image
    if pil_format in _OPAQUE_FORMATS and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    params = {}
    if keep_metadata and raster.exif and pil_format in _EXIF_FORMATS:
        exif = _exif_for_size(raster.exif, raster.size)
        if exif:
            params["exif"] = exif

    # Favor high quality when writing lossy formats
    if pil_format == "JPEG":
        params.update({"quality": quality or CONFIG.behavior.quality, "optimize": True})
    elif pil_format == "PNG":
        params.update({"optimize": True})
    elif pil_format == "WEBP":
        params.update({"quality": quality or CONFIG.behavior.quality})

    buffer = io.BytesIO()
    try:
        image.save(buffer, format=pil_format, **params)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Cannot encode image as {mime}: {exc}") from exc
    return buffer.getvalue()


def to_data_url(data: bytes, mime: str) -> str:
    """Encode bytes to a ``data:`` URL (base64)."""

    b64 = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{b64}"


def ensure_dir(path: Path) -> None:
    """Create a directory if it does not exist.

    Parameters
    ----------
    path
        Directory path to create.
    """

    Path(path).mkdir(parents=True, exist_ok=True)


def map_resample(name: str) -> int:
    """Map a resample name to a Pillow constant.

    Parameters
    ----------
    name
        One of 'nearest', 'bilinear', 'bicubic', 'lanczos'.

    Returns
    -------
    int
        Pillow resampling constant.
    """

    name_lower = (name or "").lower()
    if name_lower == "nearest":
        return Image.NEAREST
    if name_lower == "bilinear":
        return Image.BILINEAR
    if name_lower == "bicubic":
        return Image.BICUBIC
    return Image.LANCZOS


def aspect_ratio(width: int, height: int) -> float:
    """Compute aspect ratio as width / height.

    Parameters
    ----------
    width
        Width in pixels.
    height
        Height in pixels.

    Returns
    -------
    float
        The ratio width / height.
    """

    return float(width) / float(height)
