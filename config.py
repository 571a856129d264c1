"""Global configuration for the image-stepdown toolkit.

This module centralizes defaults and user-tunable settings for:
- the optional limits an image session enforces on selected files
- resampling and encoding behavior
- mime type and file extension bookkeeping

All values can be overridden via CLI flags or direct imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


# Supported file extensions for images
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tiff", ".gif"}


# Mime type -> (Pillow format name, preferred file extension).
MIME_FORMATS: Dict[str, tuple[str, str]] = {
    "image/jpeg": ("JPEG", "jpg"),
    "image/jpg": ("JPEG", "jpg"),
    "image/png": ("PNG", "png"),
    "image/webp": ("WEBP", "webp"),
    "image/bmp": ("BMP", "bmp"),
    "image/tiff": ("TIFF", "tiff"),
    "image/gif": ("GIF", "gif"),
}


# Used whenever a raster carries no source mime type.
DEFAULT_FORMAT = "image/jpeg"

RESAMPLE_METHOD = "bicubic"  # one of {nearest, bilinear, bicubic, lanczos}


@dataclass
class Limits:
    """Optional constraints applied when an image is selected or resized.

    Attributes
    ----------
    max_file_size
        Maximum accepted file size in bytes. ``None`` accepts any size.
    max_width, max_height
        Maximum output dimensions in pixels. ``None`` leaves the axis
        unconstrained.
    """

    max_file_size: Optional[int] = None
    max_width: Optional[int] = None
    max_height: Optional[int] = None


@dataclass
class Behavior:
    """Processing behavior toggles.

    Attributes
    ----------
    resample
        Resampling method used at every downscale step. One of: 'nearest',
        'bilinear', 'bicubic', 'lanczos'.
    default_format
        Mime type used to encode rasters that carry no source format.
    keep_metadata
        If True, re-attach EXIF metadata when encoding where the format allows.
    quality
        Encoder quality for lossy formats.
    upload_stem
        Filename stem used for prepared upload payloads.
    """

    resample: str = RESAMPLE_METHOD
    default_format: str = DEFAULT_FORMAT
    keep_metadata: bool = True
    quality: int = 92
    upload_stem: str = "image"


@dataclass
class ProjectConfig:
    """Top-level configuration container.

    Attributes
    ----------
    limits
        File size and dimension limits for image sessions.
    behavior
        Execution-time toggles.
    mime_formats
        Mapping from mime type to Pillow format name and file extension.
    """

    limits: Limits = field(default_factory=Limits)
    behavior: Behavior = field(default_factory=Behavior)
    mime_formats: Dict[str, tuple[str, str]] = field(
        default_factory=lambda: dict(MIME_FORMATS)
    )


# Default singleton-style config instance used by CLI unless overridden
CONFIG = ProjectConfig()
