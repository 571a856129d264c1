"""Raster model shared by the codec, the scaler and the image session.

A raster is treated as immutable: transformations always return a new
``Raster`` and never draw into the wrapped Pillow image.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from PIL import Image


@dataclass(frozen=True)
class Raster:
    """In-memory bitmap tagged with its source format.

    Fields:
        image: Decoded Pillow image.
        format: Source mime type, e.g. ``"image/jpeg"``, or None if unknown.
        exif: Raw EXIF bytes captured at decode time, if any.
    """

    image: Image.Image
    format: Optional[str] = None
    exif: Optional[bytes] = None

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    def with_image(self, image: Image.Image) -> "Raster":
        """Return a new raster with the same tags wrapping ``image``."""

        return replace(self, image=image)

    def clone(self) -> "Raster":
        """Return a raster holding an independent copy of the pixels."""

        return replace(self, image=self.image.copy())

    def same_pixels(self, other: "Raster") -> bool:
        """Compare pixel content, mode and size with another raster."""

        if self.size != other.size or self.image.mode != other.image.mode:
            return False
        return self.image.tobytes() == other.image.tobytes()
