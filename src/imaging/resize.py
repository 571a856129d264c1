"""Progressive downscaling and crop utilities.

Large single-pass shrinks alias badly, so rasters are reduced by at most half
per step until they are within 2x of the target, then snapped to the exact
target size in one final pass.
"""

from __future__ import annotations

import logging
from typing import Iterator, Tuple

from PIL import Image

from config import CONFIG
from .errors import InvalidArguments
from .io_utils import map_resample

logger = logging.getLogger(__name__)


def plan_downscale_steps(
    source_size: Tuple[int, int], target_size: Tuple[int, int]
) -> Iterator[Tuple[int, int]]:
    """Yield every intermediate size on the way from source to target.

    Parameters
    ----------
    source_size
        Starting (width, height).
    target_size
        Final (width, height). Must be at least 1x1.

    Yields
    ------
    tuple
        Size of each resampling pass. The last yielded size is the target.
        Nothing is yielded when the source already fits inside the target.
    """

    target_w, target_h = target_size
    if target_w < 1 or target_h < 1:
        raise InvalidArguments(f"Target size must be at least 1x1, got {target_size}")

    current_w, current_h = source_size
    while current_w > target_w or current_h > target_h:
        ratio = max(current_w / target_w, current_h / target_h)
        if ratio <= 2:
            current_w, current_h = target_w, target_h
        else:
            current_w = max(current_w // 2, target_w)
            current_h = max(current_h // 2, target_h)
        yield current_w, current_h


def progressive_downscale(
    image: Image.Image,
    target_size: Tuple[int, int],
    resample: str = CONFIG.behavior.resample,
) -> Image.Image:
    """Shrink an image to an exact size through successive halvings.

    Parameters
    ----------
    image
        Source image.
    target_size
        Target (width, height).
    resample
        Resampling method name, used for every step.

    Returns
    -------
    Image.Image
        Image of exactly ``target_size``, or ``image`` itself when it already
        fits inside the target (this never upscales).
    """

    method = map_resample(resample)
    current = image
    for step, size in enumerate(plan_downscale_steps(image.size, target_size), start=1):
        logger.debug("Downscale step %d: %s -> %s", step, current.size, size)
        current = current.resize(size, method)
    return current


def crop_region(
    image: Image.Image, top: int, left: int, width: int, height: int
) -> Image.Image:
    """Extract a rectangle from an image, clamped to the image bounds.

    Parameters
    ----------
    image
        Source image.
    top, left
        Origin of the rectangle. Must lie inside the image.
    width, height
        Requested size of the rectangle. Trimmed so the rectangle never
        extends past the right or bottom edge.

    Returns
    -------
    Image.Image
        Cropped image.

    Raises
    ------
    InvalidArguments
        If the origin is negative or outside the image, or the requested size
        is not positive.
    """

    img_w, img_h = image.size
    if not 0 <= left < img_w or not 0 <= top < img_h:
        raise InvalidArguments(
            f"Crop origin (left={left}, top={top}) lies outside a {img_w}x{img_h} image"
        )
    if width < 1 or height < 1:
        raise InvalidArguments(f"Crop size must be positive, got {width}x{height}")

    crop_w = min(width, img_w - left)
    crop_h = min(height, img_h - top)
    return image.crop((left, top, left + crop_w, top + crop_h))
