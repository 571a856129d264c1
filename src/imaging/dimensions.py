"""Target size resolution under aspect-ratio and maximum-size constraints.

Pure functions only; nothing here touches pixels.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .errors import InvalidArguments
from .io_utils import aspect_ratio


def _check_positive(name: str, value: Optional[float]) -> None:
    if value is not None and value <= 0:
        raise InvalidArguments(f"{name} must be positive, got {value}")


def resolve_dimensions(
    source_size: Tuple[int, int],
    width: Optional[float] = None,
    height: Optional[float] = None,
    *,
    maintain_aspect_ratio: bool = False,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
    require_target: bool = True,
) -> Tuple[int, int]:
    """Compute the final size for a resize request.

    Parameters
    ----------
    source_size
        Current (width, height) of the raster.
    width, height
        Requested target dimensions. Either may be omitted; when both are
        omitted the source size is the target, which is only allowed when
        ``require_target`` is False (initial-load fitting).
    maintain_aspect_ratio
        Fit inside the requested box while preserving the source aspect ratio.
        When False, each axis is set independently and distortion is allowed.
    max_width, max_height
        Optional upper bounds. The width clamp is applied first, then the
        height clamp on the already width-adjusted size.
    require_target
        Reject requests that name neither dimension.

    Returns
    -------
    tuple
        Final (width, height), rounded to whole pixels and at least 1.

    Raises
    ------
    InvalidArguments
        If no target is given while one is required, or any dimension or
        limit is not positive.
    """

    if require_target and width is None and height is None:
        raise InvalidArguments("At least one of width or height must be provided")
    for name, value in (
        ("width", width),
        ("height", height),
        ("max_width", max_width),
        ("max_height", max_height),
    ):
        _check_positive(name, value)

    src_w, src_h = source_size
    aspect = aspect_ratio(src_w, src_h)

    out_w = float(width if width is not None else src_w)
    out_h = float(height if height is not None else src_h)

    if maintain_aspect_ratio:
        if width is not None and height is not None:
            ratio = min(width / src_w, height / src_h)
            out_w = src_w * ratio
            out_h = src_h * ratio
        elif width is not None:
            out_h = width / aspect
        elif height is not None:
            out_w = height * aspect

    if max_width is not None and out_w > max_width:
        out_w = float(max_width)
        if maintain_aspect_ratio:
            out_h = out_w / aspect
    if max_height is not None and out_h > max_height:
        out_h = float(max_height)
        if maintain_aspect_ratio:
            out_w = out_h * aspect

    return max(1, round(out_w)), max(1, round(out_h))


def needs_resize(source_size: Tuple[int, int], target_size: Tuple[int, int]) -> bool:
    """Return True unless both axes are within one pixel of the source."""

    return (
        abs(target_size[0] - source_size[0]) > 1
        or abs(target_size[1] - source_size[1]) > 1
    )
