"""Exceptions and warnings raised by image sessions and their helpers."""

from __future__ import annotations


class ImageSessionError(Exception):
    """Base class for every failure surfaced by an image session."""


class FileTooLarge(ImageSessionError):
    """Raised when a selected file exceeds the configured maximum size."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"File size {size} bytes exceeds the maximum limit of {limit} bytes"
        )
        self.size = size
        self.limit = limit


class NoImageSelected(ImageSessionError):
    """Raised when an operation needs an image but none has been selected."""


class InvalidArguments(ImageSessionError, ValueError):
    """Raised for missing resize targets or an out-of-bounds crop rectangle."""


class StillLoading(ImageSessionError):
    """Raised when a crop is requested while an image is still loading."""


class DecodeError(ImageSessionError):
    """Raised when raw bytes cannot be decoded into a raster."""


class EncodeError(ImageSessionError):
    """Raised when a raster cannot be encoded to the requested format."""


class SessionWarning(UserWarning):
    """Base category for non-fatal image session conditions."""


class StillLoadingWarning(SessionWarning):
    """Emitted when a resize is requested while an image is still loading."""


class NoOriginalToRestoreWarning(SessionWarning):
    """Emitted when a restore is requested before any image was selected."""
