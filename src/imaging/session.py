"""Image session: the selected raster, its original, and the edits between.

:class:`ImageSession` holds the raster a user picked, applies the configured
file-size and dimension limits on selection, and exposes resize, crop,
restore and upload-preparation operations over it.  Edits only ever replace
the *selected* raster; the *original* is kept untouched so that
:meth:`ImageSession.restore_original_image` can always return to the state
right after selection.

File acquisition and the network upload are supplied by the caller: raw
bytes go into :meth:`ImageSession.select_image`, and
:meth:`ImageSession.upload_image` hands the prepared payload to an uploader
callable.
"""

from __future__ import annotations

import enum
import logging
import threading
import warnings
from dataclasses import replace
from typing import Callable, Optional, Tuple

from config import CONFIG, Limits
from .dimensions import needs_resize, resolve_dimensions
from .errors import (
    FileTooLarge,
    InvalidArguments,
    NoImageSelected,
    NoOriginalToRestoreWarning,
    StillLoading,
    StillLoadingWarning,
)
from .io_utils import (
    decode_raster,
    encode_raster,
    extension_for_mime,
    to_data_url,
)
from .raster import Raster
from .resize import crop_region, progressive_downscale

logger = logging.getLogger(__name__)

UploadFunction = Callable[[bytes, str], str]


class SessionState(enum.Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"


class ImageSession:
    """Hold one user-selected image and apply edits to a working copy."""

    def __init__(
        self,
        limits: Optional[Limits] = None,
        *,
        resample: Optional[str] = None,
    ) -> None:
        limits = replace(limits if limits is not None else CONFIG.limits)
        for name in ("max_file_size", "max_width", "max_height"):
            value = getattr(limits, name)
            if value is not None and value <= 0:
                raise InvalidArguments(f"{name} must be greater than zero")
        self._limits = limits
        self._resample = resample or CONFIG.behavior.resample
        self._original: Optional[Raster] = None
        self._selected: Optional[Raster] = None
        self._source_format: Optional[str] = None
        self._loading = False
        # bumped by every selection so waiting edits can tell a load happened
        self._generation = 0
        self._lock = threading.RLock()

    def _claim(self) -> bool:
        """Take the session lock unless a load is running or ran meanwhile.

        Returns False, without holding the lock, when the call has to be
        rejected.  The caller releases the lock after a True result.
        """
        generation = self._generation
        if self._loading:
            return False
        self._lock.acquire()
        if self._loading or self._generation != generation:
            self._lock.release()
            return False
        return True

    def _warn_still_loading(self, operation: str) -> None:
        logger.warning("Image is still loading; %s ignored", operation)
        warnings.warn("Image is still loading. Please wait.", StillLoadingWarning, stacklevel=3)

    @property
    def limits(self) -> Limits:
        return self._limits

    @property
    def original(self) -> Optional[Raster]:
        return self._original

    @property
    def selected(self) -> Optional[Raster]:
        return self._selected

    @property
    def source_format(self) -> Optional[str]:
        return self._source_format

    @property
    def is_loading(self) -> bool:
        """Return whether an image is currently being decoded."""

        return self._loading

    @property
    def state(self) -> SessionState:
        if self._loading:
            return SessionState.LOADING
        if self._selected is None:
            return SessionState.EMPTY
        return SessionState.READY

    @property
    def output_format(self) -> str:
        """Mime type used when encoding the selected raster.

        Source formats without an encoder fall back to the default format.
        """

        if self._source_format and self._source_format.lower() in CONFIG.mime_formats:
            return self._source_format
        return CONFIG.behavior.default_format

    def select_image(
        self,
        data: bytes,
        declared_size: Optional[int] = None,
        mime_type: Optional[str] = None,
    ) -> Raster:
        """Load a newly picked file, replacing any previous selection.

        The file size is checked before decoding.  The decoded raster is fitted
        inside ``max_width``/``max_height`` with its aspect ratio preserved and
        stored as both the original and the selected raster.

        Raises:
            FileTooLarge: ``declared_size`` (default ``len(data)``) exceeds
                ``max_file_size``.
            StillLoading: another selection is in progress, or finished while
                this call waited for the session.
            DecodeError: the bytes are not a readable image.
        """
        size = len(data) if declared_size is None else declared_size
        max_size = self._limits.max_file_size
        if max_size is not None and size > max_size:
            logger.info("Rejected file of %d bytes (limit %d)", size, max_size)
            raise FileTooLarge(size, max_size)
        if not self._claim():
            raise StillLoading("Another image is still loading")

        try:
            # loading must be visible before the generation changes
            self._loading = True
            self._generation += 1
            raster = decode_raster(data, mime_type)
            target = resolve_dimensions(
                raster.size,
                maintain_aspect_ratio=True,
                max_width=self._limits.max_width,
                max_height=self._limits.max_height,
                require_target=False,
            )
            if needs_resize(raster.size, target):
                logger.info("Fitting selected image %s -> %s", raster.size, target)
                raster = raster.with_image(
                    progressive_downscale(raster.image, target, self._resample)
                )
            self._original = raster
            self._selected = raster
            self._source_format = raster.format
        finally:
            self._loading = False
            self._lock.release()
        return raster

    def resize_image(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        maintain_aspect_ratio: bool = False,
    ) -> Optional[Raster]:
        """Resize the selected raster.

        Returns None when nothing is selected, or with a
        :class:`StillLoadingWarning` while an image is loading.  Requests
        within one pixel of the current size return the current raster
        unchanged.
        """
        if self._selected is None and not self._loading:
            return None
        if width is None and height is None and not self._loading:
            raise InvalidArguments("At least one of width or height must be provided")
        if not self._claim():
            self._warn_still_loading("resize")
            return None

        try:
            current = self._selected
            if current is None:
                return None
            if width is None and height is None:
                raise InvalidArguments("At least one of width or height must be provided")
            target = resolve_dimensions(
                current.size,
                width,
                height,
                maintain_aspect_ratio=maintain_aspect_ratio,
                max_width=self._limits.max_width,
                max_height=self._limits.max_height,
            )
            if not needs_resize(current.size, target):
                return current
            image = progressive_downscale(current.image, target, self._resample)
            if image is current.image:
                # target is larger on both axes
                return current
            resized = current.with_image(image)
            self._selected = resized
        finally:
            self._lock.release()
        logger.debug("Resized %s -> %s", current.size, resized.size)
        return resized

    def crop_image(self, top: int, left: int, width: int, height: int) -> Raster:
        """Crop the selected raster; the rectangle is trimmed to its bounds.

        Raises:
            NoImageSelected: nothing has been selected.
            StillLoading: an image is being loaded, or was loaded while this
                call waited for the session.
            InvalidArguments: the origin lies outside the raster or the size
                is not positive.
        """
        if self._selected is None and not self._loading:
            raise NoImageSelected("No image selected")
        if not self._claim():
            raise StillLoading("Image is still loading. Please wait.")

        try:
            current = self._selected
            if current is None:
                raise NoImageSelected("No image selected")
            image = crop_region(current.image, top, left, width, height)
            cropped = Raster(image=image, format=self.output_format, exif=current.exif)
            self._selected = cropped
        finally:
            self._lock.release()
        logger.debug("Cropped %s -> %s at (%d, %d)", current.size, cropped.size, left, top)
        return cropped

    def restore_original_image(self) -> Optional[Raster]:
        """Reset the selected raster to a copy of the original.

        Returns None with a warning when nothing was loaded yet or an image
        is still loading.
        """
        if not self._claim():
            self._warn_still_loading("restore")
            return None

        try:
            if self._original is None:
                logger.warning("No original image to restore")
                warnings.warn(
                    "No original image to restore", NoOriginalToRestoreWarning, stacklevel=2
                )
                return None
            self._selected = self._original.clone()
            return self._selected
        finally:
            self._lock.release()

    def get_image_preview(self) -> Optional[str]:
        """Return the selected raster as a ``data:`` URL, or None."""

        if self._selected is None:
            return None
        mime = self.output_format
        return to_data_url(encode_raster(self._selected, mime), mime)

    def prepare_upload(self) -> Tuple[bytes, str]:
        """Encode the selected raster for upload.

        Returns:
            A tuple of (encoded bytes, filename), the filename extension
            following the source format.
        """
        selected = self._selected
        if selected is None:
            raise NoImageSelected("No image selected")
        mime = self.output_format
        blob = encode_raster(selected, mime)
        filename = f"{CONFIG.behavior.upload_stem}.{extension_for_mime(mime)}"
        return blob, filename

    def upload_image(self, uploader: UploadFunction) -> str:
        """Prepare the selected raster and pass it to ``uploader``.

        Returns the URL the uploader reports.
        """
        blob, filename = self.prepare_upload()
        logger.info("Uploading %s (%d bytes)", filename, len(blob))
        return uploader(blob, filename)
