import io
from typing import Tuple

import pytest
from PIL import Image


def gradient_image(size: Tuple[int, int]) -> Image.Image:
    """Return an RGB image whose pixels vary across the frame."""
    return Image.linear_gradient("L").convert("RGB").resize(size, Image.BILINEAR)


def encode(image: Image.Image, pil_format: str = "PNG", **params) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=pil_format, **params)
    return buffer.getvalue()


@pytest.fixture()
def image_bytes():
    def factory(size=(400, 300), pil_format="PNG", **params) -> bytes:
        return encode(gradient_image(size), pil_format, **params)

    return factory
