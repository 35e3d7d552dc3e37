from io import BytesIO

import pytest
from PIL import Image

from canvasfit.app.config import Settings


def make_image(width, height, colour=(255, 0, 0, 255), mode="RGBA"):
    return Image.new(mode, (width, height), colour if mode == "RGBA" else colour[:3])


def image_bytes(image, image_format="PNG"):
    buffer = BytesIO()
    if image_format == "JPEG" and image.mode != "RGB":
        image = image.convert("RGB")
    image.save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def settings():
    return Settings(cors_origins=("*",), allowed_origin_hosts=())


@pytest.fixture
def red_square():
    return make_image(100, 100)


@pytest.fixture
def portrait_png():
    return image_bytes(make_image(200, 300, (0, 0, 255, 255)))
