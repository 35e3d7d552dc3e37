"""Thin wrappers around Pillow used by the compositor.

Each helper translates Pillow failures into the errors defined in
:mod:`canvasfit.app.errors` and keeps the original exception as the cause.
"""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import DecodeError, EncodeError, UnsupportedFormatError

logger = logging.getLogger(__name__)

RESAMPLE_FILTERS = {
    "nearest": Image.Resampling.NEAREST,
    "bilinear": Image.Resampling.BILINEAR,
    "bicubic": Image.Resampling.BICUBIC,
    "lanczos": Image.Resampling.LANCZOS,
}

# Bilinear is Pillow's triangle kernel.
DEFAULT_RESAMPLE = Image.Resampling.BILINEAR


def resample_filter(name: str) -> Image.Resampling:
    try:
        return RESAMPLE_FILTERS[name.strip().lower()]
    except KeyError as exc:
        raise ValueError(
            f"Unknown resample filter {name!r}; expected one of {', '.join(RESAMPLE_FILTERS)}"
        ) from exc


def guess_format(data: bytes) -> str:
    """Return the Pillow format name (``"PNG"``, ``"JPEG"``...) of ``data``."""

    try:
        with Image.open(BytesIO(data)) as probe:
            image_format = probe.format
    except (UnidentifiedImageError, OSError) as exc:
        raise UnsupportedFormatError(f"Could not guess image format: {exc}") from exc

    if not image_format:
        raise UnsupportedFormatError("Could not guess image format")

    return image_format


def decode(data: bytes) -> Image.Image:
    """Decode ``data`` into a fully loaded image with EXIF orientation applied."""

    try:
        image = Image.open(BytesIO(data))
        image.load()
        return ImageOps.exif_transpose(image)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Could not load image: {exc}") from exc


def resize_exact(
    image: Image.Image, width: int, height: int, resample: Optional[int] = None
) -> Image.Image:
    return image.resize((width, height), DEFAULT_RESAMPLE if resample is None else resample)


def new_canvas(width: int, height: int) -> Image.Image:
    """Return a fully transparent RGBA canvas."""

    return Image.new("RGBA", (width, height), (0, 0, 0, 0))


def copy_region(
    source: Image.Image,
    source_x: int,
    source_y: int,
    width: int,
    height: int,
    destination: Image.Image,
    destination_x: int,
    destination_y: int,
) -> bool:
    """Copy a ``width`` x ``height`` region of ``source`` into ``destination``.

    Returns ``False`` without touching ``destination`` when the region does not
    lie within ``source`` or does not fit ``destination`` at the given point.
    """

    if width <= 0 or height <= 0:
        return False
    if min(source_x, source_y, destination_x, destination_y) < 0:
        return False
    if source_x + width > source.width or source_y + height > source.height:
        return False
    if destination_x + width > destination.width or destination_y + height > destination.height:
        return False

    region = source.crop((source_x, source_y, source_x + width, source_y + height))
    destination.paste(region, (destination_x, destination_y))
    return True


def encode(image: Image.Image, image_format: str, quality: Optional[int] = None) -> bytes:
    """Encode ``image`` as ``image_format`` (``"PNG"`` or ``"JPEG"``)."""

    buffer = BytesIO()
    try:
        if image_format == "JPEG":
            if image.mode != "RGB":
                image = image.convert("RGB")
            image.save(buffer, format="JPEG", quality=quality or 90, optimize=True)
        else:
            image.save(buffer, format=image_format, compress_level=6)
    except (OSError, ValueError, KeyError) as exc:
        logger.error("Unable to encode %s image: %s", image_format, exc)
        raise EncodeError(f"Could not encode image as {image_format}: {exc}") from exc

    return buffer.getvalue()


__all__ = [
    "DEFAULT_RESAMPLE",
    "RESAMPLE_FILTERS",
    "copy_region",
    "decode",
    "encode",
    "guess_format",
    "new_canvas",
    "resample_filter",
    "resize_exact",
]
