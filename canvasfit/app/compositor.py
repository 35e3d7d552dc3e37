"""Resize a source image and place it on its canvas."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from PIL import Image

from . import codec
from .errors import PlacementError
from .formats import OutputFormat
from .transform import Offset, PixelDimensions, Transform

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]


def matte(image: Image.Image, color: RGB) -> Image.Image:
    """Return ``image`` blended over an opaque ``color`` background.

    Each pixel becomes ``a * rgb + (1 - a) * color`` with ``a = alpha / 255``
    and ends up fully opaque. ``image`` itself is left untouched.
    """

    if len(color) != 3 or any(not 0 <= channel <= 255 for channel in color):
        raise ValueError(f"Background colour must be three 0-255 channels, got {color!r}")

    foreground = image if image.mode == "RGBA" else image.convert("RGBA")
    background = Image.new("RGBA", foreground.size, (*color, 255))
    return Image.alpha_composite(background, foreground)


def _overlap(dimensions: PixelDimensions) -> Tuple[int, int, int, int, int, int]:
    """Return ``(sub_x, sub_y, width, height, dest_x, dest_y)`` for the copy."""

    origin = dimensions.origin

    if origin.x < 0:
        sub_x, dest_x = -origin.x, 0
    else:
        sub_x, dest_x = 0, origin.x

    if origin.y < 0:
        sub_y, dest_y = -origin.y, 0
    else:
        sub_y, dest_y = 0, origin.y

    width = min(dimensions.canvas.width, dimensions.size.width - sub_x)
    height = min(dimensions.canvas.height, dimensions.size.height - sub_y)

    return sub_x, sub_y, width, height, dest_x, dest_y


def render(
    image: Image.Image,
    transform: Transform,
    background: Optional[RGB] = None,
    *,
    scale: float = 1.0,
    offset: Optional[Offset] = None,
    resample: Optional[int] = None,
    matte_source: bool = True,
    max_dimension: Optional[int] = None,
) -> Image.Image:
    """Return the RGBA canvas with ``image`` resized and placed on it.

    When ``background`` is given the source is matted before resizing (when
    ``matte_source`` is set) so resampled edges blend against the colour, and
    the final canvas is always matted so letterboxed areas are filled too.
    ``max_dimension`` caps every side of the canvas and of the resized image
    before anything is allocated.
    """

    dimensions = transform.pixel_dimensions(scale, offset)
    logger.debug("Placing image with %s", dimensions)

    if dimensions.canvas.is_empty:
        raise PlacementError(
            f"Canvas has no area ({dimensions.canvas.width}x{dimensions.canvas.height})"
        )
    if dimensions.size.is_empty:
        raise PlacementError(
            f"Resized image has no area ({dimensions.size.width}x{dimensions.size.height})"
        )
    if max_dimension is not None:
        largest = max(
            dimensions.canvas.width,
            dimensions.canvas.height,
            dimensions.size.width,
            dimensions.size.height,
        )
        if largest > max_dimension:
            raise PlacementError(
                f"Output needs a {largest}px side, above the {max_dimension}px limit"
            )

    source = image if image.mode == "RGBA" else image.convert("RGBA")
    if background is not None and matte_source:
        source = matte(source, background)

    resized = codec.resize_exact(
        source, dimensions.size.width, dimensions.size.height, resample
    )
    canvas = codec.new_canvas(dimensions.canvas.width, dimensions.canvas.height)

    sub_x, sub_y, width, height, dest_x, dest_y = _overlap(dimensions)
    if not codec.copy_region(resized, sub_x, sub_y, width, height, canvas, dest_x, dest_y):
        raise PlacementError("Could not place image due to sizing errors")

    if background is not None:
        canvas = matte(canvas, background)

    return canvas


def composite(
    image: Image.Image,
    transform: Transform,
    output_format: OutputFormat,
    background: Optional[RGB] = None,
    *,
    scale: float = 1.0,
    offset: Optional[Offset] = None,
    resample: Optional[int] = None,
    matte_source: bool = True,
    max_dimension: Optional[int] = None,
) -> bytes:
    """Render ``image`` onto its canvas and encode it as ``output_format``."""

    canvas = render(
        image,
        transform,
        background,
        scale=scale,
        offset=offset,
        resample=resample,
        matte_source=matte_source,
        max_dimension=max_dimension,
    )
    return codec.encode(canvas, output_format.name, output_format.quality)


__all__ = ["composite", "matte", "render"]
