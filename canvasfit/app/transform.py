"""Geometry for placing a resized image on a target canvas.

All intermediate values are kept as floats; rounding to whole pixels happens
once, when :meth:`Transform.pixel_dimensions` builds a :class:`PixelDimensions`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Union

from .errors import InvalidModeError, PlacementError


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Size components must be non-negative, got {self.width}x{self.height}")


@dataclass(frozen=True)
class PixelSize:
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"PixelSize components must be non-negative, got {self.width}x{self.height}"
            )

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0


@dataclass(frozen=True)
class Coords:
    x: float
    y: float


@dataclass(frozen=True)
class PixelCoords:
    x: int
    y: int


@dataclass(frozen=True)
class Offset:
    """Relative recenter control; 0 centres, -1/+1 push to the near/far edge."""

    dx: float = 0.0
    dy: float = 0.0

    def __post_init__(self) -> None:
        for name, value in (("dx", self.dx), ("dy", self.dy)):
            if not -1.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between -1.0 and 1.0, got {value}")


CENTERED = Offset()


@dataclass(frozen=True)
class Dimensions:
    size: Size
    origin: Coords


@dataclass(frozen=True)
class PixelDimensions:
    canvas: PixelSize
    size: PixelSize
    origin: PixelCoords

    def as_dict(self) -> dict:
        return {
            "canvas": {"width": self.canvas.width, "height": self.canvas.height},
            "size": {"width": self.size.width, "height": self.size.height},
            "origin": {"x": self.origin.x, "y": self.origin.y},
        }


def _require_bound(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidModeError(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class Fill:
    """Cover the whole canvas, cropping whatever overflows."""

    width: int
    height: int

    def __post_init__(self) -> None:
        _require_bound("width", self.width)
        _require_bound("height", self.height)


@dataclass(frozen=True)
class Fit:
    """Show the whole image inside the canvas, letterboxing the remainder."""

    width: int
    height: int

    def __post_init__(self) -> None:
        _require_bound("width", self.width)
        _require_bound("height", self.height)


@dataclass(frozen=True)
class FitWidth:
    width: int

    def __post_init__(self) -> None:
        _require_bound("width", self.width)


@dataclass(frozen=True)
class FitHeight:
    height: int

    def __post_init__(self) -> None:
        _require_bound("height", self.height)


@dataclass(frozen=True)
class Limit:
    """Shrink the canvas to the image's aspect ratio within the bounds."""

    width: int
    height: int

    def __post_init__(self) -> None:
        _require_bound("width", self.width)
        _require_bound("height", self.height)


TransformMode = Union[Fill, Fit, FitWidth, FitHeight, Limit]

MODE_NAMES = ("fill", "fit", "fit_width", "fit_height", "limit")


def round_half_away(value: float) -> int:
    """Round ``value`` to the nearest integer, halves away from zero."""

    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _canvas_size(input_size: Size, mode: TransformMode) -> Size:
    input_ratio = input_size.height / input_size.width

    if isinstance(mode, (Fill, Fit)):
        return Size(float(mode.width), float(mode.height))
    if isinstance(mode, FitWidth):
        return Size(float(mode.width), mode.width * input_ratio)
    if isinstance(mode, FitHeight):
        return Size(mode.height / input_ratio, float(mode.height))
    if isinstance(mode, Limit):
        return Size(
            min(float(mode.width), mode.height / input_ratio),
            min(float(mode.height), mode.width * input_ratio),
        )

    raise InvalidModeError(f"Unsupported transform mode: {mode!r}")


@dataclass(frozen=True)
class Transform:
    """Input size and mode, with the canvas size derived once on construction."""

    input_size: Size
    mode: TransformMode
    canvas_size: Size = field(init=False)

    def __post_init__(self) -> None:
        if self.input_size.width <= 0 or self.input_size.height <= 0:
            raise PlacementError(
                "Input image has no area "
                f"({self.input_size.width}x{self.input_size.height})"
            )
        object.__setattr__(self, "canvas_size", _canvas_size(self.input_size, self.mode))

    @classmethod
    def from_pixel_size(cls, input_pixel_size: PixelSize, mode: TransformMode) -> "Transform":
        return cls(Size(float(input_pixel_size.width), float(input_pixel_size.height)), mode)

    def output_size(self, scale: float = 1.0) -> Size:
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")

        input_size = self.input_size
        canvas_size = self.canvas_size
        input_ratio = input_size.height / input_size.width
        canvas_ratio = canvas_size.height / canvas_size.width

        if isinstance(self.mode, Fill):
            # Cover: the unmatched side overflows the canvas.
            match_height = canvas_ratio > input_ratio
        else:
            # Contain: the unmatched side stays inside the canvas. Unlike a
            # width-first rule guarded on portrait inputs, this never overflows.
            match_height = canvas_ratio <= input_ratio

        if match_height:
            height = canvas_size.height
            width = (height / input_size.height) * input_size.width
        else:
            width = canvas_size.width
            height = (width / input_size.width) * input_size.height

        return Size(width * scale, height * scale)

    def output_origin(self, output_size: Size, offset: Optional[Offset] = None) -> Coords:
        offset = offset or CENTERED

        base_x = self.canvas_size.width / 2.0 - output_size.width / 2.0
        base_y = self.canvas_size.height / 2.0 - output_size.height / 2.0

        return Coords(base_x + base_x * offset.dx, base_y + base_y * offset.dy)

    def output_dimensions(self, scale: float = 1.0, offset: Optional[Offset] = None) -> Dimensions:
        output_size = self.output_size(scale)
        return Dimensions(size=output_size, origin=self.output_origin(output_size, offset))

    def pixel_dimensions(
        self, scale: float = 1.0, offset: Optional[Offset] = None
    ) -> PixelDimensions:
        dimensions = self.output_dimensions(scale, offset)

        return PixelDimensions(
            canvas=PixelSize(
                round_half_away(self.canvas_size.width),
                round_half_away(self.canvas_size.height),
            ),
            size=PixelSize(
                round_half_away(dimensions.size.width),
                round_half_away(dimensions.size.height),
            ),
            origin=PixelCoords(
                round_half_away(dimensions.origin.x),
                round_half_away(dimensions.origin.y),
            ),
        )


def compute_dimensions(
    input_size: PixelSize,
    mode: TransformMode,
    scale: float = 1.0,
    offset: Optional[Offset] = None,
) -> PixelDimensions:
    """Return the canvas, output size and origin for ``input_size`` under ``mode``."""

    return Transform.from_pixel_size(input_size, mode).pixel_dimensions(scale, offset)


def mode_name(mode: TransformMode) -> str:
    """Return the configuration name of ``mode``."""

    if isinstance(mode, Fill):
        return "fill"
    if isinstance(mode, Fit):
        return "fit"
    if isinstance(mode, FitWidth):
        return "fit_width"
    if isinstance(mode, FitHeight):
        return "fit_height"
    if isinstance(mode, Limit):
        return "limit"

    raise InvalidModeError(f"Unsupported transform mode: {mode!r}")


def _provided(value: Optional[int]) -> Optional[int]:
    if value is None or value <= 0:
        return None
    return value


def mode_from_bounds(
    mode_name: str, width: Optional[int] = None, height: Optional[int] = None
) -> TransformMode:
    """Build a :data:`TransformMode` from a mode name and optional bounds.

    ``None`` and ``0`` both mean the bound was not provided. ``fit`` with a
    single bound degrades to :class:`FitWidth` or :class:`FitHeight`.
    """

    name = (mode_name or "").strip().lower()
    width = _provided(width)
    height = _provided(height)

    if name not in MODE_NAMES:
        raise InvalidModeError(
            f"Unknown mode {mode_name!r}; expected one of {', '.join(MODE_NAMES)}"
        )

    if name == "fit":
        if width and height:
            return Fit(width, height)
        if width:
            return FitWidth(width)
        if height:
            return FitHeight(height)
        raise InvalidModeError("Mode 'fit' needs a width and/or height")

    if name == "fit_width":
        if not width:
            raise InvalidModeError("Mode 'fit_width' needs a width")
        return FitWidth(width)

    if name == "fit_height":
        if not height:
            raise InvalidModeError("Mode 'fit_height' needs a height")
        return FitHeight(height)

    if not (width and height):
        raise InvalidModeError(f"Mode {name!r} needs both width and height")

    if name == "fill":
        return Fill(width, height)
    return Limit(width, height)


__all__ = [
    "CENTERED",
    "Coords",
    "Dimensions",
    "Fill",
    "Fit",
    "FitHeight",
    "FitWidth",
    "Limit",
    "MODE_NAMES",
    "Offset",
    "PixelCoords",
    "PixelDimensions",
    "PixelSize",
    "Size",
    "Transform",
    "TransformMode",
    "compute_dimensions",
    "mode_from_bounds",
    "mode_name",
    "round_half_away",
]
