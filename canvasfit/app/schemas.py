from __future__ import annotations

import re
from typing import Any, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from .transform import Offset, TransformMode, mode_from_bounds

HEX_COLOUR_PATTERN = re.compile(r"^#?(?P<hex>[0-9a-fA-F]{6})$")


def parse_background(value: Any) -> Optional[Tuple[int, int, int]]:
    """Return an RGB tuple for ``RRGGBB``, ``#RRGGBB`` or ``r,g,b`` input."""

    if value is None:
        return None

    if isinstance(value, (tuple, list)):
        channels = list(value)
    else:
        text = str(value).strip()
        if not text:
            return None

        match = HEX_COLOUR_PATTERN.match(text)
        if match:
            digits = match.group("hex")
            return tuple(int(digits[index : index + 2], 16) for index in (0, 2, 4))

        try:
            channels = [int(part) for part in text.split(",")]
        except ValueError as exc:
            raise ValueError("bg must be a hex colour (RRGGBB) or 'r,g,b'") from exc

    if len(channels) != 3 or any(not 0 <= int(channel) <= 255 for channel in channels):
        raise ValueError("bg must have three channels between 0 and 255")

    return tuple(int(channel) for channel in channels)


class ProcessImageParams(BaseModel):
    """Query parameters accepted by the image endpoints."""

    mode: str
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    dx: float = Field(default=0.0, ge=-1.0, le=1.0)
    dy: float = Field(default=0.0, ge=-1.0, le=1.0)
    scale: float = Field(default=1.0, gt=0)
    quality: int = Field(default=90, ge=1, le=100)
    format: Optional[Literal["png", "jpg", "jpeg"]] = None
    bg: Optional[Tuple[int, int, int]] = None

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @field_validator("bg", mode="before")
    @classmethod
    def _parse_bg(cls, value: Any) -> Optional[Tuple[int, int, int]]:
        return parse_background(value)

    def transform_mode(self) -> TransformMode:
        return mode_from_bounds(self.mode, self.width, self.height)

    def offset(self) -> Offset:
        return Offset(self.dx, self.dy)


class PixelSizeModel(BaseModel):
    width: int
    height: int


class PixelCoordsModel(BaseModel):
    x: int
    y: int


class PixelDimensionsResponse(BaseModel):
    mode: Literal["fill", "fit", "fit_width", "fit_height", "limit"]
    canvas: PixelSizeModel
    size: PixelSizeModel
    origin: PixelCoordsModel
