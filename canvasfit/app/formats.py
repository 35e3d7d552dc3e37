"""Output format selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from . import codec
from .errors import UnsupportedFormatError

_MEDIA_TYPES = {"PNG": "image/png", "JPEG": "image/jpeg"}
_KEYS = {"PNG": 0, "JPEG": 1}

# Inputs without a lossless/lossy encoder of their own are written as PNG.
_INPUT_TO_OUTPUT = {"JPEG": "JPEG", "PNG": "PNG", "GIF": "PNG", "WEBP": "PNG"}


@dataclass(frozen=True)
class OutputFormat:
    name: str
    quality: Optional[int] = None

    def __post_init__(self) -> None:
        if self.name not in _MEDIA_TYPES:
            raise UnsupportedFormatError(f"Unsupported output format: {self.name}")
        if self.quality is not None and not 1 <= self.quality <= 100:
            raise ValueError(f"quality must be between 1 and 100, got {self.quality}")

    @property
    def media_type(self) -> str:
        return _MEDIA_TYPES[self.name]

    @property
    def key(self) -> int:
        return _KEYS[self.name]


def png() -> OutputFormat:
    return OutputFormat("PNG")


def jpeg(quality: int) -> OutputFormat:
    return OutputFormat("JPEG", quality)


def input_to_output_format(input_format: str, quality: int) -> OutputFormat:
    """Return the output format used when the caller did not request one."""

    output_name = _INPUT_TO_OUTPUT.get((input_format or "").upper())
    if output_name is None:
        raise UnsupportedFormatError(f"Unsupported input format: {input_format}")

    if output_name == "JPEG":
        return jpeg(quality)
    return png()


def string_to_output_format(format_name: Optional[str], quality: int) -> Optional[OutputFormat]:
    name = (format_name or "").strip().lower()
    if name == "png":
        return png()
    if name in {"jpg", "jpeg"}:
        return jpeg(quality)
    return None


def resolve_output_format(
    requested: Optional[str], data: bytes, quality: int
) -> OutputFormat:
    """Prefer the requested format, otherwise infer one from ``data``."""

    output_format = string_to_output_format(requested, quality)
    if output_format is not None:
        return output_format

    return input_to_output_format(codec.guess_format(data), quality)


__all__ = [
    "OutputFormat",
    "input_to_output_format",
    "jpeg",
    "png",
    "resolve_output_format",
    "string_to_output_format",
]
