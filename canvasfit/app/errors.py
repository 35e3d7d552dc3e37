"""Error types raised while computing, compositing and encoding images."""

from __future__ import annotations


class ImageProcessingError(Exception):
    """Base class for failures surfaced to callers of the image pipeline."""

    http_status = 500


class UnsupportedFormatError(ImageProcessingError):
    """Raised when an input or output format cannot be handled."""

    http_status = 415


class DecodeError(ImageProcessingError):
    """Raised when the source bytes cannot be decoded into an image."""

    http_status = 422


class InvalidModeError(ImageProcessingError):
    """Raised when a transform mode is unknown or lacks a required bound."""

    http_status = 400


class PlacementError(ImageProcessingError):
    """Raised when the resized image cannot be placed on the canvas."""

    http_status = 422


class EncodeError(ImageProcessingError):
    """Raised when the composited canvas cannot be encoded."""

    http_status = 500


class OriginFetchError(ImageProcessingError):
    """Raised when the origin image cannot be downloaded."""

    http_status = 502


__all__ = [
    "DecodeError",
    "EncodeError",
    "ImageProcessingError",
    "InvalidModeError",
    "OriginFetchError",
    "PlacementError",
    "UnsupportedFormatError",
]
