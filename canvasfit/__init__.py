"""canvasfit: resize images onto a target canvas with a fill/fit policy."""

from .app.compositor import composite, render
from .app.transform import compute_dimensions

__version__ = "0.1.0"

__all__ = ["composite", "compute_dimensions", "render"]
