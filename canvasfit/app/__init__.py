"""Building blocks for the canvasfit image service.

The geometry lives in :mod:`.transform`, pixel work in :mod:`.compositor`
and :mod:`.codec`, and output format selection in :mod:`.formats`. The
``server`` module wires them to HTTP routes.
"""

from . import codec, compositor, config, errors, formats, transform

__all__ = [
    "codec",
    "compositor",
    "config",
    "errors",
    "formats",
    "transform",
]
