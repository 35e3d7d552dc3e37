"""HTTP routers exposed under the ``/api`` prefix."""

from . import images

__all__ = ["images"]
