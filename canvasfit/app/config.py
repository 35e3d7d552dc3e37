"""Configuration helpers shared across the canvasfit service modules."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from dotenv import load_dotenv

from .codec import RESAMPLE_FILTERS

ROOT_DIR = Path(__file__).resolve().parent.parent


# Make variables defined in ``canvasfit/.env`` available before the settings
# are first read.
load_dotenv(ROOT_DIR / ".env")


logger = logging.getLogger(__name__)

_CSV_SPLIT_RE = re.compile(r"[,\n]")

DEFAULT_QUALITY = 90
DEFAULT_MAX_SCALE = 10.0
DEFAULT_ORIGIN_TIMEOUT = 10.0
DEFAULT_MAX_ORIGIN_BYTES = 20 * 1024 * 1024
DEFAULT_MAX_DIMENSION = 4096
DEFAULT_RESAMPLE_FILTER = "bilinear"
DEFAULT_CACHE_MAX_AGE = 86400


def _normalize_cors_origin(origin: str) -> Optional[str]:
    """Return a sanitized representation of a configured CORS origin."""

    trimmed = origin.strip()
    if not trimmed:
        return None

    if trimmed == "*":
        return trimmed

    return trimmed.rstrip("/")


def _collect_csv_entries(entries: Iterable[str]) -> List[str]:
    normalized: List[str] = []
    seen: Set[str] = set()

    for raw_entry in entries:
        normalized_entry = _normalize_cors_origin(raw_entry)
        if not normalized_entry or normalized_entry in seen:
            continue

        normalized.append(normalized_entry)
        seen.add(normalized_entry)

    return normalized


def _split_entries(value: str) -> List[str]:
    stripped = value.strip()
    if stripped.startswith("["):
        try:
            decoded = json.loads(stripped)
        except ValueError:
            logger.warning("Ignoring malformed JSON list '%s'", value)
        else:
            if isinstance(decoded, list):
                return [str(entry) for entry in decoded]

    return _CSV_SPLIT_RE.split(value)


def _parse_csv(value: Optional[str], *, default: Optional[List[str]] = None) -> List[str]:
    """Return a normalized list from a comma, newline or JSON separated string."""

    if value is not None:
        parsed = _collect_csv_entries(_split_entries(value))
        if parsed:
            return parsed

    return _collect_csv_entries(default or [])


def _prepare_cors_settings(origins: List[str]) -> Tuple[List[str], Optional[str]]:
    """Return ``(allow_origins, allow_origin_regex)`` for the CORS middleware."""

    allow_all = "*" in origins or not origins
    specific = [origin for origin in origins if origin != "*"]

    return specific, ".*" if allow_all else None


def _env_number(name: str, default, cast):
    raw_value = os.environ.get(name)
    if raw_value is None or not raw_value.strip():
        return default

    try:
        return cast(raw_value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{raw_value}'") from exc


@dataclass(frozen=True)
class Settings:
    cors_origins: Tuple[str, ...] = ("*",)
    default_quality: int = DEFAULT_QUALITY
    max_scale: float = DEFAULT_MAX_SCALE
    origin_timeout: float = DEFAULT_ORIGIN_TIMEOUT
    max_origin_bytes: int = DEFAULT_MAX_ORIGIN_BYTES
    max_dimension: int = DEFAULT_MAX_DIMENSION
    allowed_origin_hosts: Tuple[str, ...] = ()
    resample_filter: str = DEFAULT_RESAMPLE_FILTER
    cache_max_age: int = DEFAULT_CACHE_MAX_AGE

    def __post_init__(self) -> None:
        if not 1 <= self.default_quality <= 100:
            raise ValueError(
                f"Default quality must be between 1 and 100, got {self.default_quality}"
            )
        if self.max_scale <= 0:
            raise ValueError(f"Maximum scale must be positive, got {self.max_scale}")
        if self.origin_timeout <= 0:
            raise ValueError(f"Origin timeout must be positive, got {self.origin_timeout}")
        if self.max_origin_bytes <= 0:
            raise ValueError(
                f"Maximum origin size must be positive, got {self.max_origin_bytes}"
            )
        if self.max_dimension <= 0:
            raise ValueError(f"Maximum dimension must be positive, got {self.max_dimension}")
        if self.cache_max_age < 0:
            raise ValueError(f"Cache max age cannot be negative, got {self.cache_max_age}")
        if self.resample_filter not in RESAMPLE_FILTERS:
            raise ValueError(
                f"Unknown resample filter '{self.resample_filter}'; "
                f"expected one of {', '.join(RESAMPLE_FILTERS)}"
            )

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            cors_origins=tuple(_parse_csv(os.environ.get("CORS_ORIGINS"), default=["*"])),
            default_quality=_env_number("CANVASFIT_DEFAULT_QUALITY", DEFAULT_QUALITY, int),
            max_scale=_env_number("CANVASFIT_MAX_SCALE", DEFAULT_MAX_SCALE, float),
            origin_timeout=_env_number(
                "CANVASFIT_ORIGIN_TIMEOUT", DEFAULT_ORIGIN_TIMEOUT, float
            ),
            max_origin_bytes=_env_number(
                "CANVASFIT_MAX_ORIGIN_BYTES", DEFAULT_MAX_ORIGIN_BYTES, int
            ),
            max_dimension=_env_number("CANVASFIT_MAX_DIMENSION", DEFAULT_MAX_DIMENSION, int),
            allowed_origin_hosts=tuple(
                host.lower()
                for host in _parse_csv(os.environ.get("CANVASFIT_ALLOWED_ORIGIN_HOSTS"))
            ),
            resample_filter=os.environ.get(
                "CANVASFIT_RESAMPLE_FILTER", DEFAULT_RESAMPLE_FILTER
            ).strip().lower(),
            cache_max_age=_env_number("CANVASFIT_CACHE_MAX_AGE", DEFAULT_CACHE_MAX_AGE, int),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings read from the environment."""

    settings = Settings.from_env()
    logger.debug("Loaded settings: %s", settings)
    return settings


__all__ = [
    "ROOT_DIR",
    "Settings",
    "get_settings",
    "_normalize_cors_origin",
    "_parse_csv",
    "_prepare_cors_settings",
]
