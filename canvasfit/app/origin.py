"""Download source images referenced by the ``origin`` query parameter."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import List
from urllib.parse import urljoin, urlparse

import requests

from .config import Settings
from .errors import OriginFetchError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
MAX_REDIRECTS = 5


def validate_origin_url(url: str, settings: Settings) -> str:
    """Return ``url`` stripped, or raise when it may not be fetched."""

    candidate = (url or "").strip()
    parsed = urlparse(candidate)

    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise OriginFetchError("origin must be a valid image URL")

    if settings.allowed_origin_hosts and parsed.hostname.lower() not in settings.allowed_origin_hosts:
        raise OriginFetchError(f"origin host '{parsed.hostname}' is not allowed")

    return candidate


def _read_body(response: requests.Response, max_bytes: int) -> bytes:
    declared = response.headers.get("Content-Length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        raise OriginFetchError(f"origin image exceeds {max_bytes} bytes")

    chunks: List[bytes] = []
    total = 0
    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
        total += len(chunk)
        if total > max_bytes:
            raise OriginFetchError(f"origin image exceeds {max_bytes} bytes")
        chunks.append(chunk)

    return b"".join(chunks)


@lru_cache(maxsize=64)
def _download(url: str, settings: Settings) -> bytes:
    # Redirects are followed by hand so every hop passes the host checks.
    try:
        for _ in range(MAX_REDIRECTS + 1):
            with requests.get(
                url, timeout=settings.origin_timeout, stream=True, allow_redirects=False
            ) as response:
                if response.is_redirect:
                    target = urljoin(url, response.headers["Location"])
                    logger.debug("Origin %s redirected to %s", url, target)
                    url = validate_origin_url(target, settings)
                    continue

                response.raise_for_status()
                return _read_body(response, settings.max_origin_bytes)
    except requests.RequestException as exc:
        logger.error("Unable to fetch origin image %s: %s", url, exc)
        raise OriginFetchError(f"could not fetch origin image: {exc}") from exc

    raise OriginFetchError(f"origin redirected more than {MAX_REDIRECTS} times")


def fetch_origin(url: str, settings: Settings) -> bytes:
    """Return the bytes at ``url``; successful downloads are cached per URL."""

    checked_url = validate_origin_url(url, settings)
    data = _download(checked_url, settings)
    logger.debug("Fetched %d bytes from %s", len(data), checked_url)
    return data


def clear_origin_cache() -> None:
    _download.cache_clear()


__all__ = ["clear_origin_cache", "fetch_origin", "validate_origin_url"]
