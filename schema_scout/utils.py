# File: schema_scout/utils.py
"""schema_scout.utils: URL helpers shared by link discovery, the crawler and the engine."""

from __future__ import annotations

from typing import Collection, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit, urlunsplit

from schema_scout.logger import get_logger

__all__: Sequence[str] = (
    "normalize_url",
    "url_origin",
    "is_valid_url",
    "remove_duplicates",
)

logger = get_logger("utils")

_DEFAULT_PORTS = {"http": 80, "https": 443}

Origin = Tuple[str, str, Optional[int]]


def url_origin(url: str) -> Optional[Origin]:
    """Возвращает (scheme, host, port) или None, если URL нельзя разобрать."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if not scheme or not host:
        return None
    return scheme, host, port or _DEFAULT_PORTS.get(scheme)


def normalize_url(url: str) -> str:
    """Нормализует URL: убирает query и fragment, приводит схему и хост к нижнему регистру."""
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    if parts.port and parts.port == _DEFAULT_PORTS.get(scheme):
        netloc = netloc.rsplit(":", 1)[0]
    path = parts.path or "/"
    normalized = urlunsplit((scheme, netloc, path, "", ""))
    if normalized != url:
        logger.debug("Normalized URL: %s -> %s", url, normalized)
    return normalized


def is_valid_url(url: object, max_length: int = 2048) -> bool:
    """Проверяет, что это абсолютный http(s) URL с хостом и разумной длиной."""
    if not isinstance(url, str) or not url.strip() or len(url) > max_length:
        return False
    origin = url_origin(url.strip())
    return origin is not None and origin[0] in _DEFAULT_PORTS


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
