# schema_scout/crawler/link_discovery.py
"""
Link discovery: raw anchor hrefs of a rendered page → in-scope URLs to visit next.
"""
from __future__ import annotations

from typing import FrozenSet, Iterable, List
from urllib.parse import urljoin, urlsplit

from schema_scout.utils import normalize_url, remove_duplicates, url_origin

__all__ = ["NON_CONTENT_EXTENSIONS", "discover_links", "is_content_url"]

NON_CONTENT_EXTENSIONS: FrozenSet[str] = frozenset(
    {"pdf", "jpg", "jpeg", "png", "gif", "css", "js", "xml", "ico", "zip"}
)


def is_content_url(url: str) -> bool:
    """False for paths ending in a denylisted asset extension (case-insensitive)."""
    path = urlsplit(url).path.lower()
    last = path.rsplit("/", 1)[-1]
    if "." not in last:
        return True
    return last.rsplit(".", 1)[-1] not in NON_CONTENT_EXTENSIONS


def discover_links(hrefs: Iterable[str], page_url: str, boundary_url: str) -> List[str]:
    """
    Resolve *hrefs* against *page_url* and keep same-origin content pages.

    Returned URLs are normalized (no query, no fragment), unique and in
    first-seen order.
    """
    boundary = url_origin(boundary_url)
    found: List[str] = []
    for href in hrefs:
        try:
            absolute = urljoin(page_url, href.strip())
        except ValueError:
            continue
        origin = url_origin(absolute)
        if origin is None or origin != boundary:
            continue
        if origin[0] not in ("http", "https"):
            continue
        candidate = normalize_url(absolute)
        if is_content_url(candidate):
            found.append(candidate)
    return remove_duplicates(found)
