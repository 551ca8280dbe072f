# === FILE: schema_scout/parser/html_parser.py ===
"""HTML parsing utilities for SchemaScout.

:func:`parse_html` turns rendered markup into the handful of fields the
analysis core consumes:

* title: document <title> text or ``""`` if absent.
* canonical_url: absolute ``<link rel="canonical">`` target, if any.
* description: ``<meta name="description">`` content.
* script_payloads: raw text of every ``<script type="application/ld+json">``
  in document order, unparsed (the extractor owns JSON handling).
* anchor_hrefs: raw ``href`` strings of ``<a>`` tags, unresolved; link
  discovery resolves and filters them.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__: Sequence[str] = ("ParsedPage", "parse_html", "extract_payloads")

_LD_JSON = "application/ld+json"


@dataclass(slots=True)
class ParsedPage:
    """Lightweight representation of an HTML page."""

    url: str
    title: str = ""
    canonical_url: Optional[str] = None
    description: str = ""
    script_payloads: list[str] = field(default_factory=list)
    anchor_hrefs: list[str] = field(default_factory=list)


def _is_ld_json(tag: Tag) -> bool:
    kind = tag.get("type")
    return isinstance(kind, str) and kind.split(";", 1)[0].strip().lower() == _LD_JSON


def extract_payloads(soup: BeautifulSoup | str) -> list[str]:
    """Return the text of every JSON-LD script block, in document order."""
    if isinstance(soup, str):
        soup = BeautifulSoup(soup, "html.parser")
    payloads: list[str] = []
    for tag in soup.find_all("script"):
        if isinstance(tag, Tag) and _is_ld_json(tag):
            payloads.append(tag.string or tag.get_text() or "")
    return payloads


def parse_html(html: str, url: str = "") -> ParsedPage:
    """Parse raw HTML fetched from *url*."""
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""

    canonical: Optional[str] = None
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "canonical" in [r.lower() for r in rel]:
            canonical = urljoin(url, str(link["href"]).strip())
            break

    description = ""
    meta = soup.find("meta", attrs={"name": "description"})
    if isinstance(meta, Tag):
        description = str(meta.get("content") or "").strip()

    hrefs: list[str] = []
    for tag in soup.find_all("a", href=True):
        href_val = tag.get("href")
        if isinstance(href_val, str) and href_val.strip():
            hrefs.append(href_val.strip())

    return ParsedPage(
        url=url,
        title=title,
        canonical_url=canonical,
        description=description,
        script_payloads=extract_payloads(soup),
        anchor_hrefs=hrefs,
    )
