# File: tests/conftest.py
import json
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

import pytest

from schema_scout.config import AnalyzerConfig
from schema_scout.errors import FetchFailure
from schema_scout.models import FetchedPage
from schema_scout.utils import normalize_url


def ld_json(*objects) -> str:
    """Serialize objects as the body of one JSON-LD script."""
    if len(objects) == 1:
        return json.dumps(objects[0])
    return json.dumps(list(objects))


def html_page(title: str = "", scripts: Iterable[str] = (), links: Iterable[str] = (), head: str = "") -> str:
    """Build a small HTML document with JSON-LD scripts and anchors."""
    body_scripts = "".join(f'<script type="application/ld+json">{s}</script>' for s in scripts)
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return f"<html><head><title>{title}</title>{head}{body_scripts}</head><body>{anchors}</body></html>"


class FakeFetcher:
    """
    In-memory page fetcher. Pages are keyed by normalized URL; a value that is
    an exception instance is raised instead of returned.
    """

    def __init__(self, pages: Optional[Dict[str, Union[FetchedPage, Exception]]] = None) -> None:
        self.pages: Dict[str, Union[FetchedPage, Exception]] = {}
        self.calls: list[str] = []
        self.sitemaps: Dict[str, str] = {}
        for url, page in (pages or {}).items():
            self.pages[normalize_url(url)] = page

    def add(self, url: str, *, title: str = "", scripts: Iterable[str] = (), links: Iterable[str] = (),
            canonical: Optional[str] = None, final_url: Optional[str] = None) -> None:
        """Register a page; ``final_url`` is where the fetch ends up after redirects."""
        self.pages[normalize_url(url)] = FetchedPage(
            url=final_url or url,
            status=200,
            title=title,
            canonical_url=canonical,
            script_payloads=tuple(scripts),
            anchor_hrefs=tuple(links),
        )

    def fail(self, url: str, status: Optional[int] = None) -> None:
        self.pages[normalize_url(url)] = FetchFailure(url, "boom", status=status)

    async def fetch(self, url: str, timeout: float) -> FetchedPage:
        self.calls.append(url)
        page = self.pages.get(normalize_url(url))
        if page is None:
            raise FetchFailure(url, "Not Found", status=404)
        if isinstance(page, Exception):
            raise page
        return page

    async def fetch_text(self, url: str, timeout: float) -> Optional[str]:
        return self.sitemaps.get(url)


@pytest.fixture()
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def scans_dir(tmp_path) -> Path:
    return tmp_path / "scans"


@pytest.fixture()
def basic_config(scans_dir) -> AnalyzerConfig:
    """
    Return a basic valid AnalyzerConfig with short timeouts for tests.
    """
    return AnalyzerConfig(
        quick_timeout=2.0,
        page_timeout=2.0,
        user_agent="TestAgent/1.0",
        scans_dir=scans_dir,
    )
