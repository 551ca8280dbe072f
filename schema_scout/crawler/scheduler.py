# === FILE: schema_scout/crawler/scheduler.py ===
from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Iterable, List, Optional, Sequence, Set, Tuple

from schema_scout.crawler.fetcher import PageFetcher
from schema_scout.crawler.link_discovery import discover_links
from schema_scout.errors import FetchFailure
from schema_scout.extractor import extract_schemas
from schema_scout.logger import get_logger
from schema_scout.models import FetchedPage, PageResult, ScanProgress
from schema_scout.parser.sitemap_parser import is_sitemap_index, parse_sitemap
from schema_scout.utils import normalize_url, url_origin

__all__ = ("CrawlResult", "SiteCrawler", "build_page_result", "load_sitemap_urls")

logger = get_logger("crawler")

PageCallback = Callable[[PageResult], None]


@dataclass(slots=True)
class CrawlResult:
    """Страницы в порядке посещения, URL с ошибкой загрузки и дубликаты уже обойдённых страниц."""
    pages: List[PageResult] = field(default_factory=list)
    skipped_urls: List[str] = field(default_factory=list)
    duplicate_urls: List[str] = field(default_factory=list)


def build_page_result(page: FetchedPage, depth: int, url: Optional[str] = None) -> PageResult:
    """Run the extractor over a fetched page."""
    extraction = extract_schemas(page.script_payloads)
    return PageResult(
        url=url or page.url,
        title=page.title,
        depth=depth,
        schemas=tuple(extraction.schemas),
        canonical_url=page.canonical_url,
        description=page.description,
        skipped_payloads=len(extraction.skipped),
    )


class SiteCrawler:
    """
    Breadth-first crawl under page and depth budgets.

    One page is fetched at a time. The frontier is a FIFO of ``(url, depth)``
    so pages are visited layer by layer; a URL (normalized, without query and
    fragment) is visited at most once. A failed fetch of the seed URL raises
    :class:`FetchFailure`, any other failed fetch is logged and skipped.

    A page that redirects to, or declares as canonical, a page already in
    ``result.pages`` is counted in ``duplicate_urls`` and not recorded again.
    Links are kept within the origin the seed page finally resolved to.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        max_pages: int = 25,
        crawl_depth: int = 3,
        timeout: float = 30.0,
        sitemap_urls: Sequence[str] = (),
    ) -> None:
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        if crawl_depth < 0:
            raise ValueError("crawl_depth must be >= 0")
        self.fetcher = fetcher
        self.max_pages = max_pages
        self.crawl_depth = crawl_depth
        self.timeout = timeout
        self.sitemap_urls = list(sitemap_urls)
        self.visited: Set[str] = set()
        # every name (URL, redirect target, canonical) of a page already in result.pages
        self.recorded: Set[str] = set()
        self.frontier: Deque[Tuple[str, int]] = deque()
        self.result = CrawlResult()
        self.is_scanning = False

    def progress(self) -> ScanProgress:
        scanned = len(self.result.pages)
        failed = len(self.result.skipped_urls)
        queued = len(self.frontier)
        return ScanProgress(
            total=scanned + failed + queued,
            completed=scanned + failed,
            scanned=scanned,
            failed=failed,
            queued=queued,
            is_scanning=self.is_scanning,
        )

    async def crawl(self, start_url: str, on_page: Optional[PageCallback] = None) -> CrawlResult:
        root = normalize_url(start_url)
        boundary = root
        logger.info("Старт обхода: %s (max_pages=%d, depth=%d)", root, self.max_pages, self.crawl_depth)
        started = time.monotonic()
        self.is_scanning = True
        self.frontier.append((root, 0))
        try:
            while self.frontier and len(self.result.pages) < self.max_pages:
                url, depth = self.frontier.popleft()
                if url in self.visited or depth > self.crawl_depth:
                    continue
                self.visited.add(url)

                try:
                    page = await self.fetcher.fetch(url, self.timeout)
                except FetchFailure as exc:
                    if url == root and not self.result.pages:
                        logger.error("Seed page failed: %s", exc)
                        raise
                    logger.warning("Failed to scan %s: %s", url, exc)
                    self.result.skipped_urls.append(url)
                    continue

                if url == root and not self.result.pages:
                    boundary = self._rebase(page, root)

                aliases = self._aliases(page, url, boundary)
                seen = next((alias for alias in aliases if alias in self.recorded), None)
                if seen is not None:
                    logger.info("Duplicate of %s: %s", seen, url)
                    self.result.duplicate_urls.append(url)
                    self.visited.update(aliases)
                    continue
                self.visited.update(aliases)
                self.recorded.add(url)
                self.recorded.update(aliases)

                page_result = build_page_result(page, depth, url)
                self.result.pages.append(page_result)
                if on_page is not None:
                    on_page(page_result)
                logger.info(
                    "Scanned: %s (%d/%d), schemas=%d",
                    url, len(self.result.pages), self.max_pages, page_result.schemas_found,
                )

                if depth < self.crawl_depth:
                    self._enqueue(discover_links(page.anchor_hrefs, page.url, boundary), depth + 1)
                    if url == root and self.sitemap_urls:
                        self._enqueue(discover_links(self.sitemap_urls, boundary, boundary), 1)
        finally:
            self.is_scanning = False

        duration = time.monotonic() - started
        logger.info(
            "Завершено: %d страниц за %.2f с, пропущено %d",
            len(self.result.pages), duration, len(self.result.skipped_urls),
        )
        return self.result

    def _enqueue(self, links: Iterable[str], depth: int) -> None:
        queued = {u for u, _ in self.frontier}
        for link in links:
            if link not in self.visited and link not in queued:
                self.frontier.append((link, depth))
                queued.add(link)

    @staticmethod
    def _rebase(page: FetchedPage, root: str) -> str:
        """Граница обхода по итоговому адресу стартовой страницы (http→https, apex→www)."""
        if url_origin(page.url) is None or url_origin(page.url) == url_origin(root):
            return root
        rebased = normalize_url(page.url)
        logger.info("Start page moved to %s, crawling that origin", rebased)
        return rebased

    @staticmethod
    def _aliases(page: FetchedPage, url: str, boundary: str) -> List[str]:
        """Other same-origin names of the fetched page: redirect target and canonical URL."""
        origin = url_origin(boundary)
        aliases: List[str] = []
        for alias in (page.url, page.canonical_url):
            if not alias or url_origin(alias) != origin:
                continue
            key = normalize_url(alias)
            if key != url and key not in aliases:
                aliases.append(key)
        return aliases


async def load_sitemap_urls(fetcher: object, start_url: str, paths: Sequence[str], timeout: float) -> List[str]:
    """
    Collect ``<loc>`` URLs from the site's sitemaps (one level of sitemap
    index is followed). The fetcher must provide ``fetch_text``; without it
    nothing is loaded.
    """
    fetch_text = getattr(fetcher, "fetch_text", None)
    if fetch_text is None:
        return []
    origin = url_origin(start_url)
    if origin is None:
        return []
    base = normalize_url(start_url).split("/", 3)
    root = "/".join(base[:3])

    urls: List[str] = []
    for path in paths:
        text = await fetch_text(f"{root}{path}", timeout)
        if not text:
            continue
        locs = parse_sitemap(text)
        if is_sitemap_index(text):
            for child in locs:
                if url_origin(child) != origin:
                    continue
                child_text = await fetch_text(child, timeout)
                if child_text:
                    urls.extend(parse_sitemap(child_text))
        else:
            urls.extend(locs)
        if urls:
            break
    logger.debug("Sitemap URLs for %s: %d", root, len(urls))
    return urls
