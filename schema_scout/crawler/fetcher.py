# schema_scout/crawler/fetcher.py
"""
Page fetching for the analysis core.

The core only depends on :class:`PageFetcher` – ``fetch(url, timeout)``
returning a :class:`~schema_scout.models.FetchedPage` or raising
:class:`~schema_scout.errors.FetchFailure`. :class:`HttpPageFetcher` is the
aiohttp implementation; :class:`FetcherPool` owns the shared HTTP session and
hands fetchers out through a scoped ``acquire()``.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Protocol, runtime_checkable

from aiohttp import ClientError, ClientSession, ClientTimeout

from schema_scout.config import AnalyzerConfig
from schema_scout.errors import FetchFailure
from schema_scout.logger import get_logger
from schema_scout.models import FetchedPage
from schema_scout.parser.html_parser import parse_html

__all__ = ("PageFetcher", "HttpPageFetcher", "FetcherPool")

logger = get_logger("fetcher")


@runtime_checkable
class PageFetcher(Protocol):
    async def fetch(self, url: str, timeout: float) -> FetchedPage: ...


class HttpPageFetcher:
    """Fetches and parses pages over a shared :class:`aiohttp.ClientSession`.

    One request is in flight per instance: navigation and body read happen
    under a lock so that concurrent callers never interleave on the same
    fetcher.
    """

    def __init__(self, session: ClientSession, user_agent: Optional[str] = None) -> None:
        self.session = session
        self.user_agent = user_agent
        self._lock = asyncio.Lock()

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent} if self.user_agent else {}

    async def fetch(self, url: str, timeout: float) -> FetchedPage:
        async with self._lock:
            try:
                async with self.session.get(
                    url,
                    timeout=ClientTimeout(total=timeout),
                    headers=self._headers(),
                    raise_for_status=False,
                ) as resp:
                    if not 200 <= resp.status < 300:
                        raise FetchFailure(url, resp.reason or "unexpected status", status=resp.status)
                    html = await resp.text(errors="replace")
                    final_url = str(resp.url)
                    status = resp.status
            except asyncio.TimeoutError as exc:
                raise FetchFailure(url, f"timed out after {timeout:g}s") from exc
            except ClientError as exc:
                raise FetchFailure(url, str(exc) or type(exc).__name__) from exc

        parsed = parse_html(html, final_url)
        logger.debug(
            "Fetched %s: HTTP %s, %d JSON-LD scripts, %d anchors",
            url, status, len(parsed.script_payloads), len(parsed.anchor_hrefs),
        )
        return FetchedPage(
            url=final_url,
            status=status,
            title=parsed.title,
            canonical_url=parsed.canonical_url,
            description=parsed.description,
            script_payloads=tuple(parsed.script_payloads),
            anchor_hrefs=tuple(parsed.anchor_hrefs),
        )

    async def fetch_text(self, url: str, timeout: float) -> Optional[str]:
        """Plain GET for auxiliary documents (sitemaps); None on any failure."""
        async with self._lock:
            try:
                async with self.session.get(
                    url, timeout=ClientTimeout(total=timeout), headers=self._headers()
                ) as resp:
                    if resp.status != 200:
                        logger.debug("%s -> HTTP %s", url, resp.status)
                        return None
                    return await resp.text(errors="replace")
            except (ClientError, asyncio.TimeoutError) as exc:
                logger.debug("Error loading %s: %s", url, exc)
                return None


class FetcherPool:
    """Owns one HTTP session shared by every scan of an engine."""

    def __init__(self, config: AnalyzerConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> FetcherPool:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        if self.session is None or self.session.closed:
            self.session = ClientSession(headers={"User-Agent": self.config.user_agent})
            self._owns_session = True

    async def close(self) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[HttpPageFetcher]:
        """Yield a fetcher bound to the shared session; released even on error."""
        if self.session is None or self.session.closed:
            await self.start()
        fetcher = HttpPageFetcher(self.session, self.config.user_agent)  # type: ignore[arg-type]
        try:
            yield fetcher
        finally:
            logger.debug("Released fetcher %s", id(fetcher))
