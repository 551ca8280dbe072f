# File: schema_scout/engine.py
"""schema_scout.engine: фасад анализатора для CLI, API-слоя и тестов.

Операции:

* :meth:`Engine.quick_check`: быстрая проверка здоровья разметки одной страницы;
* :meth:`Engine.analyze_single_page`: полный анализ страницы (извлечение,
  проверка @id, оценка и рекомендации) с возвратом ScanRecord;
* :meth:`Engine.start_site_scan`: запуск обхода сайта фоновой задачей,
  сразу возвращает scan_id;
* :meth:`Engine.get_scan_record` / :meth:`Engine.get_progress`: опрос состояния.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from schema_scout.config import AnalyzeOptions, AnalyzerConfig, SiteScanOptions
from schema_scout.crawler.fetcher import FetcherPool, PageFetcher
from schema_scout.crawler.scheduler import SiteCrawler, build_page_result, load_sitemap_urls
from schema_scout.errors import FetchFailure, InvalidInput
from schema_scout.logger import get_logger
from schema_scout.models import HealthReport, HealthStatus, ScanProgress, ScanRecord, ScanStatus, ScanType
from schema_scout.scoring import evaluate
from schema_scout.store import ScanStore
from schema_scout.utils import is_valid_url, normalize_url, url_origin

__all__ = ["Engine"]

logger = get_logger("engine")

_OptionsT = TypeVar("_OptionsT", bound=BaseModel)


class Engine:
    """Фасад: проверка входных данных, запуск анализа и хранение ScanRecord."""

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        *,
        fetcher: Optional[PageFetcher] = None,
        store: Optional[ScanStore] = None,
    ) -> None:
        self.config = config or AnalyzerConfig()
        self.store = store if store is not None else ScanStore(self.config.scans_dir)
        self._fetcher = fetcher
        self._pool: Optional[FetcherPool] = None if fetcher is not None else FetcherPool(self.config)
        self._tasks: Dict[str, asyncio.Task] = {}
        self._crawlers: Dict[str, SiteCrawler] = {}

    async def __aenter__(self) -> Engine:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Дожидается фоновых сканов и закрывает HTTP-сессию."""
        await self.wait_all()
        if self._pool is not None:
            await self._pool.close()

    # ------------------------------------------------------------------ #
    # Validation                                                         #
    # ------------------------------------------------------------------ #

    def validate_url(self, url: Any) -> str:
        if not is_valid_url(url, self.config.max_url_length):
            raise InvalidInput(f"Invalid URL: {url!r}")
        origin = url_origin(url.strip())
        host = origin[1] if origin else ""
        for blocked in self.config.blocked_domains:
            if host == blocked or host.endswith(f".{blocked}"):
                raise InvalidInput(f"Domain not allowed: {host}")
        return url.strip()

    @staticmethod
    def _parse_options(model: Type[_OptionsT], options: Union[_OptionsT, Mapping[str, Any], None]) -> _OptionsT:
        if isinstance(options, model):
            return options
        try:
            return model(**dict(options or {}))
        except ValidationError as exc:
            raise InvalidInput(f"Invalid options: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Fetching                                                           #
    # ------------------------------------------------------------------ #

    @asynccontextmanager
    async def _acquire(self) -> AsyncIterator[PageFetcher]:
        if self._fetcher is not None:
            yield self._fetcher
            return
        assert self._pool is not None
        async with self._pool.acquire() as fetcher:
            yield fetcher

    def _finish(self, record: ScanRecord) -> None:
        try:
            self.store.persist(record)
        except OSError as exc:
            logger.error("Could not save scan %s: %s", record.scan_id, exc)

    # ------------------------------------------------------------------ #
    # Public operations                                                  #
    # ------------------------------------------------------------------ #

    async def quick_check(self, url: str) -> HealthReport:
        """Быстрая проверка: только извлечение, @id-консистентность и оценка."""
        url = self.validate_url(url)
        try:
            async with self._acquire() as fetcher:
                page = await fetcher.fetch(url, self.config.quick_timeout)
        except FetchFailure as exc:
            logger.warning("Quick analysis of %s failed: %s", url, exc)
            return HealthReport(
                status=HealthStatus.CRITICAL,
                schema_count=0,
                missing_ids=0,
                critical_issues=1,
                seo_score=0,
                recommendations=[f"Error analyzing page: {exc}"],
            )
        result = build_page_result(page, 0, normalize_url(url))
        return evaluate(result.schemas, self.config.id_prefix)

    async def analyze_single_page(
        self, url: str, options: Union[AnalyzeOptions, Mapping[str, Any], None] = None
    ) -> ScanRecord:
        """Полный анализ одной страницы. Ошибка загрузки даёт ScanRecord со статусом failed."""
        url = self.validate_url(url)
        opts = self._parse_options(AnalyzeOptions, options)
        record = self.store.add(ScanRecord(url=url, type=ScanType.SINGLE_PAGE, options=opts.model_dump()))
        record.mark_running()
        logger.info("Starting single URL analysis: %s (scan %s)", url, record.scan_id)

        timeout = self.config.page_timeout if opts.deep_scan else self.config.quick_timeout
        try:
            async with self._acquire() as fetcher:
                page = await fetcher.fetch(url, timeout)
            record.pages.append(build_page_result(page, 0, normalize_url(url)))
            analysis = self._evaluate(record, opts)
        except FetchFailure as exc:
            logger.error("Single URL analysis failed: %s", exc)
            record.mark_failed(str(exc))
        except Exception as exc:
            logger.exception("Single URL analysis of %s crashed", url)
            record.pages.clear()
            record.mark_failed(f"{type(exc).__name__}: {exc}")
        else:
            record.mark_completed(analysis)
            logger.info(
                "Single URL analysis completed: %s, schemas=%d, score=%d",
                url, record.schemas_found, analysis.seo_score,
            )
        self._finish(record)
        return record

    def start_site_scan(
        self, url: str, options: Union[SiteScanOptions, Mapping[str, Any], None] = None
    ) -> str:
        """Создаёт ScanRecord, запускает обход фоновой задачей и сразу возвращает scan_id.

        Вызывать из работающего event loop.
        """
        url = self.validate_url(url)
        if isinstance(options, SiteScanOptions):
            opts = options
        else:
            defaults = SiteScanOptions.from_config(self.config).model_dump()
            opts = self._parse_options(SiteScanOptions, {**defaults, **(options or {})})
        try:
            opts.check_limits(self.config)
        except ValueError as exc:
            raise InvalidInput(str(exc)) from exc

        record = self.store.add(ScanRecord(url=url, type=ScanType.SITE_SCAN, options=opts.model_dump()))
        task = asyncio.get_running_loop().create_task(self._run_site_scan(record, opts))
        self._tasks[record.scan_id] = task
        task.add_done_callback(lambda _t, sid=record.scan_id: self._forget(sid))
        logger.info("Site scan %s queued for %s (%s)", record.scan_id, url, opts.model_dump())
        return record.scan_id

    async def _run_site_scan(self, record: ScanRecord, opts: SiteScanOptions) -> None:
        record.mark_running()
        try:
            async with self._acquire() as fetcher:
                sitemap_urls: List[str] = []
                if opts.include_sitemaps and opts.crawl_depth > 0:
                    sitemap_urls = await load_sitemap_urls(
                        fetcher, record.url, self.config.sitemap_paths, self.config.quick_timeout
                    )
                crawler = SiteCrawler(
                    fetcher,
                    max_pages=opts.max_pages,
                    crawl_depth=opts.crawl_depth,
                    timeout=self.config.page_timeout,
                    sitemap_urls=sitemap_urls,
                )
                self._crawlers[record.scan_id] = crawler
                result = await crawler.crawl(record.url, on_page=record.pages.append)
                record.skipped_urls.extend(result.skipped_urls)
        except FetchFailure as exc:
            logger.error("Site scan %s failed: %s", record.scan_id, exc)
            record.mark_failed(str(exc))
        except Exception as exc:
            logger.exception("Site scan %s crashed", record.scan_id)
            record.mark_failed(f"{type(exc).__name__}: {exc}")
        else:
            record.mark_completed(evaluate(record.schemas, self.config.id_prefix, pages=record.pages))
            logger.info(
                "Site scan %s completed: %d pages, %d skipped",
                record.scan_id, len(record.pages), len(record.skipped_urls),
            )
        self._finish(record)

    def get_scan_record(self, scan_id: str) -> ScanRecord:
        if not isinstance(scan_id, str) or not scan_id.strip():
            raise InvalidInput(f"Invalid scan id: {scan_id!r}")
        return self.store.get(scan_id.strip())

    def load_scan(self, scan_id: str) -> Dict[str, Any]:
        """Serialized scan, including scans saved to ``scans_dir`` by an earlier process."""
        if not isinstance(scan_id, str) or not scan_id.strip():
            raise InvalidInput(f"Invalid scan id: {scan_id!r}")
        return self.store.load(scan_id.strip())

    def get_progress(self, scan_id: str) -> ScanProgress:
        record = self.get_scan_record(scan_id)
        crawler = self._crawlers.get(record.scan_id)
        if crawler is not None:
            return crawler.progress()
        done = len(record.pages) + len(record.skipped_urls)
        return ScanProgress(
            total=done,
            completed=done,
            scanned=len(record.pages),
            failed=len(record.skipped_urls),
            is_scanning=record.status is ScanStatus.RUNNING,
        )

    def list_scans(self) -> List[ScanRecord]:
        return self.store.list()

    async def wait(self, scan_id: str) -> ScanRecord:
        """Дожидается завершения фонового скана (для CLI и тестов)."""
        record = self.get_scan_record(scan_id)
        task = self._tasks.get(record.scan_id)
        if task is not None:
            await asyncio.shield(task)
        return record

    async def wait_all(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    def _forget(self, scan_id: str) -> None:
        # finished scans answer progress from the record itself
        self._tasks.pop(scan_id, None)
        self._crawlers.pop(scan_id, None)

    def _evaluate(self, record: ScanRecord, opts: AnalyzeOptions) -> HealthReport:
        return evaluate(
            record.schemas,
            self.config.id_prefix,
            check_consistency=opts.consistency_check,
            recommendations=opts.recommendations,
            entity_analysis=opts.entity_analysis,
            pages=record.pages,
        )
