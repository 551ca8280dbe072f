# File: tests/test_scheduler.py
# Tests for the breadth-first site crawler on top of an in-memory fetcher
from __future__ import annotations

import pytest

from conftest import FakeFetcher, ld_json
from schema_scout.crawler.scheduler import SiteCrawler, load_sitemap_urls
from schema_scout.errors import FetchFailure

ROOT = "https://ex.com/"


def chain_site(fetcher: FakeFetcher, length: int) -> None:
    """/ → /p1 → /p2 → … → /p<length>."""
    fetcher.add(ROOT, title="root", links=["/p1"])
    for i in range(1, length + 1):
        links = [f"/p{i + 1}"] if i < length else []
        fetcher.add(f"https://ex.com/p{i}", title=f"p{i}", links=links)


def tree_site(fetcher: FakeFetcher) -> None:
    fetcher.add(ROOT, links=["/a", "/b", "https://other.com/x", "/logo.png"],
                scripts=[ld_json({"@type": "Organization", "@id": "schema:org"})])
    fetcher.add("https://ex.com/a", links=["/a1", "/", "/b?utm=1"])
    fetcher.add("https://ex.com/b", links=["/b1", "/a#frag"])
    fetcher.add("https://ex.com/a1", links=["/deep"])
    fetcher.add("https://ex.com/b1")
    fetcher.add("https://ex.com/deep")


@pytest.mark.asyncio()
async def test_breadth_first_order(fake_fetcher):
    tree_site(fake_fetcher)
    crawler = SiteCrawler(fake_fetcher, max_pages=25, crawl_depth=3)
    result = await crawler.crawl(ROOT)
    assert [p.url for p in result.pages] == [
        "https://ex.com/",
        "https://ex.com/a",
        "https://ex.com/b",
        "https://ex.com/a1",
        "https://ex.com/b1",
        "https://ex.com/deep",
    ]
    assert [p.depth for p in result.pages] == [0, 1, 1, 2, 2, 3]
    assert result.pages[0].schemas_found == 1
    assert result.skipped_urls == []


@pytest.mark.asyncio()
async def test_never_visits_same_url_twice(fake_fetcher):
    tree_site(fake_fetcher)
    result = await SiteCrawler(fake_fetcher, crawl_depth=4).crawl("https://ex.com/?ref=home#top")
    urls = [p.url for p in result.pages]
    assert len(urls) == len(set(urls))
    assert len(fake_fetcher.calls) == len(set(fake_fetcher.calls))


@pytest.mark.asyncio()
async def test_depth_budget(fake_fetcher):
    chain_site(fake_fetcher, 5)
    result = await SiteCrawler(fake_fetcher, crawl_depth=2).crawl(ROOT)
    assert [p.url for p in result.pages] == ["https://ex.com/", "https://ex.com/p1", "https://ex.com/p2"]
    assert max(p.depth for p in result.pages) == 2
    assert "https://ex.com/p3" not in fake_fetcher.calls


@pytest.mark.asyncio()
async def test_depth_zero_is_single_page(fake_fetcher):
    tree_site(fake_fetcher)
    result = await SiteCrawler(fake_fetcher, crawl_depth=0).crawl(ROOT)
    assert [p.url for p in result.pages] == [ROOT]


@pytest.mark.asyncio()
async def test_page_budget(fake_fetcher):
    fake_fetcher.add(ROOT, links=[f"/page{i}" for i in range(1, 40)])
    for i in range(1, 40):
        fake_fetcher.add(f"https://ex.com/page{i}")
    result = await SiteCrawler(fake_fetcher, max_pages=10, crawl_depth=3).crawl(ROOT)
    assert len(result.pages) == 10
    assert len(fake_fetcher.calls) == 10


@pytest.mark.asyncio()
async def test_per_page_failure_is_skipped(fake_fetcher):
    fake_fetcher.add(ROOT, links=["/broken", "/ok", "/missing"])
    fake_fetcher.fail("https://ex.com/broken", status=500)
    fake_fetcher.add("https://ex.com/ok")
    result = await SiteCrawler(fake_fetcher).crawl(ROOT)
    assert [p.url for p in result.pages] == [ROOT, "https://ex.com/ok"]
    assert result.skipped_urls == ["https://ex.com/broken", "https://ex.com/missing"]


@pytest.mark.asyncio()
async def test_seed_failure_is_fatal(fake_fetcher):
    fake_fetcher.fail(ROOT)
    with pytest.raises(FetchFailure):
        await SiteCrawler(fake_fetcher).crawl(ROOT)


@pytest.mark.asyncio()
async def test_canonical_alias_marks_visited(fake_fetcher):
    fake_fetcher.add(ROOT, links=["/home", "/about"], canonical="https://ex.com/home")
    fake_fetcher.add("https://ex.com/home")
    fake_fetcher.add("https://ex.com/about")
    result = await SiteCrawler(fake_fetcher).crawl(ROOT)
    assert [p.url for p in result.pages] == [ROOT, "https://ex.com/about"]


@pytest.mark.asyncio()
async def test_redirect_to_scanned_page_is_not_recorded_twice(fake_fetcher):
    org = ld_json({"@type": "Organization"})
    fake_fetcher.add(ROOT, links=["/old"], scripts=[org])
    fake_fetcher.add("https://ex.com/old", final_url=ROOT, links=["/old"], scripts=[org])
    result = await SiteCrawler(fake_fetcher).crawl(ROOT)
    assert [p.url for p in result.pages] == [ROOT]
    assert result.duplicate_urls == ["https://ex.com/old"]
    assert sum(p.schemas_found for p in result.pages) == 1


@pytest.mark.asyncio()
async def test_canonical_of_scanned_page_is_not_recorded_twice(fake_fetcher):
    fake_fetcher.add(ROOT, links=["/a", "/a-print"])
    fake_fetcher.add("https://ex.com/a")
    fake_fetcher.add("https://ex.com/a-print", canonical="https://ex.com/a")
    result = await SiteCrawler(fake_fetcher).crawl(ROOT)
    assert [p.url for p in result.pages] == [ROOT, "https://ex.com/a"]
    assert result.duplicate_urls == ["https://ex.com/a-print"]


@pytest.mark.asyncio()
async def test_links_follow_seed_redirect_to_other_origin(fake_fetcher):
    fake_fetcher.add("http://ex.com/", final_url=ROOT, links=["/a", "/b", "http://ex.com/c"])
    fake_fetcher.add("https://ex.com/a")
    fake_fetcher.add("https://ex.com/b")
    fake_fetcher.add("http://ex.com/c")
    crawler = SiteCrawler(fake_fetcher, sitemap_urls=["https://ex.com/from-sitemap"])
    fake_fetcher.add("https://ex.com/from-sitemap")
    result = await crawler.crawl("http://ex.com/")
    assert [p.url for p in result.pages] == [
        "http://ex.com/",
        "https://ex.com/a",
        "https://ex.com/b",
        "https://ex.com/from-sitemap",
    ]


@pytest.mark.asyncio()
async def test_sitemap_urls_seeded_after_root_links(fake_fetcher):
    fake_fetcher.add(ROOT, links=["/a"])
    fake_fetcher.add("https://ex.com/a")
    fake_fetcher.add("https://ex.com/from-sitemap")
    crawler = SiteCrawler(
        fake_fetcher,
        sitemap_urls=["https://ex.com/from-sitemap", "https://ex.com/a", "https://other.com/x"],
    )
    result = await crawler.crawl(ROOT)
    assert [(p.url, p.depth) for p in result.pages] == [
        (ROOT, 0),
        ("https://ex.com/a", 1),
        ("https://ex.com/from-sitemap", 1),
    ]


@pytest.mark.asyncio()
async def test_progress_counters(fake_fetcher):
    fake_fetcher.add(ROOT, links=["/ok", "/bad"])
    fake_fetcher.add("https://ex.com/ok")
    fake_fetcher.fail("https://ex.com/bad")
    crawler = SiteCrawler(fake_fetcher)
    seen = []
    await crawler.crawl(ROOT, on_page=lambda page: seen.append(crawler.progress().scanned))
    progress = crawler.progress()
    assert seen == [1, 2]
    assert (progress.scanned, progress.failed, progress.queued) == (2, 1, 0)
    assert progress.percent == 100
    assert not progress.is_scanning


def test_invalid_budgets(fake_fetcher):
    with pytest.raises(ValueError):
        SiteCrawler(fake_fetcher, max_pages=0)
    with pytest.raises(ValueError):
        SiteCrawler(fake_fetcher, crawl_depth=-1)


@pytest.mark.asyncio()
async def test_load_sitemap_urls_follows_index(fake_fetcher):
    fake_fetcher.sitemaps["https://ex.com/sitemap.xml"] = (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        "<sitemap><loc>https://ex.com/posts.xml</loc></sitemap>"
        "<sitemap><loc>https://cdn.other.com/x.xml</loc></sitemap>"
        "</sitemapindex>"
    )
    fake_fetcher.sitemaps["https://ex.com/posts.xml"] = (
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        "<url><loc>https://ex.com/post-1</loc></url><url><loc> https://ex.com/post-2 </loc></url>"
        "</urlset>"
    )
    urls = await load_sitemap_urls(fake_fetcher, "https://ex.com/start", ["/sitemap.xml"], 1.0)
    assert urls == ["https://ex.com/post-1", "https://ex.com/post-2"]


@pytest.mark.asyncio()
async def test_load_sitemap_urls_without_text_support():
    class NoText:
        async def fetch(self, url, timeout):  # pragma: no cover
            raise AssertionError

    assert await load_sitemap_urls(NoText(), "https://ex.com/", ["/sitemap.xml"], 1.0) == []
