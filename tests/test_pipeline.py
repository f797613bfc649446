"""End-to-end tests for the crawl driver and the bundle writers.

The whole portal is replaced by a handful of ``respx`` routes: one section
without sub-sections, a single listing page and two document pages, one of
which is gone.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import AsyncIterator
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx

from casdoc.config import SectionDescriptor, Settings
from casdoc.pipeline import run_crawl
from casdoc.pipeline.writer import DEFAULT_STYLESHEET, ensure_stylesheet, index_entry, write_index
from casdoc.report import OutcomeStatus, Unit
from casdoc.scraper.cache import write_atomic
from casdoc.scraper.models import DocumentDescriptor

BASE = "http://kjs.mof.gov.cn/zt/kjzzss/"
NOT_FOUND = "http://www.mof.gov.cn/404.htm"
QITGD = SectionDescriptor("qitgd", "其他规定")

_LISTING = (
    '<html><body><div class="zzright"><div class="listBox"><ul class="liBox">'
    '<li><a href="./201901/t1.htm" title="关于印发通知">关于…</a></li>'
    '<li><a href="./201801/t2.htm" title="已撤回文件">已撤…</a></li>'
    "</ul></div></div></body></html>"
)
_DOCUMENT = (
    '<html><body><div class="mainboxerji"><div class="box_content">'
    "<p>各省、自治区、直辖市财政厅（局）</p>"
    "</div></div></body></html>"
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
async def client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(follow_redirects=True) as c:
        yield c


@pytest.fixture()
def crawl_settings(tmp_path) -> Settings:
    return Settings(
        base_url=BASE,
        not_found_url=NOT_FOUND,
        workspace_dir=tmp_path,
        rate_limit_delay=0,
        max_pages=5,
        max_concurrency=2,
    )


def _portal(mock: respx.MockRouter) -> None:
    mock.get(BASE + "qitgd/").mock(return_value=httpx.Response(200, text=_LISTING))
    mock.get(BASE + "qitgd/index.htm").mock(return_value=httpx.Response(200, text=_LISTING))
    mock.get(BASE + "qitgd/index_1.htm").mock(return_value=httpx.Response(404))
    mock.get(BASE + "qitgd/201901/t1.htm").mock(return_value=httpx.Response(200, text=_DOCUMENT))
    mock.get(BASE + "qitgd/201801/t2.htm").mock(return_value=httpx.Response(404))


# ---------------------------------------------------------------------------
# run_crawl
# ---------------------------------------------------------------------------

class TestRunCrawl:
    async def test_writes_index_pages_and_report(self, crawl_settings, client) -> None:
        with respx.mock(assert_all_called=False) as mock:
            _portal(mock)
            report = await run_crawl(crawl_settings, client=client, sections=(QITGD,))

        index = json.loads(crawl_settings.index_path.read_text(encoding="utf-8"))
        assert index == [
            {
                "url": BASE + "qitgd/201901/t1.htm",
                "t": "关于印发通知",
                "d": "企业会计准则 > 其他规定 > 关于印发通知",
                "p": "static/qitgd/t1.htm",
            },
            {
                "url": BASE + "qitgd/201801/t2.htm",
                "t": "已撤回文件",
                "d": "企业会计准则 > 其他规定 > 已撤回文件",
                "p": "static/qitgd/t2.htm",
            },
        ]

        page = crawl_settings.static_dir / "qitgd" / "t1.htm"
        assert "财政厅" in page.read_text(encoding="utf-8")
        assert not (crawl_settings.static_dir / "qitgd" / "t2.htm").exists()

        assert report.documents_discovered == 2
        assert report.counts()["document"] == {"success": 1, "skipped": 1}
        saved = json.loads(crawl_settings.report_path.read_text(encoding="utf-8"))
        assert saved["documents_discovered"] == 2

    async def test_default_stylesheet_written(self, crawl_settings, client) -> None:
        with respx.mock(assert_all_called=False) as mock:
            _portal(mock)
            await run_crawl(crawl_settings, client=client, sections=(QITGD,))

        assert crawl_settings.stylesheet_path.read_text(encoding="utf-8") == DEFAULT_STYLESHEET

    async def test_listing_pages_are_cached(self, crawl_settings, client) -> None:
        with respx.mock(assert_all_called=False) as mock:
            _portal(mock)
            await run_crawl(crawl_settings, client=client, sections=(QITGD,))

        assert (crawl_settings.cache_dir / "zt" / "kjzzss" / "qitgd" / "index.htm").exists()
        assert (crawl_settings.cache_dir / "zt" / "kjzzss" / "qitgd" / "201901" / "t1.htm").exists()

    async def test_unreachable_section_still_writes_empty_index(self, crawl_settings, client) -> None:
        with respx.mock() as mock:
            mock.get(BASE + "qitgd/").mock(side_effect=httpx.ConnectError("refused"))
            report = await run_crawl(crawl_settings, client=client, sections=(QITGD,))

        assert json.loads(crawl_settings.index_path.read_text(encoding="utf-8")) == []
        assert report.filter(Unit.SECTION, OutcomeStatus.SKIPPED)
        assert report.documents_discovered == 0

    async def test_bad_link_does_not_abort_the_run(self, crawl_settings, client) -> None:
        listing = (
            '<html><body><div class="zzright"><div class="listBox"><ul class="liBox">'
            '<li><a href="../qitgd" title="栏目首页">栏目…</a></li>'
            '<li><a href="./t1.htm" title="关于印发通知">关于…</a></li>'
            "</ul></div></div></body></html>"
        )
        crawl_settings.ensure_workspace()
        write_atomic(
            crawl_settings.cache_dir / "zt" / "kjzzss" / "qitgd" / "index.htm", listing.encode("utf-8")
        )
        with respx.mock(assert_all_called=False) as mock:
            mock.get(BASE + "qitgd/index_1.htm").mock(return_value=httpx.Response(404))
            mock.get(BASE + "qitgd").mock(return_value=httpx.Response(200, text=_DOCUMENT))
            mock.get(BASE + "qitgd/t1.htm").mock(return_value=httpx.Response(200, text=_DOCUMENT))
            report = await run_crawl(crawl_settings, client=client, sections=(QITGD,))

        index = json.loads(crawl_settings.index_path.read_text(encoding="utf-8"))
        assert [entry["url"] for entry in index] == [BASE + "qitgd", BASE + "qitgd/t1.htm"]
        assert (crawl_settings.static_dir / "qitgd" / "t1.htm").exists()
        assert report.counts()["document"] == {"success": 2}

    async def test_crashing_page_is_recorded_and_index_still_written(self, crawl_settings, client) -> None:
        crash = AsyncMock(side_effect=RuntimeError("boom"))
        with respx.mock(assert_all_called=False) as mock, patch(
            "casdoc.pipeline.runner.PageAssembler.assemble", crash
        ):
            _portal(mock)
            report = await run_crawl(crawl_settings, client=client, sections=(QITGD,))

        assert len(json.loads(crawl_settings.index_path.read_text(encoding="utf-8"))) == 2
        failed = report.filter(Unit.DOCUMENT, OutcomeStatus.FAILED)
        assert len(failed) == 2
        assert all("boom" in o.reason for o in failed)
        assert crawl_settings.report_path.exists()

    async def test_logs_through_injected_logger(self, crawl_settings, client, caplog) -> None:
        logger = logging.getLogger("casdoc.test.pipeline")
        with caplog.at_level(logging.INFO, logger="casdoc.test.pipeline"):
            with respx.mock(assert_all_called=False) as mock:
                _portal(mock)
                await run_crawl(crawl_settings, logger=logger, client=client, sections=(QITGD,))

        messages = [r.getMessage() for r in caplog.records if r.name == "casdoc.test.pipeline"]
        assert "[✓] Generated indexes: 2" in messages
        assert any(m.startswith("[✓] Wrote 2 entries to") for m in messages)


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------

class TestWriters:
    def _doc(self, public: Path, *parts: str) -> DocumentDescriptor:
        return DocumentDescriptor(
            url=BASE + "x.htm",
            title="标题",
            description="企业会计准则 > 标题",
            output_path=public.joinpath("static", *parts),
        )

    def test_index_entry_path_is_relative_posix(self, tmp_path) -> None:
        entry = index_entry(self._doc(tmp_path, "srzzzq", "a", "t1.htm"), tmp_path)
        assert entry["p"] == "static/srzzzq/a/t1.htm"
        assert set(entry) == {"url", "t", "d", "p"}

    def test_write_index_keeps_chinese_readable(self, tmp_path) -> None:
        path = tmp_path / "index.json"
        count = write_index([self._doc(tmp_path, "t.htm")], tmp_path, path)
        assert count == 1
        assert "标题" in path.read_text(encoding="utf-8")

    def test_existing_stylesheet_is_kept(self, tmp_path) -> None:
        css = tmp_path / "CasDoc.css"
        css.write_text("body{}", encoding="utf-8")
        assert ensure_stylesheet(css) is False
        assert css.read_text(encoding="utf-8") == "body{}"
