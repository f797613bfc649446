"""End-to-end crawl: discover every section, assemble every page, write index.

Pipeline:
    1. Discover all configured sections; listing fetches share one
       ``max_concurrency`` bound.
    2. Make sure the shared stylesheet exists.
    3. Assemble each discovered document through a bounded worker pool.
    4. Write ``index.json`` (every discovered document, whether or not its
       page could be assembled) and ``report.json``.
"""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from casdoc.config import SECTIONS, USER_AGENT, SectionDescriptor, Settings
from casdoc.pipeline.writer import ensure_stylesheet, write_index
from casdoc.pool import gather_bounded
from casdoc.report import CrawlReport, Unit
from casdoc.scraper.assembler import PageAssembler
from casdoc.scraper.cache import ContentCache
from casdoc.scraper.discovery import IndexDiscovery
from casdoc.scraper.models import BlockKind, DocumentDescriptor


def make_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        timeout=settings.request_timeout,
        follow_redirects=True,
    )


async def run_crawl(
    settings: Settings,
    logger: logging.Logger | None = None,
    client: httpx.AsyncClient | None = None,
    sections: Sequence[SectionDescriptor] = SECTIONS,
) -> CrawlReport:
    """Run the whole crawl and return its outcome report.

    Never raises for per-page problems; those end up in the report.
    """
    log = logger or logging.getLogger(__name__)
    settings.ensure_workspace()
    report = CrawlReport()

    owns_client = client is None
    http = client or make_client(settings)
    cache = ContentCache(settings.cache_dir, http, log)
    try:
        discovery = IndexDiscovery(
            cache,
            base_url=settings.base_url,
            static_dir=settings.static_dir,
            not_found_url=settings.not_found_url,
            delay=settings.rate_limit_delay,
            max_pages=settings.max_pages,
            max_concurrency=settings.max_concurrency,
            report=report,
            logger=log,
        )
        batches = await gather_bounded(sections, discovery.discover, settings.max_concurrency)
        docs: list[DocumentDescriptor] = [doc for batch in batches for doc in batch]
        report.documents_discovered = len(docs)
        log.info("[✓] Generated indexes: %d", len(docs))
        log.info("=" * 15)

        if ensure_stylesheet(settings.stylesheet_path):
            log.info("[✓] Wrote default stylesheet %s", settings.stylesheet_path)

        assembler = PageAssembler(
            cache,
            stylesheet_path=settings.stylesheet_path,
            delay=settings.rate_limit_delay,
            report=report,
            logger=log,
        )

        async def assemble(doc: DocumentDescriptor) -> None:
            try:
                await assembler.assemble(doc.url, doc.title, doc.output_path, BlockKind.DOCUMENT)
            except Exception as exc:
                log.error("[x] Could not assemble %s: %r", doc.url, exc)
                report.failed(Unit.DOCUMENT, doc.url, repr(exc))

        await gather_bounded(docs, assemble, settings.max_concurrency)
        log.info("[✓] Downloaded all pages")

        count = write_index(docs, settings.public_dir, settings.index_path)
        log.info("[✓] Wrote %d entries to %s.", count, settings.index_path)

        await cache.drain()
    finally:
        if owns_client:
            await http.aclose()

    report.write(settings.report_path)
    log.info("[✓] %s", report.summary())
    return report
