"""Page assembly: one document page, its attachment and its Q&A page.

A document page may link one attachment (``#appendix1>a``) and one follow-up
Q&A page (``#appendix>a``).  The attachment is converted to HTML and the Q&A
page is assembled recursively in memory; everything ends up in a single
:class:`CompositeDocument` written next to its siblings under ``static/``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from casdoc.convert import AttachmentFormat, convert
from casdoc.report import CrawlReport, Unit
from casdoc.scraper.cache import ContentCache, write_atomic
from casdoc.scraper.composite import CompositeDocument, stylesheet_href
from casdoc.scraper.models import BlockKind

QA_LINK = "#appendix>a"
ATTACHMENT_LINK = "#appendix1>a"
MAIN_CONTENT = "div.mainboxerji>div.box_content"
BOILERPLATE = "div.sharebox,div.gu-download,div.clear,div.conboxdown,style,script"

# A document may pull in one QA page; QA pages are never followed further.
MAX_QA_DEPTH = 1

ATTACHMENT_ID = "attachment"


class PageAssembler:
    def __init__(
        self,
        cache: ContentCache,
        *,
        stylesheet_path: Path,
        delay: float = 1.0,
        report: CrawlReport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._cache = cache
        self.stylesheet_path = stylesheet_path
        self.delay = delay
        self.report = report if report is not None else CrawlReport()
        self._logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Attachment
    # ------------------------------------------------------------------

    async def fetch_attachment(self, url: str) -> str | None:
        """Fetch and convert one attachment; ``None`` means nothing to insert."""
        fmt = AttachmentFormat.from_url(url)
        if fmt is AttachmentFormat.UNSUPPORTED:
            self.report.skipped(Unit.ATTACHMENT, url, "unsupported format")
            return None

        self._logger.info("  [-] Fetching attachment @ %s", url)
        res = await self._cache.fetch(url)
        if not res.ok:
            self.report.skipped(Unit.ATTACHMENT, url, res.error or f"HTTP {res.status_code}")
            return None

        try:
            markup = await convert(fmt, res.body, self._logger)
        except Exception as exc:
            self._logger.error("  [x] Could not convert %s: %s", url, exc)
            self.report.failed(Unit.ATTACHMENT, url, f"conversion error: {exc}")
            return None
        if markup is None:
            self.report.failed(Unit.ATTACHMENT, url, "conversion error")
            return None

        self._logger.info("  [✓] Converted %s to html", url.rsplit("/", 1)[-1])
        self.report.success(Unit.ATTACHMENT, url)
        return markup

    # ------------------------------------------------------------------
    # Page
    # ------------------------------------------------------------------

    async def assemble(
        self,
        url: str,
        name: str,
        output_path: Path | None = None,
        kind: BlockKind = BlockKind.DOCUMENT,
        depth: int = 0,
    ) -> CompositeDocument | None:
        """Build the composite page for *url*.

        Returns ``None`` when the page cannot be fetched.  With an
        *output_path* the page is also written to disk with a link to the
        shared stylesheet.
        """
        unit = Unit.QA if kind is BlockKind.QA else Unit.DOCUMENT
        self._logger.info("  [-] Fetching %s @ %s", name, url)

        await asyncio.sleep(self.delay)
        res = await self._cache.fetch(url)
        if not res.ok:
            self.report.skipped(unit, url, res.error or f"HTTP {res.status_code}")
            return None

        soup = BeautifulSoup(res.text, "html.parser")
        qa_link = soup.select_one(QA_LINK)
        attach_link = soup.select_one(ATTACHMENT_LINK)

        for node in soup.select(BOILERPLATE):
            node.decompose()

        content = soup.select_one(MAIN_CONTENT)
        if content is None:
            self._logger.info("  [-] No main content in %s", url)
            content = soup.new_tag("div")
        content["id"] = kind.value

        composite = CompositeDocument.empty()
        composite.append(content)

        if kind is BlockKind.DOCUMENT:
            await self._add_attachment(composite, attach_link, url)
            await self._add_qa(composite, qa_link, url, name, depth)

        if not output_path:
            self.report.success(unit, url)
            return composite

        composite.link_stylesheet(stylesheet_href(output_path, self.stylesheet_path))
        try:
            await asyncio.to_thread(
                write_atomic, output_path, composite.to_html().encode("utf-8")
            )
        except OSError as exc:
            self._logger.error("[x] Could not write %s: %r", output_path, exc)
            self.report.failed(unit, url, f"write error: {exc}")
            return composite

        self.report.success(unit, url, str(output_path))
        self._logger.info("[✓] Fetched and wrote file %s", output_path)
        return composite

    async def _add_attachment(self, composite: CompositeDocument, link, page_url: str) -> None:
        href = (link.get("href") or "").strip() if link is not None else ""
        if not href:
            return
        markup = await self.fetch_attachment(urljoin(page_url, href))
        if markup is None:
            return
        composite.append_html(ATTACHMENT_ID, markup)
        self._logger.info("[✓] Fetched and inserted attachment: %s", link.get_text(strip=True))

    async def _add_qa(
        self, composite: CompositeDocument, link, page_url: str, name: str, depth: int
    ) -> None:
        href = (link.get("href") or "").strip() if link is not None else ""
        if not href or depth >= MAX_QA_DEPTH:
            return
        qa_name = link.get_text(strip=True)
        self._logger.info("  [-] Following QA of %s", name)
        qa = await self.assemble(urljoin(page_url, href), qa_name, None, BlockKind.QA, depth + 1)
        if qa is None:
            return
        for block in qa.blocks():
            composite.append(block)
        self._logger.info("[✓] Fetched and inserted QA: %s", qa_name)
