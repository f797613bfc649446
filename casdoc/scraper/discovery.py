"""Index discovery: section → sub-sections → paginated listings → documents.

The depth of the listing tree is unknown up front.  A section either links
to sub-sections or is itself the only listing; each listing is then paged
through ``index.htm``, ``index_1.htm``, … until the portal answers "not found".
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path, PurePosixPath
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from casdoc.config import DOMAIN_LABEL, SectionDescriptor
from casdoc.pool import gather_bounded
from casdoc.report import CrawlReport, Unit
from casdoc.scraper.cache import ContentCache
from casdoc.scraper.models import DocumentDescriptor, SubSectionDescriptor

SUB_SECTION_LINKS = "div.zzright>div.listBox>h2.li-tit>span.on>a"
DOCUMENT_LINKS = "div.zzright>div.listBox ul.liBox>li>a"

_SUB_SECTION_KEY = re.compile(r"(?<=\./)\w+?(?=/)")


def listing_page_url(listing_url: str, page: int) -> str:
    """Page 0 is ``index.htm``; page *n* is ``index_n.htm``."""
    leaf = "index.htm" if page == 0 else f"index_{page}.htm"
    return urljoin(listing_url, leaf)


def describe(section_name: str, sub_name: str | None, title: str) -> str:
    parts = [DOMAIN_LABEL, section_name, sub_name, title]
    return " > ".join(p for p in parts if p)


class IndexDiscovery:
    def __init__(
        self,
        cache: ContentCache,
        *,
        base_url: str,
        static_dir: Path,
        not_found_url: str,
        delay: float = 1.0,
        max_pages: int = 99,
        max_concurrency: int = 8,
        report: CrawlReport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._cache = cache
        self.base_url = base_url
        self.static_dir = static_dir
        self.not_found_url = not_found_url
        self.delay = delay
        self.max_pages = max_pages
        self.max_concurrency = max_concurrency
        # Shared by every section: caps listing fetches across the whole run.
        self._slots = asyncio.Semaphore(max(1, max_concurrency))
        self.report = report if report is not None else CrawlReport()
        self._logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Sub-sections
    # ------------------------------------------------------------------

    async def sub_sections(self, section: SectionDescriptor) -> list[SubSectionDescriptor]:
        """Return the listings of *section*, or ``[]`` when it cannot be fetched."""
        section_url = urljoin(self.base_url, section.key + "/")
        res = await self._cache.fetch(section_url)
        if not res.ok:
            self.report.skipped(Unit.SECTION, section_url, f"HTTP {res.status_code}")
            return []

        soup = BeautifulSoup(res.text, "html.parser")
        subs: list[SubSectionDescriptor] = []
        for link in soup.select(SUB_SECTION_LINKS):
            match = _SUB_SECTION_KEY.search((link.get("href") or "").strip())
            if match is None:
                continue
            sub_key = match.group(0)
            subs.append(
                SubSectionDescriptor(
                    section_key=section.key,
                    section_name=section.name,
                    sub_key=sub_key,
                    sub_name=link.get_text(strip=True),
                    listing_url=urljoin(section_url, sub_key + "/"),
                )
            )

        if not subs:
            subs.append(
                SubSectionDescriptor(
                    section_key=section.key,
                    section_name=section.name,
                    sub_key=None,
                    sub_name=None,
                    listing_url=section_url,
                )
            )
        self.report.success(Unit.SECTION, section_url, f"{len(subs)} listing(s)")
        self._logger.info("  [✓] %s has %d subsec.", section.name, len(subs))
        return subs

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def _output_dir(self, sub: SubSectionDescriptor) -> Path:
        out = self.static_dir / sub.section_key
        return out / sub.sub_key if sub.sub_key else out

    def _documents_on_page(
        self, html: str, page_url: str, sub: SubSectionDescriptor, out_dir: Path
    ) -> list[DocumentDescriptor]:
        soup = BeautifulSoup(html, "html.parser")
        docs: list[DocumentDescriptor] = []
        for link in soup.select(DOCUMENT_LINKS):
            href = (link.get("href") or "").strip()
            if not href:
                continue
            title = (link.get("title") or link.get_text()).strip()
            doc_url = urljoin(page_url, href)
            docs.append(
                DocumentDescriptor(
                    url=doc_url,
                    title=title,
                    description=describe(sub.section_name, sub.sub_name, title),
                    output_path=out_dir / PurePosixPath(urlparse(doc_url).path).name,
                )
            )
        return docs

    async def paginate(self, sub: SubSectionDescriptor) -> list[DocumentDescriptor]:
        """Walk one listing page by page until it runs out.

        Pages are fetched strictly in order; a missing page is read as the end
        of the listing.
        """
        docs: list[DocumentDescriptor] = []
        pages = 0
        try:
            out_dir = self._output_dir(sub)
            out_dir.mkdir(parents=True, exist_ok=True)
            for page in range(self.max_pages):
                await asyncio.sleep(self.delay)
                page_url = listing_page_url(sub.listing_url, page)
                res = await self._cache.fetch(page_url)
                if not res.ok or res.final_url == self.not_found_url:
                    break
                found = self._documents_on_page(res.text, page_url, sub, out_dir)
                docs.extend(found)
                pages += 1
                self._logger.info(
                    "  [✓] Got index of %s - %s@page %d", sub.section_name, sub.display_name, page + 1
                )
        except Exception as exc:
            self._logger.error("[x] Listing %s stopped after %d page(s): %r", sub.listing_url, pages, exc)
            self.report.failed(
                Unit.LISTING, sub.listing_url, f"{pages} page(s), {len(docs)} document(s), then {exc!r}"
            )
            return docs

        self.report.success(Unit.LISTING, sub.listing_url, f"{pages} page(s), {len(docs)} document(s)")
        self._logger.info("[✓] Got index of %s - %s", sub.section_name, sub.display_name)
        return docs

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def discover(self, section: SectionDescriptor) -> list[DocumentDescriptor]:
        """Return every document of *section*; never raises for a bad page."""
        self._logger.info("[-] Generating index of %s", section.key)
        try:
            async with self._slots:
                subs = await self.sub_sections(section)
        except Exception as exc:
            section_url = urljoin(self.base_url, section.key + "/")
            self._logger.error("[x] Could not index %s: %r", section.key, exc)
            self.report.failed(Unit.SECTION, section_url, repr(exc))
            return []
        batches = await gather_bounded(subs, self.paginate, semaphore=self._slots)
        return [doc for batch in batches for doc in batch]
