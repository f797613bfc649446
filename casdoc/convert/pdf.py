"""PDF attachments: ``pypdf`` text extraction rendered as paragraphs."""

from __future__ import annotations

import html
import io
import logging
import re

import pypdf
from pypdf.errors import PdfReadError

# Page separators left in extracted text, e.g. "----Page (3) Break----    12".
_PAGE_BREAK = re.compile(r"-+Page \(\d+\) Break-+(\s+\d+)?")
_LEADING_ONE = re.compile(r"^1")


def extract_pdf_text(data: bytes, logger: logging.Logger | None = None) -> str:
    """Return the text of every readable page in *data*.

    Parser data errors are logged and the text gathered so far is returned.
    """
    log = logger or logging.getLogger(__name__)
    pages: list[str] = []
    try:
        reader = pypdf.PdfReader(io.BytesIO(data))
        for number, page in enumerate(reader.pages, start=1):
            try:
                pages.append(page.extract_text() or "")
            except (PdfReadError, ValueError, KeyError) as exc:
                log.error("  [x] PDF page %d unreadable: %s", number, exc)
    except PdfReadError as exc:
        log.error("  [x] PDF parser error: %s", exc)
    return "\n".join(pages)


def clean_pdf_text(text: str) -> str:
    """Drop page-break banners and the stray leading ``1`` page number."""
    text = _PAGE_BREAK.sub("", text)
    return _LEADING_ONE.sub("", text, count=1)


def pdf_text_to_html(text: str) -> str:
    lines = clean_pdf_text(text).split("\n")
    return "\n".join(f"<p>{html.escape(line.strip(), quote=False)}</p>" for line in lines)


def pdf_to_html(data: bytes, logger: logging.Logger | None = None) -> str:
    return pdf_text_to_html(extract_pdf_text(data, logger))
