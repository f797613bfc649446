"""Dispatch an attachment payload to its format-specific HTML strategy."""

from __future__ import annotations

import asyncio
import logging

from casdoc.convert.doc import doc_to_html
from casdoc.convert.docx import docx_to_html
from casdoc.convert.formats import AttachmentFormat
from casdoc.convert.pdf import pdf_to_html


def _convert_docx(data: bytes, logger: logging.Logger) -> str | None:
    try:
        return docx_to_html(data)
    except Exception as exc:
        logger.error("  [x] %s", exc)
        return None


async def convert(
    fmt: AttachmentFormat,
    data: bytes,
    logger: logging.Logger | None = None,
) -> str | None:
    """Return *data* normalized to HTML markup.

    * ``UNSUPPORTED`` yields ``""`` without touching any converter.
    * ``DOCX`` failures are logged and yield ``None``.
    * ``DOC`` failures propagate to the caller.
    * ``PDF`` parser errors are logged inside the strategy, which returns
      whatever text it could read.

    The strategies are synchronous and CPU-bound, so they run in a worker
    thread.
    """
    log = logger or logging.getLogger(__name__)
    if fmt is AttachmentFormat.PDF:
        return await asyncio.to_thread(pdf_to_html, data, log)
    if fmt is AttachmentFormat.DOC:
        return await asyncio.to_thread(doc_to_html, data)
    if fmt is AttachmentFormat.DOCX:
        return await asyncio.to_thread(_convert_docx, data, log)
    return ""
