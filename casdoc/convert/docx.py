"""Word 2007+ (``.docx``) attachments rendered to HTML with ``python-docx``."""

from __future__ import annotations

import html
import io
import re
from typing import Iterator

import docx
from docx.document import Document as _Document
from docx.oxml.ns import qn
from docx.oxml.table import CT_Tbl
from docx.oxml.text.paragraph import CT_P
from docx.table import Table
from docx.text.paragraph import Paragraph
from docx.text.run import Run

_HEADING_STYLE = re.compile(r"^(?:Heading|标题)\s*([1-6])$", re.IGNORECASE)


def _iter_blocks(document: _Document) -> Iterator[Paragraph | Table]:
    """Yield body paragraphs and tables in document order."""
    for child in document.element.body.iterchildren():
        if isinstance(child, CT_P):
            yield Paragraph(child, document)
        elif isinstance(child, CT_Tbl):
            yield Table(child, document)


def _runs(paragraph: Paragraph) -> Iterator[Run]:
    """Every run in *paragraph*, including those nested in w:hyperlink, w:ins,
    w:smartTag or w:fldSimple, which ``Paragraph.runs`` does not reach."""
    for r in paragraph._p.iter(qn("w:r")):
        yield Run(r, paragraph)


def _runs_html(paragraph: Paragraph) -> str:
    parts: list[str] = []
    for run in _runs(paragraph):
        text = html.escape(run.text, quote=False)
        if not text:
            continue
        if run.bold:
            text = f"<strong>{text}</strong>"
        if run.italic:
            text = f"<em>{text}</em>"
        parts.append(text)
    return "".join(parts)


def _paragraph_html(paragraph: Paragraph) -> str:
    body = _runs_html(paragraph)
    if not body:
        return ""
    style_name = paragraph.style.name if paragraph.style is not None else ""
    match = _HEADING_STYLE.match(style_name or "")
    tag = f"h{match.group(1)}" if match else "p"
    return f"<{tag}>{body}</{tag}>"


def _table_html(table: Table) -> str:
    rows = []
    for row in table.rows:
        cells = "".join(
            f"<td>{html.escape(cell.text, quote=False)}</td>" for cell in row.cells
        )
        rows.append(f"<tr>{cells}</tr>")
    return f"<table>{''.join(rows)}</table>"


def docx_to_html(data: bytes) -> str:
    """Convert a ``.docx`` payload to HTML.

    Raises whatever ``python-docx`` raises for unreadable packages; callers
    decide how to contain it.
    """
    document = docx.Document(io.BytesIO(data))
    parts: list[str] = []
    for block in _iter_blocks(document):
        if isinstance(block, Paragraph):
            parts.append(_paragraph_html(block))
        else:
            parts.append(_table_html(block))
    return "".join(p for p in parts if p)
