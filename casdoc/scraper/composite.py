"""The assembled output page: main block plus optional attachment / QA."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from bs4 import BeautifulSoup, Tag

_SKELETON = '<html><head><meta charset="utf-8"/></head><body></body></html>'


def stylesheet_href(output_path: Path, stylesheet: Path) -> str:
    """Relative URL from the page at *output_path* to *stylesheet*."""
    rel = os.path.relpath(stylesheet, start=output_path.parent)
    return Path(rel).as_posix()


@dataclass
class CompositeDocument:
    soup: BeautifulSoup

    @classmethod
    def empty(cls) -> CompositeDocument:
        return cls(BeautifulSoup(_SKELETON, "html.parser"))

    def append(self, block: Tag) -> None:
        self.soup.body.append(block)

    def append_html(self, block_id: str, markup: str) -> Tag:
        """Wrap *markup* in ``<div id=block_id>`` and append it."""
        block = self.soup.new_tag("div", id=block_id)
        fragment = BeautifulSoup(markup, "html.parser")
        for node in list(fragment.contents):
            block.append(node)
        self.append(block)
        return block

    def blocks(self) -> list[Tag]:
        return [c for c in self.soup.body.children if isinstance(c, Tag)]

    def block_ids(self) -> list[str]:
        return [b.get("id", "") for b in self.blocks()]

    def link_stylesheet(self, href: str) -> None:
        link = self.soup.new_tag("link", rel="stylesheet", href=href, type="text/css")
        self.soup.head.append(link)

    def to_html(self) -> str:
        return str(self.soup)
