"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class FetchResult:
    """One HTTP response, live or replayed from the on-disk cache."""

    url: str
    final_url: str
    status_code: int
    body: bytes
    from_cache: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class SubSectionDescriptor:
    """A paginated listing inside a section.

    ``sub_key`` and ``sub_name`` are ``None`` for the implicit sub-section of a
    section that has no sub-section links of its own.
    """

    section_key: str
    section_name: str
    sub_key: str | None
    sub_name: str | None
    listing_url: str

    @property
    def display_name(self) -> str:
        return self.sub_name or self.section_name


@dataclass(frozen=True)
class DocumentDescriptor:
    """A document discovered on a listing page."""

    url: str
    title: str
    description: str
    output_path: Path


class BlockKind(str, Enum):
    """Identity given to the main content block of an assembled page."""

    DOCUMENT = "document"
    QA = "QA"
