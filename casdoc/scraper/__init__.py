"""Scraper package: cached fetching, index discovery and page assembly."""

from casdoc.scraper.assembler import PageAssembler
from casdoc.scraper.cache import ContentCache
from casdoc.scraper.composite import CompositeDocument
from casdoc.scraper.discovery import IndexDiscovery
from casdoc.scraper.models import (
    BlockKind,
    DocumentDescriptor,
    FetchResult,
    SubSectionDescriptor,
)

__all__ = [
    "ContentCache",
    "IndexDiscovery",
    "PageAssembler",
    "CompositeDocument",
    "BlockKind",
    "DocumentDescriptor",
    "FetchResult",
    "SubSectionDescriptor",
]
