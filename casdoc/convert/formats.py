"""Attachment formats the converter knows how to normalize."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath
from urllib.parse import urlparse


class AttachmentFormat(str, Enum):
    PDF = ".pdf"
    DOC = ".doc"
    DOCX = ".docx"
    UNSUPPORTED = ""

    @classmethod
    def from_extension(cls, extension: str) -> AttachmentFormat:
        ext = extension.lower()
        for fmt in (cls.PDF, cls.DOC, cls.DOCX):
            if fmt.value == ext:
                return fmt
        return cls.UNSUPPORTED

    @classmethod
    def from_url(cls, url: str) -> AttachmentFormat:
        """Classify *url* by the lower-cased extension of its path."""
        return cls.from_extension(PurePosixPath(urlparse(url).path).suffix)


class ConversionError(Exception):
    """Raised when an attachment's bytes cannot be read as its format."""
