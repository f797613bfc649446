"""Attachment conversion: PDF, ``.doc`` and ``.docx`` to HTML markup."""

from casdoc.convert.converter import convert
from casdoc.convert.formats import AttachmentFormat, ConversionError

__all__ = ["convert", "AttachmentFormat", "ConversionError"]
