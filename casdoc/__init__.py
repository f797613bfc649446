"""casdoc: offline mirror of the MOF accounting-standards portal.

Crawls the portal's sections, normalizes every document page together with its
attachment and Q&A page into one HTML file, and writes a uTools document index.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
