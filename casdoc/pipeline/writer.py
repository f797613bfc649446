"""Writers for the plugin bundle: ``index.json`` and the shared stylesheet."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from casdoc.scraper.models import DocumentDescriptor

DEFAULT_STYLESHEET = """\
body { max-width: 860px; margin: 0 auto; padding: 1em 1.5em;
       font-family: "PingFang SC", "Microsoft YaHei", sans-serif;
       line-height: 1.75; color: #222; }
#document, #attachment, #QA { margin-bottom: 2em; }
#attachment, #QA { border-top: 1px solid #ddd; padding-top: 1em; }
p { margin: 0.4em 0; text-indent: 2em; }
table { border-collapse: collapse; margin: 1em 0; }
td, th { border: 1px solid #999; padding: 0.25em 0.5em; }
"""


def relpath_posix(path: Path, base_dir: Path) -> str:
    return path.relative_to(base_dir).as_posix()


def index_entry(doc: DocumentDescriptor, public_dir: Path) -> dict[str, str]:
    """One uTools document-index record: url, title, description, path."""
    return {
        "url": doc.url,
        "t": doc.title,
        "d": doc.description,
        "p": relpath_posix(doc.output_path, public_dir),
    }


def write_index(docs: Iterable[DocumentDescriptor], public_dir: Path, path: Path) -> int:
    entries = [index_entry(doc, public_dir) for doc in docs]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(entries, ensure_ascii=False), encoding="utf-8")
    return len(entries)


def ensure_stylesheet(path: Path) -> bool:
    """Write the default stylesheet unless one exists; return ``True`` if written."""
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_STYLESHEET, encoding="utf-8")
    return True
