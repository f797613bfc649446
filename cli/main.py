"""casdoc CLI entry-point for crawling and inspecting the mirror.

Usage:
    python cli/main.py --help

Crawl tuning (base URL, delay, page cap, concurrency, workspace) comes from
the environment or a ``.env`` file; see :mod:`casdoc.config`.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from casdoc.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
from urllib.parse import urljoin

import typer

from casdoc.config import SECTIONS, settings
from casdoc.logs import configure_logging
from casdoc.pipeline.runner import run_crawl
from casdoc.scraper.cache import cache_path

app = typer.Typer(
    name="casdoc",
    help="Mirror the MOF accounting-standards portal as a uTools document bundle.",
    no_args_is_help=True,
)


@app.command("crawl")
def crawl() -> None:
    """Discover every section, assemble every page and write index.json."""
    logger = configure_logging(settings.log_path)
    typer.echo(f"[crawl] Workspace: {settings.workspace_dir.resolve()}")
    report = asyncio.run(run_crawl(settings, logger))
    typer.echo(f"[crawl] Index  : {settings.index_path}")
    typer.echo(f"[crawl] Report : {settings.report_path}")
    typer.echo(f"[crawl] {report.summary()}")


@app.command("sections")
def sections() -> None:
    """List the configured sections and their listing URLs."""
    for section in SECTIONS:
        url = urljoin(settings.base_url, section.key + "/")
        typer.echo(f"  {section.key:<20} {section.name}  {url}")


@app.command("cache-path")
def show_cache_path(
    url: str = typer.Argument(..., help="Remote URL."),
) -> None:
    """Print the cache file a URL is stored under."""
    typer.echo(str(cache_path(settings.cache_dir, url)))


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
