"""Centralised settings for the casdoc crawler.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


# ---------------------------------------------------------------------------
# Site constants
# ---------------------------------------------------------------------------

DOMAIN_LABEL = "企业会计准则"

# Body text of the portal's "page not found" page.  Cached pages carrying it
# are replayed as 404s.
NOT_FOUND_MARKER = "温馨提示：您访问的页面不存在或已删除"

USER_AGENT = "Mozilla/5.0 (compatible; casdoc/0.1; +https://u.tools)"


@dataclass(frozen=True)
class SectionDescriptor:
    """A top-level section of the portal, the root of index discovery."""

    key: str
    name: str


SECTIONS: tuple[SectionDescriptor, ...] = (
    SectionDescriptor("kuaijizhunzeshishi", "企业会计准则"),
    SectionDescriptor("qykjzzjs", "企业会计准则解释"),
    SectionDescriptor("qitgd", "其他规定"),
    SectionDescriptor("srzzzq", "应用案例"),
    SectionDescriptor("sswd", "实施问答"),
)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Remote site
    # ------------------------------------------------------------------
    base_url: str = field(
        default_factory=lambda: os.environ.get(
            "CASDOC_BASE_URL", "http://kjs.mof.gov.cn/zt/kjzzss/"
        )
    )
    not_found_url: str = field(
        default_factory=lambda: os.environ.get(
            "CASDOC_NOT_FOUND_URL", "http://www.mof.gov.cn/404.htm"
        )
    )

    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("CASDOC_WORKSPACE", "."))
    )

    @property
    def cache_dir(self) -> Path:
        """Mirror of the remote site's directory structure."""
        return self.workspace_dir / "cache"

    @property
    def public_dir(self) -> Path:
        """Root of the generated plugin bundle."""
        return self.workspace_dir / "public"

    @property
    def static_dir(self) -> Path:
        return self.public_dir / "static"

    @property
    def stylesheet_path(self) -> Path:
        return self.static_dir / "CasDoc.css"

    @property
    def index_path(self) -> Path:
        return self.public_dir / "index.json"

    @property
    def log_path(self) -> Path:
        return self.workspace_dir / "log.log"

    @property
    def report_path(self) -> Path:
        return self.workspace_dir / "report.json"

    # ------------------------------------------------------------------
    # Crawler
    # ------------------------------------------------------------------
    rate_limit_delay: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_DELAY", "1.0"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    max_pages: int = field(
        default_factory=lambda: int(os.environ.get("CASDOC_MAX_PAGES", "99"))
    )
    max_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("CASDOC_MAX_CONCURRENCY", "8"))
    )

    def ensure_workspace(self) -> None:
        """Create the cache and output directories if they do not exist."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.static_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from casdoc.config import settings
settings = Settings()
