"""Crawl driver and output writers."""

from casdoc.pipeline.runner import run_crawl

__all__ = ["run_crawl"]
