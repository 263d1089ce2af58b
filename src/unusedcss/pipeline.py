# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""End-to-end run: sitemap → concurrent page scans → drain → reduce → report.

Phase 1 (concurrent) scans pages through the FetchScheduler. Phase 2
(reduction) starts only after the scheduler drains, because it enumerates
the page archive.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from functools import partial
from pathlib import Path

import httpx

from .analyzer import find_rejected_selectors
from .client import build_client
from .config import CrawlConfig
from .context import RunContext
from .reducer import DEFAULT_CSS_GLOB, Analyzer, reduce_unused_selectors
from .report import write_report
from .scanner import scan
from .scheduler import FetchScheduler
from .sitemap import walk

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunResult:
    """Summary of a completed run."""

    report_path: Path
    pages_found: int
    pages_scanned: int
    pages_failed: int
    selectors: int
    elapsed_seconds: float


async def crawl(client: httpx.AsyncClient, ctx: RunContext, config: CrawlConfig) -> tuple[int, int, int]:
    """Phase 1: walk the sitemap and archive every page.

    Returns (pages_found, pages_scanned, pages_failed).

    Raises:
        SitemapError: If the sitemap cannot be fetched or parsed.
    """
    found = await walk(client, ctx.root_url)
    urls = list(dict.fromkeys(found))
    if len(urls) != len(found):
        logger.info("Dropped %d duplicate page URLs", len(found) - len(urls))

    ctx.html_dir.mkdir(parents=True, exist_ok=True)
    ctx.css_dir.mkdir(parents=True, exist_ok=True)

    scheduler = FetchScheduler(concurrency=config.concurrency)
    for url in urls:
        scheduler.add(partial(scan, client, ctx, url))
    stats = await scheduler.drain()
    logger.info("Scanned %d/%d pages (%d failed)", stats.succeeded, len(urls), stats.failed)
    return len(found), stats.succeeded, stats.failed


async def run(
    ctx: RunContext,
    config: CrawlConfig,
    *,
    client: httpx.AsyncClient | None = None,
    analyzer: Analyzer = find_rejected_selectors,
) -> RunResult:
    """Execute one full run and write ``ctx.report_path``.

    Raises:
        SitemapError: Sitemap fetch/parse failure.
        AnalyzerError: Usage analysis failure on any chunk.
    """
    start = time.perf_counter()
    logger.info("Run %d: crawling %s into %s", ctx.started_at, ctx.root_url, ctx.run_dir)

    if client is None:
        async with build_client(config) as owned:
            found, scanned, failed = await crawl(owned, ctx, config)
    else:
        found, scanned, failed = await crawl(client, ctx, config)

    selectors = await asyncio.to_thread(
        reduce_unused_selectors,
        ctx.html_dir,
        ctx.css_dir,
        DEFAULT_CSS_GLOB,
        chunk_size=config.chunk_size,
        analyzer=analyzer,
    )
    count = await asyncio.to_thread(write_report, ctx.report_path, selectors)

    elapsed = time.perf_counter() - start
    logger.info("Finished in %.2fs (%d unused selectors)", elapsed, count)
    return RunResult(
        report_path=ctx.report_path,
        pages_found=found,
        pages_scanned=scanned,
        pages_failed=failed,
        selectors=count,
        elapsed_seconds=elapsed,
    )
