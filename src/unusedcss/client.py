# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared httpx.AsyncClient factory."""

from __future__ import annotations

import httpx

from .config import CrawlConfig


def build_client(config: CrawlConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create the AsyncClient used for sitemaps, pages, and stylesheets.

    Connection pool size tracks scan concurrency; every request carries
    ``config.timeout``. *transport* is for tests (``httpx.MockTransport``).
    """
    limits = httpx.Limits(max_connections=config.concurrency * 2, max_keepalive_connections=config.concurrency)
    return httpx.AsyncClient(
        headers={"User-Agent": config.user_agent},
        timeout=httpx.Timeout(config.timeout),
        limits=limits,
        follow_redirects=True,
        transport=transport,
    )
