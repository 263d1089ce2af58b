# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import unusedcss  # noqa: F401
except ImportError:
    raise ImportError("unusedcss is not installed. Run: pip install -e '.[dev]'") from None

import pytest

from unusedcss.config import CrawlConfig
from unusedcss.context import create_run_context

ROOT = "http://ex.com"


@pytest.fixture
def config(tmp_path):
    """Small, deterministic crawl configuration rooted in tmp_path."""
    return CrawlConfig(output_root=tmp_path / "output", concurrency=4, chunk_size=500, timeout=5.0)


@pytest.fixture
def ctx(config):
    """RunContext with a fixed timestamp and match-all whitelist."""
    return create_run_context(f"{ROOT}/sitemap.xml", output_root=config.output_root, started_at=1700000000)

