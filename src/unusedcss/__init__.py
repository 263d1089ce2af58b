# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Unused CSS: crawl a site's sitemap and report selectors no page uses.

Pipeline:
- sitemap walk: flatten sitemap indexes into page URLs
- page scan: archive every page and its whitelisted stylesheets
- chunked reduction: a selector is reported only if rejected in every chunk
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("retio-unusedcss")
except PackageNotFoundError:
    __version__ = "unknown"
