# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Unused CSS exception hierarchy.

All errors inherit from UnusedCssError so the CLI can map any of them to
exit code 1. Per-page failures never surface as exceptions; they are
absorbed by the page scanner.
"""

from __future__ import annotations


class UnusedCssError(Exception):
    """Base exception for all unusedcss errors."""


class ConfigError(UnusedCssError):
    """Invalid run configuration (CLI flags, env overrides, whitelist)."""


class InvalidUrlError(ConfigError):
    """Root URL is missing or has no host."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class SitemapError(UnusedCssError):
    """Sitemap fetch or parse failure at any recursion depth (fatal)."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class AnalyzerError(UnusedCssError):
    """Selector-usage analysis failed for a chunk (fatal)."""

    def __init__(self, message: str, *, chunk_index: int = -1) -> None:
        super().__init__(message)
        self.chunk_index = chunk_index
