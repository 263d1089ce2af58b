# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""URL resolution, whitelist matching, and archive path derivation.

Pure functions, stdlib only. Archive paths are derived deterministically
from URL pathnames so concurrent scanners never need to coordinate on names.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import PurePosixPath
from urllib.parse import urljoin, urlparse

from .errors import ConfigError

MATCH_ALL = ".*"

_INDEX_STEM = "index"


# ── Resolution ───────────────────────────────────────────────────────


def resolve(base_url: str, href: str | None) -> str | None:
    """Resolve *href* found on *base_url* to a fully-qualified URL.

    Returns None when there is no link. Relative paths (``x.css``,
    ``../x.css``) follow RFC 3986 joining against *base_url*.
    """
    if not href:
        return None
    href = href.strip()
    if not href:
        return None

    base = urlparse(base_url)
    if href.startswith("//"):
        return f"{base.scheme}:{href}"
    if href.startswith("/"):
        return f"{base.scheme}://{base.netloc}{href}"
    if urlparse(href).netloc:
        return href
    return urljoin(base_url, href)


def has_host(url: str | None) -> bool:
    """True if *url* parses to an http(s) URL with a non-empty host."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


# ── Whitelist ────────────────────────────────────────────────────────


def compile_whitelist(raw: str | Sequence[str] | None) -> tuple[re.Pattern[str], ...]:
    """Compile comma-separated whitelist patterns, each anchored at string start.

    ``None``, an empty value, or ``*`` yields a single match-all pattern.

    Raises:
        ConfigError: If a token is not a valid regular expression.
    """
    if raw is None:
        tokens: list[str] = []
    elif isinstance(raw, str):
        tokens = [t.strip() for t in raw.split(",")]
    else:
        tokens = [t.strip() for t in raw]
    tokens = [t for t in tokens if t]
    if not tokens or tokens == ["*"]:
        tokens = [MATCH_ALL]

    patterns: list[re.Pattern[str]] = []
    for token in tokens:
        if token == "*":
            token = MATCH_ALL
        try:
            patterns.append(re.compile(token))
        except re.error as e:
            raise ConfigError(f"invalid whitelist pattern {token!r}: {e}") from e
    return tuple(patterns)


def matches_whitelist(pathname: str, patterns: Sequence[re.Pattern[str]]) -> bool:
    """True iff *pathname* matches at least one start-anchored pattern.

    A pattern written without the leading slash (``static``) is tried
    against the pathname without its leading slash as well, so both
    ``/static`` and ``static`` select ``/static/app.css``.
    """
    if not patterns:
        return True
    relative = pathname.lstrip("/")
    return any(p.match(pathname) or p.match(relative) for p in patterns)


# ── Archive paths ────────────────────────────────────────────────────


def _clean_segments(pathname: str) -> list[str]:
    """Split a URL pathname into safe segments (no empty, '.', or '..')."""
    return [s for s in pathname.split("/") if s and s not in (".", "..")]


def page_archive_path(url: str) -> PurePosixPath:
    """Relative archive path for a page.

    ``/`` → ``index.html``; ``/docs/`` and ``/docs`` → ``docs.html``.
    """
    segments = _clean_segments(urlparse(url).path.rstrip("/"))
    if not segments:
        return PurePosixPath(f"{_INDEX_STEM}.html")
    return PurePosixPath(*segments[:-1], f"{segments[-1]}.html")


def asset_archive_path(url: str) -> PurePosixPath:
    """Relative archive path for a stylesheet, mirroring its URL pathname.

    The suffix is always a lowercase ``.css`` (``Site.CSS`` becomes
    ``Site.css``, ``styles`` becomes ``styles.css``) so the reducer's
    case-sensitive ``*.css`` glob picks every stylesheet up.
    """
    segments = _clean_segments(urlparse(url).path)
    if not segments:
        return PurePosixPath(f"{_INDEX_STEM}.css")
    name = segments[-1]
    if name.lower().endswith(".css"):
        name = name[: -len(".css")]
    name = f"{name}.css"
    return PurePosixPath(*segments[:-1], name)
