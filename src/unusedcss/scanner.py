# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page scanner: archive one page and its whitelisted stylesheets.

Steps per page (strictly in order):

1. fetch the page body
2. find ``<link rel="stylesheet">`` elements in document order
3. resolve each href against the page URL, drop hostless results
4. drop stylesheets whose pathname fails the whitelist
5. download each remaining stylesheet unless its archive file exists
6. append the page body to the page archive
7. report success

``scan()`` never raises: any failure is logged and returned as False so one
bad page cannot stall the scheduler. Blocking file I/O runs in worker
threads and is awaited before the next step starts.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import httpx
import lxml.html
from lxml import etree

from .context import RunContext
from .urls import asset_archive_path, has_host, matches_whitelist, page_archive_path, resolve

logger = logging.getLogger(__name__)

_STREAM_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class AssetRef:
    """A resolved stylesheet URL and its path relative to the CSS archive."""

    url: str
    local_path: PurePosixPath


# ── Link discovery ───────────────────────────────────────────────────


def _is_stylesheet(link) -> bool:
    rel = (link.get("rel") or "").lower().split()
    return "stylesheet" in rel


def stylesheet_hrefs(html: bytes | str) -> list[str]:
    """Return the href of every stylesheet link, in declaration order."""
    try:
        doc = lxml.html.fromstring(html)
    except (etree.ParserError, ValueError):
        return []
    return [link.get("href") or "" for link in doc.iter("link") if _is_stylesheet(link)]


def discover_assets(page_url: str, html: bytes | str, ctx: RunContext) -> list[AssetRef]:
    """Resolve and whitelist-filter the stylesheets linked from a page.

    Assets sharing a local path are reported once.
    """
    assets: dict[PurePosixPath, AssetRef] = {}
    for href in stylesheet_hrefs(html):
        url = resolve(page_url, href)
        if not has_host(url):
            logger.debug("Skipping unresolvable stylesheet %r on %s", href, page_url)
            continue
        if not matches_whitelist(urlparse(url).path, ctx.whitelist):
            logger.debug("Skipping non-whitelisted stylesheet %s", url)
            continue
        local_path = asset_archive_path(url)
        assets.setdefault(local_path, AssetRef(url=url, local_path=local_path))
    return list(assets.values())


# ── Persistence ──────────────────────────────────────────────────────


def _create_exclusive(path: Path):
    """Open *path* for writing only if nobody else created it; else None."""
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        return open(path, "xb")  # noqa: SIM115
    except FileExistsError:
        return None


def _discard(path: Path) -> None:
    path.unlink(missing_ok=True)


async def download_asset(client: httpx.AsyncClient, asset: AssetRef, css_dir: Path) -> bool:
    """Stream *asset* into the CSS archive unless its file already exists.

    Exclusive creation makes the existence check and the create one step,
    so two scanners racing on a shared stylesheet download it once.
    Returns True if this call wrote the file.
    """
    target = css_dir / asset.local_path
    fh = await asyncio.to_thread(_create_exclusive, target)
    if fh is None:
        logger.debug("Stylesheet %s already archived", asset.local_path)
        return False

    try:
        async with client.stream("GET", asset.url) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes(_STREAM_CHUNK_SIZE):
                await asyncio.to_thread(fh.write, chunk)
    except BaseException:
        await asyncio.to_thread(fh.close)
        await asyncio.to_thread(_discard, target)
        raise
    await asyncio.to_thread(fh.close)
    logger.debug("Downloaded %s -> %s", asset.url, asset.local_path)
    return True


def _append(path: Path, body: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "ab") as fh:
        fh.write(body)


async def archive_page(url: str, body: bytes, html_dir: Path) -> Path:
    """Append *body* to the page archive file derived from *url*."""
    target = html_dir / page_archive_path(url)
    await asyncio.to_thread(_append, target, body)
    return target


# ── Scan ─────────────────────────────────────────────────────────────


async def scan(client: httpx.AsyncClient, ctx: RunContext, url: str) -> bool:
    """Archive *url* and its whitelisted stylesheets. Never raises."""
    try:
        response = await client.get(url)
        response.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("Skipping page %s: %s", url, e)
        return False

    body = response.content
    try:
        for asset in discover_assets(str(response.url), body, ctx):
            try:
                await download_asset(client, asset, ctx.css_dir)
            except httpx.HTTPError as e:
                logger.warning("Skipping stylesheet %s linked from %s: %s", asset.url, url, e)
        await archive_page(url, body, ctx.html_dir)
    except Exception:
        logger.exception("Unexpected error scanning %s", url)
        return False
    return True
