# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Sitemap walker: flatten sitemap indexes into an ordered page URL list.

Nested sitemaps are walked one at a time. Page URLs are appended to a
single accumulator shared by the whole recursion, so the result may hold
duplicates when sitemaps overlap; callers dedupe. Each sitemap document is
fetched at most once, which also stops self-referencing indexes.

Any fetch or parse failure raises SitemapError: there is no partial result.
"""

from __future__ import annotations

import gzip
import logging

import httpx
import lxml.html
from lxml import etree

from .errors import SitemapError

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"

# Namespace-agnostic: sitemaps.org, Google extensions, or no namespace at all
_SITEMAP_LOC_XPATH = "//*[local-name()='sitemap']/*[local-name()='loc']"
_URL_LOC_XPATH = "//*[local-name()='url']/*[local-name()='loc']"


def _parse(body: bytes, url: str):
    """Parse sitemap markup, tolerating broken XML and HTML-ish documents."""
    if body[:2] == _GZIP_MAGIC:
        try:
            body = gzip.decompress(body)
        except (OSError, EOFError) as e:
            raise SitemapError(f"corrupt gzip sitemap at {url}: {e}", url=url) from e

    if not body.strip():
        raise SitemapError(f"empty sitemap at {url}", url=url)

    parser = etree.XMLParser(recover=True, resolve_entities=False, no_network=True, huge_tree=True)
    try:
        root = etree.fromstring(body, parser=parser)
    except etree.XMLSyntaxError:
        root = None
    if root is None:
        try:
            root = lxml.html.fromstring(body)
        except (etree.ParserError, ValueError) as e:
            raise SitemapError(f"unparseable sitemap at {url}: {e}", url=url) from e
    return root


def _locs(root, xpath: str) -> list[str]:
    return [text for text in ((el.text or "").strip() for el in root.xpath(xpath)) if text]


async def _fetch(client: httpx.AsyncClient, url: str) -> bytes:
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise SitemapError(f"failed to fetch sitemap {url}: {e}", url=url) from e
    return response.content


async def _walk_into(client: httpx.AsyncClient, url: str, pages: list[str], visited: set[str]) -> None:
    if url in visited:
        logger.debug("Sitemap %s already walked, skipping", url)
        return
    visited.add(url)

    root = _parse(await _fetch(client, url), url)

    for nested in _locs(root, _SITEMAP_LOC_XPATH):
        await _walk_into(client, nested, pages, visited)

    leaves = _locs(root, _URL_LOC_XPATH)
    pages.extend(leaves)
    logger.debug("Sitemap %s: %d page URLs", url, len(leaves))


async def walk(client: httpx.AsyncClient, url: str) -> list[str]:
    """Fetch *url* and every sitemap it references; return all page URLs in order.

    Raises:
        SitemapError: On any fetch or parse failure at any depth.
    """
    pages: list[str] = []
    await _walk_into(client, url, pages, set())
    logger.info("Sitemap walk found %d page URLs", len(pages))
    return pages
