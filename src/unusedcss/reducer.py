# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Chunked usage reducer: selectors unused on every archived page.

The analyzer's cost grows with its input, so pages are analyzed in
fixed-size chunks. A selector rejected by one chunk may still be used by a
page in another, so each selector's rejections are tallied across chunks
and only selectors rejected by *every* chunk are reported.

Runs strictly after the crawl has drained; it is synchronous and CPU-bound
(the pipeline runs it in a worker thread). An analyzer failure on any chunk
aborts the reduction with AnalyzerError.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from .analyzer import find_rejected_selectors
from .config import DEFAULT_CHUNK_SIZE
from .errors import AnalyzerError

logger = logging.getLogger(__name__)

Analyzer = Callable[[Sequence[Path], Sequence[Path]], Iterable[str]]

HTML_SUFFIX = ".html"
DEFAULT_CSS_GLOB = "**/*.css"


def list_html_files(root: Path) -> list[Path]:
    """Every ``*.html`` file under *root*, sorted; iterative, no recursion."""
    files: list[Path] = []
    stack = [Path(root)]
    while stack:
        directory = stack.pop()
        if not directory.is_dir():
            continue
        for entry in directory.iterdir():
            if entry.is_dir():
                stack.append(entry)
            elif entry.suffix == HTML_SUFFIX and entry.is_file():
                files.append(entry)
    return sorted(files)


def partition(items: Sequence[Path], size: int) -> list[list[Path]]:
    """Split *items* into consecutive chunks of *size*; the last may be shorter."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def tally_rejections(chunks: Sequence[Sequence[Path]], css_files: Sequence[Path], analyzer: Analyzer) -> dict[str, int]:
    """Count, per selector, the chunks in which it was rejected.

    A selector rejected twice within one chunk still counts once. Insertion
    order is the order of first rejection.

    Raises:
        AnalyzerError: If *analyzer* fails on any chunk.
    """
    tally: dict[str, int] = {}
    for index, chunk in enumerate(chunks):
        try:
            rejected = dict.fromkeys(analyzer(chunk, css_files))
        except AnalyzerError as e:
            e.chunk_index = index
            raise
        except Exception as e:
            raise AnalyzerError(f"usage analysis failed on chunk {index + 1}/{len(chunks)}: {e}", chunk_index=index) from e
        for selector in rejected:
            tally[selector] = tally.get(selector, 0) + 1
        logger.info("Chunk %d/%d: %d pages, %d rejected selectors", index + 1, len(chunks), len(chunk), len(rejected))
    return tally


def unused_everywhere(tally: dict[str, int], total: int) -> list[str]:
    """Selectors whose rejection count equals the number of chunks."""
    return [selector for selector, count in tally.items() if count == total]


def reduce_unused_selectors(
    page_dir: Path,
    css_dir: Path,
    css_glob: str = DEFAULT_CSS_GLOB,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    analyzer: Analyzer = find_rejected_selectors,
) -> list[str]:
    """Selectors from stylesheets under *css_dir* used by no page under *page_dir*."""
    pages = list_html_files(page_dir)
    css_files = sorted(p for p in Path(css_dir).glob(css_glob) if p.is_file())
    chunks = partition(pages, chunk_size)
    logger.info("Analyzing %d pages against %d stylesheets in %d chunks", len(pages), len(css_files), len(chunks))

    tally = tally_rejections(chunks, css_files, analyzer)
    return unused_everywhere(tally, len(chunks))
