# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Selector-usage analyzer: which stylesheet selectors match no element?

Stylesheets are parsed with cssutils, pages with lxml.html, and selectors
are matched through cssselect's HTML translator.

A selector is judged by its static part: pseudo-elements (``::before``) and
state pseudo-classes (``:hover``, ``:focus``) are stripped before matching,
since no archived page is ever hovered. Selectors that cssselect cannot
translate are kept (reported as used): a false "unused" is the costly error.

The result is returned directly; nothing is printed or intercepted.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path

import cssutils
import lxml.html
from cssselect import HTMLTranslator, SelectorError
from lxml import etree

from .errors import AnalyzerError

logger = logging.getLogger(__name__)

# cssutils logs every unknown property at WARNING/ERROR
cssutils.log.setLevel(logging.CRITICAL)

_STATE_PSEUDOS = (
    "hover",
    "focus-within",
    "focus-visible",
    "focus",
    "active",
    "visited",
    "link",
    "any-link",
    "target",
    "placeholder-shown",
    "autofill",
)
_LEGACY_PSEUDO_ELEMENTS = ("before", "after", "first-line", "first-letter")

_STRIP_RE = re.compile(
    r"::[\w-]+(?:\([^)]*\))?"  # pseudo-elements
    r"|:(?:" + "|".join(_LEGACY_PSEUDO_ELEMENTS + _STATE_PSEUDOS) + r")(?![\w-])"
    r"|:-[\w-]+(?:\([^)]*\))?"  # vendor-prefixed
)
# A stripped pseudo inside :not(...)/:is(...) would invert or widen its meaning
_NESTED_STRIP_RE = re.compile(r"\([^)]*(?:" + _STRIP_RE.pattern + r")")

# Where one archived document ends and the next begins
_DOCUMENT_START_RE = re.compile(rb"<!doctype\b|<html[\s>]", re.IGNORECASE)

_COMPOUND_BOUNDARY = frozenset(" \t\n>+~,(")

_translator = HTMLTranslator()


def _no_fetch(url: str) -> tuple[None, str]:
    """@import targets are never fetched; only archived stylesheets count."""
    return None, ""


_css_parser = cssutils.CSSParser(fetcher=_no_fetch, validate=False)


def normalize_selector(selector: str) -> str | None:
    """Strip pseudo-elements and state pseudo-classes from *selector*.

    Returns None when the selector cannot be judged statically.
    ``a:hover`` → ``a``; ``:hover`` → ``*``; ``ul > ::marker`` → ``ul > *``.
    """
    if _NESTED_STRIP_RE.search(selector):
        return None

    def _replace(m: re.Match[str]) -> str:
        start = m.start()
        if start == 0 or selector[start - 1] in _COMPOUND_BOUNDARY:
            return "*"
        return ""

    return _STRIP_RE.sub(_replace, selector).strip() or "*"


def _compile(selector: str) -> etree.XPath | None:
    """Selector → compiled XPath, or None if it cannot be judged."""
    normalized = normalize_selector(selector)
    if normalized is None:
        return None
    try:
        return etree.XPath(_translator.css_to_xpath(normalized))
    except (SelectorError, etree.XPathSyntaxError):
        logger.debug("Cannot translate selector %r; treating as used", selector)
        return None


# ── Input parsing ────────────────────────────────────────────────────


def _iter_style_rules(rules) -> Iterable:
    """Yield style rules, descending into @media blocks."""
    for rule in rules:
        if rule.type == rule.STYLE_RULE:
            yield rule
        elif rule.type == rule.MEDIA_RULE:
            yield from _iter_style_rules(rule.cssRules)


def read_selectors(css_files: Iterable[Path]) -> list[str]:
    """All selectors of all stylesheets, in order, de-duplicated."""
    selectors: dict[str, None] = {}
    for path in css_files:
        try:
            text = Path(path).read_bytes().decode("utf-8", errors="replace")
        except OSError as e:
            raise AnalyzerError(f"cannot read stylesheet {path}: {e}") from e
        sheet = _css_parser.parseString(text)
        for rule in _iter_style_rules(sheet.cssRules):
            for selector in rule.selectorList:
                selectors.setdefault(selector.selectorText, None)
    return list(selectors)


def split_documents(body: bytes) -> list[bytes]:
    """Split a page archive into the documents appended to it.

    A doctype opens a document and the ``<html>`` tag right after it belongs
    to the same one; any other ``<html>`` tag opens a new document.
    """
    starts: list[int] = []
    after_doctype = False
    for m in _DOCUMENT_START_RE.finditer(body):
        if m.group().startswith(b"<!"):
            starts.append(m.start())
            after_doctype = True
        elif after_doctype:
            after_doctype = False
        else:
            starts.append(m.start())
    if not starts or starts[0] != 0:
        starts.insert(0, 0)
    bounds = [*starts, len(body)]
    parts = (body[a:b] for a, b in zip(bounds, bounds[1:]))
    return [part for part in parts if part.strip()]


def _load_documents(path: Path) -> list:
    try:
        body = Path(path).read_bytes()
    except OSError as e:
        raise AnalyzerError(f"cannot read page {path}: {e}") from e
    docs = []
    for part in split_documents(body):
        try:
            docs.append(lxml.html.document_fromstring(part))
        except (etree.ParserError, ValueError):
            logger.warning("Unparseable document in %s ignored", path)
    return docs


# ── Public API ───────────────────────────────────────────────────────


def find_rejected_selectors(html_files: Iterable[Path], css_files: Iterable[Path]) -> list[str]:
    """Selectors from *css_files* that match no element in any of *html_files*.

    Order follows the stylesheets; each selector appears once.

    Raises:
        AnalyzerError: If an input file cannot be read.
    """
    selectors = read_selectors(css_files)
    remaining: dict[str, etree.XPath] = {}
    for selector in selectors:
        xpath = _compile(selector)
        if xpath is not None:
            remaining[selector] = xpath

    for path in html_files:
        if not remaining:
            break
        for doc in _load_documents(path):
            for selector, xpath in list(remaining.items()):
                try:
                    matched = bool(xpath(doc))
                except etree.XPathEvalError:
                    matched = True
                if matched:
                    del remaining[selector]

    return [s for s in selectors if s in remaining]
