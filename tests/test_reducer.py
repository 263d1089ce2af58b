# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for unusedcss.reducer — chunking and the all-chunks-agree tally."""

from __future__ import annotations

from pathlib import Path

import pytest

from unusedcss.errors import AnalyzerError
from unusedcss.reducer import (
    list_html_files,
    partition,
    reduce_unused_selectors,
    tally_rejections,
    unused_everywhere,
)

# ── helpers ──────────────────────────────────────────────────────────


def _pages(n: int) -> list[Path]:
    return [Path(f"p{i:04d}.html") for i in range(n)]


class _ScriptedAnalyzer:
    """Returns a fixed rejection list per call; records the calls."""

    def __init__(self, *per_chunk: list[str]) -> None:
        self._per_chunk = list(per_chunk)
        self.calls: list[tuple[list[Path], list[Path]]] = []

    def __call__(self, html_files, css_files):
        self.calls.append((list(html_files), list(css_files)))
        return self._per_chunk[len(self.calls) - 1]


# ── list_html_files ──────────────────────────────────────────────────


class TestListHtmlFiles:
    def test_recursive_sorted_html_only(self, tmp_path):
        for rel in ("index.html", "docs/a.html", "docs/deep/b.html", "docs/notes.txt", "z.html"):
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("<p></p>")
        (tmp_path / "empty-dir").mkdir()
        files = list_html_files(tmp_path)
        assert [f.relative_to(tmp_path).as_posix() for f in files] == [
            "docs/a.html",
            "docs/deep/b.html",
            "index.html",
            "z.html",
        ]

    def test_deep_tree_no_recursion_limit(self, tmp_path):
        path = tmp_path
        for i in range(200):
            path = path / f"d{i}"
        path.mkdir(parents=True)
        (path / "leaf.html").write_text("x")
        assert len(list_html_files(tmp_path)) == 1

    def test_missing_root(self, tmp_path):
        assert list_html_files(tmp_path / "absent") == []


# ── partition ────────────────────────────────────────────────────────


class TestPartition:
    def test_1200_pages_by_500(self):
        chunks = partition(_pages(1200), 500)
        assert [len(c) for c in chunks] == [500, 500, 200]

    def test_exact_multiple(self):
        assert [len(c) for c in partition(_pages(1000), 500)] == [500, 500]

    def test_fewer_than_size_is_one_chunk(self):
        assert [len(c) for c in partition(_pages(3), 500)] == [3]

    def test_empty(self):
        assert partition([], 500) == []

    def test_order_preserved(self):
        pages = _pages(7)
        assert [p for c in partition(pages, 3) for p in c] == pages

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            partition(_pages(3), 0)


# ── tally / invariant ────────────────────────────────────────────────


class TestAllChunksAgree:
    def test_rejected_in_every_chunk_reported(self):
        analyzer = _ScriptedAnalyzer([".a", ".b"], [".a", ".b"], [".a"])
        chunks = partition(_pages(1200), 500)
        tally = tally_rejections(chunks, [Path("s.css")], analyzer)
        assert tally == {".a": 3, ".b": 2}
        assert unused_everywhere(tally, len(chunks)) == [".a"]

    def test_duplicates_within_chunk_count_once(self):
        analyzer = _ScriptedAnalyzer([".a", ".a", ".a"], [".b"])
        tally = tally_rejections([[Path("1.html")], [Path("2.html")]], [], analyzer)
        assert tally == {".a": 1, ".b": 1}
        assert unused_everywhere(tally, 2) == []

    def test_first_rejection_order(self):
        analyzer = _ScriptedAnalyzer([".z", ".y"], [".x", ".y", ".z"])
        tally = tally_rejections([[Path("1.html")], [Path("2.html")]], [], analyzer)
        assert list(tally) == [".z", ".y", ".x"]
        assert unused_everywhere(tally, 2) == [".z", ".y"]

    def test_every_chunk_sees_all_stylesheets(self):
        css = [Path("a.css"), Path("b.css")]
        analyzer = _ScriptedAnalyzer([], [], [])
        tally_rejections(partition(_pages(5), 2), css, analyzer)
        assert [len(html) for html, _ in analyzer.calls] == [2, 2, 1]
        assert all(seen == css for _, seen in analyzer.calls)

    def test_analyzer_failure_is_fatal(self):
        def _broken(html_files, css_files):
            raise RuntimeError("boom")

        with pytest.raises(AnalyzerError) as exc_info:
            tally_rejections(partition(_pages(3), 1), [], _broken)
        assert exc_info.value.chunk_index == 0
        assert "chunk 1/3" in str(exc_info.value)

    def test_analyzer_error_gets_chunk_index(self):
        calls = []

        def _fails_second(html_files, css_files):
            calls.append(1)
            if len(calls) == 2:
                raise AnalyzerError("cannot read page")
            return []

        with pytest.raises(AnalyzerError) as exc_info:
            tally_rejections(partition(_pages(3), 1), [], _fails_second)
        assert exc_info.value.chunk_index == 1


# ── reduce_unused_selectors ──────────────────────────────────────────


class TestReduceUnusedSelectors:
    def _archive(self, tmp_path, pages: dict[str, str], sheets: dict[str, str]):
        html_dir, css_dir = tmp_path / "html", tmp_path / "css"
        for rel, text in pages.items():
            (html_dir / rel).parent.mkdir(parents=True, exist_ok=True)
            (html_dir / rel).write_text(text)
        for rel, text in sheets.items():
            (css_dir / rel).parent.mkdir(parents=True, exist_ok=True)
            (css_dir / rel).write_text(text)
        return html_dir, css_dir

    def test_selector_used_in_another_chunk_not_reported(self, tmp_path):
        html_dir, css_dir = self._archive(
            tmp_path,
            {
                "a.html": '<html><body><i class="one"></i></body></html>',
                "b.html": '<html><body><i class="two"></i></body></html>',
                "c.html": "<html><body></body></html>",
            },
            {"static/s.css": ".one { } .two { } .never { }"},
        )
        # chunk size 1: .one rejected by b and c, .two by a and c, .never by all
        assert reduce_unused_selectors(html_dir, css_dir, chunk_size=1) == [".never"]
        assert reduce_unused_selectors(html_dir, css_dir, chunk_size=500) == [".never"]

    def test_css_glob_selects_stylesheets(self, tmp_path):
        html_dir, css_dir = self._archive(
            tmp_path,
            {"a.html": "<html><body></body></html>"},
            {"static/s.css": ".s { }", "theme/t.css": ".t { }"},
        )
        assert reduce_unused_selectors(html_dir, css_dir, "static/**/*.css") == [".s"]
        assert reduce_unused_selectors(html_dir, css_dir) == [".s", ".t"]

    def test_no_pages_reports_nothing(self, tmp_path):
        html_dir, css_dir = self._archive(tmp_path, {}, {"s.css": ".a { }"})
        analyzer = _ScriptedAnalyzer()
        assert reduce_unused_selectors(html_dir, css_dir, analyzer=analyzer) == []
        assert analyzer.calls == []

    def test_custom_analyzer_receives_sorted_inputs(self, tmp_path):
        html_dir, css_dir = self._archive(
            tmp_path,
            {"b.html": "", "a.html": ""},
            {"z.css": "", "y.css": ""},
        )
        analyzer = _ScriptedAnalyzer([".x"])
        assert reduce_unused_selectors(html_dir, css_dir, analyzer=analyzer) == [".x"]
        html, css = analyzer.calls[0]
        assert [p.name for p in html] == ["a.html", "b.html"]
        assert [p.name for p in css] == ["y.css", "z.css"]
