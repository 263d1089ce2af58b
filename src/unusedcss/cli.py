# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Unused CSS CLI: crawl a sitemap and report selectors no page uses.

Usage:
    unusedcss --url https://example.com/sitemap.xml [--whitelist /static,/assets/css]
    python -m unusedcss.cli --url URL [--output DIR] [--concurrency N] [--chunk-size N]

Exit codes: 0 success (report path on stdout), 1 invalid input or fatal
pipeline error, 130 interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from contextlib import suppress
from pathlib import Path

from .config import DEFAULT_CHUNK_SIZE, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, CrawlConfig, default_concurrency
from .errors import ConfigError, UnusedCssError

logger = logging.getLogger(__name__)

_ENV_PREFIX = "UNUSEDCSS_"


def _one_line(exc: BaseException) -> str:
    """First line of an exception message (httpx messages span several)."""
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="unusedcss",
        description="Crawl a site's sitemap, archive pages and stylesheets, and list CSS selectors no page uses.",
    )
    # Validated by hand so a missing --url exits 1 like an invalid one
    parser.add_argument("--url", default=None, help="Root sitemap URL (required)")
    parser.add_argument(
        "--whitelist",
        default=None,
        help="Comma-separated regexes, anchored at the start of a stylesheet's URL path (default: all)",
    )
    parser.add_argument("--output", default=None, help="Output root; each run writes <output>/<timestamp>/")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help=f"Pages fetched in parallel (default: CPU count, {default_concurrency()})",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help=f"Pages per analysis chunk (default: {DEFAULT_CHUNK_SIZE})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT:g})",
    )
    parser.add_argument("--user-agent", default=None, help=f"User-Agent header (default: {DEFAULT_USER_AGENT})")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines on stderr")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    # Env var overrides (flags win)
    env_output = os.environ.get(f"{_ENV_PREFIX}OUTPUT", "").strip()
    if env_output and args.output is None:
        args.output = env_output

    env_concurrency = os.environ.get(f"{_ENV_PREFIX}CONCURRENCY", "").strip()
    if env_concurrency and args.concurrency is None:
        with suppress(ValueError):
            args.concurrency = int(env_concurrency)

    env_chunk = os.environ.get(f"{_ENV_PREFIX}CHUNK_SIZE", "").strip()
    if env_chunk and args.chunk_size is None:
        with suppress(ValueError):
            args.chunk_size = int(env_chunk)

    env_timeout = os.environ.get(f"{_ENV_PREFIX}TIMEOUT", "").strip()
    if env_timeout and args.timeout is None:
        with suppress(ValueError):
            args.timeout = float(env_timeout)

    env_ua = os.environ.get(f"{_ENV_PREFIX}USER_AGENT", "").strip()
    if env_ua and args.user_agent is None:
        args.user_agent = env_ua

    return args


def build_config(args: argparse.Namespace) -> CrawlConfig:
    """CrawlConfig from parsed args; unset options keep their defaults."""
    overrides: dict = {}
    if args.output is not None:
        overrides["output_root"] = Path(args.output)
    if args.concurrency is not None:
        overrides["concurrency"] = args.concurrency
    if args.chunk_size is not None:
        overrides["chunk_size"] = args.chunk_size
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.user_agent:
        overrides["user_agent"] = args.user_agent
    return CrawlConfig(**overrides)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)

    from .logging_config import configure

    configure(json_output=args.json_logs, level="DEBUG" if args.verbose else "INFO")

    from .context import create_run_context
    from .pipeline import run

    try:
        config = build_config(args)
        ctx = create_run_context(args.url, whitelist=args.whitelist, output_root=config.output_root)
    except ConfigError as e:
        print(f"Error: {_one_line(e)}", file=sys.stderr)
        sys.exit(1)

    try:
        result = asyncio.run(run(ctx, config))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except UnusedCssError as e:
        logger.debug("Run failed", exc_info=True)
        print(f"Error: {_one_line(e)}", file=sys.stderr)
        sys.exit(1)
    except Exception:
        logger.exception("Unhandled error during run")
        print("Error: run failed unexpectedly (see log above)", file=sys.stderr)
        sys.exit(1)

    print(result.report_path)


if __name__ == "__main__":
    main()
