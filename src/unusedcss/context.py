# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""RunContext — immutable per-invocation state, leaf module.

Created once by the CLI (or a test) and passed explicitly to every
component. Nothing in the package reads the run directory from globals.
"""

from __future__ import annotations

import dataclasses
import re
import time
from pathlib import Path

from .errors import InvalidUrlError
from .urls import compile_whitelist, has_host

HTML_DIRNAME = "html"
CSS_DIRNAME = "css"
REPORT_FILENAME = "report.txt"


@dataclasses.dataclass(frozen=True, slots=True, kw_only=True)
class RunContext:
    """Per-run context: root URL, whitelist, and the run's output directory."""

    root_url: str
    whitelist: tuple[re.Pattern[str], ...]
    run_dir: Path
    started_at: int

    @property
    def html_dir(self) -> Path:
        return self.run_dir / HTML_DIRNAME

    @property
    def css_dir(self) -> Path:
        return self.run_dir / CSS_DIRNAME

    @property
    def report_path(self) -> Path:
        return self.run_dir / REPORT_FILENAME


def create_run_context(
    url: str | None,
    *,
    whitelist: str | None = None,
    output_root: Path = Path("output"),
    started_at: int | None = None,
) -> RunContext:
    """Validate inputs and build the RunContext for one invocation.

    Raises:
        InvalidUrlError: If *url* is missing or has no host.
        ConfigError: If a whitelist pattern does not compile.
    """
    if not url or not has_host(url.strip()):
        raise InvalidUrlError(f"--url must be an http(s) URL with a host, got {url!r}", url=url or "")
    ts = int(time.time()) if started_at is None else started_at
    return RunContext(
        root_url=url.strip(),
        whitelist=compile_whitelist(whitelist),
        run_dir=Path(output_root) / str(ts),
        started_at=ts,
    )
