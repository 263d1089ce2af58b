# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Crawl settings shared by the scanner, scheduler, and reducer."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from . import __version__
from .errors import ConfigError

DEFAULT_CHUNK_SIZE = 500
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = f"UnusedCssBot/{__version__}"


def default_concurrency() -> int:
    """One scan slot per available core."""
    return os.cpu_count() or 1


@dataclass(frozen=True, slots=True)
class CrawlConfig:
    """Immutable crawl configuration.

    ``output_root`` holds one directory per run, keyed by the run timestamp.
    """

    output_root: Path = Path("output")
    concurrency: int = field(default_factory=default_concurrency)
    chunk_size: int = DEFAULT_CHUNK_SIZE
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.chunk_size < 1:
            raise ConfigError(f"chunk size must be >= 1, got {self.chunk_size}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")
