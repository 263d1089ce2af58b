# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Report writer: newline-delimited selector list."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


def write_report(path: Path, selectors: Iterable[str]) -> int:
    """Write one selector per line to a fresh file at *path*.

    The file is flushed and synced before returning. Returns the number of
    selectors written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, "w", encoding="utf-8", newline="\n") as fh:
        for selector in selectors:
            fh.write(f"{selector}\n")
            count += 1
        fh.flush()
        os.fsync(fh.fileno())
    logger.info("Wrote %d selectors to %s", count, path)
    return count
