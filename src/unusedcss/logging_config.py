# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Run logging for the crawler: stdlib loggers rendered through structlog.

The CLI calls ``configure()`` once, before the run starts. Crawl progress and
per-page warnings go to stderr so stdout carries only the report path.
Imports nothing from unusedcss.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Chatty per-request loggers of the HTTP stack
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route every module logger through one structlog-formatted stderr handler.

    Args:
        json_output: ``--json-logs``; one JSON object per line for log
            collectors, otherwise coloured console lines.
        level: ``DEBUG`` under ``--verbose``, else ``INFO``. At INFO the
            per-request lines of httpx and httpcore are held back.
    """
    processors = _shared_processors()
    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(processors, json_output))
    root_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(root_level)

    http_level = logging.DEBUG if root_level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(http_level)


def _shared_processors() -> list:
    """Event enrichment applied to structlog and plain stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _stderr_handler(processors: list, json_output: bool) -> logging.Handler:
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=processors,
        )
    )
    return handler
