"""Log output for the monitor: one structlog chain for every record.

Records from ``logging.getLogger(__name__)`` and from structlog loggers
are rendered alike, with any context bound through
``spot_monitor.logging.context`` merged in (region, fetch cycle).
"""

from __future__ import annotations

import logging
import sys

import structlog

# HTTP client request lines would drown out the fetch summaries
QUIET_LOGGERS = ("httpx", "httpcore")

_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def setup_logging(level: str = "INFO", fmt: str = "json", log_file: str = "") -> None:
    """Route all monitor logging to stdout, plus ``log_file`` when set.

    ``fmt`` is "json" (one object per line) or "console".
    """
    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(fmt)],
    )

    outputs: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        outputs.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    root.handlers.clear()
    for output in outputs:
        output.setFormatter(formatter)
        root.addHandler(output)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
